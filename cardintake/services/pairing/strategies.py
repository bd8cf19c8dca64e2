"""Front/back matching heuristics.

Both strategies are pure: they take upload references and return proposed
pairs without touching storage. They run in a fixed order, filename suffixes
first, then sequential numbering over whatever the first pass left.
"""

import re
from dataclasses import dataclass
from typing import Callable

FILENAME_CONFIDENCE = 0.95
SEQUENTIAL_CONFIDENCE = 0.80


@dataclass(frozen=True, slots=True)
class UploadRef:
    id: str
    filename: str


@dataclass(frozen=True, slots=True)
class PairCandidate:
    front: UploadRef
    back: UploadRef
    method: str
    confidence: float


@dataclass(frozen=True, slots=True)
class _SuffixPattern:
    regex: re.Pattern[str]
    partners: Callable[[str], list[str]]
    numeric: bool = False


SUFFIX_PATTERNS = (
    _SuffixPattern(re.compile(r"^(.+)_(?:front|f)(\.[^.]+)$"), lambda base: [f"{base}_back", f"{base}_b"]),
    _SuffixPattern(re.compile(r"^(.+)_(?:back|b)(\.[^.]+)$"), lambda base: [f"{base}_front", f"{base}_f"]),
    _SuffixPattern(re.compile(r"^(.+)_1(\.[^.]+)$"), lambda base: [f"{base}_2"], numeric=True),
    _SuffixPattern(re.compile(r"^(.+)_2(\.[^.]+)$"), lambda base: [f"{base}_1"], numeric=True),
)
FRONT_TOKENS = ("front", "_f.", "_1.")

LAST_NUMBER = re.compile(r"(\d+)(?!.*\d)")
EXTENSION = re.compile(r"\.[^.]+$")
TRAILING_NUMBER = re.compile(r"[\s_\-]*\d+$")


def is_front_name(filename: str) -> bool:
    lowered = filename.lower()
    return any(token in lowered for token in FRONT_TOKENS)


def _is_numbered_run(base: str, extension: str, uploads: list[UploadRef]) -> bool:
    # base_1/base_2 next to base_3 (or higher) is scanner numbering, not a role suffix
    sibling = re.compile(rf"^{re.escape(base)}_(\d+){re.escape(extension)}$")
    for other in uploads:
        match = sibling.match(other.filename.lower())
        if match and int(match.group(1)) not in (1, 2):
            return True
    return False


def match_by_filename(uploads: list[UploadRef]) -> list[PairCandidate]:
    """Pair ``name_front``/``name_back`` (and ``_f``/``_b``, ``_1``/``_2``) siblings."""
    pairs: list[PairCandidate] = []
    claimed: set[str] = set()

    for upload in uploads:
        if upload.id in claimed:
            continue
        filename = upload.filename.lower()
        for pattern in SUFFIX_PATTERNS:
            match = pattern.regex.match(filename)
            if not match:
                continue
            base, extension = match.groups()
            if pattern.numeric and _is_numbered_run(base, extension, uploads):
                continue
            wanted = {f"{name}{extension}" for name in pattern.partners(base)}
            partner = next(
                (
                    other
                    for other in uploads
                    if other.id != upload.id and other.id not in claimed and other.filename.lower() in wanted
                ),
                None,
            )
            if partner is None:
                continue
            if is_front_name(filename):
                front, back = upload, partner
            else:
                front, back = partner, upload
            pairs.append(PairCandidate(front, back, "auto_filename", FILENAME_CONFIDENCE))
            claimed.update({front.id, back.id})
            break

    return pairs


def sequence_key(filename: str) -> tuple[str, int] | None:
    """Return ``(group_key, number)`` from the last digit run, or None without digits."""
    name = filename.lower()
    match = LAST_NUMBER.search(name)
    if not match:
        return None
    stem = EXTENSION.sub("", name)
    return TRAILING_NUMBER.sub("", stem), int(match.group(1))


def match_by_sequence(uploads: list[UploadRef]) -> list[PairCandidate]:
    """Pair adjacent scan numbers within each filename group.

    Greedy and non-backtracking: members are sorted by number and walked with
    two pointers, so ``1,2,3`` yields ``(1,2)`` and leaves ``3`` unpaired.
    """
    groups: dict[str, list[tuple[int, UploadRef]]] = {}
    for upload in uploads:
        key = sequence_key(upload.filename)
        if key is None:
            continue
        prefix, number = key
        groups.setdefault(prefix, []).append((number, upload))

    pairs: list[PairCandidate] = []
    claimed: set[str] = set()
    for members in groups.values():
        members.sort(key=lambda item: item[0])
        i = 0
        while i < len(members) - 1:
            current_number, current = members[i]
            next_number, following = members[i + 1]
            if current.id in claimed or following.id in claimed:
                i += 1
                continue
            if next_number - current_number == 1:
                pairs.append(PairCandidate(current, following, "auto_sequential", SEQUENTIAL_CONFIDENCE))
                claimed.update({current.id, following.id})
                i += 2
            else:
                i += 1

    return pairs
