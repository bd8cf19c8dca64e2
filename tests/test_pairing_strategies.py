from cardintake.services.pairing.strategies import (
    UploadRef,
    is_front_name,
    match_by_filename,
    match_by_sequence,
    sequence_key,
)


def _refs(*names):
    return [UploadRef(id=f"u{i}", filename=name) for i, name in enumerate(names)]


def _names(pairs):
    return {(p.front.filename, p.back.filename) for p in pairs}


def test_front_back_suffixes_pair_by_filename():
    pairs = match_by_filename(_refs("card_back.jpg", "card_front.jpg", "other_f.png", "other_b.png"))
    assert _names(pairs) == {("card_front.jpg", "card_back.jpg"), ("other_f.png", "other_b.png")}
    assert all(p.method == "auto_filename" and p.confidence == 0.95 for p in pairs)


def test_filename_match_is_case_insensitive_and_needs_same_extension():
    pairs = match_by_filename(_refs("Card_FRONT.JPG", "card_back.jpg", "x_front.png", "x_back.jpg"))
    assert _names(pairs) == {("Card_FRONT.JPG", "card_back.jpg")}


def test_numeric_role_suffix_pairs_one_and_two():
    pairs = match_by_filename(_refs("rookie_2.jpg", "rookie_1.jpg"))
    assert _names(pairs) == {("rookie_1.jpg", "rookie_2.jpg")}


def test_numbered_scan_run_is_left_to_sequence_matching():
    refs = _refs("scan_1.jpg", "scan_2.jpg", "scan_3.jpg")
    assert match_by_filename(refs) == []
    pairs = match_by_sequence(refs)
    assert _names(pairs) == {("scan_1.jpg", "scan_2.jpg")}
    assert pairs[0].method == "auto_sequential"
    assert pairs[0].confidence == 0.80


def test_is_front_name():
    assert is_front_name("Card_Front.jpg")
    assert is_front_name("card_f.png")
    assert is_front_name("card_1.png")
    assert not is_front_name("card_back.png")


def test_sequence_key_uses_last_number():
    assert sequence_key("IMG_001.jpg") == ("img", 1)
    assert sequence_key("batch2 scan-14.png") == ("batch2 scan", 14)
    assert sequence_key("cover.jpg") is None


def test_sequence_pairs_adjacent_numbers_in_order():
    pairs = match_by_sequence(_refs("IMG_004.jpg", "IMG_002.jpg", "IMG_001.jpg", "IMG_003.jpg"))
    assert _names(pairs) == {("IMG_001.jpg", "IMG_002.jpg"), ("IMG_003.jpg", "IMG_004.jpg")}


def test_sequence_skips_gaps_and_separates_groups():
    pairs = match_by_sequence(_refs("IMG_1.jpg", "IMG_3.jpg", "IMG_4.jpg", "DSC_5.jpg", "DSC_6.jpg", "notes.jpg"))
    assert _names(pairs) == {("IMG_3.jpg", "IMG_4.jpg"), ("DSC_5.jpg", "DSC_6.jpg")}


def test_sequence_is_greedy_without_backtracking():
    pairs = match_by_sequence(_refs("p_1.jpg", "p_2.jpg", "p_3.jpg", "p_5.jpg"))
    assert _names(pairs) == {("p_1.jpg", "p_2.jpg")}


def test_empty_input_yields_no_pairs():
    assert match_by_filename([]) == []
    assert match_by_sequence([]) == []
