import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from cardintake.db.repository import CardRepository
from cardintake.services.pairing import PairingError, create_manual_pair, get_batch_pairing_status, pair_batch

PROFILE_ID = "profile-1"


def test_pair_batch_uses_filename_then_sequence(repo, make_batch):
    batch_id, ids = make_batch("card_front.jpg", "card_back.jpg", "IMG_001.jpg", "IMG_002.jpg", "lonely.jpg")

    result = pair_batch(repo, batch_id, PROFILE_ID)

    assert result.success
    assert result.pairs_created == 2
    assert result.orphaned_upload_ids == [ids["lonely.jpg"]]
    assert result.errors == []

    pairs = {p.front_upload_id: p for p in repo.list_pairs(batch_id, PROFILE_ID)}
    assert pairs[ids["card_front.jpg"]].method == "auto_filename"
    assert pairs[ids["card_front.jpg"]].back_upload_id == ids["card_back.jpg"]
    assert pairs[ids["IMG_001.jpg"]].method == "auto_sequential"

    statuses = {u.filename: u.status for u in repo.list_uploads(batch_id, PROFILE_ID)}
    assert statuses["lonely.jpg"] == "orphaned"
    assert statuses["IMG_002.jpg"] == "paired"


def test_pair_batch_with_no_uploads_is_empty_success(repo, make_batch):
    batch_id, _ = make_batch()
    result = pair_batch(repo, batch_id, PROFILE_ID)
    assert result.success
    assert result.pairs_created == 0
    assert result.orphaned_upload_ids == []


def test_single_upload_skips_sequence_and_is_orphaned(repo, make_batch):
    batch_id, ids = make_batch("IMG_010.jpg")
    result = pair_batch(repo, batch_id, PROFILE_ID)
    assert result.pairs_created == 0
    assert result.orphaned_upload_ids == [ids["IMG_010.jpg"]]


def test_rerun_does_not_duplicate_pairs(repo, make_batch):
    batch_id, _ = make_batch("IMG_001.jpg", "IMG_002.jpg", "IMG_003.jpg")
    first = pair_batch(repo, batch_id, PROFILE_ID)
    second = pair_batch(repo, batch_id, PROFILE_ID)

    assert first.pairs_created == 1
    assert second.success
    assert second.pairs_created == 0
    assert len(repo.list_pairs(batch_id, PROFILE_ID)) == 1


class FlakyRepository(CardRepository):
    def __init__(self, db, fail_front_ids):
        super().__init__(db)
        self.fail_front_ids = set(fail_front_ids)

    def create_pair(self, batch_id, profile_id, front_upload_id, back_upload_id, method, confidence):
        if front_upload_id in self.fail_front_ids:
            raise IntegrityError("INSERT INTO card_pairs", {}, Exception("duplicate"))
        return super().create_pair(batch_id, profile_id, front_upload_id, back_upload_id, method, confidence)


def test_failed_pair_insert_is_reported_and_others_persist(db, make_batch):
    batch_id, ids = make_batch("IMG_001.jpg", "IMG_002.jpg", "IMG_003.jpg", "IMG_004.jpg")
    flaky = FlakyRepository(db, fail_front_ids=[ids["IMG_001.jpg"]])

    result = pair_batch(flaky, batch_id, PROFILE_ID)

    assert result.success
    assert result.pairs_created == 1
    assert len(result.errors) == 1
    assert "IMG_001.jpg" in result.errors[0]

    statuses = {u.filename: u.status for u in flaky.list_uploads(batch_id, PROFILE_ID)}
    assert statuses["IMG_001.jpg"] == "uploaded"
    assert statuses["IMG_002.jpg"] == "uploaded"
    assert statuses["IMG_003.jpg"] == "paired"

    retry = pair_batch(CardRepository(db), batch_id, PROFILE_ID)
    assert retry.pairs_created == 1
    assert len(flaky.list_pairs(batch_id, PROFILE_ID)) == 2


class StatusFailingRepository(CardRepository):
    def __init__(self, db):
        super().__init__(db)
        self.failed = False

    def set_upload_status(self, upload_ids, status):
        if status == "paired" and not self.failed:
            self.failed = True
            raise OperationalError("UPDATE uploads", {}, Exception("database is locked"))
        return super().set_upload_status(upload_ids, status)


def test_rerun_recovers_uploads_whose_pair_was_already_stored(db, make_batch):
    batch_id, ids = make_batch("IMG_001.jpg", "IMG_002.jpg")

    first = pair_batch(StatusFailingRepository(db), batch_id, PROFILE_ID)
    assert first.pairs_created == 1
    assert len(first.errors) == 1

    repo = CardRepository(db)
    statuses = {u.filename: u.status for u in repo.list_uploads(batch_id, PROFILE_ID)}
    assert statuses == {"IMG_001.jpg": "uploaded", "IMG_002.jpg": "uploaded"}

    retry = pair_batch(repo, batch_id, PROFILE_ID)

    assert retry.success
    assert retry.pairs_created == 0
    assert retry.errors == []
    assert retry.orphaned_upload_ids == []
    statuses = {u.filename: u.status for u in repo.list_uploads(batch_id, PROFILE_ID)}
    assert statuses == {"IMG_001.jpg": "paired", "IMG_002.jpg": "paired"}
    assert len(repo.list_pairs(batch_id, PROFILE_ID)) == 1


def test_manual_pair_links_orphans_and_marks_batch_paired(repo, make_batch):
    batch_id, ids = make_batch("front.jpg", "reverse.jpg")
    result = pair_batch(repo, batch_id, PROFILE_ID)
    assert len(result.orphaned_upload_ids) == 2
    repo.set_batch_status(batch_id, "needs_pairing")

    pair = create_manual_pair(repo, batch_id, PROFILE_ID, ids["front.jpg"], ids["reverse.jpg"])

    assert pair.method == "manual"
    assert pair.confidence == 1.0
    assert repo.get_batch(batch_id).status == "paired"
    status = get_batch_pairing_status(repo, batch_id, PROFILE_ID)
    assert status.paired_uploads == 2
    assert status.orphaned_uploads == 0
    assert status.pairs_created == 1


def test_manual_pair_allows_front_only(repo, make_batch):
    batch_id, ids = make_batch("single.jpg")
    pair = create_manual_pair(repo, batch_id, PROFILE_ID, ids["single.jpg"])
    assert pair.back_upload_id is None


def test_manual_pair_rejects_invalid_input(repo, make_batch):
    batch_id, ids = make_batch("a.jpg", "b.jpg", "c.jpg")
    with pytest.raises(PairingError):
        create_manual_pair(repo, batch_id, PROFILE_ID, ids["a.jpg"], ids["a.jpg"])
    with pytest.raises(PairingError):
        create_manual_pair(repo, batch_id, PROFILE_ID, ids["a.jpg"], "missing-id")
    with pytest.raises(PairingError):
        create_manual_pair(repo, batch_id, "someone-else", ids["a.jpg"], ids["b.jpg"])

    create_manual_pair(repo, batch_id, PROFILE_ID, ids["a.jpg"], ids["b.jpg"])
    with pytest.raises(PairingError):
        create_manual_pair(repo, batch_id, PROFILE_ID, ids["c.jpg"], ids["b.jpg"])


def test_pairing_status_lists_orphans(repo, make_batch):
    batch_id, ids = make_batch("IMG_001.jpg", "IMG_002.jpg", "odd.png")
    pair_batch(repo, batch_id, PROFILE_ID)
    status = get_batch_pairing_status(repo, batch_id, PROFILE_ID)
    assert status.total_uploads == 3
    assert status.paired_uploads == 2
    assert [u.id for u in status.orphaned_files] == [ids["odd.png"]]
