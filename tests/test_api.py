from pathlib import Path
from urllib.parse import urlsplit

from cardintake.services.storage import create_signed_url

HEADERS = {"X-Profile-Id": "profile-1"}
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"0" * 64


def _files(*names):
    return [("files", (name, JPEG_BYTES + name.encode(), "image/jpeg")) for name in names]


def _create_batch(client, *names, **data):
    response = client.post("/batches", headers=HEADERS, files=_files(*names), data=data)
    assert response.status_code == 201, response.text
    return response.json()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_end_to_end_flow(client, mock_vision):
    created = _create_batch(client, "IMG_001.jpg", "IMG_002.jpg", "IMG_003.jpg", "IMG_004.jpg", name="Box 7")
    batch_id = created["batch"]["id"]
    assert created["batch"]["name"] == "Box 7"
    assert created["batch"]["total_files"] == 4
    assert len(created["uploads"]) == 4
    assert created["job_id"]

    batch = client.get(f"/batches/{batch_id}", headers=HEADERS).json()
    assert batch["status"] == "paired"
    assert batch["pair_count"] == 2

    pairing = client.get(f"/batches/{batch_id}/pair", headers=HEADERS).json()
    assert pairing["orphaned_uploads"] == 0
    assert {p["method"] for p in pairing["pairs"]} == {"auto_sequential"}

    job = client.get(f"/jobs/{created['job_id']}", headers=HEADERS).json()
    assert job["status"] == "completed"
    assert job["result"]["pairs_created"] == 2
    assert job["events"][0]["level"] == "info"

    ocr = client.post(f"/batches/{batch_id}/ocr", headers=HEADERS)
    assert ocr.status_code == 202, ocr.text
    assert ocr.json()["type"] == "ocr"

    cards = client.get(f"/batches/{batch_id}/cards", headers=HEADERS).json()
    assert len(cards) == 2
    assert cards[0]["player"] == "Joe Burrow"
    assert len(mock_vision) == 2
    assert client.get(f"/batches/{batch_id}", headers=HEADERS).json()["status"] == "ocr_complete"

    status = client.get(f"/batches/{batch_id}/ocr", headers=HEADERS).json()
    assert status["ocr_complete"] is True

    jobs = client.get("/jobs", headers=HEADERS).json()
    assert {j["type"] for j in jobs} == {"pairing", "ocr"}


def test_orphans_can_be_paired_manually(client):
    created = _create_batch(client, "front.jpg", "reverse.jpg")
    batch_id = created["batch"]["id"]
    assert client.get(f"/batches/{batch_id}", headers=HEADERS).json()["status"] == "needs_pairing"

    ids = {u["filename"]: u["id"] for u in created["uploads"]}
    response = client.post(
        f"/batches/{batch_id}/manual-pair",
        headers=HEADERS,
        json={"front_upload_id": ids["front.jpg"], "back_upload_id": ids["reverse.jpg"]},
    )
    assert response.status_code == 201, response.text
    assert response.json()["method"] == "manual"
    assert client.get(f"/batches/{batch_id}", headers=HEADERS).json()["status"] == "paired"

    duplicate = client.post(
        f"/batches/{batch_id}/manual-pair",
        headers=HEADERS,
        json={"front_upload_id": ids["front.jpg"]},
    )
    assert duplicate.status_code == 400


def test_ocr_requires_a_paired_batch(client):
    created = _create_batch(client, "lonely.jpg")
    response = client.post(f"/batches/{created['batch']['id']}/ocr", headers=HEADERS)
    assert response.status_code == 409


def test_pair_endpoint_is_idempotent_while_active(client):
    created = _create_batch(client, "IMG_001.jpg", "IMG_002.jpg")
    response = client.post(f"/batches/{created['batch']['id']}/pair", headers=HEADERS)
    assert response.status_code == 202
    assert response.json()["reused"] is False


def test_duplicate_files_are_ignored(client):
    created = _create_batch(client, "IMG_001.jpg", "IMG_001.jpg", "IMG_002.jpg")
    assert len(created["uploads"]) == 2


def test_upload_validation(client):
    bad_ext = client.post("/batches", headers=HEADERS, files=[("files", ("notes.txt", b"hi", "text/plain"))])
    assert bad_ext.status_code == 400
    bad_type = client.post("/batches", headers=HEADERS, files=[("files", ("a.jpg", b"hi", "text/plain"))])
    assert bad_type.status_code == 400
    assert client.get("/batches", headers=HEADERS).json() == []


def test_profile_header_is_required_and_scopes_batches(client):
    assert client.get("/batches").status_code == 401
    created = _create_batch(client, "IMG_001.jpg")
    other = {"X-Profile-Id": "profile-2"}
    assert client.get(f"/batches/{created['batch']['id']}", headers=other).status_code == 404
    assert client.get(f"/jobs/{created['job_id']}", headers=other).status_code == 404
    assert len(client.get("/batches", headers=HEADERS).json()) == 1


def test_signed_file_access(client):
    created = _create_batch(client, "IMG_001.jpg")
    storage_path = created["uploads"][0]["storage_path"]
    url = urlsplit(create_signed_url(storage_path))

    ok = client.get(f"{url.path}?{url.query}")
    assert ok.status_code == 200
    assert ok.content.startswith(JPEG_BYTES)

    assert client.get(url.path, params={"token": "bogus"}).status_code == 403
    assert client.get(url.path).status_code == 422


def test_process_endpoint_runs_a_pass(client):
    response = client.post("/jobs/process", headers=HEADERS)
    assert response.status_code == 200
    assert response.json() == {"success": True, "processed_jobs": 0, "results": [], "error": None}


def test_colliding_storage_names_reject_the_batch(client):
    response = client.post(
        "/batches",
        headers=HEADERS,
        files=[
            ("files", ("card front.jpg", JPEG_BYTES + b"first-card", "image/jpeg")),
            ("files", ("card_front.jpg", JPEG_BYTES + b"other-card", "image/jpeg")),
        ],
    )
    assert response.status_code == 409
    assert client.get("/batches", headers=HEADERS).json() == []

    profile_dir = Path("test-data/cards-images/profile-1")
    assert not profile_dir.exists() or list(profile_dir.iterdir()) == []
