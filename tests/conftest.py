import json
import os
import shutil
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["AUTO_CREATE_TABLES"] = "true"
os.environ["STORAGE_DIR"] = "test-data/cards-images"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["OPENAI_API_KEY"] = "test-key"
os.environ["OPENAI_MODEL"] = "gpt-4o-mini"
os.environ["SIGNING_SECRET"] = "test-signing-secret"

from cardintake.db.base import Base
from cardintake.db.repository import CardRepository
from cardintake.db.session import SessionLocal, engine
from cardintake.main import create_app
from cardintake.services.llm import VisionResponse

import cardintake.models  # noqa: F401

PROFILE_ID = "profile-1"

FAKE_ANALYSIS = {
    "player_name": "Joe Burrow",
    "year": 2020,
    "card_number": "101",
    "set_name": "Donruss Optic",
    "brand": "Panini",
    "sport": "football",
    "is_rookie_card": True,
    "is_graded": False,
    "extraction_confidence": 0.92,
    "ai_notes": "Optic rookie",
}


@pytest.fixture(autouse=True)
def mock_vision(monkeypatch):
    calls = []

    def _fake_analyze_card_pair(front_url, back_url):
        calls.append((front_url, back_url))
        return VisionResponse(
            text=f"Here is the card:\n```json\n{json.dumps(FAKE_ANALYSIS)}\n```",
            model="gpt-4o-mini",
            processing_time_ms=12,
            usage={"total_tokens": 321},
        )

    monkeypatch.setattr("cardintake.services.llm.analyze_card_pair", _fake_analyze_card_pair)
    return calls


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    path = Path("test.db")
    if path.exists():
        path.unlink()
    shutil.rmtree("test-data", ignore_errors=True)


@pytest.fixture()
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def repo(db):
    return CardRepository(db)


@pytest.fixture()
def make_batch(repo):
    def _make(*filenames, profile_id=PROFILE_ID, status="processing"):
        batch = repo.create_batch(profile_id, "Test Batch")
        uploads = repo.add_uploads(
            {
                "profile_id": profile_id,
                "batch_id": batch.id,
                "filename": name,
                "storage_path": f"{profile_id}/{batch.id}/{name}",
                "mime_type": "image/jpeg",
                "file_size": 10,
            }
            for name in filenames
        )
        repo.set_batch_status(batch.id, status)
        return batch.id, {u.filename: u.id for u in uploads}

    return _make


@pytest.fixture()
def client():
    app = create_app()
    with TestClient(app) as test_client:
        yield test_client
