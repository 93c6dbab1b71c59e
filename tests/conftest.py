import asyncio
import io
import os
from datetime import datetime, timedelta, timezone

# Standalone mock database, no transactions; must be set before the app is imported
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-strong-value-123456")
os.environ.setdefault("MONGODB_TRANSACTIONS", "false")
os.environ.setdefault("MONGODB_DB", "furia_test")
os.environ.setdefault("APP_ENV", "production")

import jwt
import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient
from PIL import Image

from com.furia.app.config.config import Config
from com.furia.app.database.db_connection import DBConnection
from com.furia.app.exceptions.exceptions import ClassifierUnavailable
from com.furia.app.main import app
from com.furia.app.services.verification_system.identity_verification.identity_verification_router import get_vision_classifier

USER_ID = "user-1"


class FakeClassifier:
    def __init__(self, response='{"match": true, "confidence": 0.92, "reasons": ["faces align"]}'):
        self.response = response
        self.calls = []

    async def classify(self, prompt, images):
        self.calls.append((prompt, images))
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def make_image(fmt="PNG", size=(64, 64)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color=(200, 120, 40)).save(buffer, format=fmt)
    return buffer.getvalue()


def make_token(user_id=USER_ID, expires_in=timedelta(hours=1)) -> str:
    payload = {"uid": user_id, "exp": datetime.now(timezone.utc) + expires_in}
    return jwt.encode(payload, Config().jwt_secret, algorithm="HS256")


@pytest.fixture()
def mongo_client():
    client = AsyncMongoMockClient()
    DBConnection.set_client(client)
    yield client
    DBConnection.set_client(None)


@pytest.fixture()
def db(mongo_client):
    return mongo_client[Config().mongodb_db]


@pytest.fixture()
def seeded_user(db):
    asyncio.run(db["users"].insert_one({"_id": USER_ID, "email": "fan@furia.gg", "name": "Fan"}))
    return USER_ID


@pytest.fixture()
def classifier():
    return FakeClassifier()


@pytest.fixture()
def client(mongo_client, classifier):
    app.dependency_overrides[get_vision_classifier] = lambda: classifier
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers(seeded_user):
    return {"Authorization": f"Bearer {make_token(seeded_user)}"}


@pytest.fixture()
def unavailable_classifier(classifier):
    classifier.response = ClassifierUnavailable(detail="upstream timed out")
    return classifier
