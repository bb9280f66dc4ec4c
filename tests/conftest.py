"""
Pytest configuration and fixtures for EcoFinds tests.
"""

import os

# Settings are read at import time; keep tests off the on-disk database
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("CLOUDINARY_CLOUD_NAME", "demo")
os.environ.setdefault("CLOUDINARY_API_KEY", "test-key")
os.environ.setdefault("CLOUDINARY_API_SECRET", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ecofinds.database import Base, get_db
from ecofinds.main import app
from ecofinds.utils.media_client import CloudinaryClient, MediaHostError, get_media_client

DEFAULT_PASSWORD = "Secret123"


# =============================================================================
# Media host double
# =============================================================================

class FakeMediaClient(CloudinaryClient):
    """Records calls instead of talking to the media host; signing and URLs stay real."""

    def __init__(self):
        super().__init__()
        self.uploads = []
        self.destroyed = []
        self.searches = []
        self.destroy_result = "ok"
        self.fail_with = None
        self.resources = []

    async def upload(self, data_uri, *, folder, transformation=None, public_id=None,
                     overwrite=None, resource_type="image"):
        if self.fail_with:
            raise MediaHostError(self.fail_with, status_code=400)
        self.uploads.append({
            "data_uri": data_uri,
            "folder": folder,
            "transformation": transformation,
            "public_id": public_id,
            "overwrite": overwrite,
            "resource_type": resource_type,
        })
        full_id = f"{folder}/{public_id or f'img{len(self.uploads)}'}"
        return {
            "public_id": full_id,
            "secure_url": self.url(full_id),
            "width": 800,
            "height": 600,
            "format": "jpg",
            "bytes": len(data_uri),
        }

    async def destroy(self, public_id, resource_type="image"):
        if self.fail_with:
            raise MediaHostError(self.fail_with, status_code=400)
        self.destroyed.append(public_id)
        return {"result": self.destroy_result}

    async def search(self, expression, *, sort_by=None, max_results=20):
        self.searches.append({"expression": expression, "sort_by": sort_by, "max_results": max_results})
        return {"resources": self.resources, "total_count": len(self.resources)}


# =============================================================================
# Database / app fixtures
# =============================================================================

@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    import ecofinds.models  # noqa: F401
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def media():
    return FakeMediaClient()


@pytest.fixture()
def client(session_factory, media):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_media_client] = lambda: media
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# =============================================================================
# Helpers
# =============================================================================

def register_user(client, email, first_name="Test", last_name="User", password=DEFAULT_PASSWORD):
    res = client.post("/auth/register", json={
        "email": email,
        "password": password,
        "first_name": first_name,
        "last_name": last_name,
    })
    assert res.status_code == 201, res.text
    body = res.json()
    return {"Authorization": f"Bearer {body['access_token']}"}, body["user"]


def product_payload(**overrides):
    payload = {
        "title": "Vintage Oak Chair",
        "description": "Solid oak chair from the seventies, sturdy and freshly waxed.",
        "category": "furniture",
        "condition": "good",
        "price": 150.0,
        "quantity": 1,
        "local_pickup": True,
        "shipping_available": False,
        "images": [{"url": "https://res.cloudinary.com/demo/image/upload/chair.jpg", "public_id": "ecofinds/1/chair"}],
    }
    payload.update(overrides)
    return payload


def create_product(client, headers, **overrides):
    res = client.post("/products", json=product_payload(**overrides), headers=headers)
    assert res.status_code == 201, res.text
    return res.json()


@pytest.fixture()
def seller(client):
    headers, user = register_user(client, "seller@ecofinds.io", "Sarah", "Green")
    return {"headers": headers, "user": user}


@pytest.fixture()
def buyer(client):
    headers, user = register_user(client, "buyer@ecofinds.io", "Mike", "Miller")
    return {"headers": headers, "user": user}
