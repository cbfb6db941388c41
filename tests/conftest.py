import pytest
from datetime import datetime, timedelta, timezone
from fastapi.testclient import TestClient

from api import app
from crop_listing_auth import get_token_verifier
from crop_listing_errors import InvalidCredentialError
from crop_listing_logic import build_new_interest, build_new_listing
from crop_listing_models import CropListingCreate, InterestCreate, VerifiedIdentity
from crop_listing_storage import InMemoryCropStorage, get_storage


OWNER_TOKEN = "owner-token"
BUYER_TOKEN = "buyer-token"
OTHER_TOKEN = "other-token"


@pytest.fixture
def owner():
    return VerifiedIdentity(uid="u-owner", email="farmer@example.com", name="Rahim")


@pytest.fixture
def buyer():
    return VerifiedIdentity(uid="u-buyer", email="buyer@example.com", name="Anika")


@pytest.fixture
def other_user():
    return VerifiedIdentity(uid="u-other", email="other@example.com", name="Omar")


@pytest.fixture
def fake_verifier(owner, buyer, other_user):
    class FakeTokenVerifier:
        def __init__(self):
            self.tokens = {OWNER_TOKEN: owner, BUYER_TOKEN: buyer, OTHER_TOKEN: other_user}
            self.calls = []

        def verify(self, token):
            self.calls.append(token)
            if token not in self.tokens:
                raise InvalidCredentialError()
            return self.tokens[token]

    return FakeTokenVerifier()


@pytest.fixture
def storage():
    return InMemoryCropStorage()


@pytest.fixture
def sample_listing_payload(owner):
    return CropListingCreate(
        name="Tomato",
        description="Autumn surplus",
        quantity=10,
        unit="kg",
        owner_email=owner.email,
        owner_name=owner.name,
    )


@pytest.fixture
def sample_listing(sample_listing_payload):
    return build_new_listing(sample_listing_payload)


@pytest.fixture
def stored_listing_id(storage, sample_listing):
    return storage.create_crop(sample_listing)


@pytest.fixture
def add_interest(storage, buyer):
    """Append a pending interest to a stored listing and return it"""
    def _add(crop_id, quantity, identity=None, message=""):
        interest = build_new_interest(
            InterestCreate(quantity=quantity, message=message), identity or buyer
        )
        storage.append_interest(crop_id, interest)
        return interest

    return _add


@pytest.fixture
def make_listings(storage, owner):
    """Insert `count` listings with created_at one minute apart, oldest first"""
    def _make(count, start=None):
        start = start or datetime(2025, 1, 1, tzinfo=timezone.utc)
        ids = []
        for i in range(count):
            listing = build_new_listing(
                CropListingCreate(name=f"Crop {i}", quantity=i, owner_email=owner.email, owner_name=owner.name),
                now=start + timedelta(minutes=i),
            )
            ids.append(storage.create_crop(listing))
        return ids

    return _make


@pytest.fixture
def client(storage, fake_verifier):
    """FastAPI TestClient wired to in-memory storage and a fake token verifier"""
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_token_verifier] = lambda: fake_verifier

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def bearer(token):
    return {"Authorization": f"Bearer {token}"}
