import pytest
from pydantic import ValidationError

from crop_listing_models import (
    CropListing,
    CropListingCreate,
    CropListingUpdate,
    Interest,
    InterestStatus,
    InsertResult,
    listing_to_document,
)


def test_listing_accepts_wire_keys_and_extra_fields():
    listing = CropListing.model_validate({
        "_id": "abc123",
        "name": "Onion",
        "quantity": 25,
        "unit": "kg",
        "owner": {"ownerEmail": "farmer@example.com", "ownerName": "Rahim"},
        "interests": [{"_id": "i1", "userEmail": "buyer@example.com", "quantity": 5}],
    })
    assert listing.id == "abc123"
    assert listing.owner.owner_email == "farmer@example.com"
    assert listing.model_extra["unit"] == "kg"
    assert listing.interests[0].status == InterestStatus.PENDING
    assert listing.interests[0].message == ""


def test_listing_rejects_negative_quantity():
    with pytest.raises(ValidationError):
        CropListing(name="Rice", quantity=-1)


def test_interest_requires_positive_quantity():
    with pytest.raises(ValidationError):
        Interest(user_email="buyer@example.com", quantity=0)


def test_find_interest_by_id():
    listing = CropListing(
        name="Wheat",
        quantity=3,
        interests=[
            Interest(id="a", user_email="x@example.com", quantity=1),
            Interest(id="b", user_email="y@example.com", quantity=2),
        ],
    )
    assert listing.find_interest("b").user_email == "y@example.com"
    assert listing.find_interest("missing") is None


def test_listing_to_document_uses_wire_keys_without_id():
    listing = CropListing.model_validate({
        "_id": "abc",
        "name": "Corn",
        "quantity": 4,
        "owner": {"ownerEmail": "f@example.com", "ownerName": "F"},
        "interests": [{"_id": "i1", "userEmail": "b@example.com", "quantity": 1}],
        "grade": "A",
    })
    doc = listing_to_document(listing)
    assert "_id" not in doc
    assert doc["owner"] == {"ownerEmail": "f@example.com", "ownerName": "F"}
    assert doc["interests"][0]["_id"] == "i1"
    assert doc["interests"][0]["userEmail"] == "b@example.com"
    assert doc["grade"] == "A"


def test_create_payload_accepts_camel_case_owner_fields():
    payload = CropListingCreate.model_validate(
        {"name": "Okra", "ownerEmail": "f@example.com", "ownerName": "F"}
    )
    assert payload.owner_email == "f@example.com"
    assert payload.quantity == 0


def test_update_payload_tracks_only_sent_fields():
    update = CropListingUpdate.model_validate({"description": "Fresh", "price": 12})
    assert update.model_dump(exclude_unset=True) == {"description": "Fresh", "price": 12}


def test_insert_result_serializes_mongo_style():
    assert InsertResult(inserted_id="x").model_dump(by_alias=True) == {
        "acknowledged": True,
        "insertedId": "x",
    }
