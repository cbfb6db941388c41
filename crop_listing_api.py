"""
FastAPI endpoints for crop listings and the interest workflow
"""
from fastapi import APIRouter, Depends
from typing import List, Optional
import logging

import config
from crop_listing_auth import get_current_identity
from crop_listing_errors import NotFoundError
from crop_listing_logic import (
    build_new_interest, build_new_listing, decide_interest,
    project_interests_for_user, require_listing_owner, update_fields,
)
from crop_listing_models import (
    CropListing, CropListingCreate, CropListingUpdate, DeleteResult, InsertResult,
    InterestCreate, InterestDecisionRequest, InterestSummary, UpdateResult,
    VerifiedIdentity,
)
from crop_listing_storage import get_storage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["crops"])


def _load_owned_listing(storage, crop_id: str, identity: VerifiedIdentity) -> CropListing:
    listing = storage.get_crop(crop_id)
    if listing is None:
        raise NotFoundError("Listing", crop_id)
    require_listing_owner(listing, identity)
    return listing


@router.get("/crops", response_model=List[CropListing])
def list_crops(storage=Depends(get_storage)):
    """Get all listings"""
    return storage.list_crops()


@router.get("/latest-crops", response_model=List[CropListing])
def list_latest_crops(storage=Depends(get_storage)):
    """Get the most recent listings, newest first"""
    return storage.list_latest_crops(config.LATEST_CROPS_LIMIT)


@router.get("/crops/{crop_id}", response_model=Optional[CropListing])
def get_crop(crop_id: str, storage=Depends(get_storage)):
    """Get a listing by ID; an unknown ID yields null, not an error"""
    return storage.get_crop(crop_id)


@router.post("/crops", response_model=InsertResult)
def create_crop(
    payload: CropListingCreate,
    identity: VerifiedIdentity = Depends(get_current_identity),
    storage=Depends(get_storage),
):
    """
    Create a new listing.

    Example:
    {
        "name": "Tomato",
        "description": "Surplus from the autumn harvest",
        "quantity": 500,
        "unit": "kg",
        "ownerEmail": "farmer@example.com",
        "ownerName": "Rahim"
    }
    """
    listing = build_new_listing(payload)
    crop_id = storage.create_crop(listing)
    logger.info(f"User {identity.email} created listing {crop_id}")
    return InsertResult(inserted_id=crop_id)


@router.get("/my-crops", response_model=List[CropListing])
def list_my_crops(
    email: Optional[str] = None,
    identity: VerifiedIdentity = Depends(get_current_identity),
    storage=Depends(get_storage),
):
    """Listings owned by `email`. Without an email every listing is returned."""
    if not email:
        logger.warning(f"/my-crops called by {identity.email} without email; returning all listings")
        return storage.list_crops()
    return storage.list_crops_by_owner(email)


@router.put("/crops/{crop_id}", response_model=UpdateResult)
def update_crop(
    crop_id: str,
    payload: CropListingUpdate,
    identity: VerifiedIdentity = Depends(get_current_identity),
    storage=Depends(get_storage),
):
    """Partial update: only the fields present in the body are written"""
    _load_owned_listing(storage, crop_id, identity)
    fields = update_fields(payload)
    matched = storage.update_crop(crop_id, fields)
    if not matched:
        raise NotFoundError("Listing", crop_id)
    return UpdateResult(matched_count=matched, modified_count=1 if fields else 0)


@router.delete("/crops/{crop_id}", response_model=DeleteResult)
def delete_crop(
    crop_id: str,
    identity: VerifiedIdentity = Depends(get_current_identity),
    storage=Depends(get_storage),
):
    """Delete a listing together with its interests"""
    _load_owned_listing(storage, crop_id, identity)
    deleted = storage.delete_crop(crop_id)
    logger.info(f"User {identity.email} deleted listing {crop_id}")
    return DeleteResult(deleted_count=deleted)


@router.post("/crops/{crop_id}/interests", response_model=CropListing)
def submit_interest(
    crop_id: str,
    payload: InterestCreate,
    identity: VerifiedIdentity = Depends(get_current_identity),
    storage=Depends(get_storage),
):
    """
    Express interest in a listing.

    Example:
    {
        "userEmail": "buyer@example.com",
        "quantity": 40,
        "message": "Can pick up on Friday"
    }
    """
    interest = build_new_interest(payload, identity)
    listing = storage.append_interest(crop_id, interest)
    if listing is None:
        raise NotFoundError("Listing", crop_id)
    logger.info(f"Interest {interest.id} from {interest.user_email} added to listing {crop_id}")
    return listing


@router.patch("/crops/{crop_id}/interests/{interest_id}", response_model=CropListing)
def decide_on_interest(
    crop_id: str,
    interest_id: str,
    request: InterestDecisionRequest,
    identity: VerifiedIdentity = Depends(get_current_identity),
    storage=Depends(get_storage),
):
    """
    Owner accepts or rejects a pending interest.

    Accepting subtracts the requested quantity from the listing, clamped at 0.
    Body: {"status": "accepted"} or {"status": "rejected"}
    """
    listing = storage.mutate_crop(
        crop_id,
        lambda current: decide_interest(current, interest_id, request.status, identity),
    )
    if listing is None:
        raise NotFoundError("Listing", crop_id)
    return listing


@router.get("/my-interests", response_model=List[InterestSummary])
def list_my_interests(
    email: Optional[str] = None,
    identity: VerifiedIdentity = Depends(get_current_identity),
    storage=Depends(get_storage),
):
    """Every interest submitted by `email` (defaults to the caller)"""
    return project_interests_for_user(storage.list_crops(), email or identity.email)
