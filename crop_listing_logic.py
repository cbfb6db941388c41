"""
Crop Listing & Interest - Business Logic

Pure functions only: nothing here touches the store or the network, so the
storage adapters can run them inside a transaction.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, Any, Iterable, List, Optional

import config
from crop_listing_errors import ConflictError, ForbiddenError, InvalidInputError, NotFoundError
from crop_listing_models import (
    CropListing, CropListingCreate, CropListingUpdate, Interest, InterestCreate,
    InterestStatus, InterestSummary, OwnerInfo, VerifiedIdentity,
    PROTECTED_LISTING_FIELDS,
)

logger = logging.getLogger(__name__)

QuantityPolicy = Callable[[float, float], float]

DECISION_VALUES = (InterestStatus.ACCEPTED.value, InterestStatus.REJECTED.value)

# Listing name fields, in lookup order, used by the interest projection
_LISTING_NAME_FIELDS = ("name", "cropName", "title")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


def build_new_listing(payload: CropListingCreate, now: Optional[datetime] = None) -> CropListing:
    """
    Build the listing to insert from a client payload.

    - created_at is always stamped server-side
    - owner is synthesized only when both ownerEmail and ownerName are given
    - client-supplied _id, owner and interests are discarded
    """
    data = payload.model_dump(by_alias=True, exclude_none=True)
    for field in PROTECTED_LISTING_FIELDS:
        data.pop(field, None)

    owner_email = data.get("ownerEmail")
    owner_name = data.get("ownerName")
    if owner_email and owner_name:
        data.pop("ownerEmail")
        data.pop("ownerName")
        data["owner"] = OwnerInfo(owner_email=owner_email, owner_name=owner_name)

    data["created_at"] = now or utc_now()
    data["interests"] = []
    return CropListing.model_validate(data)


def build_new_interest(
    payload: InterestCreate,
    identity: VerifiedIdentity,
    now: Optional[datetime] = None,
) -> Interest:
    """New interest is always pending; requester defaults to the caller"""
    return Interest(
        id=new_id(),
        user_email=payload.user_email or identity.email,
        user_name=payload.user_name or identity.name,
        quantity=payload.quantity,
        message=payload.message,
        status=InterestStatus.PENDING,
        created_at=now or utc_now(),
    )


def update_fields(update: CropListingUpdate) -> Dict[str, Any]:
    """Fields present in the request, minus the ones clients may not touch"""
    fields = update.model_dump(by_alias=True, exclude_unset=True)
    for field in PROTECTED_LISTING_FIELDS:
        if fields.pop(field, None) is not None:
            logger.warning(f"Ignoring protected field '{field}' in listing update")
    # Firestore treats dotted or backticked keys as nested field paths
    for key in [k for k in fields if "." in k or k.startswith("`")]:
        fields.pop(key)
        logger.warning(f"Ignoring field path '{key}' in listing update")
    return fields


def is_listing_owner(listing: CropListing, email: Optional[str]) -> bool:
    if not email or listing.owner is None:
        return False
    return listing.owner.owner_email == email


def require_listing_owner(listing: CropListing, identity: VerifiedIdentity) -> None:
    """Ownership rule shared by update, delete and interest decisions"""
    if not is_listing_owner(listing, identity.email):
        logger.warning(f"User {identity.email} is not the owner of listing {listing.id}")
        raise ForbiddenError("Only the listing owner can perform this action")


def parse_decision(value: Any) -> InterestStatus:
    if value not in DECISION_VALUES:
        raise InvalidInputError(
            f"Invalid status '{value}'. Must be one of: {', '.join(DECISION_VALUES)}"
        )
    return InterestStatus(value)


def remaining_quantity_after_accept(available: float, requested: float) -> float:
    """Saturating subtraction: over-acceptance clamps the listing at zero"""
    return max(0.0, available - requested)


def reject_if_insufficient_quantity(available: float, requested: float) -> float:
    """Alternative policy: refuse to accept more than what is left"""
    if requested > available:
        raise ConflictError(
            f"Requested quantity {requested} exceeds available quantity {available}"
        )
    return available - requested


def decide_interest(
    listing: CropListing,
    interest_id: str,
    decision: Any,
    identity: VerifiedIdentity,
    now: Optional[datetime] = None,
    quantity_policy: QuantityPolicy = remaining_quantity_after_accept,
) -> CropListing:
    """
    Apply an owner's decision to one interest and return the updated listing.

    Checks run in this order: decision value, ownership, interest lookup,
    pending precondition. The input listing is never mutated, so a failed
    check leaves nothing to roll back.
    """
    status = parse_decision(decision)
    require_listing_owner(listing, identity)

    current = listing.find_interest(interest_id)
    if current is None:
        raise NotFoundError("Interest", interest_id)
    if current.status != InterestStatus.PENDING:
        logger.warning(
            f"Interest {interest_id} on listing {listing.id} already {current.status.value}"
        )
        raise ConflictError(f"Interest already {current.status.value}")

    updated = listing.model_copy(deep=True)
    interest = updated.find_interest(interest_id)
    interest.status = status
    interest.decided_at = now or utc_now()

    if status == InterestStatus.ACCEPTED:
        updated.quantity = quantity_policy(updated.quantity, interest.quantity)

    logger.info(
        f"Interest {interest_id} on listing {listing.id} {status.value}; "
        f"quantity {listing.quantity} -> {updated.quantity}"
    )
    return updated


def _listing_display_name(listing: CropListing) -> str:
    extra = listing.model_extra or {}
    for field in _LISTING_NAME_FIELDS:
        value = listing.name if field == "name" else extra.get(field)
        if value:
            return value
    return config.UNKNOWN_LABEL


def project_interests_for_user(listings: Iterable[CropListing], email: str) -> List[InterestSummary]:
    """
    Flatten every interest submitted by `email` across all listings.

    Order follows listing scan order, then submission order in each listing.
    """
    summaries = []
    for listing in listings:
        for interest in listing.interests:
            if interest.user_email != email:
                continue
            owner = listing.owner
            summaries.append(InterestSummary(
                interest_id=interest.id,
                crop_id=listing.id,
                crop_name=_listing_display_name(listing),
                owner_name=owner.owner_name if owner and owner.owner_name else config.UNKNOWN_LABEL,
                owner_email=owner.owner_email if owner and owner.owner_email else config.UNKNOWN_LABEL,
                quantity=interest.quantity,
                message=interest.message,
                status=interest.status or InterestStatus.PENDING,
            ))
    return summaries
