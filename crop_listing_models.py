"""
Data models for the crop listing & interest module
"""
from typing import List, Optional, Dict, Any
from pydantic import BaseModel, ConfigDict, Field, field_validator
from enum import Enum
from datetime import datetime


class InterestStatus(str, Enum):
    """Interest lifecycle status"""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class OwnerInfo(BaseModel):
    """Embedded owner of a crop listing"""
    model_config = ConfigDict(populate_by_name=True)

    owner_email: str = Field(..., alias="ownerEmail", description="Owner email")
    owner_name: str = Field(..., alias="ownerName", description="Owner display name")


class Interest(BaseModel):
    """A user's request to acquire some quantity from a listing"""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: Optional[str] = Field(None, alias="_id", description="Interest ID, unique within its listing")
    user_email: str = Field(..., alias="userEmail", description="Requester email")
    user_name: Optional[str] = Field(None, alias="userName", description="Requester display name")
    quantity: float = Field(..., gt=0, description="Requested quantity")
    message: str = Field("", description="Free-text message to the owner")
    status: InterestStatus = Field(InterestStatus.PENDING, description="Interest status")
    created_at: Optional[datetime] = Field(None, description="Submission timestamp")
    decided_at: Optional[datetime] = Field(None, description="Decision timestamp")


class CropListing(BaseModel):
    """Crop surplus listing with its embedded interests"""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: Optional[str] = Field(None, alias="_id", description="Listing ID (Firestore document ID)")
    name: Optional[str] = Field(None, description="Crop name")
    description: Optional[str] = Field(None, description="Listing description")
    quantity: float = Field(0, ge=0, description="Quantity still available")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    owner: Optional[OwnerInfo] = Field(None, description="Listing owner")
    interests: List[Interest] = Field(default_factory=list, description="Interests in submission order")

    def find_interest(self, interest_id: str) -> Optional[Interest]:
        for interest in self.interests:
            if interest.id == interest_id:
                return interest
        return None


class CropListingCreate(BaseModel):
    """Payload for creating a listing; unknown fields are kept as-is"""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: Optional[str] = None
    description: Optional[str] = None
    quantity: float = Field(0, ge=0)
    owner_email: Optional[str] = Field(None, alias="ownerEmail")
    owner_name: Optional[str] = Field(None, alias="ownerName")


class CropListingUpdate(BaseModel):
    """Partial update; only fields sent by the client are applied"""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: Optional[str] = None
    description: Optional[str] = None
    quantity: Optional[float] = Field(None, ge=0)

    @field_validator("quantity")
    @classmethod
    def quantity_not_null(cls, v):
        if v is None:
            raise ValueError("quantity cannot be null")
        return v


class InterestCreate(BaseModel):
    """Payload for submitting interest in a listing"""
    model_config = ConfigDict(populate_by_name=True)

    user_email: Optional[str] = Field(None, alias="userEmail")
    user_name: Optional[str] = Field(None, alias="userName")
    quantity: float = Field(..., gt=0)
    message: str = ""


class InterestDecisionRequest(BaseModel):
    """Owner decision; validated by the state machine, not by the schema"""
    status: Any = None


class InterestSummary(BaseModel):
    """Flat projection of an interest for the requester"""
    model_config = ConfigDict(populate_by_name=True)

    interest_id: Optional[str] = Field(None, alias="interestId")
    crop_id: Optional[str] = Field(None, alias="cropId")
    crop_name: str = Field(..., alias="cropName")
    owner_name: str = Field(..., alias="ownerName")
    owner_email: str = Field(..., alias="ownerEmail")
    quantity: float
    message: str = ""
    status: InterestStatus = InterestStatus.PENDING


class VerifiedIdentity(BaseModel):
    """Identity yielded by the authentication provider"""
    uid: Optional[str] = None
    email: str
    name: Optional[str] = None


class InsertResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    acknowledged: bool = True
    inserted_id: str = Field(..., alias="insertedId")


class UpdateResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    acknowledged: bool = True
    matched_count: int = Field(..., alias="matchedCount")
    modified_count: int = Field(..., alias="modifiedCount")


class DeleteResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    acknowledged: bool = True
    deleted_count: int = Field(..., alias="deletedCount")


class HealthStatus(BaseModel):
    status: str
    crops_count: Optional[int] = None
    error: Optional[str] = None


# Fields a client may never overwrite through the generic update route
PROTECTED_LISTING_FIELDS = ("_id", "id", "owner", "interests", "created_at")


def listing_to_document(listing: CropListing) -> Dict[str, Any]:
    """Serialize a listing to a store document (wire keys, no id)"""
    return listing.model_dump(by_alias=True, exclude={"id"}, exclude_none=True, mode="python")
