"""
Demo script for the crop listing & interest workflow (in-memory store)
"""
from crop_listing_errors import ConflictError
from crop_listing_logic import build_new_interest, build_new_listing, decide_interest
from crop_listing_models import CropListingCreate, InterestCreate, VerifiedIdentity
from crop_listing_storage import InMemoryCropStorage

OWNER = VerifiedIdentity(email="farmer@example.com", name="Rahim")
BUYER_A = VerifiedIdentity(email="buyer.a@example.com", name="Anika")
BUYER_B = VerifiedIdentity(email="buyer.b@example.com", name="Babul")


def demo_interest_lifecycle(storage):
    """Demo: two interests, the second one over-accepted"""
    print("=" * 60)
    print("DEMO 1: Interest lifecycle")
    print("=" * 60)

    listing = build_new_listing(CropListingCreate(
        name="Potato",
        quantity=10,
        unit="kg",
        owner_email=OWNER.email,
        owner_name=OWNER.name,
    ))
    crop_id = storage.create_crop(listing)
    print(f"\nCreated listing {crop_id}: {listing.name}, {listing.quantity} kg")

    interest_a = build_new_interest(InterestCreate(quantity=4, message="For the market"), BUYER_A)
    interest_b = build_new_interest(InterestCreate(quantity=8, message="Whole lot please"), BUYER_B)
    storage.append_interest(crop_id, interest_a)
    storage.append_interest(crop_id, interest_b)
    print(f"  {BUYER_A.name} asked for {interest_a.quantity} kg")
    print(f"  {BUYER_B.name} asked for {interest_b.quantity} kg")

    for interest in (interest_a, interest_b):
        updated = storage.mutate_crop(
            crop_id, lambda current: decide_interest(current, interest.id, "accepted", OWNER)
        )
        print(f"\nAccepted {interest.quantity} kg -> remaining quantity {updated.quantity}")
    return crop_id, interest_a


def demo_repeat_decision(storage, crop_id, interest):
    """Demo: a decided interest cannot be decided again"""
    print("\n" + "=" * 60)
    print("DEMO 2: Repeated decision")
    print("=" * 60)
    try:
        storage.mutate_crop(
            crop_id, lambda current: decide_interest(current, interest.id, "rejected", OWNER)
        )
    except ConflictError as e:
        print(f"\nRejected as expected: {e.message}")
    print(f"Quantity is still {storage.get_crop(crop_id).quantity}")


if __name__ == "__main__":
    print("\n" + "=" * 60)
    print("Crop Listing & Interest Module - Demo")
    print("=" * 60)

    storage = InMemoryCropStorage()
    crop_id, first_interest = demo_interest_lifecycle(storage)
    demo_repeat_decision(storage, crop_id, first_interest)

    print("\n" + "=" * 60)
    print("Demo completed!")
    print("=" * 60)
