"""
Document store adapters for crop listings.

Listings live in a single collection with their interests embedded as an
array field. Two backends share the same interface:

- FirestoreCropStorage: Firebase Firestore via firebase-admin
- InMemoryCropStorage: process-local store for development and tests
"""
import copy
import json
import logging
import os
import threading
from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional

import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core import exceptions as google_exceptions

import config
from crop_listing_errors import CropServiceError, StorageError
from crop_listing_logic import new_id
from crop_listing_models import CropListing, Interest, listing_to_document

logger = logging.getLogger(__name__)

ListingMutation = Callable[[CropListing], CropListing]


def initialize_firebase_app() -> firebase_admin.App:
    """Initialize the Firebase Admin SDK once and return the default app"""
    try:
        return firebase_admin.get_app()
    except ValueError:
        # Firebase not initialized yet
        pass

    # Option 1: service account JSON file
    if config.FIREBASE_CREDENTIALS_PATH and os.path.exists(config.FIREBASE_CREDENTIALS_PATH):
        cred = credentials.Certificate(config.FIREBASE_CREDENTIALS_PATH)
        app = firebase_admin.initialize_app(cred)
        logger.info(f"Firebase initialized with credentials from {config.FIREBASE_CREDENTIALS_PATH}")
        return app

    # Option 2: JSON string in the environment
    if config.FIREBASE_CREDENTIALS_JSON:
        cred = credentials.Certificate(json.loads(config.FIREBASE_CREDENTIALS_JSON))
        app = firebase_admin.initialize_app(cred)
        logger.info("Firebase initialized with credentials from environment variable")
        return app

    # Option 3: default credentials (Google Cloud environments)
    try:
        app = firebase_admin.initialize_app()
    except Exception as e:
        logger.error(f"Failed to initialize Firebase: {e}")
        raise RuntimeError(
            "Firebase initialization failed. Please set FIREBASE_CREDENTIALS_PATH "
            "or FIREBASE_CREDENTIALS_JSON environment variable, or use default credentials."
        ) from e
    logger.info("Firebase initialized with default credentials")
    return app


def _decision_fields(listing: CropListing) -> Dict[str, Any]:
    """Fields written back after an interest decision"""
    document = listing_to_document(listing)
    return {"interests": document.get("interests", []), "quantity": document["quantity"]}


class FirestoreCropStorage:
    """Firebase Firestore storage for crop listings"""

    def __init__(self, db=None, collection_name: str = config.CROPS_COLLECTION):
        if db is None:
            initialize_firebase_app()
            db = firestore.client()
        self.db = db
        self.crops_collection = self.db.collection(collection_name)
        logger.info(f"FirestoreCropStorage initialized on collection '{collection_name}'")

    def _dict_to_listing(self, doc_id: str, data: Dict) -> CropListing:
        """Convert Firestore document to CropListing model"""
        data = dict(data or {})
        data["_id"] = doc_id
        return CropListing.model_validate(data)

    def _stream(self, query, operation: str) -> List[CropListing]:
        try:
            return [self._dict_to_listing(doc.id, doc.to_dict()) for doc in query.stream()]
        except Exception as e:
            logger.error(f"Error during {operation}: {e}")
            raise StorageError(operation) from e

    def list_crops(self) -> List[CropListing]:
        return self._stream(self.crops_collection, "list_crops")

    def list_latest_crops(self, limit: int = config.LATEST_CROPS_LIMIT) -> List[CropListing]:
        # Firestore breaks created_at ties by document id
        query = self.crops_collection.order_by(
            "created_at", direction=firestore.Query.DESCENDING
        ).limit(limit)
        return self._stream(query, "list_latest_crops")

    def list_crops_by_owner(self, owner_email: str) -> List[CropListing]:
        query = self.crops_collection.where("owner.ownerEmail", "==", owner_email)
        return self._stream(query, "list_crops_by_owner")

    def get_crop(self, crop_id: str) -> Optional[CropListing]:
        try:
            doc = self.crops_collection.document(str(crop_id)).get()
        except Exception as e:
            logger.error(f"Error getting listing {crop_id}: {e}")
            raise StorageError("get_crop") from e
        if not doc.exists:
            return None
        return self._dict_to_listing(doc.id, doc.to_dict())

    def create_crop(self, listing: CropListing) -> str:
        try:
            doc_ref = self.crops_collection.add(listing_to_document(listing))[1]
        except Exception as e:
            logger.error(f"Error creating listing: {e}")
            raise StorageError("create_crop") from e
        logger.info(f"Created listing {doc_ref.id} in Firebase")
        return doc_ref.id

    def update_crop(self, crop_id: str, fields: Dict[str, Any]) -> int:
        """Partial field merge; returns the number of matched listings"""
        doc_ref = self.crops_collection.document(str(crop_id))
        try:
            if not doc_ref.get().exists:
                return 0
            if fields:
                doc_ref.update(fields)
        except Exception as e:
            logger.error(f"Error updating listing {crop_id}: {e}")
            raise StorageError("update_crop") from e
        logger.info(f"Updated listing {crop_id} fields {sorted(fields)} in Firebase")
        return 1

    def delete_crop(self, crop_id: str) -> int:
        """Delete a listing and its embedded interests; returns deleted count"""
        doc_ref = self.crops_collection.document(str(crop_id))
        try:
            if not doc_ref.get().exists:
                return 0
            doc_ref.delete()
        except Exception as e:
            logger.error(f"Error deleting listing {crop_id}: {e}")
            raise StorageError("delete_crop") from e
        logger.info(f"Deleted listing {crop_id} from Firebase")
        return 1

    def append_interest(self, crop_id: str, interest: Interest) -> Optional[CropListing]:
        """Atomically append an interest; returns None if the listing is missing"""
        doc_ref = self.crops_collection.document(str(crop_id))
        interest_doc = interest.model_dump(by_alias=True, exclude_none=True)
        try:
            if not doc_ref.get().exists:
                return None
            doc_ref.update({"interests": firestore.ArrayUnion([interest_doc])})
            doc = doc_ref.get()
        except google_exceptions.NotFound:
            logger.warning(f"Listing {crop_id} was deleted before interest {interest.id} was appended")
            return None
        except Exception as e:
            logger.error(f"Error appending interest to listing {crop_id}: {e}")
            raise StorageError("append_interest") from e
        logger.info(f"Appended interest {interest.id} to listing {crop_id} in Firebase")
        return self._dict_to_listing(doc.id, doc.to_dict())

    def mutate_crop(self, crop_id: str, mutate: ListingMutation) -> Optional[CropListing]:
        """
        Read-modify-write of interests and quantity inside a Firestore
        transaction. Firestore retries the whole function when the listing
        changes underneath it. Returns None if the listing is missing.
        """
        doc_ref = self.crops_collection.document(str(crop_id))

        @firestore.transactional
        def _run(transaction):
            snapshot = doc_ref.get(transaction=transaction)
            if not snapshot.exists:
                return None
            updated = mutate(self._dict_to_listing(snapshot.id, snapshot.to_dict()))
            transaction.update(doc_ref, _decision_fields(updated))
            return updated

        try:
            return _run(self.db.transaction())
        except CropServiceError:
            raise
        except Exception as e:
            logger.error(f"Error updating listing {crop_id} in transaction: {e}")
            raise StorageError("mutate_crop") from e

    def count_crops(self) -> int:
        return len(self.list_crops())


class InMemoryCropStorage:
    """In-memory storage with the same semantics. Data does not persist."""

    def __init__(self):
        self._docs: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def _to_listing(self, crop_id: str, data: Dict[str, Any]) -> CropListing:
        data = copy.deepcopy(data)
        data["_id"] = crop_id
        return CropListing.model_validate(data)

    def _snapshot(self) -> List[CropListing]:
        with self._lock:
            return [self._to_listing(crop_id, data) for crop_id, data in self._docs.items()]

    def list_crops(self) -> List[CropListing]:
        return self._snapshot()

    def list_latest_crops(self, limit: int = config.LATEST_CROPS_LIMIT) -> List[CropListing]:
        # Same tie-break as Firestore: document id, in the direction of the sort
        listings = sorted(
            self._snapshot(),
            key=lambda l: (l.created_at.timestamp() if l.created_at else float("-inf"), l.id),
            reverse=True,
        )
        return listings[:limit]

    def list_crops_by_owner(self, owner_email: str) -> List[CropListing]:
        return [l for l in self._snapshot() if l.owner and l.owner.owner_email == owner_email]

    def get_crop(self, crop_id: str) -> Optional[CropListing]:
        with self._lock:
            data = self._docs.get(str(crop_id))
            return self._to_listing(str(crop_id), data) if data is not None else None

    def create_crop(self, listing: CropListing) -> str:
        crop_id = new_id()
        with self._lock:
            self._docs[crop_id] = listing_to_document(listing)
        logger.info(f"Created listing {crop_id} in memory")
        return crop_id

    def update_crop(self, crop_id: str, fields: Dict[str, Any]) -> int:
        with self._lock:
            data = self._docs.get(str(crop_id))
            if data is None:
                return 0
            data.update(copy.deepcopy(fields))
        return 1

    def delete_crop(self, crop_id: str) -> int:
        with self._lock:
            return 1 if self._docs.pop(str(crop_id), None) is not None else 0

    def append_interest(self, crop_id: str, interest: Interest) -> Optional[CropListing]:
        interest_doc = interest.model_dump(by_alias=True, exclude_none=True)
        with self._lock:
            data = self._docs.get(str(crop_id))
            if data is None:
                return None
            data.setdefault("interests", []).append(interest_doc)
            return self._to_listing(str(crop_id), data)

    def mutate_crop(self, crop_id: str, mutate: ListingMutation) -> Optional[CropListing]:
        with self._lock:
            data = self._docs.get(str(crop_id))
            if data is None:
                return None
            updated = mutate(self._to_listing(str(crop_id), data))
            data.update(_decision_fields(updated))
            return updated

    def count_crops(self) -> int:
        with self._lock:
            return len(self._docs)


def create_storage(backend: str = config.STORAGE_BACKEND):
    if backend == "memory":
        logger.warning("Using in-memory storage. Data will not persist.")
        return InMemoryCropStorage()
    if backend == "firestore":
        return FirestoreCropStorage()
    raise ValueError(f"Unknown STORAGE_BACKEND '{backend}'")


@lru_cache(maxsize=1)
def get_storage():
    """FastAPI dependency returning the process-wide storage"""
    return create_storage()
