"""
Configuration file for the AgroNet crop listing backend
"""
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Storage backend: "firestore" for Firebase Firestore, "memory" for local runs
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "firestore").lower()

# Firebase credentials (service account file or inline JSON).
# When neither is set, application default credentials are used.
FIREBASE_CREDENTIALS_PATH = os.getenv("FIREBASE_CREDENTIALS_PATH")
FIREBASE_CREDENTIALS_JSON = os.getenv("FIREBASE_CREDENTIALS_JSON")

# Collection holding crop listings with their embedded interests
CROPS_COLLECTION = os.getenv("CROPS_COLLECTION", "crops")

# Number of listings returned by /latest-crops
LATEST_CROPS_LIMIT = int(os.getenv("LATEST_CROPS_LIMIT", "6"))

# Fallback value used when a projected field is missing
UNKNOWN_LABEL = "Unknown"

# CORS
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "*").split(",")
    if origin.strip()
]

# Server
PORT = int(os.getenv("PORT", "3000"))
BANNER_TEXT = "AgroNet Backend is running...!"

# Logging configuration
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
