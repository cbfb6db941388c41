"""
Bearer-token authentication for the crop listing API.

Token verification is a capability (`TokenVerifier`) so the Firebase
implementation can be swapped without touching the listing routes.
"""
import logging
from functools import lru_cache
from typing import Optional, Protocol

from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from firebase_admin import auth

from crop_listing_errors import InvalidCredentialError, UnauthorizedError
from crop_listing_models import VerifiedIdentity
from crop_listing_storage import initialize_firebase_app

logger = logging.getLogger(__name__)

bearer = HTTPBearer(scheme_name="FirebaseIdToken", auto_error=False)


class TokenVerifier(Protocol):
    def verify(self, token: str) -> VerifiedIdentity:
        """Return the verified identity or raise InvalidCredentialError"""
        ...


class FirebaseTokenVerifier:
    """Verifies Firebase ID tokens with the Admin SDK"""

    def __init__(self, check_revoked: bool = False):
        initialize_firebase_app()
        self.check_revoked = check_revoked

    def verify(self, token: str) -> VerifiedIdentity:
        try:
            claims = auth.verify_id_token(token, check_revoked=self.check_revoked)
        except (
            auth.InvalidIdTokenError,
            auth.RevokedIdTokenError,
            auth.UserDisabledError,
            auth.CertificateFetchError,
            ValueError,
        ) as e:
            logger.warning(f"Token verification failed: {e}")
            raise InvalidCredentialError() from e

        email = claims.get("email")
        if not email:
            raise InvalidCredentialError("Token has no email claim")
        return VerifiedIdentity(uid=claims.get("uid"), email=email, name=claims.get("name"))


@lru_cache(maxsize=1)
def get_token_verifier() -> TokenVerifier:
    return FirebaseTokenVerifier()


def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> VerifiedIdentity:
    """FastAPI dependency: 401 without a bearer token, 403 if it does not verify"""
    if credentials is None or not credentials.credentials.strip():
        raise UnauthorizedError()
    return verifier.verify(credentials.credentials.strip())
