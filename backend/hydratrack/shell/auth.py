"""Authentication - API key generation and validation.

Handles API key creation, hashing, and validation. Never stores plaintext keys.
"""

import hashlib
import logging
import secrets

from google.cloud import firestore

from ..core.models import User, utcnow


logger = logging.getLogger(__name__)

# API key prefix for identification
API_KEY_PREFIX = "hyd_"

# prefix + at least some random chars
MIN_API_KEY_LENGTH = 40


def generate_api_key() -> str:
    """Generate a cryptographically secure API key.

    Returns:
        API key in format: hyd_<random_chars>
    """
    return f"{API_KEY_PREFIX}{secrets.token_urlsafe(32)}"


def hash_api_key(api_key: str) -> str:
    """Hash an API key to create a user_id.

    SHA256, truncated to 32 chars for use as a Firestore document ID.

    Args:
        api_key: The plaintext API key

    Returns:
        32-character hash to use as user_id
    """
    return hashlib.sha256(api_key.encode()).hexdigest()[:32]


def validate_api_key_format(api_key: str | None) -> bool:
    """Check if an API key has a valid format."""
    if not api_key:
        return False
    return api_key.startswith(API_KEY_PREFIX) and len(api_key) >= MIN_API_KEY_LENGTH


def extract_bearer_key(auth_header: str) -> str | None:
    """Pull the API key out of an Authorization header value."""
    if not auth_header.startswith("Bearer "):
        return None
    return auth_header[len("Bearer "):].strip() or None


class AuthClient:
    """Client for API key authentication operations.

    Handles user registration and API key validation against Firestore.
    """

    def __init__(self, db: firestore.Client) -> None:
        self._db = db

    def _get_user_ref(self, user_id: str) -> firestore.DocumentReference:
        return self._db.collection("users").document(user_id)

    def register_user(self, email: str, name: str | None = None) -> tuple[str, str]:
        """Register a new user and generate their API key.

        Args:
            email: User's email address
            name: Optional display name

        Returns:
            Tuple of (api_key, user_id) - api_key is only returned once!
        """
        logger.info("Registering new user: %s", email)

        api_key = generate_api_key()
        user_id = hash_api_key(api_key)

        user = User(email=email, name=name, api_key_hash=user_id, created_at=utcnow())
        self._get_user_ref(user_id).set(user.model_dump())

        logger.info("User registered successfully: %s", user_id[:8])
        return api_key, user_id

    def validate_api_key(self, api_key: str) -> str | None:
        """Validate an API key and return the user_id if valid.

        Returns:
            user_id if valid, None if invalid
        """
        if not validate_api_key_format(api_key):
            logger.warning("Invalid API key format")
            return None

        user_id = hash_api_key(api_key)
        if self.user_exists(user_id):
            logger.debug("API key validated for user: %s", user_id[:8])
            return user_id

        logger.warning("API key not found in database")
        return None

    def get_user(self, user_id: str) -> User | None:
        """Get user by ID (the hashed API key)."""
        try:
            user_doc = self._get_user_ref(user_id).get()
            if user_doc.exists:
                return User(**user_doc.to_dict())
            return None
        except Exception as e:
            logger.error("Error fetching user: %s", str(e))
            return None

    def user_exists(self, user_id: str) -> bool:
        try:
            return bool(self._get_user_ref(user_id).get().exists)
        except Exception as e:
            logger.error("Error checking user: %s", str(e))
            return False
