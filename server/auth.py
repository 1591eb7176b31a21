"""Authentication and security utilities."""

import uuid
import bcrypt
from fastapi import Request

from common.constants import API_KEY_PREFIX
from common.logging_config import get_logger
from server.exceptions import InvalidAPIKeyError, UnauthorizedError

logger = get_logger(__name__)


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password to hash

    Returns:
        Bcrypt hash of the password
    """
    password_bytes = password.encode('utf-8')
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify a password against a bcrypt hash.
    """
    password_bytes = password.encode('utf-8')
    hash_bytes = password_hash.encode('utf-8')
    return bcrypt.checkpw(password_bytes, hash_bytes)


def generate_api_key() -> str:
    """
    Generate a new API Key with the configured prefix.

    Returns:
        API Key string in format: {prefix}{uuid4}
    """
    return f"{API_KEY_PREFIX}{uuid.uuid4()}"


def extract_api_key(request: Request) -> str:
    """
    Read the bearer token from the request's Authorization header.

    Raises:
        UnauthorizedError: If the header is missing or not a bearer token
    """
    authorization = request.headers.get("Authorization")
    if not authorization:
        raise UnauthorizedError("Missing Authorization header")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise UnauthorizedError("Invalid authorization header format")

    return token.strip()


async def get_current_user(request: Request) -> str:
    """
    FastAPI dependency resolving the verified caller id for a request.

    The request is always passed explicitly so that every route resolves
    identity the same way.

    Returns:
        user_id of the authenticated caller

    Raises:
        UnauthorizedError: If no credentials are supplied
        InvalidAPIKeyError: If the API key is unknown
    """
    from server.services.auth_service import AuthService

    api_key = extract_api_key(request)
    user_id = AuthService().validate_api_key(api_key)
    if user_id is None:
        raise InvalidAPIKeyError("Invalid or expired API key")

    request.state.user_id = user_id
    return user_id
