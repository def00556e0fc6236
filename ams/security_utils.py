"""
Password hashing and token helpers
"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Any, Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from jose import ExpiredSignatureError, JWTError
from jose import jwt as jose_jwt
from passlib.context import CryptContext

from .config import BCRYPT_ROUNDS, JWT_ALGORITHM, JWT_EXPIRE_MINUTES, PASSWORD_RESET_MAX_AGE, SECRET_KEY
from .exceptions import InvalidTokenError

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)

RESET_TOKEN_SALT = "password-reset"


# ============================================================================
# PASSWORD SECURITY
# ============================================================================


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against bcrypt hash"""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError as e:
        logger.error(f"Password verification error: {e}")
        return False


# ============================================================================
# ACCESS TOKENS
# ============================================================================


def create_access_token(
    principal_id: int,
    role: str,
    tenant_id: Optional[int],
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a signed JWT carrying {id, role, tenant, exp}.

    Tenant owners carry their own id as the tenant claim, admins carry null.
    """
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=JWT_EXPIRE_MINUTES))
    to_encode = {"id": principal_id, "role": role, "tenant": tenant_id, "exp": expire}
    return jose_jwt.encode(to_encode, SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Verify and decode an access token.

    Raises:
        InvalidTokenError: signature invalid, token malformed, expired, or missing claims
    """
    try:
        payload = jose_jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except ExpiredSignatureError as e:
        logger.info("ℹ️ Expired access token presented")
        raise InvalidTokenError("Token expired") from e
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        raise InvalidTokenError() from e

    if not isinstance(payload.get("id"), int) or not payload.get("role"):
        logger.warning(f"Token missing claims. Available claims: {list(payload.keys())}")
        raise InvalidTokenError("Invalid token claims")

    return payload


# ============================================================================
# PASSWORD RESET TOKENS
# ============================================================================


def generate_reset_token(principal_id: int, role: str) -> str:
    """
    Generate a time-limited password reset token using itsdangerous.
    A random nonce makes every issued token distinct.
    """
    serializer = URLSafeTimedSerializer(SECRET_KEY)
    return serializer.dumps(
        {"id": principal_id, "role": role, "nonce": secrets.token_hex(8)}, salt=RESET_TOKEN_SALT
    )


def verify_reset_token(token: str, max_age: int = PASSWORD_RESET_MAX_AGE) -> Optional[dict[str, Any]]:
    """
    Verify and decode a reset token

    Returns:
        Decoded data if valid, None if invalid or expired
    """
    serializer = URLSafeTimedSerializer(SECRET_KEY)
    try:
        return serializer.loads(token, salt=RESET_TOKEN_SALT, max_age=max_age)
    except SignatureExpired:
        logger.warning("Password reset token expired")
        return None
    except BadSignature:
        logger.warning("Invalid password reset token signature")
        return None
