import hashlib
from typing import Any

import bcrypt
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from teleshop.core.config import get_settings

USER_TOKEN_SALT = "teleshop-session"
ADMIN_TOKEN_SALT = "teleshop-admin"

# bcrypt only looks at the first 72 bytes
_BCRYPT_MAX_BYTES = 72


def _serializer(secret: str, salt: str) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(
        secret,
        salt=salt,
        signer_kwargs={"key_derivation": "hmac", "digest_method": hashlib.sha256},
    )


def get_user_serializer() -> URLSafeTimedSerializer:
    return _serializer(get_settings().secret_key, USER_TOKEN_SALT)


def get_admin_serializer() -> URLSafeTimedSerializer:
    return _serializer(get_settings().admin_signing_key, ADMIN_TOKEN_SALT)


def create_user_token(payload: dict[str, Any]) -> str:
    return get_user_serializer().dumps(payload)


def load_user_token(token: str) -> dict[str, Any] | None:
    try:
        return get_user_serializer().loads(token, max_age=get_settings().session_max_age_seconds)
    except (BadSignature, SignatureExpired):
        return None


def create_admin_token(username: str) -> str:
    return get_admin_serializer().dumps({"is_admin": True, "username": username})


def load_admin_token(token: str) -> dict[str, Any] | None:
    try:
        return get_admin_serializer().loads(token, max_age=get_settings().admin_session_max_age_seconds)
    except (BadSignature, SignatureExpired):
        return None


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8")[:_BCRYPT_MAX_BYTES], bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8")[:_BCRYPT_MAX_BYTES], password_hash.encode("utf-8"))
    except ValueError:
        # malformed hash in config
        return False
