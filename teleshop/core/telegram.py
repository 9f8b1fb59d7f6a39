"""Telegram WebApp initData verification.

The client sends the raw ``initData`` query string. Its ``hash`` field is
HMAC-SHA256 over the remaining fields (``key=value``, sorted by key, joined by
newlines) keyed with ``HMAC-SHA256("WebAppData", bot_token)``.
"""

import hashlib
import hmac
import json
import time
from typing import Any, Mapping
from urllib.parse import parse_qsl, urlencode

DEV_SENTINEL = "dev_mock_hash"
DEV_USER = {"id": "dev_123456789", "username": "devuser", "first_name": "Dev"}


class InitDataError(Exception):
    """initData failed verification. Deliberately carries no detail for the client."""


def _secret_key(bot_token: str) -> bytes:
    return hmac.new(b"WebAppData", bot_token.encode("utf-8"), hashlib.sha256).digest()


def data_check_string(fields: Mapping[str, str]) -> str:
    return "\n".join(f"{k}={v}" for k, v in sorted(fields.items()) if k != "hash")


def compute_hash(fields: Mapping[str, str], bot_token: str) -> str:
    return hmac.new(
        _secret_key(bot_token),
        data_check_string(fields).encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def sign_init_data(fields: Mapping[str, Any], bot_token: str) -> str:
    """Build a signed initData string. ``user`` may be a dict; it is JSON-encoded."""
    flat = {k: json.dumps(v, separators=(",", ":")) if isinstance(v, dict) else str(v) for k, v in fields.items()}
    flat["hash"] = compute_hash(flat, bot_token)
    return urlencode(flat)


def _decode_user(fields: dict[str, str]) -> dict[str, Any] | None:
    raw = fields.get("user")
    if raw is None:
        return None
    try:
        user = json.loads(raw)
    except ValueError as e:
        raise InitDataError("Invalid initData") from e
    if not isinstance(user, dict) or "id" not in user:
        raise InitDataError("Invalid initData")
    return user


def validate_init_data(
    init_data: str,
    bot_token: str,
    max_age_seconds: int = 24 * 3600,
    now: float | None = None,
    allow_dev: bool = False,
) -> dict[str, Any]:
    """Verify initData and return its fields with ``user`` decoded.

    Raises InitDataError on any mismatch, missing field or expiry.
    """
    if not init_data:
        raise InitDataError("Invalid initData")

    if allow_dev and DEV_SENTINEL in init_data:
        fields = dict(parse_qsl(init_data, keep_blank_values=True))
        user = _decode_user(fields) or dict(DEV_USER)
        return {**fields, "user": user, "dev": True}

    if not bot_token:
        raise InitDataError("Invalid initData")

    fields = dict(parse_qsl(init_data, keep_blank_values=True))
    provided = fields.pop("hash", None)
    if not provided:
        raise InitDataError("Invalid initData")

    expected = compute_hash(fields, bot_token)
    if not hmac.compare_digest(expected, provided):
        raise InitDataError("Invalid initData")

    try:
        auth_date = int(fields.get("auth_date", ""))
    except ValueError as e:
        raise InitDataError("Invalid initData") from e
    current = time.time() if now is None else now
    if current - auth_date >= max_age_seconds:
        raise InitDataError("Invalid initData")

    out: dict[str, Any] = dict(fields)
    out["user"] = _decode_user(fields)
    if out["user"] is None:
        raise InitDataError("Invalid initData")
    return out
