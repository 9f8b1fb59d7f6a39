"""Pagination and id helpers."""

from beanie import PydanticObjectId
from bson.errors import InvalidId

from teleshop.core.exceptions import NotFoundError


def paginate(limit: int, offset: int, max_limit: int = 200) -> tuple[int, int]:
    """Clamp limit/offset; return (limit, offset)."""
    limit = max(1, min(limit, max_limit))
    offset = max(0, offset)
    return limit, offset


def parse_object_id(value: str | PydanticObjectId, what: str = "Resource") -> PydanticObjectId:
    """Malformed ids are indistinguishable from missing ones."""
    if isinstance(value, PydanticObjectId):
        return value
    try:
        return PydanticObjectId(value)
    except (InvalidId, TypeError) as e:
        raise NotFoundError(f"{what} not found") from e
