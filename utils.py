from datetime import datetime, timezone
from typing import Optional, Tuple

from bson import ObjectId

from config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from errors import BadRequest


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def objid(id_str, label: str = "id") -> ObjectId:
    if isinstance(id_str, ObjectId):
        return id_str
    if not id_str or not ObjectId.is_valid(id_str):
        raise BadRequest(f"Invalid {label}")
    return ObjectId(id_str)


def optional_objid(id_str) -> Optional[ObjectId]:
    """Like objid, but anything that is not a valid id becomes None."""
    if isinstance(id_str, ObjectId):
        return id_str
    if id_str and ObjectId.is_valid(id_str):
        return ObjectId(id_str)
    return None


def clamp_pagination(page, limit) -> Tuple[int, int]:
    """Coerce page/limit to positive ints; bad values fall back to page 1 / default size."""
    try:
        page = int(page)
    except (TypeError, ValueError):
        page = 1
    try:
        limit = int(limit)
    except (TypeError, ValueError):
        limit = DEFAULT_PAGE_SIZE
    if page < 1:
        page = 1
    if limit < 1:
        limit = DEFAULT_PAGE_SIZE
    return page, min(limit, MAX_PAGE_SIZE)
