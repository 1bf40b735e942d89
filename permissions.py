from typing import Optional

from pymongo.database import Database

from errors import Forbidden, NotFound
from utils import optional_objid


def actor_owns(entity: Optional[dict], actor_id) -> bool:
    """True iff entity exists and its owner is the acting user."""
    if not entity or actor_id is None:
        return False
    owner = entity.get("owner")
    return owner is not None and owner == optional_objid(actor_id)


def require_owner(entity: dict, actor_id, action: str = "modify this resource") -> dict:
    if not actor_owns(entity, actor_id):
        raise Forbidden(f"You are not authorized to {action}")
    return entity


def get_owned(db: Database, collection: str, entity_id, actor_id, action: str) -> dict:
    """Load a document and check ownership; NotFound before Forbidden."""
    entity = db[collection].find_one({"_id": entity_id})
    if entity is None:
        raise NotFound(f"{collection.capitalize()} not found")
    return require_owner(entity, actor_id, action)
