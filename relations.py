"""
Relations between users and content: likes, subscriptions and playlist
membership.

A toggle is one conditional delete followed, when nothing was deleted, by an
upsert. The unique indexes from database.ensure_indexes turn a racing second
insert into a DuplicateKeyError, so repeated concurrent toggles from the same
actor can never leave two rows for one (target, actor) pair.
"""

import logging

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from aggregator import get_playlist_detail
from errors import BadRequest, NotFound
from permissions import get_owned
from schemas import Like, Subscription
from utils import utc_now
from views import PlaylistDetail, ToggleResult

logger = logging.getLogger(__name__)

# like target -> (collection, not found message)
LIKE_TARGETS = {
    "video": ("video", "Video not found"),
    "comment": ("comment", "Comment not found"),
    "tweet": ("tweet", "Tweet not found"),
}


def toggle(collection: Collection, key: dict) -> bool:
    """Delete the row matching `key` or create it. Returns True when the row now exists."""
    if collection.find_one_and_delete(key) is not None:
        return False
    try:
        collection.update_one(key, {"$setOnInsert": {"created_at": utc_now()}}, upsert=True)
    except DuplicateKeyError:
        # a concurrent toggle created the same row; the relation is active either way
        logger.debug("Concurrent insert on %s for %s", collection.name, key)
    return True


def toggle_like(db: Database, target: str, target_id: ObjectId, actor_id: ObjectId) -> ToggleResult:
    collection, missing = LIKE_TARGETS[target]
    if db[collection].find_one({"_id": target_id}, {"_id": 1}) is None:
        raise NotFound(missing)
    key = Like(**{target: target_id, "liked_by": actor_id}).model_dump(exclude_none=True)
    active = toggle(db["like"], key)
    logger.debug("User %s %s %s %s", actor_id, "liked" if active else "unliked", target, target_id)
    return ToggleResult(active=active)


def toggle_video_like(db: Database, video_id: ObjectId, actor_id: ObjectId) -> ToggleResult:
    return toggle_like(db, "video", video_id, actor_id)


def toggle_comment_like(db: Database, comment_id: ObjectId, actor_id: ObjectId) -> ToggleResult:
    return toggle_like(db, "comment", comment_id, actor_id)


def toggle_tweet_like(db: Database, tweet_id: ObjectId, actor_id: ObjectId) -> ToggleResult:
    return toggle_like(db, "tweet", tweet_id, actor_id)


def toggle_subscription(db: Database, channel_id: ObjectId, actor_id: ObjectId) -> ToggleResult:
    if channel_id == actor_id:
        raise BadRequest("Cannot subscribe to yourself")
    if db["user"].find_one({"_id": channel_id}, {"_id": 1}) is None:
        raise NotFound("Channel not found")
    key = Subscription(subscriber=actor_id, channel=channel_id).model_dump()
    active = toggle(db["subscription"], key)
    logger.debug("User %s %s channel %s", actor_id, "subscribed to" if active else "unsubscribed from", channel_id)
    return ToggleResult(active=active)


# -------------------- Playlist membership --------------------

def add_video_to_playlist(db: Database, playlist_id: ObjectId, video_id: ObjectId, actor_id: ObjectId) -> PlaylistDetail:
    """$addToSet keeps the playlist free of duplicates."""
    get_owned(db, "playlist", playlist_id, actor_id, "add videos to this playlist")
    if db["video"].find_one({"_id": video_id}, {"_id": 1}) is None:
        raise NotFound("Video not found")
    return _update_playlist_videos(db, playlist_id, actor_id, {"$addToSet": {"videos": video_id}})


def remove_video_from_playlist(db: Database, playlist_id: ObjectId, video_id: ObjectId, actor_id: ObjectId) -> PlaylistDetail:
    """Removing a video that is not in the playlist leaves it unchanged."""
    get_owned(db, "playlist", playlist_id, actor_id, "remove videos from this playlist")
    return _update_playlist_videos(db, playlist_id, actor_id, {"$pull": {"videos": video_id}})


def _update_playlist_videos(db: Database, playlist_id: ObjectId, actor_id: ObjectId, change: dict) -> PlaylistDetail:
    playlist = db["playlist"].find_one_and_update(
        {"_id": playlist_id, "owner": actor_id},
        {**change, "$set": {"updated_at": utc_now()}},
        return_document=ReturnDocument.AFTER,
    )
    if playlist is None:
        raise NotFound("Playlist not found")
    return get_playlist_detail(db, playlist_id)
