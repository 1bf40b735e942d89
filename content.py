"""
Write side for owned content: videos, comments, tweets and playlists.

Updates and deletes load the document first so that a missing document is a
NotFound and a foreign one a Forbidden, and nothing is written in either
case. The write itself filters on both _id and owner.

Creates and updates answer with the same views the read side returns, seen
by the actor.
"""

import logging
from typing import Optional

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.database import Database

import aggregator
import storage
from database import create_document
from errors import ApiError, BadRequest, Conflict, NotFound, UploadFailed
from permissions import get_owned
from schemas import Comment, MediaFile, Playlist, Tweet, Video
from utils import utc_now
from views import CommentView, PlaylistDetail, TweetView, VideoDetail

logger = logging.getLogger(__name__)


def _required(value: Optional[str], message: str) -> str:
    if value is None or not value.strip():
        raise BadRequest(message)
    return value.strip()


def _update_owned(db: Database, collection: str, entity_id: ObjectId, actor_id: ObjectId, fields: dict) -> None:
    updated = db[collection].find_one_and_update(
        {"_id": entity_id, "owner": actor_id},
        {"$set": {**fields, "updated_at": utc_now()}},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        raise NotFound(f"{collection.capitalize()} not found")


# -------------------- Comments --------------------

def create_comment(db: Database, video_id: ObjectId, actor_id: ObjectId, content: Optional[str]) -> CommentView:
    content = _required(content, "Content is required")
    if db["video"].find_one({"_id": video_id}, {"_id": 1}) is None:
        raise NotFound("Video not found")
    doc = create_document(db, "comment", Comment(content=content, video=video_id, owner=actor_id))
    return aggregator.get_comment(db, doc["_id"], actor_id)


def update_comment(db: Database, comment_id: ObjectId, actor_id: ObjectId, content: Optional[str]) -> CommentView:
    content = _required(content, "Content is required")
    get_owned(db, "comment", comment_id, actor_id, "update this comment")
    _update_owned(db, "comment", comment_id, actor_id, {"content": content})
    return aggregator.get_comment(db, comment_id, actor_id)


def delete_comment(db: Database, comment_id: ObjectId, actor_id: ObjectId) -> None:
    get_owned(db, "comment", comment_id, actor_id, "delete this comment")
    db["comment"].delete_one({"_id": comment_id})
    removed = db["like"].delete_many({"comment": comment_id}).deleted_count
    logger.info("Deleted comment %s and %d likes", comment_id, removed)


# -------------------- Tweets --------------------

def create_tweet(db: Database, actor_id: ObjectId, content: Optional[str]) -> TweetView:
    content = _required(content, "Content is required")
    doc = create_document(db, "tweet", Tweet(content=content, owner=actor_id))
    return aggregator.get_tweet(db, doc["_id"], actor_id)


def update_tweet(db: Database, tweet_id: ObjectId, actor_id: ObjectId, content: Optional[str]) -> TweetView:
    content = _required(content, "Content is required")
    get_owned(db, "tweet", tweet_id, actor_id, "update this tweet")
    _update_owned(db, "tweet", tweet_id, actor_id, {"content": content})
    return aggregator.get_tweet(db, tweet_id, actor_id)


def delete_tweet(db: Database, tweet_id: ObjectId, actor_id: ObjectId) -> None:
    get_owned(db, "tweet", tweet_id, actor_id, "delete this tweet")
    db["tweet"].delete_one({"_id": tweet_id})
    removed = db["like"].delete_many({"tweet": tweet_id}).deleted_count
    logger.info("Deleted tweet %s and %d likes", tweet_id, removed)


# -------------------- Playlists --------------------

def create_playlist(db: Database, actor_id: ObjectId, name: Optional[str], description: Optional[str]) -> PlaylistDetail:
    name = _required(name, "Name and description are required")
    description = _required(description, "Name and description are required")
    doc = create_document(db, "playlist", Playlist(name=name, description=description, owner=actor_id))
    return aggregator.get_playlist_detail(db, doc["_id"])


def update_playlist(
    db: Database,
    playlist_id: ObjectId,
    actor_id: ObjectId,
    name: Optional[str],
    description: Optional[str],
) -> PlaylistDetail:
    name = _required(name, "Name and description are required")
    description = _required(description, "Name and description are required")
    get_owned(db, "playlist", playlist_id, actor_id, "update this playlist")
    _update_owned(db, "playlist", playlist_id, actor_id, {"name": name, "description": description})
    return aggregator.get_playlist_detail(db, playlist_id)


def delete_playlist(db: Database, playlist_id: ObjectId, actor_id: ObjectId) -> None:
    get_owned(db, "playlist", playlist_id, actor_id, "delete this playlist")
    db["playlist"].delete_one({"_id": playlist_id})


# -------------------- Videos --------------------

def _media(asset: dict) -> MediaFile:
    return MediaFile(public_id=asset["public_id"], url=asset["url"])


def publish_video(
    db: Database,
    actor_id: ObjectId,
    title: Optional[str],
    description: Optional[str],
    video_path: Optional[str],
    thumbnail_path: Optional[str],
) -> VideoDetail:
    """Store the uploaded files and create the video as an unpublished draft."""
    try:
        title = _required(title, "Title and description are required")
        description = _required(description, "Title and description are required")
        if not video_path:
            raise BadRequest("Video file is required")
        if not thumbnail_path:
            raise BadRequest("Thumbnail is required")
    except BadRequest:
        storage.discard_temp(video_path, thumbnail_path)
        raise

    try:
        video_file = storage.upload_on_storage(video_path, storage.VIDEO)
    except UploadFailed:
        storage.discard_temp(thumbnail_path)
        raise
    try:
        thumbnail = storage.upload_on_storage(thumbnail_path, storage.IMAGE)
    except UploadFailed:
        storage.delete_on_storage(video_file["public_id"])
        raise

    video = Video(
        owner=actor_id,
        title=title,
        description=description,
        video_file=_media(video_file),
        thumbnail=_media(thumbnail),
        duration=video_file.get("duration") or 0,
    )
    doc = create_document(db, "video", video)
    logger.info("User %s published video %s", actor_id, doc["_id"])
    return aggregator.get_video(db, doc["_id"], actor_id)


def update_video(
    db: Database,
    video_id: ObjectId,
    actor_id: ObjectId,
    title: Optional[str],
    description: Optional[str],
    thumbnail_path: Optional[str] = None,
) -> VideoDetail:
    """Update title/description and optionally replace the thumbnail."""
    try:
        title = _required(title, "Title and description are required")
        description = _required(description, "Title and description are required")
        video = get_owned(db, "video", video_id, actor_id, "update this video")
    except ApiError:
        storage.discard_temp(thumbnail_path)
        raise

    fields = {"title": title, "description": description}
    old_thumbnail = None
    if thumbnail_path:
        fields["thumbnail"] = _media(storage.upload_on_storage(thumbnail_path, storage.IMAGE)).model_dump()
        old_thumbnail = (video.get("thumbnail") or {}).get("public_id")

    _update_owned(db, "video", video_id, actor_id, fields)
    if old_thumbnail:
        storage.delete_on_storage(old_thumbnail)
    return aggregator.get_video(db, video_id, actor_id)


def toggle_publish_status(db: Database, video_id: ObjectId, actor_id: ObjectId) -> VideoDetail:
    video = get_owned(db, "video", video_id, actor_id, "change this video")
    current = bool(video.get("is_published"))
    # compare-and-set so two concurrent toggles cannot both flip from the same state
    updated = db["video"].find_one_and_update(
        {"_id": video_id, "owner": actor_id, "is_published": current},
        {"$set": {"is_published": not current, "updated_at": utc_now()}},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        raise Conflict("Video publish status changed concurrently, try again")
    return aggregator.get_video(db, video_id, actor_id)


def delete_video(db: Database, video_id: ObjectId, actor_id: ObjectId) -> None:
    """
    Delete a video and everything that points at it.

    Cascade order: the video, likes on its comments, its comments, likes on
    the video, playlist entries, watch history entries, then the media files.
    The steps are independent writes; a failure part way leaves the earlier
    deletes in place.
    """
    video = get_owned(db, "video", video_id, actor_id, "delete this video")
    db["video"].delete_one({"_id": video_id})

    comment_ids = [c["_id"] for c in db["comment"].find({"video": video_id}, {"_id": 1})]
    comment_likes = db["like"].delete_many({"comment": {"$in": comment_ids}}).deleted_count if comment_ids else 0
    comments = db["comment"].delete_many({"video": video_id}).deleted_count
    video_likes = db["like"].delete_many({"video": video_id}).deleted_count
    db["playlist"].update_many({"videos": video_id}, {"$pull": {"videos": video_id}})
    db["user"].update_many({"watch_history": video_id}, {"$pull": {"watch_history": video_id}})
    logger.info(
        "Deleted video %s with %d comments, %d comment likes, %d video likes",
        video_id, comments, comment_likes, video_likes,
    )

    storage.delete_on_storage((video.get("thumbnail") or {}).get("public_id"))
    storage.delete_on_storage((video.get("video_file") or {}).get("public_id"))
