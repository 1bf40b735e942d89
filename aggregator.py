"""
View aggregator

Read side of the platform. Every function here takes the database and an
explicit viewer id (None for anonymous readers), runs one or more
aggregation pipelines and returns typed views from views.py.

Pipelines are built from a few reusable stage groups:
- owner_stages: join a user document and keep the first match
- like_stages: join likes on the document id, derive likes_count / is_liked
- paginate: $match, $sort, $skip, $limit, then the joins for that page only
"""

import re
from typing import Callable, List, Optional, Tuple

from bson import ObjectId
from pymongo.collection import Collection
from pymongo.database import Database

from errors import BadRequest, NotFound
from utils import clamp_pagination, utc_now
from views import (
    ChannelProfile,
    CommentView,
    Page,
    PlaylistDetail,
    PlaylistSummary,
    SubscribedChannelView,
    SubscriberView,
    TweetView,
    VideoCard,
    VideoDetail,
)

DEFAULT_SORT = {"created_at": -1, "_id": -1}

# public sort key -> stored field
VIDEO_SORT_FIELDS = {
    "createdAt": "created_at",
    "created_at": "created_at",
    "views": "views",
    "duration": "duration",
    "title": "title",
}


# -------------------- Stage builders --------------------

def viewer_flag(viewer_id: Optional[ObjectId], path: str) -> dict:
    """true iff viewer_id is among the values at `path`; always false for None."""
    return {"$cond": {"if": {"$in": [viewer_id, path]}, "then": True, "else": False}}


def owner_stages(local_field: str = "owner", as_field: str = "owner_doc") -> List[dict]:
    return [
        {
            "$lookup": {
                "from": "user",
                "localField": local_field,
                "foreignField": "_id",
                "as": as_field,
            }
        },
        {"$addFields": {as_field: {"$arrayElemAt": [f"${as_field}", 0]}}},
    ]


def like_stages(target_field: str, viewer_id: Optional[ObjectId]) -> List[dict]:
    return [
        {
            "$lookup": {
                "from": "like",
                "localField": "_id",
                "foreignField": target_field,
                "as": "likes",
            }
        },
        {
            "$addFields": {
                "likes_count": {"$size": "$likes"},
                "is_liked": viewer_flag(viewer_id, "$likes.liked_by"),
            }
        },
        {"$project": {"likes": 0}},
    ]


def subscription_stages(
    local_field: str,
    viewer_id: Optional[ObjectId],
    as_field: str = "subscribers",
) -> List[dict]:
    """Subscribers of the user at `local_field`: subscribers_count and is_subscribed."""
    return [
        {
            "$lookup": {
                "from": "subscription",
                "localField": local_field,
                "foreignField": "channel",
                "as": as_field,
            }
        },
        {
            "$addFields": {
                "subscribers_count": {"$size": f"${as_field}"},
                "is_subscribed": viewer_flag(viewer_id, f"${as_field}.subscriber"),
            }
        },
        {"$project": {as_field: 0}},
    ]


def paginate(
    collection: Collection,
    match: dict,
    view_stages: List[dict],
    page=1,
    limit=None,
    sort: dict = None,
) -> Tuple[List[dict], int, int, int]:
    """
    Run one page of a pipeline.

    The total is counted on `match` alone and the joins in `view_stages` only
    run for the documents of the requested page.

    Returns:
        (documents, total count, page, limit) with page/limit clamped
    """
    page, limit = clamp_pagination(page, limit)
    total = collection.count_documents(match)
    pipeline = [
        {"$match": match},
        {"$sort": sort or DEFAULT_SORT},
        {"$skip": (page - 1) * limit},
        {"$limit": limit},
        *view_stages,
    ]
    return list(collection.aggregate(pipeline)), total, page, limit


def _page(view_cls, project: Callable, docs: List[dict], total: int, page: int, limit: int):
    items = [item for item in (project(d) for d in docs) if item is not None]
    return Page[view_cls].build(items, total, page, limit)


def _require(db: Database, collection: str, entity_id: ObjectId, message: str) -> dict:
    entity = db[collection].find_one({"_id": entity_id}, {"_id": 1, "owner": 1})
    if entity is None:
        raise NotFound(message)
    return entity


def video_docs_by_ids(db: Database, video_ids: List[ObjectId]) -> List[dict]:
    """Videos with their owner joined, in the order of `video_ids`. Missing ids are skipped."""
    if not video_ids:
        return []
    docs = db["video"].aggregate([{"$match": {"_id": {"$in": list(video_ids)}}}, *owner_stages()])
    by_id = {d["_id"]: d for d in docs}
    return [by_id[video_id] for video_id in video_ids if video_id in by_id]


def video_sort(sort_by: Optional[str], sort_type: Optional[str]) -> dict:
    if not sort_by:
        return DEFAULT_SORT
    field = VIDEO_SORT_FIELDS.get(sort_by)
    if field is None:
        raise BadRequest(f"Cannot sort videos by {sort_by}")
    direction = 1 if (sort_type or "").lower() == "asc" else -1
    return {field: direction, "_id": direction}


# -------------------- Lists --------------------

def list_video_comments(db: Database, video_id: ObjectId, viewer_id: Optional[ObjectId], page=1, limit=None) -> Page:
    _require(db, "video", video_id, "Video not found")
    docs, total, page, limit = paginate(
        db["comment"],
        {"video": video_id},
        [*like_stages("comment", viewer_id), *owner_stages()],
        page,
        limit,
    )
    return _page(CommentView, CommentView.from_doc, docs, total, page, limit)


def list_user_tweets(db: Database, user_id: ObjectId, viewer_id: Optional[ObjectId], page=1, limit=None) -> Page:
    _require(db, "user", user_id, "User not found")
    docs, total, page, limit = paginate(
        db["tweet"],
        {"owner": user_id},
        [*like_stages("tweet", viewer_id), *owner_stages()],
        page,
        limit,
    )
    return _page(TweetView, TweetView.from_doc, docs, total, page, limit)


def list_videos(
    db: Database,
    viewer_id: Optional[ObjectId],
    page=1,
    limit=None,
    query: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_type: Optional[str] = None,
    user_id: Optional[ObjectId] = None,
) -> Page:
    """Published videos, newest first. A channel owner listing their own channel also sees drafts."""
    match = {}
    if user_id is not None:
        match["owner"] = user_id
    if user_id is None or user_id != viewer_id:
        match["is_published"] = True
    if query and query.strip():
        pattern = {"$regex": re.escape(query.strip()), "$options": "i"}
        match["$or"] = [{"title": pattern}, {"description": pattern}]

    docs, total, page, limit = paginate(db["video"], match, owner_stages(), page, limit, video_sort(sort_by, sort_type))
    return _page(VideoCard, VideoCard.from_doc, docs, total, page, limit)


def list_liked_videos(db: Database, user_id: ObjectId, page=1, limit=None) -> Page:
    # likes left behind by an interrupted video delete are neither counted nor returned
    liked_ids = db["like"].distinct("video", {"liked_by": user_id, "video": {"$exists": True}})
    existing_ids = db["video"].distinct("_id", {"_id": {"$in": liked_ids}})
    likes, total, page, limit = paginate(
        db["like"],
        {"liked_by": user_id, "video": {"$in": existing_ids}},
        [],
        page,
        limit,
    )
    videos = video_docs_by_ids(db, [like["video"] for like in likes])
    return _page(VideoCard, VideoCard.from_doc, videos, total, page, limit)


def list_channel_subscribers(
    db: Database,
    channel_id: ObjectId,
    viewer_id: Optional[ObjectId],
    page=1,
    limit=None,
) -> Page:
    _require(db, "user", channel_id, "Channel not found")
    docs, total, page, limit = paginate(
        db["subscription"],
        {"channel": channel_id},
        [
            *owner_stages("subscriber", "subscriber_doc"),
            *subscription_stages("subscriber", viewer_id, as_field="subscriber_subscriptions"),
        ],
        page,
        limit,
    )
    return _page(SubscriberView, SubscriberView.from_doc, docs, total, page, limit)


def list_subscribed_channels(db: Database, subscriber_id: ObjectId, page=1, limit=None) -> Page:
    _require(db, "user", subscriber_id, "User not found")
    docs, total, page, limit = paginate(
        db["subscription"],
        {"subscriber": subscriber_id},
        [
            *owner_stages("channel", "channel_doc"),
            {
                "$lookup": {
                    "from": "video",
                    "localField": "channel",
                    "foreignField": "owner",
                    "as": "channel_videos",
                }
            },
        ],
        page,
        limit,
    )
    return _page(SubscribedChannelView, SubscribedChannelView.from_doc, docs, total, page, limit)


def list_user_playlists(db: Database, user_id: ObjectId, page=1, limit=None) -> Page:
    _require(db, "user", user_id, "User not found")
    docs, total, page, limit = paginate(
        db["playlist"],
        {"owner": user_id},
        [
            {
                "$lookup": {
                    "from": "video",
                    "localField": "videos",
                    "foreignField": "_id",
                    "as": "video_docs",
                }
            },
        ],
        page,
        limit,
    )
    return _page(PlaylistSummary, PlaylistSummary.from_doc, docs, total, page, limit)


# -------------------- Details --------------------

def _single(db: Database, collection: str, entity_id: ObjectId, stages: List[dict], message: str) -> dict:
    docs = list(db[collection].aggregate([{"$match": {"_id": entity_id}}, *stages]))
    if not docs:
        raise NotFound(message)
    return docs[0]


def get_comment(db: Database, comment_id: ObjectId, viewer_id: Optional[ObjectId]) -> CommentView:
    doc = _single(db, "comment", comment_id, [*like_stages("comment", viewer_id), *owner_stages()], "Comment not found")
    return CommentView.from_doc(doc)


def get_tweet(db: Database, tweet_id: ObjectId, viewer_id: Optional[ObjectId]) -> TweetView:
    doc = _single(db, "tweet", tweet_id, [*like_stages("tweet", viewer_id), *owner_stages()], "Tweet not found")
    return TweetView.from_doc(doc)


def get_video(db: Database, video_id: ObjectId, viewer_id: Optional[ObjectId]) -> VideoDetail:
    """Same shape as get_video_detail, without counting a view."""
    stages = [
        *like_stages("video", viewer_id),
        *owner_stages(),
        *subscription_stages("owner", viewer_id),
    ]
    return VideoDetail.from_doc(_single(db, "video", video_id, stages, "Video not found"))


def get_video_detail(db: Database, video_id: ObjectId, viewer_id: Optional[ObjectId]) -> VideoDetail:
    """
    Video with like and owner subscription info for `viewer_id`.

    Reading counts as a view: the view counter is incremented and the video is
    added to the viewer's watch history, both as single atomic updates.
    """
    result = db["video"].update_one({"_id": video_id}, {"$inc": {"views": 1}})
    if result.matched_count == 0:
        raise NotFound("Video not found")
    if viewer_id is not None:
        db["user"].update_one(
            {"_id": viewer_id},
            {"$addToSet": {"watch_history": video_id}, "$set": {"updated_at": utc_now()}},
        )
    return get_video(db, video_id, viewer_id)


def get_playlist_detail(db: Database, playlist_id: ObjectId) -> PlaylistDetail:
    playlist = _single(db, "playlist", playlist_id, owner_stages(), "Playlist not found")
    playlist["video_docs"] = video_docs_by_ids(db, playlist.get("videos", []))
    return PlaylistDetail.from_doc(playlist)


def get_channel_profile(db: Database, username: str, viewer_id: Optional[ObjectId]) -> ChannelProfile:
    username = (username or "").strip().lower()
    if not username:
        raise BadRequest("Username is missing")

    pipeline = [
        {"$match": {"username": username}},
        *subscription_stages("_id", viewer_id),
        {
            "$lookup": {
                "from": "subscription",
                "localField": "_id",
                "foreignField": "subscriber",
                "as": "subscribed_to",
            }
        },
        {"$addFields": {"channels_subscribed_to_count": {"$size": "$subscribed_to"}}},
        {"$project": {"subscribed_to": 0, "password_hash": 0, "refresh_token": 0, "watch_history": 0}},
    ]
    docs = list(db["user"].aggregate(pipeline))
    if not docs:
        raise NotFound("Channel does not exist")
    return ChannelProfile.from_doc(docs[0])


def get_watch_history(db: Database, user_id: ObjectId) -> List[VideoCard]:
    """Watched videos, most recent first."""
    user = db["user"].find_one({"_id": user_id}, {"watch_history": 1})
    if user is None:
        raise NotFound("User not found")
    history = list(reversed(user.get("watch_history", [])))
    return [VideoCard.from_doc(doc) for doc in video_docs_by_ids(db, history)]
