"""
Typed projections of aggregation results.

Pipelines in aggregator.py join and derive; the models here decide what is
public. Each `from_doc` takes one aggregated document and keeps only the
fields a client may see. Field names are snake_case in Python and camelCase
on the wire.
"""

from datetime import datetime
from math import ceil
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class View(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _media_url(media) -> Optional[str]:
    if isinstance(media, dict):
        return media.get("url")
    return media


class OwnerSummary(View):
    id: str
    username: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None

    @classmethod
    def from_doc(cls, doc: Optional[dict]) -> Optional["OwnerSummary"]:
        if not doc:
            return None
        return cls(
            id=str(doc["_id"]),
            username=doc.get("username", ""),
            full_name=doc.get("full_name"),
            avatar_url=_media_url(doc.get("avatar")),
        )


class ChannelOwner(OwnerSummary):
    subscribers_count: int = 0
    is_subscribed: bool = False

    @classmethod
    def from_doc(cls, doc: Optional[dict], subscribers_count: int = 0, is_subscribed: bool = False):
        summary = OwnerSummary.from_doc(doc)
        if summary is None:
            return None
        return cls(**summary.model_dump(), subscribers_count=subscribers_count, is_subscribed=is_subscribed)


class CommentView(View):
    id: str
    content: str
    video: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    likes_count: int = 0
    is_liked: bool = False
    owner: Optional[OwnerSummary] = None

    @classmethod
    def from_doc(cls, doc: dict) -> "CommentView":
        return cls(
            id=str(doc["_id"]),
            content=doc["content"],
            video=str(doc["video"]),
            created_at=doc["created_at"],
            updated_at=doc.get("updated_at"),
            likes_count=doc.get("likes_count", 0),
            is_liked=bool(doc.get("is_liked")),
            owner=OwnerSummary.from_doc(doc.get("owner_doc")),
        )


class TweetView(View):
    id: str
    content: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    likes_count: int = 0
    is_liked: bool = False
    owner: Optional[OwnerSummary] = None

    @classmethod
    def from_doc(cls, doc: dict) -> "TweetView":
        return cls(
            id=str(doc["_id"]),
            content=doc["content"],
            created_at=doc["created_at"],
            updated_at=doc.get("updated_at"),
            likes_count=doc.get("likes_count", 0),
            is_liked=bool(doc.get("is_liked")),
            owner=OwnerSummary.from_doc(doc.get("owner_doc")),
        )


class VideoCard(View):
    """A video as it appears in lists: feed, history, liked videos, playlists."""
    id: str
    title: str
    description: Optional[str] = None
    video_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    duration: float = 0
    views: int = 0
    is_published: bool = False
    created_at: datetime
    owner: Optional[OwnerSummary] = None

    @classmethod
    def from_doc(cls, doc: dict) -> "VideoCard":
        return cls(
            id=str(doc["_id"]),
            title=doc["title"],
            description=doc.get("description"),
            video_url=_media_url(doc.get("video_file")),
            thumbnail_url=_media_url(doc.get("thumbnail")),
            duration=doc.get("duration") or 0,
            views=doc.get("views", 0),
            is_published=bool(doc.get("is_published")),
            created_at=doc["created_at"],
            owner=OwnerSummary.from_doc(doc.get("owner_doc")),
        )


class VideoDetail(View):
    id: str
    title: str
    description: Optional[str] = None
    video_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    duration: float = 0
    views: int = 0
    is_published: bool = False
    created_at: datetime
    likes_count: int = 0
    is_liked: bool = False
    owner: Optional[ChannelOwner] = None

    @classmethod
    def from_doc(cls, doc: dict) -> "VideoDetail":
        return cls(
            id=str(doc["_id"]),
            title=doc["title"],
            description=doc.get("description"),
            video_url=_media_url(doc.get("video_file")),
            thumbnail_url=_media_url(doc.get("thumbnail")),
            duration=doc.get("duration") or 0,
            views=doc.get("views", 0),
            is_published=bool(doc.get("is_published")),
            created_at=doc["created_at"],
            likes_count=doc.get("likes_count", 0),
            is_liked=bool(doc.get("is_liked")),
            owner=ChannelOwner.from_doc(
                doc.get("owner_doc"),
                subscribers_count=doc.get("subscribers_count", 0),
                is_subscribed=bool(doc.get("is_subscribed")),
            ),
        )


class PlaylistSummary(View):
    id: str
    name: str
    description: Optional[str] = None
    total_videos: int = 0
    total_views: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_doc(cls, doc: dict) -> "PlaylistSummary":
        videos = doc.get("video_docs", [])
        return cls(
            id=str(doc["_id"]),
            name=doc["name"],
            description=doc.get("description"),
            total_videos=len(videos),
            total_views=sum(v.get("views", 0) for v in videos),
            created_at=doc.get("created_at"),
            updated_at=doc.get("updated_at"),
        )


class PlaylistDetail(PlaylistSummary):
    owner: Optional[OwnerSummary] = None
    videos: List[VideoCard] = []

    @classmethod
    def from_doc(cls, doc: dict) -> "PlaylistDetail":
        # $lookup does not keep the order of the local array
        by_id = {v["_id"]: v for v in doc.get("video_docs", []) if v.get("is_published")}
        ordered = [by_id[video_id] for video_id in doc.get("videos", []) if video_id in by_id]
        summary = PlaylistSummary.from_doc({**doc, "video_docs": ordered})
        return cls(
            **summary.model_dump(),
            owner=OwnerSummary.from_doc(doc.get("owner_doc")),
            videos=[VideoCard.from_doc(v) for v in ordered],
        )


class SubscriberView(View):
    id: str
    username: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    subscribers_count: int = 0
    is_subscribed: bool = False
    subscribed_at: Optional[datetime] = None

    @classmethod
    def from_doc(cls, doc: dict) -> Optional["SubscriberView"]:
        user = doc.get("subscriber_doc")
        if not user:
            return None
        return cls(
            id=str(user["_id"]),
            username=user.get("username", ""),
            full_name=user.get("full_name"),
            avatar_url=_media_url(user.get("avatar")),
            subscribers_count=doc.get("subscribers_count", 0),
            is_subscribed=bool(doc.get("is_subscribed")),
            subscribed_at=doc.get("created_at"),
        )


class SubscribedChannelView(View):
    id: str
    username: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    latest_video: Optional[VideoCard] = None
    subscribed_at: Optional[datetime] = None

    @classmethod
    def from_doc(cls, doc: dict) -> Optional["SubscribedChannelView"]:
        channel = doc.get("channel_doc")
        if not channel:
            return None
        published = [v for v in doc.get("channel_videos", []) if v.get("is_published")]
        latest = max(published, key=lambda v: v["created_at"], default=None)
        return cls(
            id=str(channel["_id"]),
            username=channel.get("username", ""),
            full_name=channel.get("full_name"),
            avatar_url=_media_url(channel.get("avatar")),
            latest_video=VideoCard.from_doc(latest) if latest else None,
            subscribed_at=doc.get("created_at"),
        )


class ChannelProfile(View):
    id: str
    username: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = None
    cover_image_url: Optional[str] = None
    subscribers_count: int = 0
    channels_subscribed_to_count: int = 0
    is_subscribed: bool = False

    @classmethod
    def from_doc(cls, doc: dict) -> "ChannelProfile":
        return cls(
            id=str(doc["_id"]),
            username=doc["username"],
            full_name=doc.get("full_name"),
            email=doc.get("email"),
            avatar_url=_media_url(doc.get("avatar")),
            cover_image_url=_media_url(doc.get("cover_image")),
            subscribers_count=doc.get("subscribers_count", 0),
            channels_subscribed_to_count=doc.get("channels_subscribed_to_count", 0),
            is_subscribed=bool(doc.get("is_subscribed")),
        )


class AccountView(View):
    """The signed-in user's own account. Password hash and refresh token are never part of it."""
    id: str
    username: str
    email: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    cover_image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_doc(cls, doc: dict) -> "AccountView":
        return cls(
            id=str(doc["_id"]),
            username=doc["username"],
            email=doc["email"],
            full_name=doc.get("full_name"),
            avatar_url=_media_url(doc.get("avatar")),
            cover_image_url=_media_url(doc.get("cover_image")),
            created_at=doc.get("created_at"),
            updated_at=doc.get("updated_at"),
        )


class ToggleResult(View):
    active: bool


class Page(View, Generic[T]):
    """Paginated result, shaped like mongoose-aggregate-paginate output."""
    docs: List[T]
    total_docs: int
    limit: int
    page: int
    total_pages: int
    has_prev_page: bool
    has_next_page: bool
    prev_page: Optional[int] = None
    next_page: Optional[int] = None

    @classmethod
    def build(cls, docs: List[T], total_docs: int, page: int, limit: int) -> "Page[T]":
        total_pages = max(1, ceil(total_docs / limit)) if limit else 1
        return cls(
            docs=docs,
            total_docs=total_docs,
            limit=limit,
            page=page,
            total_pages=total_pages,
            has_prev_page=page > 1,
            has_next_page=page < total_pages,
            prev_page=page - 1 if page > 1 else None,
            next_page=page + 1 if page < total_pages else None,
        )
