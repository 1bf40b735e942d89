"""
Database Schemas for the video sharing platform

Each Pydantic model maps to a MongoDB collection. The collection name is the
lowercase of the class name.

Collections:
- User -> user
- Video -> video
- Comment -> comment
- Like -> like
- Subscription -> subscription
- Tweet -> tweet
- Playlist -> playlist

References to other documents are stored as ObjectIds so $lookup can join on
them directly.
"""

from typing import List, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator


class MongoModel(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)


class MediaFile(BaseModel):
    public_id: str = Field(..., description="Id of the object in media storage")
    url: str


class AccountIdentity(BaseModel):
    """User fields that are checked before anything is uploaded or written."""
    username: Optional[str] = Field(None, min_length=3, max_length=30)
    email: EmailStr


class User(MongoModel):
    username: str = Field(..., min_length=3, max_length=30)
    full_name: str = Field(..., min_length=1)
    email: EmailStr
    password_hash: str = Field(..., description="Password hash, never returned")
    avatar: MediaFile
    cover_image: Optional[MediaFile] = None
    refresh_token: Optional[str] = None
    watch_history: List[ObjectId] = Field(default_factory=list, description="Video ids, most recent last")


class Video(MongoModel):
    owner: ObjectId
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    video_file: MediaFile
    thumbnail: MediaFile
    duration: float = Field(0, ge=0)
    views: int = Field(0, ge=0)
    is_published: bool = False


class Comment(MongoModel):
    content: str = Field(..., min_length=1)
    video: ObjectId
    owner: ObjectId


class Like(MongoModel):
    """Exactly one of video, comment or tweet is set."""
    video: Optional[ObjectId] = None
    comment: Optional[ObjectId] = None
    tweet: Optional[ObjectId] = None
    liked_by: ObjectId

    @model_validator(mode="after")
    def check_single_target(self):
        targets = [t for t in (self.video, self.comment, self.tweet) if t is not None]
        if len(targets) != 1:
            raise ValueError("A like must reference exactly one of video, comment or tweet")
        return self


class Subscription(MongoModel):
    subscriber: ObjectId = Field(..., description="The user who subscribes")
    channel: ObjectId = Field(..., description="The user id of the channel being subscribed to")


class Tweet(MongoModel):
    content: str = Field(..., min_length=1)
    owner: ObjectId


class Playlist(MongoModel):
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    owner: ObjectId
    videos: List[ObjectId] = Field(default_factory=list)
