from typing import Optional

from fastapi import APIRouter, Depends
from pymongo.database import Database

import aggregator
import relations
from auth import get_current_user_id
from database import get_db
from responses import api_response
from utils import objid

router = APIRouter(prefix="/likes", tags=["Likes"])


def _toggle_message(active: bool) -> str:
    return "Liked successfully" if active else "Like removed successfully"


@router.post("/toggle/v/{video_id}")
def toggle_video_like(video_id: str, user_id=Depends(get_current_user_id), db: Database = Depends(get_db)):
    result = relations.toggle_video_like(db, objid(video_id, "video id"), user_id)
    return api_response(result, _toggle_message(result.active))


@router.post("/toggle/c/{comment_id}")
def toggle_comment_like(comment_id: str, user_id=Depends(get_current_user_id), db: Database = Depends(get_db)):
    result = relations.toggle_comment_like(db, objid(comment_id, "comment id"), user_id)
    return api_response(result, _toggle_message(result.active))


@router.post("/toggle/t/{tweet_id}")
def toggle_tweet_like(tweet_id: str, user_id=Depends(get_current_user_id), db: Database = Depends(get_db)):
    result = relations.toggle_tweet_like(db, objid(tweet_id, "tweet id"), user_id)
    return api_response(result, _toggle_message(result.active))


@router.get("/videos")
def liked_videos(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    user_id=Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    videos = aggregator.list_liked_videos(db, user_id, page, limit)
    return api_response(videos, "Liked videos fetched successfully")
