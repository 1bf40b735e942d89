from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from pymongo.database import Database

import aggregator
import content
from auth import get_current_user_id, get_optional_user_id
from database import get_db
from responses import api_response
from utils import objid

router = APIRouter(prefix="/comments", tags=["Comments"])


class CommentRequest(BaseModel):
    content: Optional[str] = None


@router.get("/{video_id}")
def list_comments(
    video_id: str,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    viewer_id=Depends(get_optional_user_id),
    db: Database = Depends(get_db),
):
    comments = aggregator.list_video_comments(db, objid(video_id, "video id"), viewer_id, page, limit)
    return api_response(comments, "Comments fetched successfully")


@router.post("/{video_id}")
def add_comment(video_id: str, payload: CommentRequest, user_id=Depends(get_current_user_id), db: Database = Depends(get_db)):
    comment = content.create_comment(db, objid(video_id, "video id"), user_id, payload.content)
    return api_response(comment, "Comment added successfully", 201)


@router.patch("/c/{comment_id}")
def update_comment(comment_id: str, payload: CommentRequest, user_id=Depends(get_current_user_id), db: Database = Depends(get_db)):
    comment = content.update_comment(db, objid(comment_id, "comment id"), user_id, payload.content)
    return api_response(comment, "Comment updated successfully")


@router.delete("/c/{comment_id}")
def delete_comment(comment_id: str, user_id=Depends(get_current_user_id), db: Database = Depends(get_db)):
    content.delete_comment(db, objid(comment_id, "comment id"), user_id)
    return api_response(None, "Comment deleted successfully")
