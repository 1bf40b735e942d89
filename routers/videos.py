from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pymongo.database import Database

import aggregator
import content
from auth import get_current_user_id, get_optional_user_id
from database import get_db
from responses import api_response
from storage import save_upload_to_temp
from utils import objid

router = APIRouter(prefix="/videos", tags=["Videos"])


@router.get("")
def list_videos(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    query: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_type: Optional[str] = Query(None, alias="sortType"),
    user_id: Optional[str] = Query(None, alias="userId"),
    viewer_id=Depends(get_optional_user_id),
    db: Database = Depends(get_db),
):
    owner_id = objid(user_id, "user id") if user_id else None
    videos = aggregator.list_videos(db, viewer_id, page, limit, query, sort_by, sort_type, owner_id)
    return api_response(videos, "Videos fetched successfully")


@router.post("")
async def publish_video(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    video_file: Optional[UploadFile] = File(None, alias="videoFile"),
    thumbnail: Optional[UploadFile] = File(None),
    user_id=Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    video_path = await save_upload_to_temp(video_file)
    thumbnail_path = await save_upload_to_temp(thumbnail)
    video = content.publish_video(db, user_id, title, description, video_path, thumbnail_path)
    return api_response(video, "Video uploaded successfully", 201)


@router.get("/{video_id}")
def get_video(video_id: str, viewer_id=Depends(get_optional_user_id), db: Database = Depends(get_db)):
    video = aggregator.get_video_detail(db, objid(video_id, "video id"), viewer_id)
    return api_response(video, "Video fetched successfully")


@router.patch("/{video_id}")
async def update_video(
    video_id: str,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    thumbnail: Optional[UploadFile] = File(None),
    user_id=Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    video_oid = objid(video_id, "video id")
    thumbnail_path = await save_upload_to_temp(thumbnail)
    video = content.update_video(db, video_oid, user_id, title, description, thumbnail_path)
    return api_response(video, "Video updated successfully")


@router.delete("/{video_id}")
def delete_video(video_id: str, user_id=Depends(get_current_user_id), db: Database = Depends(get_db)):
    content.delete_video(db, objid(video_id, "video id"), user_id)
    return api_response({}, "Video deleted successfully")


@router.patch("/toggle/publish/{video_id}")
def toggle_publish_status(video_id: str, user_id=Depends(get_current_user_id), db: Database = Depends(get_db)):
    video = content.toggle_publish_status(db, objid(video_id, "video id"), user_id)
    return api_response(video, "Video publish status toggled successfully")
