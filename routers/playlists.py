from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from pymongo.database import Database

import aggregator
import content
import relations
from auth import get_current_user_id
from database import get_db
from responses import api_response
from utils import objid

router = APIRouter(prefix="/playlist", tags=["Playlists"])


class PlaylistRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


@router.post("")
def create_playlist(payload: PlaylistRequest, user_id=Depends(get_current_user_id), db: Database = Depends(get_db)):
    playlist = content.create_playlist(db, user_id, payload.name, payload.description)
    return api_response(playlist, "Playlist created successfully", 201)


@router.get("/user/{user_id}")
def user_playlists(
    user_id: str,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    db: Database = Depends(get_db),
):
    playlists = aggregator.list_user_playlists(db, objid(user_id, "user id"), page, limit)
    return api_response(playlists, "User playlists fetched successfully")


@router.get("/{playlist_id}")
def get_playlist(playlist_id: str, db: Database = Depends(get_db)):
    playlist = aggregator.get_playlist_detail(db, objid(playlist_id, "playlist id"))
    return api_response(playlist, "Playlist fetched successfully")


@router.patch("/add/{video_id}/{playlist_id}")
def add_video(video_id: str, playlist_id: str, user_id=Depends(get_current_user_id), db: Database = Depends(get_db)):
    playlist = relations.add_video_to_playlist(db, objid(playlist_id, "playlist id"), objid(video_id, "video id"), user_id)
    return api_response(playlist, "Video added to playlist successfully")


@router.patch("/remove/{video_id}/{playlist_id}")
def remove_video(video_id: str, playlist_id: str, user_id=Depends(get_current_user_id), db: Database = Depends(get_db)):
    playlist = relations.remove_video_from_playlist(
        db, objid(playlist_id, "playlist id"), objid(video_id, "video id"), user_id
    )
    return api_response(playlist, "Video removed from playlist successfully")


@router.patch("/{playlist_id}")
def update_playlist(
    playlist_id: str,
    payload: PlaylistRequest,
    user_id=Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    playlist = content.update_playlist(db, objid(playlist_id, "playlist id"), user_id, payload.name, payload.description)
    return api_response(playlist, "Playlist updated successfully")


@router.delete("/{playlist_id}")
def delete_playlist(playlist_id: str, user_id=Depends(get_current_user_id), db: Database = Depends(get_db)):
    content.delete_playlist(db, objid(playlist_id, "playlist id"), user_id)
    return api_response({}, "Playlist deleted successfully")
