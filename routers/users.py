from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from pydantic import BaseModel
from pymongo.database import Database

import accounts
import aggregator
from auth import (
    ACCESS_COOKIE,
    COOKIE_OPTIONS,
    REFRESH_COOKIE,
    get_current_user,
    get_current_user_id,
    get_optional_user_id,
    public_user,
)
from database import get_db
from responses import api_response
from storage import save_upload_to_temp
from views import View

router = APIRouter(prefix="/users", tags=["Users"])


# -------------------- Models --------------------
class LoginRequest(BaseModel):
    email: Optional[str] = None
    username: Optional[str] = None
    password: str


class RefreshRequest(View):
    refresh_token: Optional[str] = None


class ChangePasswordRequest(View):
    old_password: str
    new_password: str


class AccountDetailsRequest(View):
    full_name: str
    email: str


def _with_session_cookies(response, access_token: str, refresh_token: str):
    response.set_cookie(ACCESS_COOKIE, access_token, **COOKIE_OPTIONS)
    response.set_cookie(REFRESH_COOKIE, refresh_token, **COOKIE_OPTIONS)
    return response


# -------------------- Session --------------------
@router.post("/register")
async def register(
    full_name: Optional[str] = Form(None, alias="fullName"),
    email: Optional[str] = Form(None),
    username: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    avatar: Optional[UploadFile] = File(None),
    cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
    db: Database = Depends(get_db),
):
    avatar_path = await save_upload_to_temp(avatar)
    cover_image_path = await save_upload_to_temp(cover_image)
    user = accounts.register_user(db, full_name, email, username, password, avatar_path, cover_image_path)
    return api_response(user, "User registered successfully", 201)


@router.post("/login")
def login(payload: LoginRequest, db: Database = Depends(get_db)):
    user, access_token, refresh_token = accounts.login_user(db, payload.password, payload.email, payload.username)
    response = api_response(
        {"user": user, "accessToken": access_token, "refreshToken": refresh_token},
        "User logged in successfully",
    )
    return _with_session_cookies(response, access_token, refresh_token)


@router.post("/logout")
def logout(user_id=Depends(get_current_user_id), db: Database = Depends(get_db)):
    accounts.logout_user(db, user_id)
    response = api_response({}, "User logged out successfully")
    response.delete_cookie(ACCESS_COOKIE, **COOKIE_OPTIONS)
    response.delete_cookie(REFRESH_COOKIE, **COOKIE_OPTIONS)
    return response


@router.post("/refresh-token")
def refresh_token(request: Request, payload: Optional[RefreshRequest] = None, db: Database = Depends(get_db)):
    incoming = request.cookies.get(REFRESH_COOKIE) or (payload.refresh_token if payload else None)
    access_token, new_refresh_token = accounts.refresh_access_token(db, incoming)
    response = api_response(
        {"accessToken": access_token, "refreshToken": new_refresh_token},
        "Access token refreshed",
    )
    return _with_session_cookies(response, access_token, new_refresh_token)


# -------------------- Account --------------------
@router.post("/change-password")
def change_password(payload: ChangePasswordRequest, user_id=Depends(get_current_user_id), db: Database = Depends(get_db)):
    accounts.change_password(db, user_id, payload.old_password, payload.new_password)
    return api_response({}, "Password changed successfully")


@router.get("/current-user")
def current_user(user: dict = Depends(get_current_user)):
    return api_response(public_user(user), "Current user fetched successfully")


@router.patch("/update-account")
def update_account(payload: AccountDetailsRequest, user_id=Depends(get_current_user_id), db: Database = Depends(get_db)):
    user = accounts.update_account_details(db, user_id, payload.full_name, payload.email)
    return api_response(user, "Account details updated successfully")


@router.patch("/avatar")
async def update_avatar(
    avatar: Optional[UploadFile] = File(None),
    user_id=Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    path = await save_upload_to_temp(avatar)
    user = accounts.update_user_image(db, user_id, "avatar", path)
    return api_response(user, "Avatar updated successfully")


@router.patch("/cover-image")
async def update_cover_image(
    cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
    user_id=Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    path = await save_upload_to_temp(cover_image)
    user = accounts.update_user_image(db, user_id, "cover_image", path)
    return api_response(user, "Cover image updated successfully")


# -------------------- Channel --------------------
@router.get("/c/{username}")
def channel_profile(username: str, viewer_id=Depends(get_optional_user_id), db: Database = Depends(get_db)):
    profile = aggregator.get_channel_profile(db, username, viewer_id)
    return api_response(profile, "User channel fetched successfully")


@router.get("/history")
def watch_history(user_id=Depends(get_current_user_id), db: Database = Depends(get_db)):
    history = aggregator.get_watch_history(db, user_id)
    return api_response(history, "Watch history fetched successfully")
