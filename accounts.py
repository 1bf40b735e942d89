"""User accounts: registration, login sessions and profile changes."""

import logging
from typing import Optional, Tuple

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.database import Database
from pydantic import ValidationError
from pymongo.errors import DuplicateKeyError

import storage
from auth import (
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    public_user,
    verify_password,
)
from config import REFRESH_TOKEN_SECRET
from database import create_document
from errors import BadRequest, Conflict, NotFound, Unauthorized
from schemas import AccountIdentity, MediaFile, User
from utils import optional_objid, utc_now
from views import AccountView

logger = logging.getLogger(__name__)


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _check_identity(email: str, username: Optional[str] = None) -> AccountIdentity:
    try:
        return AccountIdentity(email=email, username=username)
    except ValidationError as e:
        field = e.errors()[0]["loc"][0]
        raise BadRequest(f"Invalid {field}")


def register_user(
    db: Database,
    full_name: Optional[str],
    email: Optional[str],
    username: Optional[str],
    password: Optional[str],
    avatar_path: Optional[str],
    cover_image_path: Optional[str] = None,
) -> AccountView:
    try:
        if any(_blank(field) for field in (full_name, email, username, password)):
            raise BadRequest("All fields are required")
        username = username.strip().lower()
        email = email.strip().lower()
        _check_identity(email, username)
        if db["user"].find_one({"$or": [{"email": email}, {"username": username}]}, {"_id": 1}):
            raise Conflict("User with email or username already exists")
        if not avatar_path:
            raise BadRequest("Avatar file is required")
    except (BadRequest, Conflict):
        storage.discard_temp(avatar_path, cover_image_path)
        raise

    avatar = storage.upload_on_storage(avatar_path, storage.IMAGE)
    cover_image = storage.upload_on_storage(cover_image_path, storage.IMAGE) if cover_image_path else None

    user = User(
        username=username,
        full_name=full_name.strip(),
        email=email,
        password_hash=hash_password(password),
        avatar=MediaFile(public_id=avatar["public_id"], url=avatar["url"]),
        cover_image=MediaFile(public_id=cover_image["public_id"], url=cover_image["url"]) if cover_image else None,
    )
    try:
        doc = create_document(db, "user", user)
    except DuplicateKeyError:
        # lost a race with a concurrent registration of the same name
        storage.delete_on_storage(avatar["public_id"])
        if cover_image:
            storage.delete_on_storage(cover_image["public_id"])
        raise Conflict("User with email or username already exists")
    logger.info("Registered user %s (%s)", doc["_id"], username)
    return public_user(doc)


def issue_tokens(db: Database, user: dict) -> Tuple[str, str]:
    access_token = create_access_token(user)
    refresh_token = create_refresh_token(user["_id"])
    db["user"].update_one({"_id": user["_id"]}, {"$set": {"refresh_token": refresh_token}})
    return access_token, refresh_token


def login_user(
    db: Database,
    password: Optional[str],
    email: Optional[str] = None,
    username: Optional[str] = None,
) -> Tuple[AccountView, str, str]:
    if _blank(email) and _blank(username):
        raise BadRequest("Username or email is required")
    if _blank(password):
        raise BadRequest("Password is required")
    conditions = []
    if not _blank(email):
        conditions.append({"email": email.strip().lower()})
    if not _blank(username):
        conditions.append({"username": username.strip().lower()})

    user = db["user"].find_one({"$or": conditions})
    if not user:
        raise NotFound("User does not exist")
    if not verify_password(password, user.get("password_hash", "")):
        raise Unauthorized("Invalid user credentials")

    access_token, refresh_token = issue_tokens(db, user)
    logger.info("User %s logged in", user["_id"])
    return public_user(user), access_token, refresh_token


def logout_user(db: Database, user_id: ObjectId) -> None:
    db["user"].update_one({"_id": user_id}, {"$unset": {"refresh_token": ""}})


def refresh_access_token(db: Database, incoming_token: Optional[str]) -> Tuple[str, str]:
    """Rotate the session: the presented refresh token must be the one last issued."""
    if not incoming_token:
        raise Unauthorized("Unauthorized request")
    payload = decode_token(incoming_token, REFRESH_TOKEN_SECRET, token_type="refresh")
    user_id = optional_objid(payload["sub"])
    user = db["user"].find_one({"_id": user_id}) if user_id else None
    if not user:
        raise Unauthorized("Invalid refresh token")
    if incoming_token != user.get("refresh_token"):
        raise Unauthorized("Refresh token is expired or used")
    return issue_tokens(db, user)


def change_password(db: Database, user_id: ObjectId, old_password: Optional[str], new_password: Optional[str]) -> None:
    if _blank(old_password) or _blank(new_password):
        raise BadRequest("Old and new password are required")
    user = db["user"].find_one({"_id": user_id}, {"password_hash": 1})
    if not user:
        raise NotFound("User not found")
    if not verify_password(old_password, user.get("password_hash", "")):
        raise BadRequest("Invalid old password")
    db["user"].update_one(
        {"_id": user_id},
        {"$set": {"password_hash": hash_password(new_password), "updated_at": utc_now()}},
    )


def update_account_details(db: Database, user_id: ObjectId, full_name: Optional[str], email: Optional[str]) -> AccountView:
    if _blank(full_name) or _blank(email):
        raise BadRequest("All fields are required")
    email = email.strip().lower()
    _check_identity(email)
    if db["user"].find_one({"email": email, "_id": {"$ne": user_id}}, {"_id": 1}):
        raise Conflict("Email is already in use")
    try:
        user = db["user"].find_one_and_update(
            {"_id": user_id},
            {"$set": {"full_name": full_name.strip(), "email": email, "updated_at": utc_now()}},
            return_document=ReturnDocument.AFTER,
        )
    except DuplicateKeyError:
        raise Conflict("Email is already in use")
    if not user:
        raise NotFound("User not found")
    return public_user(user)


def update_user_image(db: Database, user_id: ObjectId, field: str, local_path: Optional[str]) -> AccountView:
    """Replace the avatar or cover image; the previous file is removed after the swap."""
    if field not in ("avatar", "cover_image"):
        raise ValueError(f"Unknown image field {field}")
    if not local_path:
        raise BadRequest(f"{field.replace('_', ' ').capitalize()} file is missing")
    user = db["user"].find_one({"_id": user_id}, {field: 1})
    if not user:
        storage.discard_temp(local_path)
        raise NotFound("User not found")

    asset = storage.upload_on_storage(local_path, storage.IMAGE)
    updated = db["user"].find_one_and_update(
        {"_id": user_id},
        {"$set": {field: MediaFile(public_id=asset["public_id"], url=asset["url"]).model_dump(), "updated_at": utc_now()}},
        return_document=ReturnDocument.AFTER,
    )
    previous = (user.get(field) or {}).get("public_id")
    if previous:
        storage.delete_on_storage(previous)
    return public_user(updated)
