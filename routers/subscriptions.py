from typing import Optional

from fastapi import APIRouter, Depends
from pymongo.database import Database

import aggregator
import relations
from auth import get_current_user_id, get_optional_user_id
from database import get_db
from responses import api_response
from utils import objid

router = APIRouter(prefix="/subscriptions", tags=["Subscriptions"])


@router.post("/c/{channel_id}")
def toggle_subscription(channel_id: str, user_id=Depends(get_current_user_id), db: Database = Depends(get_db)):
    result = relations.toggle_subscription(db, objid(channel_id, "channel id"), user_id)
    message = "Subscribed successfully" if result.active else "Unsubscribed successfully"
    return api_response(result, message)


@router.get("/c/{channel_id}")
def channel_subscribers(
    channel_id: str,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    viewer_id=Depends(get_optional_user_id),
    db: Database = Depends(get_db),
):
    subscribers = aggregator.list_channel_subscribers(db, objid(channel_id, "channel id"), viewer_id, page, limit)
    return api_response(subscribers, "Subscribers fetched successfully")


@router.get("/u/{subscriber_id}", dependencies=[Depends(get_current_user_id)])
def subscribed_channels(
    subscriber_id: str,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    db: Database = Depends(get_db),
):
    channels = aggregator.list_subscribed_channels(db, objid(subscriber_id, "subscriber id"), page, limit)
    return api_response(channels, "Subscribed channels fetched successfully")
