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

router = APIRouter(prefix="/tweets", tags=["Tweets"])


class TweetRequest(BaseModel):
    content: Optional[str] = None


@router.post("")
def create_tweet(payload: TweetRequest, user_id=Depends(get_current_user_id), db: Database = Depends(get_db)):
    tweet = content.create_tweet(db, user_id, payload.content)
    return api_response(tweet, "Tweet created successfully", 201)


@router.get("/user/{user_id}")
def user_tweets(
    user_id: str,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    viewer_id=Depends(get_optional_user_id),
    db: Database = Depends(get_db),
):
    tweets = aggregator.list_user_tweets(db, objid(user_id, "user id"), viewer_id, page, limit)
    return api_response(tweets, "User tweets fetched successfully")


@router.patch("/{tweet_id}")
def update_tweet(tweet_id: str, payload: TweetRequest, user_id=Depends(get_current_user_id), db: Database = Depends(get_db)):
    tweet = content.update_tweet(db, objid(tweet_id, "tweet id"), user_id, payload.content)
    return api_response(tweet, "Tweet updated successfully")


@router.delete("/{tweet_id}")
def delete_tweet(tweet_id: str, user_id=Depends(get_current_user_id), db: Database = Depends(get_db)):
    content.delete_tweet(db, objid(tweet_id, "tweet id"), user_id)
    return api_response({}, "Tweet deleted successfully")
