from fastapi import FastAPI

from routers import comments, healthcheck, likes, playlists, subscriptions, tweets, users, videos

API_PREFIX = "/api/v1"


def add_routers(application: FastAPI) -> None:
    application.include_router(healthcheck.router, prefix=API_PREFIX)
    application.include_router(users.router, prefix=API_PREFIX)
    application.include_router(videos.router, prefix=API_PREFIX)
    application.include_router(comments.router, prefix=API_PREFIX)
    application.include_router(likes.router, prefix=API_PREFIX)
    application.include_router(subscriptions.router, prefix=API_PREFIX)
    application.include_router(tweets.router, prefix=API_PREFIX)
    application.include_router(playlists.router, prefix=API_PREFIX)
