from fastapi import APIRouter

from responses import api_response
from utils import utc_now

router = APIRouter(prefix="/healthcheck", tags=["Healthcheck"])


@router.get("")
def healthcheck():
    return api_response({"status": "OK", "timestamp": utc_now()}, "Service is healthy")
