from typing import Any

from bson import ObjectId
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def api_response(data: Any = None, message: str = "Success", status_code: int = 200) -> JSONResponse:
    """Wrap a payload in the {statusCode, data, message, success} envelope."""
    return JSONResponse(
        status_code=status_code,
        content={
            "statusCode": status_code,
            "data": jsonable_encoder(data, custom_encoder={ObjectId: str}),
            "message": message,
            "success": status_code < 400,
        },
    )


def error_response(status_code: int, message: str, errors: Any = None) -> JSONResponse:
    content = {"statusCode": status_code, "message": message, "success": False}
    if errors:
        content["errors"] = errors
    return JSONResponse(status_code=status_code, content=content)
