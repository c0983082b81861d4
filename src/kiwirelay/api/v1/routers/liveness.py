from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["liveness"])

_ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


# /webhook POST 외의 모든 요청은 200 OK. 반드시 마지막에 include 할 것.
@router.api_route("/{path:path}", methods=_ALL_METHODS, response_class=PlainTextResponse, include_in_schema=False)
def liveness(path: str):
    return PlainTextResponse("OK", status_code=200)
