from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from constants import ACK_BODY, HEALTH_BODY
from logging_config import get_logger

logger = get_logger(__name__)

health_router = APIRouter(tags=["health"])

# Every HTTP method the catch-all answers; load balancers probe with more than GET.
ANY_METHOD = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@health_router.get("/health", response_class=PlainTextResponse)
async def health():
    return HEALTH_BODY


@health_router.api_route("/{path:path}", methods=ANY_METHOD, response_class=PlainTextResponse, include_in_schema=False)
async def acknowledge(path: str, request: Request):
    # Unknown paths still answer 200 so infrastructure probes stay green
    client_host = request.client.host if request.client else "unknown"
    logger.debug(f"{request.method} /{path} from {client_host} acknowledged")
    return ACK_BODY
