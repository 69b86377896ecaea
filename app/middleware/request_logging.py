import time
from fastapi import Request

from app.utils.logger import get_logger

logger = get_logger("access")

# webhook deliveries are retried by providers; log them as warnings when rejected
WEBHOOK_PATH_SUFFIX = "/webhook"


async def request_logging_middleware(request: Request, call_next):
    start_time = time.perf_counter()

    response = await call_next(request)

    elapsed_ms = round((time.perf_counter() - start_time) * 1000, 2)

    # set by get_current_user on authenticated routes
    user = getattr(request.state, "user", None)
    extra = {
        "client_addr": request.client.host if request.client else "unknown",
        "method": request.method,
        "path": request.url.path,
        "status_code": response.status_code,
        "process_time_ms": elapsed_ms,
        "company_id": user.company_id if user is not None else "-",
        "user_id": user.id if user is not None else "-",
    }

    if request.url.path.endswith(WEBHOOK_PATH_SUFFIX) and response.status_code >= 400:
        logger.warning("", extra=extra)
    else:
        logger.info("", extra=extra)

    return response
