from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from sprint_planner.connectors.jira_client import TrackerError, TrackerTransportError
from sprint_planner.logging import get_logger
from sprint_planner.util import utc_now_iso

log = get_logger("api.errors")

TRACKER_STATUS_MESSAGES = {
    status.HTTP_401_UNAUTHORIZED: "Invalid JIRA credentials",
    status.HTTP_403_FORBIDDEN: "Insufficient permissions for this JIRA operation",
    status.HTTP_404_NOT_FOUND: "JIRA resource not found",
}

def error_body(status_code: int, message: str) -> dict:
    return {
        "statusCode": status_code,
        "message": message,
        "timestamp": utc_now_iso(),
    }

def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "Invalid request"

async def tracker_error_handler(request: Request, exc: TrackerError) -> JSONResponse:
    if exc.status_code in TRACKER_STATUS_MESSAGES:
        code = exc.status_code
        message = TRACKER_STATUS_MESSAGES[code]
    elif isinstance(exc, TrackerTransportError):
        code = status.HTTP_502_BAD_GATEWAY
        message = f"Unable to reach JIRA: {exc.message}"
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
        message = exc.message or "Internal server error"
    log.warning("%s %s -> %d (%s)", request.method, request.url.path, code, exc)
    return JSONResponse(error_body(code, message), status_code=code)

async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    code = status.HTTP_400_BAD_REQUEST
    return JSONResponse(error_body(code, _validation_message(exc)), status_code=code)

async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("Unhandled error on %s %s", request.method, request.url.path)
    code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return JSONResponse(error_body(code, str(exc) or "Internal server error"), status_code=code)

def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TrackerError, tracker_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
