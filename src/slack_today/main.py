import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .errors import CommandError
from .routers import slack as slack_router
from .settings import get_settings
from .utils import error_envelope

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "slack",
        "description": "Slack slash command webhooks backed by Todoist.",
    },
]


# PUBLIC_INTERFACE
def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once; later calls are no-ops if handlers exist."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


configure_logging(get_settings().log_level)

app = FastAPI(
    title="Slack Today",
    description="Answers the Slack /today command with today's Todoist tasks.",
    version="0.1.0",
    openapi_tags=openapi_tags,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info("--> %s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
    except Exception:
        logger.exception("!! %s %s crashed", request.method, request.url.path)
        raise
    logger.info("<-- %s %s %s", response.status_code, request.method, request.url.path)
    return response


# Global exception handler mapping pipeline failures to Slack-facing JSON
@app.exception_handler(CommandError)
async def command_error_handler(request: Request, exc: CommandError) -> JSONResponse:
    """
    Return the public envelope for a CommandError and log the private detail.

    Response format:
        {"text": "Invalid request signature"}                       (401)
        {"text": "Server configuration error"}                      (500)
        {"response_type": "ephemeral", "text": "Sorry, ..."}        (200, upstream failure)
    """
    if exc.status_code >= 500:
        logger.error("%s: %s", type(exc).__name__, exc)
    else:
        logger.warning("%s: %s", type(exc).__name__, exc)
    status_code, body = error_envelope(exc)
    return JSONResponse(status_code=status_code, content=body)


# PUBLIC_INTERFACE
@app.get("/", summary="Health Check", tags=["health"])
def health_check():
    """
    Health check endpoint.

    Returns:
        A JSON object indicating service health.
    """
    return {"message": "Healthy"}


# Include routers
app.include_router(slack_router.router)
