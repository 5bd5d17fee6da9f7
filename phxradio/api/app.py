"""FastAPI app, CORS, error mapping and route registration."""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(name)s: %(message)s",
)

from phxradio.api.state import AppState, get_state
from phxradio.core.errors import RadioError, RadioErrorCode, error_code_to_status

# Import routes after state to avoid circular imports
from phxradio.api.routes import admin, playlist, songs, submissions

__all__ = ["app", "AppState", "get_state"]

logger = logging.getLogger(__name__)


app = FastAPI(
    title="PHX02 Radio API",
    description="Song submissions, admin approval and playback queue",
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def make_error_response(error_code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=error_code_to_status(error_code),
        content={"error": str(error_code), "detail": message},
    )


@app.exception_handler(RadioError)
async def radio_error_handler(request: Request, exc: RadioError) -> JSONResponse:
    status = error_code_to_status(exc.error_code)
    if status >= 500:
        logger.error("%s %s -> %s", request.method, request.url.path, exc)
    return make_error_response(exc.error_code, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Missing or mistyped body fields are a 400, not FastAPI's default 422."""
    fields = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query")]
        fields.append(f"{'.'.join(loc) or 'body'}: {err.get('msg', 'invalid')}")
    return make_error_response(RadioErrorCode.VALIDATION_ERROR, "; ".join(fields) or "Invalid request")


app.include_router(submissions.router, tags=["submissions"])
app.include_router(songs.router, tags=["songs"])
app.include_router(playlist.router, tags=["playlist"])
app.include_router(admin.router, prefix="/admin", tags=["admin"])


@app.get("/health", tags=["health"])
def health_check():
    return {"status": "ok"}
