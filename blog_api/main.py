import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import IntegrityError
from blog_api.config import settings
from blog_api.exceptions import BlogError, UnauthorizedError
from blog_api.i18n import resolve_locale, translate
from blog_api.logging_config import setup_logging
from blog_api.middleware import TimingMiddleware
from blog_api.routers import articles, auth, profiles, users

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging()
    Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
    logger.info("Blog API starting (env=%s)", settings.APP_ENV)
    yield
    # Shutdown
    logger.info("Blog API stopped")

app = FastAPI(
    title="Blog API",
    description="Articles, comments, profiles, follows and favorites",
    version="1.0.0",
    lifespan=lifespan,
)

# Middleware
app.add_middleware(TimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Error responses: {"statusCode", "message", "timestamp"} with the message
# translated for the request's Accept-Language.
# ---------------------------------------------------------------------------

def _error_body(request: Request, status_code: int, key: str, **params) -> dict:
    locale = resolve_locale(request.headers.get("accept-language"))
    return {
        "statusCode": status_code,
        "message": translate(key, locale, **params),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

@app.exception_handler(BlogError)
async def blog_error_handler(request: Request, exc: BlogError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthorizedError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.status_code, exc.message_key, **exc.params),
        headers=headers,
    )

# (field, pydantic error type) -> catalog key; "*" matches any other type.
_FIELD_ERROR_KEYS = {
    ("email", "missing"): "auth.validation.emailRequired",
    ("email", "*"): "auth.validation.emailInvalid",
    ("username", "missing"): "auth.validation.usernameRequired",
    ("username", "string_too_short"): "auth.validation.usernameRequired",
    ("username", "string_too_long"): "auth.validation.usernameTooLong",
    ("password", "missing"): "auth.validation.passwordRequired",
    ("password", "string_too_short"): "auth.validation.passwordTooShort",
}


def _field_error_message(error: dict, locale: str) -> str:
    """Translate a pydantic error for a known field, else keep pydantic's text."""
    loc = error.get("loc") or ()
    field = loc[-1] if loc else None
    error_type = error.get("type")
    key = _FIELD_ERROR_KEYS.get((field, error_type)) or _FIELD_ERROR_KEYS.get((field, "*"))
    if key is None:
        return error.get("msg", "")
    ctx = error.get("ctx") or {}
    return translate(
        key, locale, minLength=ctx.get("min_length"), maxLength=ctx.get("max_length")
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    locale = resolve_locale(request.headers.get("accept-language"))
    body = _error_body(request, 400, "common.validationFailed")
    body["errors"] = jsonable_encoder(
        [
            {
                "loc": e.get("loc"),
                "msg": _field_error_message(e, locale),
                "type": e.get("type"),
            }
            for e in exc.errors()
        ]
    )
    return JSONResponse(status_code=400, content=body)

@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    # Uniqueness violations that slipped past a service pre-check.
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return JSONResponse(status_code=409, content=_error_body(request, 409, "common.duplicateEntry"))

# Routers
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(profiles.router)
app.include_router(articles.router)

# Uploaded profile images, served at the URL prefix LocalImageStorage hands out.
app.mount(
    "/" + Path(settings.UPLOAD_DIR).as_posix().strip("/"),
    StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False),
    name="uploads",
)

@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0"}
