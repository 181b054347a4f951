# matrix_mock/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Configuration and DB
from matrix_mock.config import settings
from matrix_mock.core.db import init_db, close_db
from matrix_mock.core.errors import InvalidParam, MatrixError, MethodNotAllowed, NotJson, Unrecognized

from matrix_mock.api.v1.routers import auth, rooms, media, fallback

from matrix_mock.core.bootstrap import ensure_seed_user
logger = logging.getLogger("uvicorn.error")

app = FastAPI(title=settings.APP_NAME)

# CORS (Matrix clients running in a browser send preflights)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

def _error_response(exc: MatrixError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

@app.exception_handler(MatrixError)
async def matrix_error_handler(request: Request, exc: MatrixError):
    return _error_response(exc)

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """
    Turn pydantic body validation failures into Matrix errors:
    undecodable JSON -> M_NOT_JSON, anything else -> M_INVALID_PARAM naming the field.
    """
    errors = exc.errors()
    first = errors[0] if errors else {}
    if first.get("type") == "json_invalid":
        return _error_response(NotJson())
    loc = [str(p) for p in first.get("loc", ()) if p != "body"]
    field = ".".join(loc) or "body"
    return _error_response(InvalidParam.for_field(field))

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    # Paths outside the mocked API still answer with the Matrix envelope
    if exc.status_code == 404:
        return _error_response(Unrecognized())
    if exc.status_code == 405:
        return _error_response(MethodNotAllowed())
    return JSONResponse(status_code=exc.status_code, content={"errcode": "M_UNKNOWN", "error": str(exc.detail)})

@app.on_event("startup")
async def on_startup():
    await init_db(generate_schemas=settings.generate_schemas)
    # Seed an account from SEED_* variables so a client can log in on first run
    await ensure_seed_user()
    logger.info("[startup] %s ready (env=%s)", settings.APP_NAME, settings.env)

@app.on_event("shutdown")
async def on_shutdown():
    await close_db()

# Client-server API
app.include_router(auth.router)
app.include_router(rooms.router)
app.include_router(media.router)
# Catch-all for unmatched /_matrix/client/r0 paths (keep last)
app.include_router(fallback.router)

@app.get("/healthz")
def healthz():
    return {"ok": True}
