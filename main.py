import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import config
from database import init_db
from errors import ShareError
from storage import get_storage

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

# ─── App created FIRST before any include_router ─────────────────────────────
app = FastAPI(
    title="FileShare API",
    description="Upload files and share them by link until they expire",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

from auth_routes import router as auth_router  # noqa: E402
from file_routes import router as file_router  # noqa: E402

app.include_router(auth_router)
app.include_router(file_router)

init_db()


# ─── Exception handlers ───────────────────────────────────────────────────────
@app.exception_handler(ShareError)
async def share_error_handler(request: Request, exc: ShareError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid request", "errors": jsonable_errors(exc)},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def jsonable_errors(exc: RequestValidationError) -> list:
    return [{"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in exc.errors()]


# ─── Root & Health ────────────────────────────────────────────────────────────

@app.get("/")
def root():
    return {"message": "FileShare API is running."}


@app.get("/health", tags=["System"])
def health():
    return {"status": "ok", "service": "FileShare", "version": "1.0.0",
            "storage": get_storage().get_health()}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=config.APP_HOST, port=config.APP_PORT)
