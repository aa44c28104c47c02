from contextlib import asynccontextmanager

from fastapi import FastAPI, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from .admin import router as admin_router
from .auth.allowlist import StaticAdminAllowlist
from .config import settings
from .database import engine
from .exception_handlers import install_exception_handlers
from .logging_config import configure_logging
from .routers import auth, comments, posts

logger = configure_logging(
    settings.log_level,
    log_dir=settings.log_dir,
    retention_days=settings.log_retention_days,
)


def _health_response(status_text: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": status_text})


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application")
    if settings.debug:
        logger.warning("DEBUG=true: do not use in production")
    admins = StaticAdminAllowlist.from_settings(settings).members()
    if admins:
        logger.info("Admin allowlist: %s", ", ".join(admins))
    else:
        logger.warning("ADMIN_EMAILS is empty; no account will be created as admin")
    if not settings.google_client_id:
        logger.warning("GOOGLE_CLIENT_ID is not set; sign-in is disabled")

    yield

    await engine.dispose()


app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "HEAD"],
    allow_headers=["authorization", "content-type"],
)

routers = [
    auth.router,
    posts.router,
    comments.router,
    admin_router,
]

for router in routers:
    app.include_router(router)

install_exception_handlers(app)


@app.get("/health", tags=["health"])
async def healthcheck() -> Response:
    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("Healthcheck database probe failed: %s", exc)
        return _health_response("error", status.HTTP_503_SERVICE_UNAVAILABLE)

    logger.debug("Healthcheck passed")
    return _health_response("ok", status.HTTP_200_OK)
