"""FastAPI application entrypoint."""

import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from carquery import __version__
from carquery.api.middleware import RequestIDMiddleware, RequestLoggingMiddleware
from carquery.api.router import api_router
from carquery.config import settings
from carquery.database import close_db, init_db
from carquery.services.rate_limit import get_rate_limiter
from carquery.services.session_tokens import SessionTokenStore, run_token_sweeper

logger = logging.getLogger(__name__)

# Initialize Sentry for error tracking
if settings.sentry_dsn:
    import sentry_sdk

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        traces_sample_rate=0.1 if settings.is_production else 1.0,
        send_default_pii=False,
    )
    logger.info("Sentry initialized")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    await init_db()
    app.state.token_sweeper = asyncio.create_task(
        run_token_sweeper(app.state.session_tokens, rate_limiter=get_rate_limiter()),
        name="session-token-sweeper",
    )
    yield
    app.state.token_sweeper.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await app.state.token_sweeper
    await close_db()


app = FastAPI(
    title="CarQuery API",
    description="Car rental registration and ride request intake",
    version=__version__,
    lifespan=lifespan,
    docs_url="/api/docs" if settings.debug_enabled else None,
    redoc_url="/api/redoc" if settings.debug_enabled else None,
    openapi_url="/api/openapi.json" if settings.debug_enabled else None,
)

# Shared by every request handler and the background sweeper
app.state.session_tokens = SessionTokenStore()

# Logging runs inside the request ID middleware so log lines carry the ID
app.add_middleware(RequestLoggingMiddleware)  # type: ignore[arg-type]
app.add_middleware(RequestIDMiddleware)  # type: ignore[arg-type]

app.add_middleware(
    CORSMiddleware,  # type: ignore[arg-type]
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept", "X-Request-ID"],
    expose_headers=["X-Request-ID", "Content-Disposition"],
)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_request: Request, exc: RequestValidationError):
    """Report malformed input as 400 with the field errors."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "message": "Invalid form data",
            "errors": jsonable_encoder(exc.errors()),
        },
    )


app.include_router(api_router, prefix="/api")


if __name__ == "__main__":
    import uvicorn

    from carquery.logging import get_uvicorn_log_config

    uvicorn.run(
        "carquery.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_config=get_uvicorn_log_config(),
    )
