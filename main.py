from contextlib import asynccontextmanager
import logging
import time
import uuid

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from starlette.middleware.base import BaseHTTPMiddleware

from config import APP_NAME, APP_VERSION, CORS_ORIGINS, ENVIRONMENT, LOG_LEVEL, SCHEDULER_ENABLED, TESTING
from core.logging import configure_logging, request_id_var

log_level = configure_logging(environment=ENVIRONMENT, log_level=LOG_LEVEL)
logger = logging.getLogger(__name__)

from routers.admin.api import router as admin_router
from routers.auth.api import router as auth_router
from routers.content.api import router as content_router
from routers.notifications.api import router as notifications_router
from routers.support.api import router as support_router
from routers.wallet.api import router as wallet_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not TESTING:
        from core.db import create_tables

        create_tables()
        if SCHEDULER_ENABLED:
            from scheduler import start_scheduler

            start_scheduler()
    logger.info(f"{APP_NAME} started | environment={ENVIRONMENT}")
    yield
    if not TESTING and SCHEDULER_ENABLED:
        from scheduler import stop_scheduler

        stop_scheduler()


# Initialize FastAPI app
app = FastAPI(
    title=APP_NAME,
    description="Backend API for the TSU wallet site and admin console",
    version=APP_VERSION,
    lifespan=lifespan,
    swagger_ui_parameters={
        "docExpansion": "none",
        "displayRequestDuration": True,
        "filter": True,
        "defaultModelsExpandDepth": 2,
        "defaultModelExpandDepth": 2,
    },
)


# Add security scheme
def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title=APP_NAME,
        version=APP_VERSION,
        description="""
        TSU Wallet Backend API

        ## Authentication
        Endpoints that need a signed-in user take a Bearer JWT issued by
        `/api/auth/simple-login` or `/api/auth/simple-register`.

        Format: `Authorization: Bearer <your_access_token>`
        """,
        routes=app.routes,
    )
    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "bearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        }
    }
    openapi_schema["security"] = [{"bearerAuth": []}]
    app.openapi_schema = openapi_schema
    return openapi_schema


app.openapi = custom_openapi


def _user_id_from_header(request: Request):
    auth_header = request.headers.get("authorization") or ""
    if not auth_header.lower().startswith("bearer "):
        return None
    from auth import decode_access_token

    try:
        payload = decode_access_token(auth_header.split(" ", 1)[1].strip())
    except HTTPException:
        return None
    return str(payload.get("sub", ""))[:8] or None


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())[:8]
        token = request_id_var.set(request_id)
        request.state.request_id = request_id
        start_time = time.time()
        user_id = _user_id_from_header(request) or "anonymous"

        query_str = f"?{request.url.query}" if request.query_params else ""
        logger.info(
            f"REQUEST | id={request_id} | method={request.method} | path={request.url.path}{query_str} | "
            f"user_id={user_id} | ip={request.client.host if request.client else 'unknown'}"
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"ERROR | id={request_id} | method={request.method} | path={request.url.path} | "
                f"error={type(e).__name__}: {e} | time={time.time() - start_time:.3f}s | user_id={user_id}",
                exc_info=True,
            )
            raise
        finally:
            request_id_var.reset(token)

        logger.info(
            f"RESPONSE | id={request_id} | method={request.method} | path={request.url.path} | "
            f"status={response.status_code} | time={time.time() - start_time:.3f}s | user_id={user_id}"
        )
        response.headers["X-Request-ID"] = request_id
        return response


# Request logging goes on first so it wraps CORS
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials="*" not in CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "Content-Disposition"],
)

app.include_router(auth_router)           # Registration, login, account
app.include_router(wallet_router)         # Transfers, purchases, rates, PayPal
app.include_router(content_router)        # CMS content, metadata, whitepapers
app.include_router(support_router)        # Registrations and contact messages
app.include_router(notifications_router)  # In-app notifications
app.include_router(admin_router)          # Admin console


@app.get("/")
def read_root():
    return {
        "status": "online",
        "message": f"Welcome to {APP_NAME}",
        "version": APP_VERSION,
        "environment": ENVIRONMENT,
    }


@app.get("/health")
def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy"}
