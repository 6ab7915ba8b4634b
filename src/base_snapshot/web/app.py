"""
FastAPI application factory.

Serve with:
    uvicorn --factory base_snapshot.web.app:create_app
"""

from datetime import datetime, timezone
from typing import Callable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from base_snapshot import __version__
from base_snapshot.auth.service import AuthService
from base_snapshot.auth.store import TokenStore, create_token_store
from base_snapshot.config import AppSettings, load_settings
from base_snapshot.exceptions import ApiError
from base_snapshot.lark_client import LarkClient
from base_snapshot.logger import logger
from base_snapshot.web.routes import api_router
from base_snapshot.web.sessions import CookieSessionBackend, StoreSessionBackend


def _validation_error_body(exc: RequestValidationError) -> dict:
    missing = []
    problems = []
    for err in exc.errors():
        name = str(err.get("loc", ["?"])[-1])
        if err.get("type") in ("missing", "string_too_short"):
            missing.append(name)
        else:
            problems.append(f"{name}: {err.get('msg', 'invalid')}")
    if missing:
        return {"error": f"Missing required fields: {', '.join(missing)}"}
    return {"error": "Invalid request", "message": "; ".join(problems)}


def create_app(settings: AppSettings = None,
               token_store: TokenStore = None,
               auth_service: AuthService = None,
               client_factory: Callable[[str], LarkClient] = None) -> FastAPI:
    """Build the application.

    Args:
        settings: Runtime settings (default: from the environment)
        token_store: Session token store (default: per settings)
        auth_service: OAuth service (default: built from settings)
        client_factory: Maps a user access token to a LarkClient

    Returns:
        FastAPI: configured application
    """
    settings = settings or load_settings()

    application = FastAPI(
        title="Lark Base Snapshot",
        version=__version__,
        description="Copy a Lark Base into a new Base with static values",
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.state.settings = settings
    if settings.serverless:
        application.state.sessions = CookieSessionBackend(settings)
    else:
        application.state.sessions = StoreSessionBackend(
            settings, token_store or create_token_store(settings),
        )
    application.state.auth_service = auth_service or AuthService(settings)
    application.state.client_factory = client_factory or (
        lambda token: LarkClient.from_settings(settings, user_access_token=token)
    )

    application.include_router(api_router, prefix="/api")

    @application.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @application.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content=_validation_error_body(exc))

    @application.get("/api/health", tags=["Health"])
    def health_check():
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    if not settings.has_credentials:
        logger.warning("未配置 LARK_APP_ID / LARK_APP_SECRET，登录与快照接口不可用")

    return application
