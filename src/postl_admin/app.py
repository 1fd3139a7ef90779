"""FastAPI application factory for PosTL Admin."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from postl_admin.common.config import get_settings
from postl_admin.common.logging import setup_logging
from postl_admin.common.schemas import HealthResponse


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)
    settings.log_config_check()
    # Missing backend URL or public key stops the app here.
    settings.require_backend()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        # Shutdown
        from postl_admin.deps import close_clients
        await close_clients()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(
            version=settings.api_version,
            admin_capabilities=settings.has_admin_key,
        )

    @app.get("/", include_in_schema=False)
    async def root():
        return RedirectResponse("/dashboard/", status_code=302)

    # Mount dashboard sub-application
    from postl_admin.dashboard.router import create_dashboard_app
    app.mount("/dashboard", create_dashboard_app())

    return app
