from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from catalog_diff.api.uploads import create_uploads_router
from catalog_diff.config.settings import Settings
from catalog_diff.logging.logger import Log
from catalog_diff.services import Services, build_services


def create_app(settings: Settings | None = None, services: Services | None = None) -> FastAPI:
    """Build the HTTP app; recovery runs on startup, jobs drain on shutdown."""
    settings = settings or (services.settings if services else Settings())
    services = services or build_services(settings)

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        plan = services.start()
        Log.info(
            f"Recovered {len(plan.records)} uploads from {plan.source}: "
            f"{len(plan.rerun)} re-scheduled, {len(plan.mark_failed)} marked failed"
        )
        try:
            yield
        finally:
            services.stop()

    app = FastAPI(title=settings.app_name, version="1.0.0", lifespan=lifespan)
    app.state.services = services
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get(f"{settings.api_prefix}/health")
    def health_check() -> dict:
        return {"status": "ok", "app": settings.app_name}

    app.include_router(create_uploads_router(services=services), prefix=settings.api_prefix)
    return app
