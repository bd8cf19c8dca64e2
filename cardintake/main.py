from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cardintake.core.config import get_settings
from cardintake.core.logging import configure_logging
from cardintake.db.base import Base
from cardintake.db.session import engine
from cardintake.routers import batches, files, jobs
from cardintake.services.storage import ensure_storage_dir


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging()
    app = FastAPI(title=settings.app_name, debug=settings.debug)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(batches.router)
    app.include_router(jobs.router)
    app.include_router(files.router)

    @app.on_event("startup")
    def startup() -> None:
        import cardintake.models  # noqa: F401

        ensure_storage_dir()
        if settings.auto_create_tables:
            Base.metadata.create_all(bind=engine)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
