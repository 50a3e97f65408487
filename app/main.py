from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
import logging

from app.core.config import Settings, settings as default_settings
from app.core.errors import register_exception_handlers
from app.core.storage import LOCAL_MEDIA_ROUTE, R2Storage
from app.core.token_registry import EdgeConfigTokenRegistry
from app.db.init_db import create_all_tables
from app.db.session import Database
from app.middleware.request_logging import RequestLoggingMiddleware
from app.middleware.route_guard import RouteGuardMiddleware
from app.middleware.security_headers import SecurityHeadersMiddleware
from app.modules.auth.api.router import router as auth_router
from app.modules.categories.api.router import router as categories_router
from app.modules.dashboard.api.router import router as dashboard_router
from app.modules.media.router import router as media_router
from app.modules.posts.api.router import router as posts_router
from app.modules.tags.api.router import router as tags_router

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if default_settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("app")


def create_app(
    settings: Settings = None,
    database: Database = None,
    token_registry=None,
    storage: R2Storage = None,
) -> FastAPI:
    """
    Build the application. Collaborators that are not passed in are created
    from settings and shared through app.state.
    """
    settings = settings or default_settings

    app = FastAPI(
        title=settings.PROJECT_NAME,
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        debug=settings.DEBUG,
        description="Content API and admin backend for the ASOF website",
        version=settings.VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        swagger_ui_parameters={"defaultModelsExpandDepth": -1},
    )

    app.state.settings = settings
    app.state.database = database or Database(settings.DATABASE_URL)
    app.state.token_registry = token_registry or EdgeConfigTokenRegistry.from_settings(settings)
    app.state.storage = storage or R2Storage(settings)

    register_exception_handlers(app)

    @app.on_event("startup")
    def startup_event():
        logger.info(f"Starting server in {settings.ENVIRONMENT} mode")
        logger.info(f"BASE_URL: {settings.BASE_URL}")
        create_all_tables(app.state.database)

    @app.on_event("shutdown")
    def shutdown_event():
        app.state.database.dispose()

    # Last added runs first: CORS, security headers, logging, then the guard
    app.add_middleware(RouteGuardMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Local uploads are only written when R2 is not configured
    app.mount(LOCAL_MEDIA_ROUTE, StaticFiles(directory=settings.UPLOAD_DIRECTORY, check_dir=False), name="uploads")

    # Register API routers
    app.include_router(auth_router, prefix=f"{settings.API_PREFIX}/auth", tags=["authentication"])
    app.include_router(posts_router, prefix=f"{settings.API_PREFIX}/posts", tags=["posts"])
    app.include_router(categories_router, prefix=f"{settings.API_PREFIX}/categories", tags=["categories"])
    app.include_router(tags_router, prefix=f"{settings.API_PREFIX}/tags", tags=["tags"])
    app.include_router(media_router, prefix=f"{settings.API_PREFIX}/media", tags=["media"])
    app.include_router(dashboard_router, prefix="/admin", tags=["admin"])

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    @app.get("/")
    def root():
        return {
            "message": "ASOF CMS API",
            "version": settings.VERSION,
            "environment": settings.ENVIRONMENT,
            "documentation": "/docs" if settings.DEBUG else None,
        }

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True)
