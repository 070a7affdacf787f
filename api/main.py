"""
API Application Entry Point

Defines the FastAPI application: middleware, exception handlers, routers
and lifecycle hooks.

Design Considerations:
- Logging configured once, from LOG_LEVEL
- Database schema created on startup
- Interactive docs disabled in production
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from api.config import EnvironmentType, get_settings
from api.routes import contacts, emails, gmail, users, webhooks
from api.utils.error_handlers import add_exception_handlers
from inbox_desk.storage.database import init_db

logging.basicConfig(
    level=getattr(logging, get_settings().LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("api")


def create_application() -> FastAPI:
    """
    Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.API_TITLE,
        description=settings.API_DESCRIPTION,
        version=settings.API_VERSION,
        docs_url="/docs" if settings.ENVIRONMENT != EnvironmentType.PRODUCTION else None,
        redoc_url="/redoc" if settings.ENVIRONMENT != EnvironmentType.PRODUCTION else None,
        debug=settings.DEBUG
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=settings.CORS_METHODS,
        allow_headers=["*"],
    )

    add_exception_handlers(app)

    app.include_router(users.router)
    app.include_router(contacts.router)
    app.include_router(emails.router)
    app.include_router(gmail.router)
    app.include_router(webhooks.router)

    @app.on_event("startup")
    async def startup_event():
        """Create missing tables on application startup."""
        logger.info("API service starting up")
        init_db()

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("API service shutting down")

    logger.info(f"Application initialized in {settings.ENVIRONMENT.value} environment")
    return app


app = create_application()


@app.get("/", response_class=PlainTextResponse, tags=["Monitoring"])
async def root():
    """Greeting text."""
    return "Hello, welcome to the Inbox Desk API!"


@app.get("/health", tags=["Monitoring"])
async def health_check():
    """API health check endpoint."""
    return {"status": "healthy"}
