"""
FastAPI application factory
"""
import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.sessions import SessionMiddleware

from homebudget.config import get_settings
from homebudget.infrastructure.db.session import check_db_connection
from homebudget.api.errors import error_response, register_exception_handlers
from homebudget.api.v1 import (
    auth,
    budgets,
    budget_lines,
    transactions,
    dashboard,
    household,
    household_members,
    categories,
)

logger = logging.getLogger(__name__)


class ErrorLoggingMiddleware(BaseHTTPMiddleware):
    """Catches everything the exception handlers did not map, including sync routes"""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception:
            tb_str = traceback.format_exc()
            logger.error(f"\n{'='*60}\nERROR on {request.method} {request.url.path}\n{tb_str}{'='*60}")
            return error_response("INTERNAL_SERVER_ERROR", "An internal server error occurred", 500)


def create_app() -> FastAPI:
    """
    Application factory - builds and configures the FastAPI app

    Returns:
        Configured FastAPI app
    """
    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    app = FastAPI(
        title="Homebudget",
        debug=settings.DEBUG,
    )

    app.add_middleware(ErrorLoggingMiddleware)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SECRET_KEY
    )

    register_exception_handlers(app)

    # Routers
    app.include_router(auth.router)
    app.include_router(budgets.router)
    app.include_router(budget_lines.router)
    app.include_router(transactions.budget_router)
    app.include_router(transactions.router)
    app.include_router(dashboard.router)
    app.include_router(household.router)
    app.include_router(household_members.router)
    app.include_router(categories.router)

    # Health checks
    @app.get("/health", response_class=PlainTextResponse, tags=["system"])
    def health():
        """Health check endpoint"""
        return "ok"

    @app.get("/ready", response_class=PlainTextResponse, tags=["system"])
    def ready():
        """Readiness check endpoint (database reachable)"""
        check_db_connection()
        return "ok"

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "homebudget.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
