"""
Casino round engine entry point.
FastAPI application serving the wager games over JSON.
"""

import sys
from pathlib import Path

# Add parent directory to path so imports work when running directly
if __name__ == "__main__":
    sys.path.insert(0, str(Path(__file__).parent.parent))

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from casino.config import settings
from casino.core.database import Database
from casino.core.exceptions import CasinoError
from casino.core.games.blackjack import BlackjackGame
from casino.core.ledger import Ledger
from casino.core.logger import get_logger, init_logging
from casino.routers import api

init_logging(
    level=settings.logging.level,
    log_to_file=settings.logging.log_to_file,
    formatter=settings.logging.formatter,
    log_file_path=settings.paths.get_log_path(),
)
logger = get_logger("main")


async def casino_error_handler(request: Request, exc: CasinoError):
    """Every round failure comes back as a typed JSON error, never a crash."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.message,
            "type": type(exc).__name__,
            "retryable": exc.retryable,
        },
    )


def create_app(database: Database = None, blackjack: BlackjackGame = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.server.name,
        docs_url="/docs" if settings.server.debug else None,
        redoc_url=None,
    )

    app.state.ledger = Ledger(database or Database(), blackjack=blackjack)
    app.add_exception_handler(CasinoError, casino_error_handler)

    app.include_router(api.router, prefix="/api")

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


if __name__ == "__main__":
    logger.info(f"Starting {settings.server.name} on {settings.server.host}:{settings.server.port}")
    uvicorn.run(
        "casino.main:create_app",
        factory=True,
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.server.debug,
    )
