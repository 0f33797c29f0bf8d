# vaultledger/main.py

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from vaultledger.api import groups, messages, system, wallet
from vaultledger.core.circuit_breaker import build_limiter
from vaultledger.core.config import Settings
from vaultledger.core.errors import LedgerError
from vaultledger.core.ledger import LedgerService
from vaultledger.utils.logger import get_logger, setup_logger

logger = get_logger(__name__)


def ledger_error_handler(request: Request, exc: LedgerError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "detail": exc.detail},
    )


def create_app(settings: Optional[Settings] = None, ledger: Optional[LedgerService] = None) -> FastAPI:
    """
    Build the HTTP app around one ledger instance.
    A ledger passed in is used as-is and left open on shutdown; otherwise
    one is built from settings at startup and closed at shutdown.
    """
    settings = settings or Settings.from_env()
    setup_logger(settings.log_level)
    owns_ledger = ledger is None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.ledger is None:
            app.state.ledger = LedgerService.from_settings(settings)
            logger.info("Ledger opened (admin=%s)", settings.admin or "<unset>")
        yield
        if owns_ledger and app.state.ledger is not None:
            app.state.ledger.close()

    app = FastAPI(
        title="Vault Ledger",
        version="1.0.0",
        description="Per-principal message ledger and balance store",
        lifespan=lifespan,
    )
    app.state.ledger = ledger

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Rate limiting
    app.state.limiter = build_limiter(settings.rate_limit)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    app.add_exception_handler(LedgerError, ledger_error_handler)

    # Register routers
    app.include_router(messages.router, tags=["Messages"])
    app.include_router(groups.router, tags=["Groups"])
    app.include_router(system.router, tags=["System"])
    app.include_router(wallet.router, tags=["Wallet"])

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    return app


app = create_app()
