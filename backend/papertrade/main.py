"""
PaperTrading Ledger - Main Application Entry Point
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from papertrade import __version__
from papertrade.config import settings
from papertrade.api.v1.router import api_router
from papertrade.core.trading import TradeService
from papertrade.data_providers import FinnhubQuoteProvider
from papertrade.db.ledger_store import create_ledger_store
from papertrade.utils.logger import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events handler."""
    # Startup
    logger.info("Starting PaperTrading Ledger...")

    store = await create_ledger_store(settings)
    ledger = await store.load()
    logger.info(
        f"Ledger loaded: balance {ledger.balance:,.2f}, "
        f"{len(ledger.open_positions)} open / {len(ledger.closed_trades)} closed"
    )

    quote_provider = FinnhubQuoteProvider(
        settings.FINNHUB_API_KEY,
        timeout_seconds=settings.QUOTE_TIMEOUT_SECONDS,
    )
    if not settings.FINNHUB_API_KEY:
        logger.warning("FINNHUB_API_KEY not set - live prices unavailable, positions shown at cost basis")
    await quote_provider.initialize()

    app.state.trade_service = TradeService(store)
    app.state.price_lookup = quote_provider.get_price

    logger.info("PaperTrading Ledger started successfully!")

    yield

    # Shutdown
    logger.info("Shutting down PaperTrading Ledger...")
    await quote_provider.close()
    await store.close()
    app.state.trade_service = None
    app.state.price_lookup = None
    logger.info("Goodbye!")


def create_application() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.APP_NAME,
        description="Single-account paper trading ledger for stocks and options",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include API router
    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    # Health check endpoint
    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint for load balancers."""
        return {
            "status": "healthy",
            "app": settings.APP_NAME,
            "version": __version__,
            "ledger_backend": settings.LEDGER_BACKEND,
        }

    return app


# Create the application instance
app = create_application()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "papertrade.main:app",
        host=settings.BACKEND_HOST,
        port=settings.BACKEND_PORT,
        reload=settings.DEBUG,
        log_level="info"
    )
