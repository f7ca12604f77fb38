"""
PG Bank API Application Factory

Thin HTTP shell over the ledger core. Routes parse and validate request
bodies, call the ledger, and serialize the results; ledger failures are
translated into HTTP responses by code.
"""

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..errors import LedgerError
from ..logging_config import get_logger
from .accounts import router as accounts_router
from .alerts import router as alerts_router
from .transactions import router as transactions_router
from .transfers import router as transfers_router


ERROR_STATUS = {
    "invalid_argument": status.HTTP_400_BAD_REQUEST,
    "not_found": status.HTTP_404_NOT_FOUND,
    "insufficient_funds": status.HTTP_409_CONFLICT,
    "internal_inconsistency": status.HTTP_500_INTERNAL_SERVER_ERROR,
}

logger = get_logger("pgbank.api")


def register_exception_handlers(app: FastAPI) -> None:
    """Map ledger errors to a consistent {"error", "code"} JSON body"""

    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError):
        status_code = ERROR_STATUS.get(exc.code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
        return JSONResponse(
            status_code=status_code,
            content={"error": exc.detail, "code": exc.code},
        )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application"""
    app = FastAPI(
        title="PG Bank API",
        description="Accounts, transfers, card authorizations and alerts",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(accounts_router, prefix="/accounts", tags=["Accounts"])
    app.include_router(transfers_router, tags=["Transfers"])
    app.include_router(transactions_router, prefix="/transactions", tags=["Transactions"])
    app.include_router(alerts_router, prefix="/alerts", tags=["Alerts"])

    @app.get("/health")
    def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "pgbank",
            "version": __version__
        }

    return app


app = create_app()


def run_server(host: str = "0.0.0.0", port: int = 4000, log_level: str = "info"):
    """Run the FastAPI server"""
    uvicorn.run(
        "pgbank.api:app",
        host=host,
        port=port,
        log_level=log_level
    )
