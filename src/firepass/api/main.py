# FirePass - FastAPI Backend
#
# Local-only REST API for the FirePass UI. Binds to 127.0.0.1 by default;
# the session token issued at startup gates every vault endpoint.

import logging

import uvicorn
from fastapi import FastAPI

from .. import __version__
from ..core import EventSeverity, EventType, get_audit_logger
from .vault_routes import close_vault_manager, router as vault_router

logger = logging.getLogger(__name__)

app = FastAPI(
    title="FirePass API",
    description="Encrypted local credential vault",
    version=__version__,
)

app.include_router(vault_router)


@app.on_event("shutdown")
def _wipe_vault_on_shutdown():
    """Lock the vault so the session key does not outlive the process."""
    close_vault_manager()
    get_audit_logger().log_event(
        event_type=EventType.SYSTEM_STOP,
        severity=EventSeverity.INFO,
        message="FirePass API stopped",
    )


@app.get("/health")
async def health():
    return {"status": "ok", "version": __version__}


def start_api_server(host: str = "127.0.0.1", port: int = 8000):
    """
    Start the FastAPI server (blocks until shutdown).

    Args:
        host: Host to bind to (default: localhost only)
        port: Port to listen on
    """
    logger.info("FirePass API listening on %s:%s", host, port)
    uvicorn.run(app, host=host, port=port, log_level="info")
