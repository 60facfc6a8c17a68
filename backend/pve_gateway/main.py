# filepath: backend/pve_gateway/main.py
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from fastapi import Depends, FastAPI

# Load environment from a .env anchored at /backend
BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")

from pve_gateway import __version__
from pve_gateway.cluster.cluster_router import router as cluster_router  # /cluster
from pve_gateway.handlers import install_exception_handlers
from pve_gateway.middleware import install_request_middleware
from pve_gateway.nodes.node_router import router as nodes_router  # /nodes
from pve_gateway.settings import ConfigError, Settings, get_settings
from pve_gateway.storage.storage_router import router as storage_router  # /storage
from pve_gateway.vms.guest_router import router as vms_router  # /vms

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

logger = logging.getLogger(__name__)


def configure_logging(level: str | None = None) -> None:
    level_name = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)


# Also applies when served as "uvicorn pve_gateway.main:app"
configure_logging()


# ─────────────────────────────
# FastAPI app
# ─────────────────────────────
app = FastAPI(
    title="Proxmox REST API",
    version=__version__,
    docs_url="/api/docs",
    redoc_url="/api/docs/redoc",
    openapi_url="/api/openapi.json",
)
install_request_middleware(app)
install_exception_handlers(app)


# Health checks
@app.get("/health")
def health(settings: Settings = Depends(get_settings)):
    return {
        "success": True,
        "status": "ok",
        "message": "Proxmox REST API is running",
        "config": {
            "allowElevated": settings.allow_elevated,
            "proxmoxHost": settings.proxmox_host,
        },
    }


@app.get("/healthz")
def healthz():
    return {"ok": True}


app.include_router(nodes_router)  # /nodes
app.include_router(vms_router)  # /vms
app.include_router(storage_router)  # /storage
app.include_router(cluster_router)  # /cluster


def run() -> None:
    """Entry point for the pve-gateway command."""
    import uvicorn

    try:
        settings = get_settings()
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        sys.exit(1)

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "3000"))
    logger.info(
        "Serving on http://%s:%s (proxmox=%s:%s, elevated=%s)",
        host,
        port,
        settings.proxmox_host,
        settings.proxmox_port,
        "ENABLED" if settings.allow_elevated else "DISABLED",
    )
    uvicorn.run(app, host=host, port=port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
