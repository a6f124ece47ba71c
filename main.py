import logging
from contextlib import asynccontextmanager
from pathlib import Path

import httpx
from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from dal.contract_gateway import ContractGateway
from routes.compare_route import router as compare_router
from routes.gallery_route import router as gallery_router
from routes.image_route import router as image_router
from services.archive_client import ArchiveClient
from utils.contract_config import ContractConfig

BASE_DIR = Path(__file__).resolve().parent
PUBLIC_DIR = BASE_DIR / "public"

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file if present


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager to initialize:
      - the shared HTTP client used for contract calls
      - the archive client (read cache, gallery, filters, upload and compare)
    and attach them to `app.state`.
    """
    # An archive attached before startup (tests, embedding) is left alone.
    if getattr(app.state, "archive", None) is not None:
        yield
        return

    config = ContractConfig()

    try:
        http_client = httpx.AsyncClient(timeout=config.timeout)
    except Exception as exc:
        raise RuntimeError("Failed to initialize HTTP client") from exc

    app.state.http_client = http_client
    gateway = ContractGateway(http_client, config.rpc_url, config.contract_address)
    app.state.archive = ArchiveClient(gateway, recent_count=config.recent_count)
    logging.info("Archive client ready for contract %s at %s", config.contract_address, config.rpc_url)

    try:
        yield
    finally:
        try:
            await http_client.aclose()
        except httpx.HTTPError as exc:
            # Shutdown errors must not mask more important issues.
            logging.warning("Failed to close HTTP client: %s", exc)


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application instance.
    """
    app = FastAPI(lifespan=lifespan)

    # Serve static assets from the public directory, if it exists.
    if PUBLIC_DIR.exists():
        app.mount("/public", StaticFiles(directory=PUBLIC_DIR), name="public")

    @app.get("/", include_in_schema=False)
    async def serve_index():
        """
        Serve the frontend index page from the public directory.
        """
        index_path = PUBLIC_DIR / "index.html"
        if not index_path.exists():
            raise HTTPException(status_code=404, detail="Frontend not found")
        return FileResponse(index_path)

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check that verifies the archive client and its gateway.
        """
        archive = getattr(request.app.state, "archive", None)
        return {
            "ok": True,
            "archive_initialized": archive is not None,
            "gateway_endpoint": getattr(archive.gateway, "endpoint", None) if archive is not None else None,
        }

    # Register application routers
    app.include_router(gallery_router)
    app.include_router(image_router)
    app.include_router(compare_router)

    return app


app = create_app()
