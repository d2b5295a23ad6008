import logging
import os
from contextlib import asynccontextmanager

import httpx
from dotenv import load_dotenv

load_dotenv()  # Load .env before any other imports that read env vars

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

logger = logging.getLogger("klroute")
logging.basicConfig(level=logging.INFO)

# Global state populated during startup
app_state: dict = {}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the station catalog and open the shared HTTP client."""
    from klroute.catalog import get_catalog
    from klroute.motis_client import _get_motis_url

    logger.info("Loading station catalog...")
    catalog = get_catalog()
    app_state["catalog"] = catalog
    logger.info(f"Catalog ready: {len(catalog.lines)} lines, {len(catalog)} stations")

    # Shared httpx client for connection pooling across MOTIS calls
    http_client = httpx.AsyncClient(
        timeout=float(os.getenv("MOTIS_TIMEOUT", "10")),
        limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
    )
    app_state["http_client"] = http_client
    logger.info(f"Shared HTTP client created for {_get_motis_url()}")

    yield

    logger.info("Shutting down...")
    await http_client.aclose()
    app_state.clear()
    logger.info("Shared HTTP client closed")


app = FastAPI(title="klroute API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

from klroute.routes import router  # noqa: E402

app.include_router(router, prefix="/api")
