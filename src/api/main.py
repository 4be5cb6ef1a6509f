import logging
import os
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.api.deps import get_settings
from src.rules.loader import load_rules

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Load rules on startup (fail-fast)
    try:
        load_rules(settings.rules_path)
    except (FileNotFoundError, ValueError) as e:
        logger.critical("Rules load failed: %s", e)
        sys.exit(1)

    os.makedirs(settings.data_dir, exist_ok=True)
    applied = SQLiteMigrator(settings.db_path, settings.migrations_dir).run_migrations()
    logger.info("Database ready at %s (%d migrations applied)", settings.db_path, len(applied))

    yield


app = FastAPI(
    title="Polyglot SEO API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    redirect_slashes=False,
)

# --- Routers ---
from src.api.routes import (  # noqa: E402
    admin_content,
    admin_languages,
    admin_redirects,
    admin_sitemap,
    public_sitemaps,
)

app.include_router(admin_sitemap.router, prefix="/api/admin/sitemap", tags=["Admin Sitemap"])
app.include_router(
    admin_redirects.router, prefix="/api/admin/redirects", tags=["Admin Redirects"]
)
app.include_router(
    admin_languages.router, prefix="/api/admin/languages", tags=["Admin Languages"]
)
app.include_router(admin_content.router, prefix="/api/admin/content", tags=["Admin Content"])

# Sitemaps, legacy sitemap paths and redirect rules answer before routing
app.middleware("http")(public_sitemaps.sitemap_dispatch_middleware)


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "api"}
