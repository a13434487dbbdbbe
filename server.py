"""
Mess Variant Engine API Server Entry Point

Consolidates the variant engine and allergen check routers.

  uvicorn server:app --host 0.0.0.0 --port $PORT
"""

import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mess_engine import __version__, config
from mess_engine.variants import admin_router as variants_router, __version__ as variants_version
from mess_engine.allergen_check import admin_router as allergen_check_router, __version__ as allergen_check_version

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("mess_engine.server")

# ============================================
# App Configuration
# ============================================
app = FastAPI(
    title="Mess Variant Engine API",
    description="Meal-variant matching and allocation for the school mess",
    version=__version__,
)

# ============================================
# CORS Configuration
# ============================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["*"],
)

# ============================================
# Routers
# ============================================
app.include_router(variants_router)
app.include_router(allergen_check_router)
logger.info("Variant engine and allergen check routers registered")


# ============================================
# Health & Version Endpoints
# ============================================
@app.get("/health")
async def health():
    return {"status": "healthy"}


@app.get("/version")
async def version():
    return {
        "version": __version__,
        "variants_version": variants_version,
        "allergen_check_version": allergen_check_version,
    }


# For local development
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("server:app", host="0.0.0.0", port=config.PORT, reload=True)
