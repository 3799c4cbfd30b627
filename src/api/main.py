"""JSON Transform Service API.

Validates and executes declarative JSON-to-JSON transform specifications:
- Shift, default, remove, cardinality and sort transforms
- Chains of those, plus custom transform classes loaded by name
- Saved specification templates
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src import __version__, config
from src.api.routes import meta, transformations
from src.transformations.executor import get_transformation_executor
from src.transformations.registry import get_transformation_registry

# Configure logging
logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Loading transform templates...")
    registry = get_transformation_registry()
    logger.info(f"Loaded {registry.count()} transform templates")

    executor = get_transformation_executor()
    if executor.module_path:
        logger.info(f"Custom transform module path: {executor.module_path}")

    logger.info("JSON Transform API ready")
    yield
    # Shutdown
    executor.clear_cache()
    logger.info("Shutting down JSON Transform API")


# Create FastAPI app
app = FastAPI(
    title="JSON Transform API",
    description="""
## Declarative JSON Transforms

Validate and run shift / default / remove / cardinality / sort / chain
specifications against JSON input.

### Key Endpoints

- `POST /v1/transformations/validate` - Check a specification compiles
- `POST /v1/transformations/execute` - Run a specification against input
- `GET /v1/transformations/templates` - List saved specifications
- `POST /v1/transformations/templates/{key}/execute` - Run a saved specification
""",
    version=__version__,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials="*" not in config.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers with /v1 prefix
app.include_router(transformations.router, prefix="/v1")
app.include_router(meta.router, prefix="/v1")


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "service": "JSON Transform API",
        "version": __version__,
        "docs": "/docs",
        "endpoints": {
            "validate": "/v1/transformations/validate",
            "execute": "/v1/transformations/execute",
            "templates": "/v1/transformations/templates",
            "meta": "/v1/meta/version",
        },
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    registry = get_transformation_registry()
    executor = get_transformation_executor()

    return {
        "status": "healthy",
        "templates_loaded": registry.count(),
        "module_path": executor.module_path or None,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.api.main:app",
        host=config.API_HOST,
        port=config.API_PORT,
        reload=True,
    )
