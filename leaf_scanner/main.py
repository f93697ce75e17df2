import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi

from leaf_scanner.api.routes import router as api_router
from leaf_scanner.config import get_settings
from leaf_scanner.db import init_db
from leaf_scanner.services.analyzer import PlantImageAnalyzer
from leaf_scanner.services.diseases import get_catalogue
from leaf_scanner.services.scanner import DiseaseScanner

settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db(settings.DATABASE_URL)
    app.state.scanner = DiseaseScanner(PlantImageAnalyzer(), get_catalogue())
    logger.info("Leaf scanner ready")
    yield


app = FastAPI(
    title="Leaf Scanner API",
    description="API for heuristic plant disease scanning",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware for the web client
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.API_PREFIX)


@app.get("/", tags=["Health"])
async def root():
    return {"message": "Welcome to Leaf Scanner API", "status": "active"}


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title="Leaf Scanner API",
        version="0.1.0",
        description="Scan leaf photos for black spots and damage and match them to common plant diseases",
        routes=app.routes,
    )
    app.openapi_schema = openapi_schema
    return app.openapi_schema


app.openapi = custom_openapi

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("leaf_scanner.main:app", host="0.0.0.0", port=8000, reload=True)
