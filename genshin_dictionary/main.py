import genshin_dictionary.models  # noqa: F401
from genshin_dictionary.dictionary.router import router as dictionary_router
from genshin_dictionary.dictionary.dependencies import get_refresher
from genshin_dictionary.config import settings
from genshin_dictionary.database import create_tables
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv
import logging

from genshin_dictionary.utils.logging import configure_logging

# Load environment variables from .env file
load_dotenv()

# Configure logging from logging.ini file
configure_logging(level=settings.LOG_LEVEL, log_file=settings.LOG_FILE)

# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description=settings.DESCRIPTION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    swagger_ui_parameters={"docExpansion": "none"}
)

# Add CORS middleware
if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin)
                       for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Include routers
app.include_router(dictionary_router, prefix=settings.API_V1_STR)

# Root endpoint


@app.get("/")
async def root():
    return {
        "message": f"Welcome to {settings.PROJECT_NAME}!",
        "version": settings.VERSION,
        "docs": "/docs",
        "redoc": "/redoc"
    }

# Health check endpoint


@app.get("/health")
async def health_check():
    return {"status": "ok"}

# Startup event


@app.on_event("startup")
async def startup_event():
    logger = logging.getLogger(__name__)
    logger.info("Application starting up...")

    if settings.AUTO_CREATE_TABLES:
        await create_tables()
        logger.info("[Startup] Database tables ensured")


@app.on_event("shutdown")
async def shutdown_event():
    if get_refresher.cache_info().currsize:
        await get_refresher().fetcher.aclose()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=3002)
