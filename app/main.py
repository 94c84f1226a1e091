from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import uvicorn
import logging

from app.storage.dynamodb import DynamoDBService
from app.storage.s3 import S3Service
from app.settings import get_settings
from app.routers.gallery import router as gallery_router
from app.exceptions import add_exception_handlers

logging.basicConfig(level=logging.INFO)
log = logging.getLogger("image-gallery")

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
        Async context manager for FastAPI application lifecycle events.
        Validates configuration, builds the S3 and DynamoDB gateways and makes
        sure the bucket and likes table exist before any request is served.
    """
    settings = get_settings()
    logging.getLogger().setLevel(settings.log_level.upper())

    # Initialize resources
    app.state.s3 = S3Service(settings)
    app.state.db = DynamoDBService(settings)
    app.state.s3.ensure_bucket()
    app.state.db.ensure_table()
    log.info("Serving bucket %s with likes table %s", settings.s3_bucket, settings.likes_table)
    yield
    # Cleanup resources
    app.state.s3.close()
    app.state.db.close()

# Initialize App
app = FastAPI(
    title="Image Gallery Service",
    lifespan=lifespan,
    description="Upload, browse, delete and like images stored in S3",
)

# Add exception handlers
add_exception_handlers(app)

# CORS - Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=['*'],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add the routers
app.include_router(gallery_router)

# Check Health
@app.get("/health")
def read_health():
    """
        Liveness end point

    """
    return "Image Gallery Service is running."

if __name__ == "__main__":
    uvicorn.run("app.main:app", host="0.0.0.0", port=get_settings().port)
