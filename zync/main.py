from pathlib import Path
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from zync.core.config import settings
from zync.core.exceptions import register_exception_handlers
from zync.api.api_v1.api import router as api_router
from zync.db.mongodb import connect_to_mongo, close_mongo_connection
import logging

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description="Zync scheduling and booking API"
)

# Set up CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(dict.fromkeys(settings.CORS_ORIGINS + [settings.FRONTEND_URL])),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include routers
app.include_router(api_router, prefix=settings.API_PREFIX)

# Uploaded avatars
Path(settings.UPLOADS_DIR).mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.UPLOADS_DIR), name="uploads")

# MongoDB connection events
@app.on_event("startup")
async def startup_db_client():
    await connect_to_mongo()

@app.on_event("shutdown")
async def shutdown_db_client():
    await close_mongo_connection()

@app.get("/")
async def root():
    return {"message": "Welcome to Zync API"}
