from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

import auth
import bootcamps
import courses
import reviews
import users
from database import db, ensure_indexes
from errors import register_error_handlers
from logging_setup import configure_logging, get_logger
from settings import APP_ENV, FILE_UPLOAD_PATH

configure_logging()
logger = get_logger(__name__)

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    if db is not None:
        ensure_indexes(db)
    logger.info("server_started", env=APP_ENV, database="configured" if db is not None else "missing")
    yield


# App and CORS
app = FastAPI(title="DevCamper API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_error_handlers(app)

for module in (auth, bootcamps, courses, reviews, users):
    app.include_router(module.router, prefix=API_PREFIX)

app.mount("/uploads", StaticFiles(directory=FILE_UPLOAD_PATH, check_dir=False), name="uploads")


# Utility endpoints
@app.get("/")
def root():
    return {"message": "DevCamper API running"}

@app.get("/test")
def test_database():
    try:
        collections = db.list_collection_names() if db is not None else []
        return {"backend": "ok", "database": "ok" if db is not None else "missing", "collections": collections}
    except Exception as e:
        return {"backend": "ok", "database": f"error: {e}"}
