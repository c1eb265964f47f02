# backend/app/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.user_routes import router as users_router
from app.core.config import get_settings
from app.core.database import Base, engine
from app.core.errors import register_error_handlers

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.auto_create_tables:
        # dev convenience; prod schema comes from alembic
        Base.metadata.create_all(bind=engine)
    logger.info("%s started (env=%s)", settings.app_name, settings.app_env)
    yield


app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["Authorization", "Content-Type"],
)

register_error_handlers(app)

app.include_router(users_router, tags=["users"])


@app.get("/health")
def health():
    return {"status": "ok"}
