from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from biblestudy.api import groups, registrants
from biblestudy.config import settings
from biblestudy.database.connection import close_mongo_connection, connect_to_mongo, ensure_mongo_indexes
from biblestudy.utils.firebase_verify import initialize_firebase


def _parse_origins(value: str) -> list[str]:
    return [origin.strip() for origin in value.split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=settings.log_level.upper())
    initialize_firebase()
    await connect_to_mongo()
    await ensure_mongo_indexes()
    yield
    await close_mongo_connection()


app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_parse_origins(settings.allowed_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(registrants.router, prefix="/api/registrants", tags=["registrants"])
app.include_router(groups.router, prefix="/api/groups", tags=["groups"])


@app.get("/health")
async def health():
    return {"status": "ok"}
