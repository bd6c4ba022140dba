from __future__ import annotations  # FastAPI server exposing the interview session engine

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import router
from config.settings import llm_config_path, settings
from services.sessions import bind_default_models, get_scheduler, shutdown
from storage.migrate import migrate

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    migrate()
    bind_default_models(llm_config_path())
    recovered = get_scheduler().recover()
    logger.info("Interview API ready (db=%s, recovered_evaluations=%d)", settings.DB_PATH, recovered)
    try:
        yield
    finally:
        shutdown(wait=False)


app = FastAPI(title="Interview Session API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"]
)
app.include_router(router)
