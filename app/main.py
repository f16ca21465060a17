from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import models, summarize
from app.config import settings
from app.services.logger import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("studybrief starting")
    yield
    logger.info("studybrief stopped")


app = FastAPI(
    title="StudyBrief",
    description="Cited English research summaries for lists of study topics",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes
app.include_router(summarize.router)
app.include_router(models.router)


@app.get("/api/health")
async def health():
    return {"status": "ok", "service": "studybrief"}
