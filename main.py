# main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import CORS_ORIGINS, LOG_LEVEL
from routers import closures, pickup_requests
from storage.bootstrap import init_db

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

@asynccontextmanager
async def lifespan(_app: FastAPI):
    init_db()
    yield

app = FastAPI(title="NC Road Closures API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS, allow_methods=["*"], allow_headers=["*"]
)

app.include_router(closures.router)
app.include_router(pickup_requests.router)
app.include_router(pickup_requests.debris_router)

@app.get("/healthz")
def healthz():
    return {"status": "ok"}
