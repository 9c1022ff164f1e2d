import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from americano.router import router as americano_router
from database import create_tables, engine
from mexicano.router import router as mexicano_router

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_tables()
    logger.info("Database tables ready")
    yield
    await engine.dispose()


app = FastAPI(title="Padel Americano", lifespan=lifespan)
app.include_router(americano_router)
app.include_router(mexicano_router)

# Routes

@app.get("/")
async def index():
    return RedirectResponse("/americano/", status_code=303)
