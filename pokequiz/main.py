from fastapi import FastAPI
import logging

from dotenv import load_dotenv

from pokequiz.api.routes import router
from pokequiz.catalog.startup import init_catalog_for_app
from pokequiz.config import get_log_level
from pokequiz.infra.redis_client import close_shared_redis
from pokequiz.scheduler import scheduler

# Local runs may keep REDIS_URL / POKEQUIZ_* in a .env file; real env vars win.
load_dotenv(override=False)

app = FastAPI(title="pokequiz", version="0.1.0")
app.include_router(router)
# Configure logging
logging.basicConfig(level=get_log_level())
logger = logging.getLogger(__name__)


@app.on_event("startup")
async def _startup() -> None:
    init_catalog_for_app()


@app.on_event("shutdown")
async def _shutdown() -> None:
    await scheduler.cancel_all()
    close_shared_redis()


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "pokequiz", "version": "0.1.0"}
