import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from smartfit import __version__, config
from smartfit.database import async_session, close_database, initialize_database
from smartfit.errors import register_error_handlers
from smartfit.realtime import router as realtime_router
from smartfit.redis import get_redis_session, rebuild_queue_mirror
from smartfit.routes import (
    auth,
    facilities,
    goals,
    history,
    notifications,
    queues,
    settings,
    support,
    users,
    zones,
)
from smartfit.seed import load_waiting_entries, seed_reference_data

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

RESOURCES = {
    "auth": auth.router,
    "facilities": facilities.router,
    "zones": zones.router,
    "queues": queues.router,
    "users": users.router,
    "goals": goals.router,
    "history": history.router,
    "notifications": notifications.router,
    "settings": settings.router,
    "support": support.router,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    await initialize_database(reset=config.RESET_DATABASE)

    async with async_session() as session:
        if config.SEED_DATA:
            await seed_reference_data(session)
        waiting = await load_waiting_entries(session)

    redis_session = await get_redis_session()
    try:
        await rebuild_queue_mirror(redis_session, waiting)
    finally:
        await redis_session.aclose()

    logger.info("SmartFit API %s ready", __version__)
    yield
    await close_database()


app = FastAPI(title="SmartFit API", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
register_error_handlers(app)

for name, router in RESOURCES.items():
    app.include_router(router, prefix=f"/api/{name}", tags=[name])
app.include_router(realtime_router)


@app.get("/")
async def index():
    return {
        "message": "SmartFit API Server",
        "version": __version__,
        "status": "running",
        "endpoints": {name: f"/api/{name}" for name in RESOURCES},
        "websocket": "/ws",
    }
