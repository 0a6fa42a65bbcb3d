"""
Switchboard — Application Factory
"""

import logging
import time

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from switchboard import settings

# ── 1. Configure logging ──
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("switchboard-server")

_startup_time = time.time()
logger.info("Server initialization started...")

# ── 2. Create FastAPI app ──
app = FastAPI(title="Switchboard")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── 3. Register routers ──
from switchboard.routers import (  # noqa: E402
    call_params,
    config,
    conversations,
    health,
    realtime,
    search,
    start_conversation,
    video,
    webhook,
)

app.include_router(health.router)
app.include_router(config.router)
app.include_router(conversations.router)
app.include_router(search.router)
app.include_router(start_conversation.router)
app.include_router(call_params.router)
app.include_router(video.router)
app.include_router(webhook.router)
app.include_router(realtime.router)

# Browser UI (static bundle), if present
try:
    from pathlib import Path
    from fastapi.staticfiles import StaticFiles
    static_dir = Path(__file__).parent / "static"
    if static_dir.is_dir():
        app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")
except Exception as e:
    logger.warning(f"Static files mount failed: {e}")


# ── 4. Lifecycle ──
@app.on_event("startup")
async def startup_event():
    logger.info("=" * 60)
    logger.info("Switchboard Starting")
    logger.info(f"Listening on port: {settings.PORT}")

    from switchboard.setup import initialize
    await initialize()

    logger.info(f"Total init time: {time.time() - _startup_time:.2f}s")
    logger.info("=" * 60)


@app.on_event("shutdown")
async def shutdown_event():
    from switchboard.setup import shutdown
    await shutdown()
