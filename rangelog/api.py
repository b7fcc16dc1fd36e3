import asyncio
from typing import List, Optional

from fastapi import FastAPI, HTTPException

from .logging_config import get_logger
from .models import ChannelStatus, Health

api_log = get_logger("rangelog.api")


def create_app(runtime, max_cycles: Optional[int] = None) -> FastAPI:
    """Read-only status API; the poll loop runs as a startup task."""
    app = FastAPI(title="RangeLog API", version="1.0.0")
    app.state.runtime = runtime
    app.state.poll_task = None

    # ────────── lifecycle
    @app.on_event("startup")
    async def _run_poller():
        api_log.info("Starting poll loop task")
        app.state.poll_task = asyncio.create_task(runtime.run(max_cycles))

    @app.on_event("shutdown")
    async def _stop_poller():
        api_log.info("Stopping poll loop task")
        runtime.stop.set()
        task = app.state.poll_task
        if task is not None:
            await task
        runtime.close()

    # ────────── REST
    @app.get("/health", response_model=Health)
    async def get_health():
        return runtime.health()

    @app.get("/channels", response_model=List[ChannelStatus])
    async def get_channels():
        return runtime.poller.statuses

    @app.get("/channels/{index}", response_model=ChannelStatus)
    async def get_channel(index: int):
        statuses = runtime.poller.statuses
        if not 0 <= index < len(statuses):
            raise HTTPException(404, f"No channel #{index}")
        return statuses[index]

    # ────────── Debug
    @app.get("/debug/config")
    async def debug_config():
        return runtime.settings.model_dump(mode="json")

    return app
