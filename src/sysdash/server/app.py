"""
FastAPI application exposing the metrics stream and threshold routes.

The routes are a thin adapter: validation lives in ``config.validators`` and
state in the ThresholdStore, SubscriberRegistry and BroadcastLoop created
per application.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import APIRouter, Body, Depends, FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from .. import __version__
from ..alerts.thresholds import ThresholdStore
from ..collectors.base import MetricSource
from ..collectors.system_source import SystemMetricSource
from ..config import get_config
from ..config.validators import validate_threshold_update
from ..models.config import AppConfig
from ..models.metrics import format_timestamp, utc_now
from ..monitoring.broadcaster import BroadcastLoop
from ..monitoring.registry import SubscriberRegistry, WebSocketSubscriber
from ..validation import ValidationError

logger = logging.getLogger(__name__)

router = APIRouter()


def get_threshold_store(request: Request) -> ThresholdStore:
    return request.app.state.thresholds


def get_broadcast_loop(request: Request) -> BroadcastLoop:
    return request.app.state.broadcast_loop


@router.get("/api/health")
async def health(loop: BroadcastLoop = Depends(get_broadcast_loop)) -> Dict[str, Any]:
    return {
        "status": "ok",
        "version": __version__,
        "timestamp": format_timestamp(utc_now()),
        "broadcast": loop.stats(),
    }


@router.get("/api/alerts/thresholds")
async def read_thresholds(store: ThresholdStore = Depends(get_threshold_store)) -> Dict[str, Any]:
    return {
        "thresholds": store.get().to_dict(),
        "defaults": store.defaults().to_dict(),
    }


@router.post("/api/alerts/thresholds")
async def update_thresholds(
    updates: Any = Body(...),
    store: ThresholdStore = Depends(get_threshold_store),
):
    try:
        validated = validate_threshold_update(updates, store.get())
    except ValidationError as e:
        logger.info(f"Rejected threshold update: {e}")
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid threshold values", "message": str(e)},
        )
    thresholds = store.set(validated)
    return {"message": "Thresholds updated successfully", "thresholds": thresholds.to_dict()}


@router.post("/api/alerts/thresholds/reset")
async def reset_thresholds(store: ThresholdStore = Depends(get_threshold_store)) -> Dict[str, Any]:
    thresholds = store.reset()
    return {"message": "Thresholds reset to defaults", "thresholds": thresholds.to_dict()}


@router.websocket("/ws")
async def metrics_stream(websocket: WebSocket) -> None:
    registry: SubscriberRegistry = websocket.app.state.registry
    loop: BroadcastLoop = websocket.app.state.broadcast_loop

    await websocket.accept()
    subscriber = WebSocketSubscriber(websocket)
    registry.add(subscriber)
    try:
        await loop.send_initial(subscriber)
        # Inbound frames carry nothing; reading detects the disconnect.
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    except WebSocketDisconnect:
        logger.debug(f"{subscriber!r} closed the stream")
    finally:
        registry.remove(subscriber)


def create_app(config: Optional[AppConfig] = None, source: Optional[MetricSource] = None) -> FastAPI:
    """
    Build the application with its own thresholds, registry and loop.

    Args:
        config: Configuration to use; defaults to the global configuration
        source: Metric source; defaults to SystemMetricSource for this host
    """
    app_config = config or get_config()
    metric_source = source or SystemMetricSource(app_config.sources)

    thresholds = ThresholdStore(app_config.alerts.thresholds)
    registry = SubscriberRegistry()
    broadcast_loop = BroadcastLoop(
        metric_source,
        registry,
        thresholds,
        interval_seconds=app_config.server.update_interval_seconds,
        alerts_enabled=app_config.alerts.enabled,
    )

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
        broadcast_loop.start()
        try:
            yield
        finally:
            await broadcast_loop.stop()
            await metric_source.close()

    app = FastAPI(title="sysdash", version=__version__, lifespan=lifespan)
    app.state.config = app_config
    app.state.thresholds = thresholds
    app.state.registry = registry
    app.state.broadcast_loop = broadcast_loop
    app.state.source = metric_source
    app.include_router(router)
    return app
