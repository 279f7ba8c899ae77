from __future__ import annotations

import asyncio
import json
import logging
import os
from collections import deque
from contextlib import suppress
from dataclasses import asdict, dataclass
from typing import Any, Deque, Dict, List, Optional, Set

from fastapi import Body, FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from ..config import AppConfig
from ..logging_config import configure_logging
from ..sim.core.ecosystem import Ecosystem
from ..sim.systems.metrics import summarize_tiers

logger = logging.getLogger(__name__)

MIN_SPEED = 0.1
MAX_SPEED = 5.0

# Raised by the ASGI servers when sending to a socket that is already closed.
_SEND_FAILURES = (WebSocketDisconnect, RuntimeError, OSError)


@dataclass(frozen=True)
class QueuedSnapshot:
    tick: int
    payload: str


class SnapshotBacklog:
    """Serialized frames waiting for viewers, oldest first.

    At most ``capacity`` frames are kept; pushing onto a full backlog drops
    the oldest frame. Each viewer has a cursor on the last tick it was sent.
    """

    def __init__(self, capacity: int):
        self._frames: Deque[QueuedSnapshot] = deque(maxlen=max(1, capacity))
        self._cursors: Dict[WebSocket, int] = {}

    def __len__(self) -> int:
        return len(self._frames)

    @property
    def capacity(self) -> int:
        return self._frames.maxlen or 0

    @property
    def ticks(self) -> List[int]:
        return [frame.tick for frame in self._frames]

    @property
    def latest_tick(self) -> Optional[int]:
        return self._frames[-1].tick if self._frames else None

    def register(self, client: WebSocket) -> None:
        self._cursors[client] = -1

    def forget(self, client: WebSocket) -> None:
        self._cursors.pop(client, None)

    def rewind(self) -> None:
        self._frames.clear()
        for client in self._cursors:
            self._cursors[client] = -1

    def push(self, frame: QueuedSnapshot) -> None:
        self._frames.append(frame)

    def acknowledge(self, tick: int) -> None:
        while self._frames and self._frames[0].tick <= tick:
            self._frames.popleft()

    def take_pending(self, client: WebSocket) -> List[QueuedSnapshot]:
        if client not in self._cursors:
            return []
        last_sent = self._cursors[client]
        pending = [frame for frame in self._frames if frame.tick > last_sent]
        if pending:
            self._cursors[client] = pending[-1].tick
        return pending


def _log_task_exit(task: asyncio.Task) -> None:
    if task.cancelled():
        logger.debug("Task %s cancelled", task.get_name())
        return
    exc = task.exception()
    if exc is not None:
        logger.error(
            "Task %s stopped: %s",
            task.get_name(),
            exc,
            exc_info=(type(exc), exc, exc.__traceback__),
        )


class SimulationController:
    """Paces an :class:`Ecosystem` and streams its frames to websocket viewers.

    Frames are only serialized while at least one viewer is connected.
    The simulation pauses itself once every tier has died out.
    """

    def __init__(self, app_config: AppConfig):
        app_config.validate()
        self.app_config = app_config
        self.config = app_config.simulation
        self.ecosystem = Ecosystem(self.config)
        self.broadcast_interval = app_config.broadcast_interval
        self.running = False
        self.tick = 0
        self.speed_multiplier = 1.0
        self.clients: Set[WebSocket] = set()
        self.backlog = SnapshotBacklog(app_config.max_queued_snapshots)
        self._lock = asyncio.Lock()
        self._loop_task: asyncio.Task | None = None

    async def launch(self) -> None:
        self._ensure_loop()
        self.running = self.app_config.autostart

    async def start(self) -> None:
        self._ensure_loop()
        self.running = True

    async def stop(self) -> None:
        self.running = False

    async def shutdown(self) -> None:
        self.running = False
        task, self._loop_task = self._loop_task, None
        if task is not None:
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task

    async def reset(self, seed: Optional[int] = None) -> None:
        async with self._lock:
            if seed is not None and seed != self.config.seed:
                self.config.seed = seed
                self.ecosystem = Ecosystem(self.config)
            else:
                self.ecosystem.reset()
            self.tick = 0
        self.backlog.rewind()
        await self._broadcast_snapshot()

    async def advance(self) -> None:
        async with self._lock:
            metrics = self.ecosystem.step(self.tick)
            self.tick += 1
        if metrics.population == 0 and self.running:
            logger.info("Every tier died out at tick %d; pausing", metrics.tick)
            self.running = False
        if self.tick % self.broadcast_interval == 0:
            await self._broadcast_snapshot()

    def set_speed(self, multiplier: float) -> float:
        self.speed_multiplier = max(MIN_SPEED, min(MAX_SPEED, multiplier))
        return self.speed_multiplier

    def status(self) -> Dict[str, Any]:
        tiers = summarize_tiers(self.ecosystem.tiers)
        metrics = self.ecosystem.metrics
        return {
            "running": self.running,
            "tick": self.tick,
            "seed": self.config.seed,
            "speed": self.speed_multiplier,
            "viewers": len(self.clients),
            "queued_snapshots": len(self.backlog),
            "population": sum(summary.population for summary in tiers),
            "food": len(self.ecosystem.food),
            "extinct_tiers": [summary.tier for summary in tiers if summary.population == 0],
            "tiers": [asdict(summary) for summary in tiers],
            "last_step": asdict(metrics) if metrics is not None else None,
        }

    async def connect(self, client: WebSocket) -> None:
        self.clients.add(client)
        self.backlog.register(client)
        logger.info("Viewer connected (%d watching)", len(self.clients))
        if self.backlog.latest_tick != self.tick:
            self.backlog.push(self._serialize_snapshot())
        await self._flush(client)

    def disconnect(self, client: WebSocket) -> None:
        if client in self.clients:
            self.clients.discard(client)
            logger.info("Viewer disconnected (%d watching)", len(self.clients))
        self.backlog.forget(client)
        if not self.clients:
            self.backlog.rewind()

    async def acknowledge(self, tick: int) -> None:
        self.backlog.acknowledge(tick)

    def _ensure_loop(self) -> None:
        if self._loop_task is None or self._loop_task.done():
            self._loop_task = asyncio.create_task(self._loop(), name="foodchain-loop")
            self._loop_task.add_done_callback(_log_task_exit)

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.frame_interval / self.speed_multiplier)
            if not self.running:
                continue
            await self.advance()

    def _serialize_snapshot(self) -> QueuedSnapshot:
        snapshot = self.ecosystem.snapshot(self.tick)
        payload = {
            "type": "snapshot",
            "tick": snapshot.tick,
            "payload": {
                "tick": snapshot.tick,
                "metrics": asdict(snapshot.metrics),
                "tiers": [asdict(summary) for summary in summarize_tiers(self.ecosystem.tiers)],
                "agents": snapshot.agents,
                "food": snapshot.food,
                "world": asdict(snapshot.world),
                "metadata": asdict(snapshot.metadata),
            },
        }
        return QueuedSnapshot(tick=snapshot.tick, payload=json.dumps(payload))

    async def _flush(self, client: WebSocket) -> None:
        for frame in self.backlog.take_pending(client):
            await client.send_text(frame.payload)

    async def _broadcast_snapshot(self) -> None:
        if not self.clients:
            return
        self.backlog.push(self._serialize_snapshot())
        stale: List[WebSocket] = []
        for client in list(self.clients):
            if client not in self.clients:
                continue
            try:
                await self._flush(client)
            except _SEND_FAILURES as exc:
                logger.warning("Dropping viewer after failed send: %s", exc)
                stale.append(client)
        for client in stale:
            self.disconnect(client)


def create_app(controller: SimulationController) -> FastAPI:
    app = FastAPI(title="Food Chain Simulation")

    @app.on_event("startup")
    async def _startup() -> None:
        configure_logging(include_uvicorn=True)
        await controller.launch()

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        await controller.shutdown()

    @app.get("/api/status")
    async def status() -> JSONResponse:
        return JSONResponse(controller.status())

    @app.post("/api/control/start")
    async def start_simulation() -> JSONResponse:
        await controller.start()
        return JSONResponse({"running": True})

    @app.post("/api/control/stop")
    async def stop_simulation() -> JSONResponse:
        await controller.stop()
        return JSONResponse({"running": False})

    @app.post("/api/control/step")
    async def step_simulation() -> JSONResponse:
        await controller.advance()
        return JSONResponse({"running": controller.running, "tick": controller.tick})

    @app.post("/api/control/reset")
    async def reset_simulation(payload: Optional[dict] = Body(default=None)) -> JSONResponse:
        seed = (payload or {}).get("seed")
        await controller.reset(seed if isinstance(seed, int) else None)
        return JSONResponse({"running": controller.running, "tick": controller.tick, "seed": controller.config.seed})

    @app.post("/api/control/speed")
    async def set_speed(payload: dict) -> JSONResponse:
        multiplier = controller.set_speed(float(payload.get("multiplier", 1.0)))
        return JSONResponse({"multiplier": multiplier})

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket) -> None:
        await websocket.accept()
        try:
            await controller.connect(websocket)
            while True:
                message = await websocket.receive_text()
                try:
                    payload = json.loads(message)
                except json.JSONDecodeError:
                    continue
                if isinstance(payload, dict) and payload.get("type") == "ack":
                    tick = payload.get("tick")
                    if isinstance(tick, int):
                        await controller.acknowledge(tick)
        except WebSocketDisconnect:
            logger.debug("Viewer closed the socket")
        finally:
            controller.disconnect(websocket)

    return app


def _load_app_config() -> AppConfig:
    path = os.getenv("FOODCHAIN_CONFIG")
    return AppConfig.from_yaml(path) if path else AppConfig()


controller = SimulationController(_load_app_config())
app = create_app(controller)

__all__ = ["SimulationController", "SnapshotBacklog", "app", "controller", "create_app"]
