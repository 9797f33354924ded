from __future__ import annotations

import asyncio
import json
import logging
from collections import deque
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Dict, Optional, Set

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from ..sim.core.config import ConfigurationError, SimulationConfig, load_config
from ..sim.core.world import World

logger = logging.getLogger(__name__)

EXTINCTION_GRACE_TICKS = 60


@dataclass(frozen=True)
class QueuedSnapshot:
    tick: int
    payload: str


class SimulationController:
    def __init__(self, config: SimulationConfig, broadcast_interval: int = 1, tick_interval: float = 1.0 / 60.0):
        self.config = config
        self.world = World(config)
        self.broadcast_interval = max(1, broadcast_interval)
        self.tick_interval = tick_interval
        self.running = False
        self.extinct = False
        self.speed_multiplier = 1.0
        self.clients: Set[WebSocket] = set()
        self._empty_ticks = 0
        self._client_last_sent: Dict[WebSocket, int] = {}
        self._snapshot_queue: deque[QueuedSnapshot] = deque()
        self._lock = asyncio.Lock()
        self._queue_lock = asyncio.Lock()
        self._broadcast_task: asyncio.Task | None = None

    @property
    def tick(self) -> int:
        return self.world.tick

    async def start(self) -> None:
        if self._broadcast_task is None or self._broadcast_task.done():
            self._broadcast_task = asyncio.create_task(self._loop())
        self.running = not self.extinct

    async def stop(self) -> None:
        self.running = False

    async def shutdown(self) -> None:
        self.running = False
        if self._broadcast_task is not None:
            self._broadcast_task.cancel()
            try:
                await self._broadcast_task
            except asyncio.CancelledError:
                pass
            self._broadcast_task = None

    async def reset(self, config: Optional[SimulationConfig] = None) -> None:
        async with self._lock:
            if config is None:
                self.world.reset()
            else:
                # Build first so a bad configuration leaves the running world intact.
                world = World(config)
                self.config = config
                self.world = world
            self._empty_ticks = 0
            self.extinct = False
        async with self._queue_lock:
            self._snapshot_queue.clear()
        for client in self._client_last_sent:
            self._client_last_sent[client] = -1
        await self._broadcast_snapshot()

    async def step(self) -> None:
        async with self._lock:
            self.world.update()
            population = self.world.population
        if population == 0:
            self._empty_ticks += 1
            if self._empty_ticks > EXTINCTION_GRACE_TICKS and not self.extinct:
                self.extinct = True
                self.running = False
                logger.info("Simulation ended - population extinct at tick %d", self.tick)
        else:
            self._empty_ticks = 0
        if self.tick % self.broadcast_interval == 0 or self.extinct:
            await self._broadcast_snapshot()

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.tick_interval / self.speed_multiplier)
            if not self.running:
                continue
            try:
                await self.step()
            except Exception:
                logger.exception("Simulation step failed at tick %d; pausing", self.tick)
                self.running = False

    async def acknowledge(self, tick: int) -> None:
        async with self._queue_lock:
            while self._snapshot_queue and self._snapshot_queue[0].tick <= tick:
                self._snapshot_queue.popleft()

    def _serialize_snapshot(self) -> QueuedSnapshot:
        snapshot = self.world.snapshot()
        payload = {
            "type": "snapshot",
            "tick": snapshot.tick,
            "extinct": self.extinct,
            "payload": snapshot.as_dict(),
        }
        return QueuedSnapshot(tick=snapshot.tick, payload=json.dumps(payload))

    async def _send_pending_snapshots(self, client: WebSocket) -> None:
        last_sent = self._client_last_sent.get(client, -1)
        async with self._queue_lock:
            pending = [item for item in self._snapshot_queue if item.tick > last_sent]
        for item in pending:
            await client.send_text(item.payload)
            last_sent = item.tick
        self._client_last_sent[client] = last_sent

    async def _broadcast_snapshot(self) -> None:
        async with self._lock:
            queued = self._serialize_snapshot()
        async with self._queue_lock:
            self._snapshot_queue.append(queued)
        stale: Set[WebSocket] = set()
        for client in self.clients:
            try:
                await self._send_pending_snapshots(client)
            except WebSocketDisconnect:
                stale.add(client)
        for client in stale:
            self.clients.discard(client)
            self._client_last_sent.pop(client, None)


controller = SimulationController(SimulationConfig.preset("utopia"))


@asynccontextmanager
async def _lifespan(_: FastAPI) -> AsyncIterator[None]:
    await controller.start()
    try:
        yield
    finally:
        await controller.shutdown()


app = FastAPI(title="Universe 25 Simulation", lifespan=_lifespan)


@app.get("/api/status")
async def status() -> JSONResponse:
    return JSONResponse(
        {
            "running": controller.running,
            "extinct": controller.extinct,
            "tick": controller.tick,
            "population": controller.world.population,
            "speed_multiplier": controller.speed_multiplier,
        }
    )


@app.get("/api/stats")
async def stats() -> JSONResponse:
    return JSONResponse(controller.world.stats().as_dict())


@app.post("/api/control/start")
async def start_simulation() -> JSONResponse:
    await controller.start()
    return JSONResponse({"running": controller.running})


@app.post("/api/control/stop")
async def stop_simulation() -> JSONResponse:
    await controller.stop()
    return JSONResponse({"running": False})


@app.post("/api/control/reset")
async def reset_simulation(payload: Optional[dict] = None) -> JSONResponse:
    try:
        config = load_config(payload) if payload else None
        await controller.reset(config)
    except ConfigurationError as exc:
        logger.warning("Rejected configuration: %s", exc)
        return JSONResponse({"error": str(exc), "field": exc.field}, status_code=422)
    except TypeError as exc:
        return JSONResponse({"error": str(exc)}, status_code=422)
    return JSONResponse({"running": controller.running, "tick": controller.tick})


@app.post("/api/control/speed")
async def set_speed(payload: dict) -> JSONResponse:
    speed = float(payload.get("multiplier", 1.0))
    controller.speed_multiplier = max(0.1, min(5.0, speed))
    return JSONResponse({"multiplier": controller.speed_multiplier})


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    controller.clients.add(websocket)
    controller._client_last_sent[websocket] = -1
    await controller._send_pending_snapshots(websocket)
    try:
        while True:
            message = await websocket.receive_text()
            try:
                payload = json.loads(message)
            except json.JSONDecodeError:
                continue
            if payload.get("type") == "ack":
                tick = payload.get("tick")
                if isinstance(tick, int):
                    await controller.acknowledge(tick)
    except WebSocketDisconnect:
        controller.clients.discard(websocket)
        controller._client_last_sent.pop(websocket, None)


__all__ = ["app", "controller"]
