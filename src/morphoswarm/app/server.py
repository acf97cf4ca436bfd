from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import asdict
from typing import Set

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from ..sim.core.config import AppConfig, SimulationConfig
from ..sim.core.errors import ControlSurfaceClosed, MorphoswarmError
from ..sim.core.world import World

logger = logging.getLogger(__name__)

_WEIGHT_NAMES = ("centering", "avoidance", "straying")


class SimulationController:
    def __init__(self, config: SimulationConfig, broadcast_interval: int = 1, tick_interval: float = 1.0 / 30.0):
        self.config = config
        self.tick_interval = max(0.0, tick_interval)
        self.world = World(config)
        self.weights = self.world.weights
        self.broadcast_interval = max(1, broadcast_interval)
        self.running = False
        self.tick = 0
        self.speed_multiplier = 1.0
        self.clients: Set[WebSocket] = set()
        self._lock = asyncio.Lock()
        self._loop_task: asyncio.Task | None = None
        self.last_error: str | None = None

    async def start(self) -> None:
        self.last_error = None
        if self._loop_task is None or self._loop_task.done():
            self._loop_task = asyncio.create_task(self._loop())
        self.running = True

    async def stop(self) -> None:
        self.running = False

    async def reset(self) -> None:
        async with self._lock:
            self.world.reset()
            self.tick = 0
        await self._broadcast_snapshot()

    async def step_once(self) -> None:
        # The world steps off the event loop so weight writes keep arriving mid-tick.
        async with self._lock:
            await asyncio.to_thread(self.world.step, self.tick)
            self.tick += 1
        if self.tick % self.broadcast_interval == 0:
            await self._broadcast_snapshot()

    def set_weights(self, payload: dict) -> dict:
        values = {name: float(payload[name]) for name in _WEIGHT_NAMES if payload.get(name) is not None}
        updated = self.weights.update(**values)
        logger.info("slider weights now %s", updated)
        return asdict(updated)

    def handle_message(self, message: str) -> bool:
        """Apply one websocket message; returns False once the surface is closed."""
        try:
            payload = json.loads(message)
        except json.JSONDecodeError:
            return True
        if not isinstance(payload, dict) or payload.get("type") != "weights":
            return True
        try:
            self.set_weights(payload)
        except ControlSurfaceClosed:
            return False
        except (TypeError, ValueError):
            logger.debug("ignoring malformed weights message: %s", message)
        return True

    async def shutdown(self) -> None:
        """Stop the loop and release the control surface."""
        self.running = False
        self.weights.close()
        try:
            if self._loop_task is not None:
                self._loop_task.cancel()
                try:
                    await self._loop_task
                except asyncio.CancelledError:
                    pass
        finally:
            self._loop_task = None
            for client in list(self.clients):
                try:
                    await client.close()
                except RuntimeError:
                    logger.debug("websocket already closed")
            self.clients.clear()
            self.world.close()

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.tick_interval / self.speed_multiplier)
            if not self.running:
                continue
            try:
                await self.step_once()
            except MorphoswarmError as exc:
                self.running = False
                self.last_error = str(exc)
                logger.error("simulation loop stopped at tick %d: %s", self.tick, exc)
                return

    async def snapshot_payload(self) -> str:
        async with self._lock:
            return self._serialize_snapshot()

    def _serialize_snapshot(self) -> str:
        snapshot = self.world.snapshot(self.tick)
        return json.dumps(
            {
                "tick": snapshot.tick,
                "metrics": asdict(snapshot.metrics),
                "agents": snapshot.agents,
                "world": asdict(snapshot.world),
                "metadata": asdict(snapshot.metadata),
                "weights": asdict(self.weights.current()),
            }
        )

    async def _broadcast_snapshot(self) -> None:
        if not self.clients:
            return
        payload = await self.snapshot_payload()
        stale: Set[WebSocket] = set()
        for client in self.clients:
            try:
                await client.send_text(payload)
            except WebSocketDisconnect:
                stale.add(client)
        for client in stale:
            self.clients.discard(client)


def create_app(app_config: AppConfig | None = None) -> FastAPI:
    app_config = app_config if app_config is not None else AppConfig(simulation=SimulationConfig.slider_swarm())
    controller = SimulationController(
        app_config.simulation, app_config.broadcast_interval, app_config.tick_interval_seconds
    )
    app = FastAPI(title="Morphoswarm Interactive Simulation")
    app.state.controller = controller

    @app.on_event("startup")
    async def _startup() -> None:
        await controller.start()

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        await controller.shutdown()

    @app.get("/api/status")
    async def status() -> JSONResponse:
        async with controller._lock:
            snapshot = controller.world.snapshot(controller.tick)
            population = len(snapshot.agents)
        return JSONResponse(
            {
                "running": controller.running,
                "tick": controller.tick,
                "variant": controller.world.variant,
                "population": population,
                "metrics": asdict(snapshot.metrics),
                "error": controller.last_error,
            }
        )

    @app.get("/api/weights")
    async def get_weights() -> JSONResponse:
        return JSONResponse(asdict(controller.weights.current()))

    @app.post("/api/weights")
    async def set_weights(payload: dict) -> JSONResponse:
        try:
            return JSONResponse(controller.set_weights(payload))
        except ControlSurfaceClosed as exc:
            return JSONResponse({"error": str(exc)}, status_code=409)
        except (TypeError, ValueError) as exc:
            return JSONResponse({"error": f"invalid weight: {exc}"}, status_code=422)

    @app.get("/api/plots")
    async def plots() -> JSONResponse:
        async with controller._lock:
            series = controller.world.sampler.series()
        return JSONResponse({"interval": controller.world.sampler.interval, "series": series})

    @app.post("/api/control/start")
    async def start_simulation() -> JSONResponse:
        await controller.start()
        return JSONResponse({"running": True})

    @app.post("/api/control/stop")
    async def stop_simulation() -> JSONResponse:
        controller.running = False
        return JSONResponse({"running": False})

    @app.post("/api/control/reset")
    async def reset_simulation() -> JSONResponse:
        await controller.reset()
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
        await controller._broadcast_snapshot()
        try:
            while True:
                message = await websocket.receive_text()
                if not controller.handle_message(message):
                    break
        except WebSocketDisconnect:
            pass
        finally:
            controller.clients.discard(websocket)

    return app


__all__ = ["SimulationController", "create_app"]
