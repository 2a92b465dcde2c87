"""
FastAPI control surface for a hosted graphic.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from ..config import EngineConfig, load_profiles
from ..graphic import ActionResult
from ..timeline import InvalidCommand, NotReadyError, StaleGeneration
from . import schemas
from .state import EngineState

LOG = logging.getLogger(__name__)


def _result(result: ActionResult) -> dict:
    if not result.ok:
        raise HTTPException(status_code=result.status_code, detail=result.status_message)
    return result.to_dict()


def create_app(
    *,
    state: Optional[EngineState] = None,
    config: Optional[EngineConfig] = None,
    lifespan: Optional[Callable[..., object]] = None,
) -> FastAPI:
    engine_state = state or EngineState(config=config or EngineConfig())
    graphic = engine_state.graphic

    @asynccontextmanager
    async def default_lifespan(_app: FastAPI) -> AsyncIterator[None]:
        LOG.info("Graphic API starting (profile '%s')", engine_state.active_profile)
        try:
            yield
        finally:
            await graphic.dispose()
            LOG.info("Graphic API shut down")

    app = FastAPI(title="nrtgraphics Control API", lifespan=lifespan or default_lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/healthz")
    async def healthz() -> dict:
        return {"status": "ok", "profile": engine_state.active_profile, "loaded": graphic.is_loaded}

    @app.get("/profiles")
    async def list_profiles() -> dict:
        return {"profiles": load_profiles()}

    @app.get("/graphic/state")
    async def get_state() -> dict:
        return engine_state.snapshot()

    @app.post("/graphic/load", response_model=schemas.ActionResultModel)
    async def load(payload: schemas.LoadRequest) -> dict:
        params = {"data": payload.data}
        if payload.scene is not None:
            params["scene"] = payload.scene
        try:
            result = await graphic.load(params)
        except FileNotFoundError as exc:
            raise HTTPException(status_code=404, detail=f"Scene not found: {exc.filename}") from exc
        except ValidationError as exc:
            raise HTTPException(status_code=422, detail=exc.errors(include_url=False, include_context=False)) from exc
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return _result(result)

    @app.post("/graphic/dispose", response_model=schemas.ActionResultModel)
    async def dispose() -> dict:
        return _result(await graphic.dispose())

    @app.post("/graphic/play", response_model=schemas.ActionResultModel)
    async def play(payload: schemas.PlayRequest) -> dict:
        return _result(await graphic.play_action(payload.to_params()))

    @app.post("/graphic/stop", response_model=schemas.ActionResultModel)
    async def stop(payload: schemas.StopRequest) -> dict:
        return _result(await graphic.stop_action(payload.to_params()))

    @app.post("/graphic/update", response_model=schemas.ActionResultModel)
    async def update(payload: schemas.UpdateRequest) -> dict:
        return _result(await graphic.update_action({"data": payload.data}))

    @app.post("/graphic/custom", response_model=schemas.ActionResultModel)
    async def custom() -> dict:
        return _result(await graphic.custom_action())

    @app.post("/graphic/schedule")
    async def set_schedule(payload: schemas.ScheduleRequest) -> dict:
        try:
            table = await graphic.set_actions_schedule({"schedule": payload.to_entries()})
        except NotReadyError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        except InvalidCommand as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {"table": table.describe()}

    @app.post("/graphic/seek")
    async def seek(payload: schemas.SeekRequest) -> dict:
        try:
            frame = await graphic.go_to_time({"timestamp": payload.timestamp, "generation": payload.generation})
        except NotReadyError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        except StaleGeneration as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        except InvalidCommand as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {
            "frame": frame.to_dict() if frame is not None else None,
            "runtime": graphic.runtime.describe(),
        }

    return app
