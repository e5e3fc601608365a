from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from .builder.compatibility import POWER_WARNING_RATIO
from .db import PartsRepository, load_prebuilt_configs
from .logging_config import get_logger, setup_logging
from .schemas import (
    DEFAULT_PC_TYPE,
    PART_CATEGORIES,
    PC_TYPES,
    BuildTypeRequest,
    BuildUpdate,
    SaveBuildRequest,
)
from .service import BuildService, NotFoundError
from .storage import SavedBuildRepository

ROOT = Path(__file__).resolve().parents[2]

load_dotenv(ROOT / ".env")


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name, "").strip()
    return Path(raw) if raw else default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


PARTS_CATALOG_PATH = _env_path("PARTS_CATALOG_PATH", ROOT / "data" / "parts.json")
PREBUILT_CONFIGS_PATH = _env_path("PREBUILT_CONFIGS_PATH", ROOT / "data" / "prebuilt.json")
SAVED_BUILDS_DB_PATH = _env_path("SAVED_BUILDS_DB_PATH", ROOT / "data" / "saved_builds.db")
DEFAULT_BUILD_TYPE = os.getenv("DEFAULT_BUILD_TYPE", DEFAULT_PC_TYPE).strip()
POWER_WARNING_RATIO_SETTING = _env_float("POWER_WARNING_RATIO", POWER_WARNING_RATIO)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
SESSION_TTL_SECONDS = _env_int("SESSION_TTL_SECONDS", 604800)
SESSION_CLEANUP_INTERVAL_SECONDS = _env_int("SESSION_CLEANUP_INTERVAL_SECONDS", 3600)

setup_logging(LOG_LEVEL)
logger = get_logger(__name__)


def build_service() -> BuildService:
    build_type = DEFAULT_BUILD_TYPE if DEFAULT_BUILD_TYPE in PC_TYPES else DEFAULT_PC_TYPE
    if build_type != DEFAULT_BUILD_TYPE:
        logger.warning("unknown DEFAULT_BUILD_TYPE %r, using %s", DEFAULT_BUILD_TYPE, build_type)
    prebuilt = load_prebuilt_configs(PREBUILT_CONFIGS_PATH)
    logger.info("loaded %d prebuilt configs from %s", len(prebuilt), PREBUILT_CONFIGS_PATH)
    return BuildService(
        PartsRepository(PARTS_CATALOG_PATH),
        saved_builds=SavedBuildRepository(SAVED_BUILDS_DB_PATH),
        prebuilt_configs=prebuilt,
        default_build_type=build_type,
        power_warning_ratio=POWER_WARNING_RATIO_SETTING,
        session_ttl_seconds=SESSION_TTL_SECONDS,
        session_cleanup_interval_seconds=SESSION_CLEANUP_INTERVAL_SECONDS,
    )


def create_app(service: BuildService) -> FastAPI:
    app = FastAPI(title="RigSmith PC Builder")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.service = service

    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, err: NotFoundError):
        detail = err.args[0] if err.args else "not found"
        return JSONResponse(status_code=404, content={"detail": detail})

    def _check_category(category: str) -> str:
        if category not in PART_CATEGORIES:
            raise HTTPException(status_code=422, detail=f"unknown category: {category}")
        return category

    @app.get("/api/parts")
    def list_parts(category: str | None = None):
        if category is None:
            parts = service.repo.all_parts()
        else:
            parts = service.repo.by_category(_check_category(category))
        return [p.model_dump() for p in parts]

    @app.get("/api/prebuilt")
    def list_prebuilt():
        return [c.model_dump() for c in service.list_prebuilt()]

    @app.get("/api/builds/{session_id}")
    def get_build(session_id: str):
        return service.state(session_id).model_dump()

    @app.post("/api/builds/{session_id}/parts/{part_id}")
    def select_part(session_id: str, part_id: str):
        return service.select_part(session_id, part_id).model_dump()

    @app.delete("/api/builds/{session_id}/parts/{category}")
    def remove_part(session_id: str, category: str):
        return service.remove_part(session_id, _check_category(category)).model_dump()

    @app.put("/api/builds/{session_id}/type")
    def set_build_type(session_id: str, payload: BuildTypeRequest):
        return service.set_build_type(session_id, payload.type).model_dump()

    @app.put("/api/builds/{session_id}/full")
    def set_full_build(session_id: str, payload: BuildUpdate):
        return service.set_full_build(session_id, payload).model_dump()

    @app.post("/api/builds/{session_id}/clear")
    def clear_build(session_id: str):
        return service.clear_build(session_id).model_dump()

    @app.post("/api/builds/{session_id}/prebuilt/{config_id}")
    def apply_prebuilt(session_id: str, config_id: str):
        return service.apply_prebuilt(session_id, config_id).model_dump()

    @app.get("/api/builds/{session_id}/report", response_class=PlainTextResponse)
    def report(session_id: str):
        return service.report(session_id)

    @app.get("/api/saved")
    def list_saved():
        return [s.model_dump() for s in service.list_saved()]

    @app.post("/api/saved")
    def save_build(payload: SaveBuildRequest):
        return service.save_build(payload.session_id, payload.name).model_dump()

    @app.post("/api/saved/{saved_id}/load/{session_id}")
    def load_build(saved_id: str, session_id: str):
        return service.load_build(session_id, saved_id).model_dump()

    @app.delete("/api/saved/{saved_id}")
    def delete_saved(saved_id: str):
        if not service.delete_saved(saved_id):
            raise HTTPException(status_code=404, detail=f"saved build not found: {saved_id}")
        return {"deleted": saved_id}

    return app


app = create_app(build_service())
