from __future__ import annotations

import logging
import threading
import time
from datetime import date
from typing import Dict, List, Optional, Sequence

from .builder.compatibility import POWER_WARNING_RATIO
from .builder.prebuilt import apply_prebuilt
from .builder.store import BuildStore
from .db import PartsRepository
from .report import render_build_report
from .schemas import (
    DEFAULT_PC_TYPE,
    BuildState,
    BuildUpdate,
    Part,
    PrebuiltConfig,
    SavedBuild,
)
from .storage import SavedBuildRepository

logger = logging.getLogger(__name__)


class NotFoundError(KeyError):
    """配件、预设或已保存配置不存在"""


class BuildService:
    """按会话管理配置仓库；同一会话的变更串行执行"""

    def __init__(
        self,
        repo: PartsRepository,
        saved_builds: SavedBuildRepository | None = None,
        prebuilt_configs: Sequence[PrebuiltConfig] = (),
        default_build_type: str = DEFAULT_PC_TYPE,
        power_warning_ratio: float = POWER_WARNING_RATIO,
        session_ttl_seconds: int | None = 7 * 24 * 3600,
        session_cleanup_interval_seconds: int = 3600,
    ):
        self.repo = repo
        self.saved_builds = saved_builds
        self.prebuilt_configs: Dict[str, PrebuiltConfig] = {c.id: c for c in prebuilt_configs}
        self.default_build_type = default_build_type
        self.power_warning_ratio = power_warning_ratio
        self.stores: Dict[str, BuildStore] = {}
        self._sessions_lock = threading.Lock()
        self._session_locks: Dict[str, threading.Lock] = {}
        self._session_last_seen: Dict[str, float] = {}
        self._cleanup_lock = threading.Lock()
        self._last_memory_cleanup_monotonic = 0.0
        self.session_ttl_seconds = max(0, int(session_ttl_seconds or 0))
        self.session_cleanup_interval_seconds = max(1, int(session_cleanup_interval_seconds))

    def _get_session_lock(self, session_id: str) -> threading.Lock:
        with self._sessions_lock:
            lock = self._session_locks.get(session_id)
            if lock is None:
                lock = threading.Lock()
                self._session_locks[session_id] = lock
            return lock

    def store(self, session_id: str) -> BuildStore:
        self._cleanup_in_memory_cache()
        with self._sessions_lock:
            self._session_last_seen[session_id] = time.monotonic()
            store = self.stores.get(session_id)
            if store is None:
                store = BuildStore(
                    build_type=self.default_build_type,
                    power_warning_ratio=self.power_warning_ratio,
                )
                self.stores[session_id] = store
                logger.debug("created build store for session %s", session_id)
            return store

    @staticmethod
    def _state(store: BuildStore) -> BuildState:
        return BuildState(build=store.build, compatibility_issues=store.compatibility_issues)

    def state(self, session_id: str) -> BuildState:
        return self._state(self.store(session_id))

    def _require_part(self, part_id: str) -> Part:
        part = self.repo.find_by_id(part_id)
        if part is None:
            raise NotFoundError(f"part not found: {part_id}")
        return part

    def _require_saved(self) -> SavedBuildRepository:
        if self.saved_builds is None:
            raise RuntimeError("saved builds require a SavedBuildRepository")
        return self.saved_builds

    def select_part(self, session_id: str, part_id: str) -> BuildState:
        part = self._require_part(part_id)
        store = self.store(session_id)
        with self._get_session_lock(session_id):
            store.select_part(part)
            return self._state(store)

    def remove_part(self, session_id: str, category: str) -> BuildState:
        store = self.store(session_id)
        with self._get_session_lock(session_id):
            store.remove_part(category)
            return self._state(store)

    def set_build_type(self, session_id: str, build_type: str) -> BuildState:
        store = self.store(session_id)
        with self._get_session_lock(session_id):
            store.set_build_type(build_type)
            return self._state(store)

    def set_full_build(self, session_id: str, update: BuildUpdate) -> BuildState:
        store = self.store(session_id)
        with self._get_session_lock(session_id):
            store.set_full_build(update)
            return self._state(store)

    def clear_build(self, session_id: str) -> BuildState:
        store = self.store(session_id)
        with self._get_session_lock(session_id):
            store.clear_build()
            return self._state(store)

    def list_prebuilt(self) -> List[PrebuiltConfig]:
        return list(self.prebuilt_configs.values())

    def apply_prebuilt(self, session_id: str, config_id: str) -> BuildState:
        config = self.prebuilt_configs.get(config_id)
        if config is None:
            raise NotFoundError(f"prebuilt config not found: {config_id}")
        store = self.store(session_id)
        with self._get_session_lock(session_id):
            apply_prebuilt(store, config, self.repo.find_by_id)
            return self._state(store)

    def save_build(self, session_id: str, name: str = "") -> SavedBuild:
        saved_builds = self._require_saved()
        store = self.store(session_id)
        with self._get_session_lock(session_id):
            return saved_builds.save(store.snapshot(), name)

    def list_saved(self) -> List[SavedBuild]:
        return self._require_saved().list_saved()

    def load_build(self, session_id: str, saved_id: str) -> BuildState:
        try:
            saved = self._require_saved().get(saved_id)
        except KeyError as err:
            raise NotFoundError(f"saved build not found: {saved_id}") from err
        store = self.store(session_id)
        with self._get_session_lock(session_id):
            store.set_full_build(saved.to_build_update())
            return self._state(store)

    def delete_saved(self, saved_id: str) -> bool:
        return self._require_saved().delete(saved_id)

    def report(self, session_id: str, generated_on: Optional[date] = None) -> str:
        store = self.store(session_id)
        with self._get_session_lock(session_id):
            return render_build_report(store.build, store.compatibility_issues, generated_on)

    def _cleanup_in_memory_cache(self, force: bool = False) -> None:
        """按 TTL 清理长时间未访问的会话及其锁，正在使用的锁不清理"""
        if self.session_ttl_seconds <= 0:
            return
        now = time.monotonic()
        if not force and (now - self._last_memory_cleanup_monotonic) < self.session_cleanup_interval_seconds:
            return
        with self._cleanup_lock:
            now = time.monotonic()
            if not force and (now - self._last_memory_cleanup_monotonic) < self.session_cleanup_interval_seconds:
                return
            expire_before = now - float(self.session_ttl_seconds)
            with self._sessions_lock:
                stale_sessions = [sid for sid, seen in self._session_last_seen.items() if seen < expire_before]
                for sid in stale_sessions:
                    lock = self._session_locks.get(sid)
                    if lock is not None and lock.locked():
                        continue
                    self.stores.pop(sid, None)
                    self._session_last_seen.pop(sid, None)
                    self._session_locks.pop(sid, None)
                if stale_sessions:
                    logger.debug("evicted %d idle build sessions", len(stale_sessions))
            self._last_memory_cleanup_monotonic = now
