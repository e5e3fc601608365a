from __future__ import annotations

import json
import logging
import sqlite3
import time
import uuid
from datetime import date
from pathlib import Path
from typing import List

from .schemas import Build, SavedBuild

logger = logging.getLogger(__name__)


class SavedBuildRepository:
    """
    已保存配置仓库 - Saved Build Repository

    按名称与创建时间保存配置快照。读取时用 pydantic 校验，
    校验通过的记录可以直接交给 ``BuildStore.set_full_build``。
    Persists named build snapshots. Records are validated with pydantic on
    the way out, so a loaded record can be handed straight to
    ``BuildStore.set_full_build``.
    """

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._init_table()

    def _init_table(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS saved_builds (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    created_at INTEGER NOT NULL,
                    build_json TEXT NOT NULL
                )
                """
            )
            conn.commit()

    def save(self, build: Build, name: str = "") -> SavedBuild:
        created_at = int(time.time() * 1000)
        name = name.strip() or f"My Custom Build {date.today().isoformat()}"
        saved = SavedBuild(
            **build.model_dump(),
            id=f"build-{created_at}-{uuid.uuid4().hex[:6]}",
            name=name,
            created_at=created_at,
        )
        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO saved_builds (id, name, created_at, build_json)
                VALUES (?, ?, ?, ?)
                """,
                (saved.id, saved.name, saved.created_at, build.model_dump_json()),
            )
            conn.commit()
        logger.info("saved build %s (%s, %d parts)", saved.id, saved.name, len(build.parts))
        return saved

    def list_saved(self) -> List[SavedBuild]:
        """按创建时间倒序返回，损坏的记录记录日志后跳过"""
        with sqlite3.connect(self.db_path) as conn:
            rows = conn.execute(
                """
                SELECT id, name, created_at, build_json
                FROM saved_builds
                ORDER BY created_at DESC, id DESC
                """
            ).fetchall()
        saves: List[SavedBuild] = []
        for row in rows:
            try:
                saves.append(self._from_row(row))
            except ValueError as err:
                logger.warning("skipping malformed saved build %s: %s", row[0], err)
        return saves

    def get(self, build_id: str) -> SavedBuild:
        with sqlite3.connect(self.db_path) as conn:
            row = conn.execute(
                """
                SELECT id, name, created_at, build_json
                FROM saved_builds
                WHERE id = ?
                """,
                (build_id,),
            ).fetchone()
        if row is None:
            raise KeyError(f"saved build not found: {build_id}")
        return self._from_row(row)

    def delete(self, build_id: str) -> bool:
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute("DELETE FROM saved_builds WHERE id = ?", (build_id,))
            conn.commit()
        removed = cursor.rowcount > 0
        if removed:
            logger.info("deleted saved build %s", build_id)
        return removed

    @staticmethod
    def _from_row(row: tuple) -> SavedBuild:
        data = json.loads(row[3])
        data.update(id=row[0], name=row[1], created_at=int(row[2]))
        return SavedBuild.model_validate(data)
