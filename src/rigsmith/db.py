from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List

from .schemas import Part, PrebuiltConfig

logger = logging.getLogger(__name__)


class PartsRepository:
    """
    配件目录类 - Parts Catalog Class

    从 JSON 文件加载配件目录。未知的规格字段保留在 specs.extra 中。
    Loads the parts catalog from a JSON file. Unknown spec attributes are
    kept in ``specs.extra``.
    """

    def __init__(self, data_path: Path):
        """
        初始化配件目录 - Initialize parts catalog

        参数 Parameters:
            data_path: 配件 JSON 文件路径（配件对象列表）
                       Path to the parts JSON file (a list of part objects)
        """
        self.data_path = data_path
        self._parts: List[Part] = []
        self.reload()

    def reload(self) -> None:
        """
        重新加载配件数据 - Reload parts data
        """
        if not self.data_path.exists():
            logger.warning("parts catalog not found: %s", self.data_path)
            self._parts = []
            return
        with self.data_path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
        self._parts = [Part.model_validate(item) for item in raw]
        logger.info("loaded %d parts from %s", len(self._parts), self.data_path)

    def all_parts(self) -> List[Part]:
        return self._parts

    def by_category(self, category: str) -> List[Part]:
        """
        按类别获取配件 - Get parts by category

        参数 Parameters:
            category: 配件类别，如 "CPU", "GPU", "RAM" 等
                      Part category, such as "CPU", "GPU", "RAM", etc.
        """
        return [p for p in self._parts if p.category == category]

    def find_by_id(self, part_id: str) -> Part | None:
        for part in self._parts:
            if part.id == part_id:
                return part
        return None


def load_prebuilt_configs(path: Path) -> List[PrebuiltConfig]:
    """加载预设配置列表，文件不存在时返回空列表"""
    if not path.exists():
        return []
    with path.open("r", encoding="utf-8") as f:
        raw = json.load(f)
    return [PrebuiltConfig.model_validate(item) for item in raw]
