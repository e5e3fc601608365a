"""
预设配置模块 - Prebuilt Config Module

把预设配置中的配件 ID 解析为目录中的配件并装入配置。
Resolve the part ids of a prebuilt config against the catalog and load
them into a build store.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..schemas import Build, Part, PrebuiltConfig
    from .store import BuildStore

logger = logging.getLogger(__name__)


def apply_prebuilt(
    store: "BuildStore",
    config: "PrebuiltConfig",
    find_part: Callable[[str], Optional["Part"]],
) -> "Build":
    """
    应用预设配置 - Apply Prebuilt Config

    步骤 Steps:
    1. 清空当前配置（保留用途类别后立即覆盖）
    2. 设置预设的用途类别
    3. 依次选择能在目录中找到的配件，找不到的 ID 直接跳过

    参数 Parameters:
        store: 目标配置仓库
               Target build store
        config: 预设配置
                Prebuilt config
        find_part: 按 ID 查找配件的函数
                   Function resolving a part id to a catalog part

    返回 Returns:
        应用后的配置快照
        Build snapshot after applying the config
    """
    store.clear_build()
    store.set_build_type(config.type)

    missing: List[str] = []
    for part_id in config.part_ids:
        part = find_part(part_id)
        if part is None:
            missing.append(part_id)
            continue
        store.select_part(part)

    if missing:
        logger.warning(
            "prebuilt %s: %d part ids not in catalog: %s",
            config.id,
            len(missing),
            ", ".join(missing),
        )
    return store.build
