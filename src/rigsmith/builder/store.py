"""
配置状态模块 - Build Store Module

持有当前配置，每次变更后同步重算总价、总功耗和兼容性问题。
Holds the current build and synchronously recomputes totals and
compatibility issues after every mutation.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Tuple, Union

from ..schemas import DEFAULT_PC_TYPE, Build, BuildUpdate, CompatibilityIssue, Part
from .compatibility import POWER_WARNING_RATIO, check_compatibility

logger = logging.getLogger(__name__)

BuildListener = Callable[[Build, List[CompatibilityIssue]], None]


def compute_totals(parts: Iterable[Part]) -> Tuple[float, float]:
    """
    计算总价与总功耗 - Compute Totals

    缺少功耗规格的配件按 0W 计算。
    Parts without a wattage spec contribute 0W.

    返回 Returns:
        (总价, 总功耗)
        (total price, total wattage)
    """
    total_price = 0.0
    total_wattage = 0.0
    for part in parts:
        total_price += part.price
        total_wattage += part.specs.wattage or 0
    return total_price, total_wattage


class BuildStore:
    """
    配置仓库类 - Build Store Class

    当前配置的唯一写入者。所有变更都经过 ``_commit``：先重算总价，
    再生成新的不可变快照，然后对该快照运行兼容性检查并通知订阅者。
    The single writer of the current build. Every mutation goes through
    ``_commit``: totals are recomputed, a new frozen snapshot is produced,
    the compatibility engine runs on that snapshot, and subscribers are
    notified.
    """

    def __init__(
        self,
        build_type: str = DEFAULT_PC_TYPE,
        power_warning_ratio: float = POWER_WARNING_RATIO,
    ):
        """
        初始化配置仓库 - Initialize build store

        参数 Parameters:
            build_type: 初始用途类别
                        Initial build class
            power_warning_ratio: 电源负载告警阈值
                                 PSU load warning ratio
        """
        self.power_warning_ratio = power_warning_ratio
        self._listeners: List[BuildListener] = []
        self._build = Build(type=build_type)
        self._issues: List[CompatibilityIssue] = check_compatibility(
            self._build, self.power_warning_ratio
        )

    @property
    def build(self) -> Build:
        return self._build

    def snapshot(self) -> Build:
        return self._build

    @property
    def compatibility_issues(self) -> List[CompatibilityIssue]:
        return list(self._issues)

    def subscribe(self, listener: BuildListener) -> Callable[[], None]:
        """注册变更回调，返回取消订阅函数"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_build_type(self, build_type: str) -> Build:
        return self._commit(parts=self._build.parts, type=build_type)

    def select_part(self, part: Part) -> Build:
        # 不做兼容性拦截：不兼容的配件也允许共存
        parts = dict(self._build.parts)
        parts[part.category] = part
        return self._commit(parts=parts)

    def remove_part(self, category: str) -> Build:
        if category not in self._build.parts:
            return self._build
        parts = dict(self._build.parts)
        del parts[category]
        return self._commit(parts=parts)

    def set_full_build(self, update: Union[BuildUpdate, Mapping[str, Any]]) -> Build:
        """
        整体替换配置 - Replace Build Wholesale

        未提供的字段保留原值；提供 parts 时整体替换，不合并。
        Omitted fields keep their previous value; a provided parts map
        replaces the old one entirely.
        """
        if not isinstance(update, BuildUpdate):
            update = BuildUpdate.model_validate(update)
        provided = update.model_dump(exclude_unset=True, exclude={"parts"})

        changes: Dict[str, Any] = {
            "parts": update.parts if update.parts is not None else self._build.parts,
        }
        if provided.get("type") is not None:
            changes["type"] = provided["type"]
        if "ai_reasoning" in provided:
            changes["ai_reasoning"] = provided["ai_reasoning"]
        return self._commit(**changes)

    def clear_build(self) -> Build:
        return self._commit(parts={}, ai_reasoning=None)

    def _commit(
        self,
        parts: Mapping[str, Part],
        **changes: Any,
    ) -> Build:
        parts = dict(parts)
        total_price, total_wattage = compute_totals(parts.values())
        fields = {
            "type": self._build.type,
            "ai_reasoning": self._build.ai_reasoning,
        }
        fields.update(changes)
        build = Build(
            parts=parts,
            total_price=total_price,
            total_wattage=total_wattage,
            **fields,
        )
        issues = check_compatibility(build, self.power_warning_ratio)

        self._build = build
        self._issues = issues
        logger.debug(
            "build updated: %d parts, $%s, %sW, %d issues",
            len(parts),
            total_price,
            total_wattage,
            len(issues),
        )
        for listener in list(self._listeners):
            listener(build, list(issues))
        return build
