"""兼容性检查模块

每条规则独立运行，缺少所需配件时直接跳过，不产生问题。
规则按固定顺序追加结果，因此同一快照的输出顺序稳定。
"""

from __future__ import annotations

import math
from typing import Iterable, List, Optional, TYPE_CHECKING

from ..schemas import CompatibilityIssue

if TYPE_CHECKING:
    from ..schemas import Build


POWER_WARNING_RATIO = 0.9
"""
电源负载告警阈值 - Power Load Warning Ratio

负载超过电源额定功率的 90%（不含 90%）时给出警告。
A warning is raised once load exceeds 90% of PSU capacity (exactly 90% is fine).
"""

ECC_BUILD_TYPES = ("Server", "Workstation")


def _fmt_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value}"


def _fmt_spec(value: Optional[str]) -> str:
    return value if value is not None else "unknown"


def check_socket(build: "Build") -> Optional[CompatibilityIssue]:
    """CPU 与主板插槽必须完全一致（区分大小写）"""
    cpu = build.part("CPU")
    mobo = build.part("Mainboard")
    if cpu is None or mobo is None:
        return None
    if cpu.specs.socket != mobo.specs.socket:
        return CompatibilityIssue(
            severity="error",
            message=(
                f"Incompatible Socket: CPU ({_fmt_spec(cpu.specs.socket)}) "
                f"vs Mobo ({_fmt_spec(mobo.specs.socket)})"
            ),
            component="CPU/Mainboard",
        )
    return None


def check_memory_type(build: "Build") -> Optional[CompatibilityIssue]:
    """内存与主板 DDR 类型兼容"""
    mobo = build.part("Mainboard")
    ram = build.part("RAM")
    if mobo is None or ram is None:
        return None
    if mobo.specs.memory_type != ram.specs.memory_type:
        return CompatibilityIssue(
            severity="error",
            message=(
                f"Incompatible RAM: Mobo supports {_fmt_spec(mobo.specs.memory_type)}, "
                f"RAM is {_fmt_spec(ram.specs.memory_type)}"
            ),
            component="RAM",
        )
    return None


def check_power(
    build: "Build",
    warning_ratio: float = POWER_WARNING_RATIO,
) -> Optional[CompatibilityIssue]:
    """电源功率是否足够

    只要选了电源就检查，负载取整机累计功耗，不要求 CPU/GPU 存在。
    """
    psu = build.part("PSU")
    if psu is None:
        return None

    load = build.total_wattage
    capacity = psu.specs.wattage or 0
    if load > capacity:
        return CompatibilityIssue(
            severity="error",
            message=(
                f"Insufficient Power: Build uses ~{_fmt_number(load)}W, "
                f"PSU is {_fmt_number(capacity)}W"
            ),
            component="PSU",
        )
    if load > capacity * warning_ratio:
        # capacity > 0 here, otherwise the first branch would have fired
        percent = math.floor(load / capacity * 100 + 0.5)
        return CompatibilityIssue(
            severity="warning",
            message=f"Power load is high (~{percent}%). Consider upgrading PSU.",
            component="PSU",
        )
    return None


def check_ecc(build: "Build") -> Optional[CompatibilityIssue]:
    """服务器/工作站建议使用 ECC 内存，其他用途不检查"""
    if build.type not in ECC_BUILD_TYPES:
        return None
    cpu = build.part("CPU")
    ram = build.part("RAM")
    if cpu is None or ram is None:
        return None
    if cpu.specs.ecc is True and not ram.specs.ecc:
        return CompatibilityIssue(
            severity="warning",
            message=(
                f"CPU supports ECC but selected RAM is non-ECC. "
                f"Recommended for {build.type}."
            ),
            component="RAM",
        )
    return None


def check_compatibility(
    build: "Build",
    power_warning_ratio: float = POWER_WARNING_RATIO,
) -> List[CompatibilityIssue]:
    """检查整机兼容性

    Args:
        build: 配置快照，不会被修改
        power_warning_ratio: 电源负载告警阈值

    Returns:
        按规则顺序排列的问题列表，空列表表示无问题
    """
    results = (
        check_socket(build),
        check_memory_type(build),
        check_power(build, power_warning_ratio),
        check_ecc(build),
    )
    return [issue for issue in results if issue is not None]


def has_errors(issues: Iterable[CompatibilityIssue]) -> bool:
    return any(issue.severity == "error" for issue in issues)
