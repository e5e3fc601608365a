"""Builder 模块：配置状态与兼容性检查"""

from .compatibility import (
    POWER_WARNING_RATIO,
    check_compatibility,
    check_ecc,
    check_memory_type,
    check_power,
    check_socket,
    has_errors,
)
from .prebuilt import apply_prebuilt
from .store import BuildStore, compute_totals

__all__ = [
    "POWER_WARNING_RATIO",
    "check_compatibility",
    "check_socket",
    "check_memory_type",
    "check_power",
    "check_ecc",
    "has_errors",
    "apply_prebuilt",
    "BuildStore",
    "compute_totals",
]
