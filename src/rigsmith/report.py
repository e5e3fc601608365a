"""配置清单文本报告"""

from __future__ import annotations

from datetime import date
from typing import List, Optional, Sequence, TYPE_CHECKING

from .schemas import PART_CATEGORIES

if TYPE_CHECKING:
    from .schemas import Build, CompatibilityIssue

NAME_MAX_LEN = 40


def _truncate(name: str) -> str:
    if len(name) > NAME_MAX_LEN:
        return name[: NAME_MAX_LEN - 3] + "..."
    return name


def _money(value: float) -> str:
    if float(value).is_integer():
        return f"${int(value)}"
    return f"${value:.2f}"


def _watts(value: float) -> str:
    if float(value).is_integer():
        return f"{int(value)}W"
    return f"{value}W"


def render_build_report(
    build: "Build",
    issues: Optional[Sequence["CompatibilityIssue"]] = None,
    generated_on: Optional[date] = None,
) -> str:
    """生成配置清单

    Args:
        build: 配置快照，总价与功耗直接取自快照
        issues: 兼容性问题，按原顺序列出
        generated_on: 报告日期，默认今天

    Returns:
        纯文本报告
    """
    generated_on = generated_on or date.today()
    lines: List[str] = [
        "PC Build Configuration",
        f"Type: {build.type}",
        f"Date: {generated_on.isoformat()}",
        "",
        f"{'Component':<12}{'Item Name':<42}{'Price':>10}",
        "-" * 64,
    ]
    for category in PART_CATEGORIES:
        part = build.part(category)
        if part is None:
            continue
        lines.append(f"{category:<12}{_truncate(part.name):<42}{_money(part.price):>10}")
    lines.append("-" * 64)
    lines.append(f"Total Price: {_money(build.total_price)}")
    lines.append(f"Est. Wattage: {_watts(build.total_wattage)}")

    if issues:
        lines.append("")
        lines.append("Compatibility:")
        for issue in issues:
            lines.append(f"  [{issue.severity}] {issue.component}: {issue.message}")

    if build.ai_reasoning:
        lines.append("")
        lines.append(build.ai_reasoning)
    return "\n".join(lines) + "\n"
