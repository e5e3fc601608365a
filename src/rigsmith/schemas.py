from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


PartCategory = Literal[
    "CPU",
    "Mainboard",
    "RAM",
    "GPU",
    "Storage",
    "PSU",
    "Case",
    "Cooler",
    "NIC",
    "Monitor",
]
PART_CATEGORIES: tuple[str, ...] = get_args(PartCategory)

PCType = Literal["Office", "Gaming", "Workstation", "Server"]
PC_TYPES: tuple[str, ...] = get_args(PCType)
DEFAULT_PC_TYPE: PCType = "Gaming"

Severity = Literal["error", "warning"]
SEVERITIES: tuple[str, ...] = get_args(Severity)


class Vendor(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    url: str = ""
    price: float = Field(default=0, ge=0)
    in_stock: Optional[bool] = None
    phone: Optional[str] = None
    location: Optional[str] = None


class PartSpecs(BaseModel):
    """
    配件规格 - Part Specs

    已知字段有类型，外部目录带来的其他字段放入 extra。
    Known attributes are typed; anything else an external catalog sends is
    kept in ``extra`` instead of being rejected.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    # 兼容性参数
    socket: Optional[str] = None
    chipset: Optional[str] = None
    memory_type: Optional[str] = Field(default=None, alias="memoryType")
    wattage: Optional[float] = Field(default=None, ge=0)
    ecc: Optional[bool] = None
    form_factor: Optional[str] = Field(default=None, alias="formFactor")

    # 性能参数
    capacity: Optional[str] = None
    speed: Optional[str] = None
    cores: Optional[int] = None
    vram: Optional[str] = None

    # 显示器
    resolution: Optional[str] = None
    refresh_rate: Optional[str] = Field(default=None, alias="refreshRate")
    panel_type: Optional[str] = Field(default=None, alias="panelType")

    extra: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _collect_extra(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        known = {"extra"}
        for name, info in cls.model_fields.items():
            known.add(name)
            if info.alias:
                known.add(info.alias)
        extra = dict(data.get("extra") or {})
        cleaned: Dict[str, Any] = {}
        for key, value in data.items():
            if key in known:
                cleaned[key] = value
            else:
                extra[key] = value
        cleaned["extra"] = extra
        return cleaned

    def get(self, key: str, default: Any = None) -> Any:
        if key in type(self).model_fields and key != "extra":
            value = getattr(self, key)
            return default if value is None else value
        return self.extra.get(key, default)


class Part(BaseModel):
    """配件实体，创建后不可修改"""
    model_config = ConfigDict(frozen=True)

    # 标识
    id: str
    name: str
    category: PartCategory
    brand: str = ""

    # 价格
    price: float = Field(ge=0)

    rating: float = 0
    image: str = ""
    vendors: List[Vendor] = Field(default_factory=list)
    specs: PartSpecs = Field(default_factory=PartSpecs)
    reasoning: Optional[str] = None


def _check_slots(parts: Dict[str, Part]) -> Dict[str, Part]:
    for category, part in parts.items():
        if part.category != category:
            raise ValueError(
                f"slot {category} holds a {part.category} part ({part.id})"
            )
    return parts


class Build(BaseModel):
    """装机配置快照：每次变更都生成新的值"""
    model_config = ConfigDict(frozen=True)

    parts: Dict[PartCategory, Part] = Field(default_factory=dict)
    type: PCType = DEFAULT_PC_TYPE
    total_price: float = 0
    total_wattage: float = 0
    ai_reasoning: Optional[str] = None

    def part(self, category: str) -> Optional[Part]:
        return self.parts.get(category)


class BuildUpdate(BaseModel):
    """整体替换用的部分配置，所有字段均可选"""
    parts: Optional[Dict[PartCategory, Part]] = None
    type: Optional[PCType] = None
    total_price: Optional[float] = None
    total_wattage: Optional[float] = None
    ai_reasoning: Optional[str] = None

    @field_validator("parts")
    @classmethod
    def _parts_match_slots(cls, value: Optional[Dict[str, Part]]) -> Optional[Dict[str, Part]]:
        if value is None:
            return value
        return _check_slots(value)


class CompatibilityIssue(BaseModel):
    model_config = ConfigDict(frozen=True)

    severity: Severity
    message: str
    component: str


class SavedBuild(Build):
    id: str
    name: str
    created_at: int

    def to_build_update(self) -> BuildUpdate:
        return BuildUpdate(
            parts=dict(self.parts),
            type=self.type,
            total_price=self.total_price,
            total_wattage=self.total_wattage,
            ai_reasoning=self.ai_reasoning,
        )


class PrebuiltConfig(BaseModel):
    id: str
    name: str
    description: str = ""
    type: PCType = DEFAULT_PC_TYPE
    total_price_estimate: float = 0
    part_ids: List[str] = Field(default_factory=list)
    image: str = ""


class BuildState(BaseModel):
    build: Build
    compatibility_issues: List[CompatibilityIssue] = Field(default_factory=list)


class BuildTypeRequest(BaseModel):
    type: PCType


class SaveBuildRequest(BaseModel):
    session_id: str
    name: str = ""
