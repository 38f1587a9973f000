"""
rate_calendar/domain/entities.py

价格日历领域对象 - 日历条目、收益限制、批量更新配置

日历条目按 (date, room_type_id, rate_plan_id) 自然键唯一，
仅在首次设置价格/房量/限制时惰性创建，永不删除。
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, Tuple, Any


class RestrictionType(str, Enum):
    """收益限制类型"""
    MIN_STAY = "min-stay"
    MAX_STAY = "max-stay"
    CTA = "cta"              # Closed-To-Arrival
    CTD = "ctd"              # Closed-To-Departure
    STOP_SELL = "stop-sell"


# 仅这两种限制的 value 有意义
VALUED_RESTRICTIONS = (RestrictionType.MIN_STAY, RestrictionType.MAX_STAY)


class AdjustmentType(str, Enum):
    """批量调价方式"""
    FIXED = "fixed"
    PERCENTAGE = "percentage"


class ViewMode(str, Enum):
    """日历视图模式"""
    MONTH = "month"
    WEEK = "week"


@dataclass(frozen=True)
class YieldRestriction:
    """单条收益限制"""
    type: RestrictionType
    is_active: bool = True
    value: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "is_active": self.is_active,
            "value": self.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "YieldRestriction":
        return cls(
            type=RestrictionType(data["type"]),
            is_active=data.get("is_active", True),
            value=data.get("value"),
        )


# 按类型索引的限制集合，保证每种类型至多一条
RestrictionMap = Dict[RestrictionType, YieldRestriction]


@dataclass(frozen=True)
class RoomTypeConfig:
    """房型配置（只读）"""
    id: str
    name: str = ""
    code: str = ""
    base_rate: Optional[Decimal] = None
    is_active: bool = True


@dataclass(frozen=True)
class RatePlanConfig:
    """价格方案配置（只读）"""
    id: str
    name: str = ""
    code: str = ""
    base_rate: Optional[Decimal] = None
    is_active: bool = True


@dataclass(frozen=True)
class RateCalendarEntry:
    """
    价格日历条目

    Attributes:
        id: 条目唯一标识
        room_type_id: 房型ID
        rate_plan_id: 价格方案ID
        date: 日期
        rate: 当日价格（非负，两位小数）
        availability: 可售房量（非负整数）
        restrictions: 收益限制，按类型索引
        is_override: 是否被手动或批量修改过，一旦为 True 不再回退
        override_reason: 修改原因
        created_at: 创建时间
        updated_at: 更新时间
        updated_by: 最后操作人
    """

    id: str
    room_type_id: str
    rate_plan_id: str
    date: date
    rate: Decimal
    availability: int
    restrictions: RestrictionMap = field(default_factory=dict)
    is_override: bool = False
    override_reason: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None

    @property
    def natural_key(self) -> Tuple[date, str, str]:
        return (self.date, self.room_type_id, self.rate_plan_id)

    def active_restrictions(self) -> List[YieldRestriction]:
        return [r for t, r in sorted_restrictions(self.restrictions) if r.is_active]

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "id": self.id,
            "room_type_id": self.room_type_id,
            "rate_plan_id": self.rate_plan_id,
            "date": self.date.isoformat(),
            "rate": str(self.rate),
            "availability": self.availability,
            "restrictions": [r.to_dict() for _, r in sorted_restrictions(self.restrictions)],
            "is_override": self.is_override,
            "override_reason": self.override_reason,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "updated_by": self.updated_by,
        }


def sorted_restrictions(restrictions: RestrictionMap) -> List[Tuple[RestrictionType, YieldRestriction]]:
    """按枚举声明顺序排列限制"""
    order = list(RestrictionType)
    return sorted(restrictions.items(), key=lambda item: order.index(item[0]))


@dataclass(frozen=True)
class RateAdjustment:
    """调价规则"""
    type: AdjustmentType
    value: Decimal = Decimal("0")


@dataclass(frozen=True)
class BulkUpdateConfig:
    """
    批量更新配置

    apply_to_weekdays 以周日为 0，共 7 个布尔值。
    """
    start_date: date
    end_date: date
    room_type_ids: Tuple[str, ...]
    rate_plan_ids: Tuple[str, ...]
    rate_adjustment: RateAdjustment
    reason: str
    restrictions: RestrictionMap = field(default_factory=dict)
    apply_to_weekdays: Tuple[bool, ...] = (True,) * 7
    override_existing: bool = False


@dataclass(frozen=True)
class EffectiveRate:
    """某一格的生效价格"""
    rate: Decimal
    availability: int
    restrictions: RestrictionMap
    is_override: bool


@dataclass(frozen=True)
class BulkUpdateResult:
    created: int = 0
    updated: int = 0
    skipped: int = 0


@dataclass(frozen=True)
class CopyResult:
    copied: int = 0


@dataclass(frozen=True)
class OverrideDraft:
    """手动覆盖编辑时的预填值，不落库"""
    date: date
    room_type_id: str
    rate_plan_id: str
    rate: Decimal
    availability: int
    restrictions: RestrictionMap
    reason: str
    has_entry: bool


@dataclass(frozen=True)
class CalendarCell:
    """日历视图中的一格"""
    date: date
    in_current_month: bool
    rate: Decimal
    availability: Optional[int]
    restrictions: List[YieldRestriction]
    is_override: bool
    has_entry: bool
