"""
领域事件定义 (Domain Events)
价格日历写操作完成后发布的事件
"""
from enum import Enum
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Dict, Any


class EventType(str, Enum):
    """事件类型枚举"""
    RATE_OVERRIDE_APPLIED = "rate_calendar.override_applied"
    RATE_BULK_UPDATED = "rate_calendar.bulk_updated"
    RATE_COPIED_FORWARD = "rate_calendar.copied_forward"


@dataclass
class BaseEventData:
    """事件数据基类"""
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        result = asdict(self)
        # 处理 datetime 序列化
        for key, value in result.items():
            if isinstance(value, datetime):
                result[key] = value.isoformat()
        return result


@dataclass
class RateOverrideAppliedData(BaseEventData):
    """单格价格覆盖事件数据"""
    entry_id: str = ""
    date: str = ""  # date as string
    room_type_id: str = ""
    rate_plan_id: str = ""
    rate: str = ""
    availability: int = 0
    created: bool = False
    operator_id: str = ""


@dataclass
class RateBulkUpdatedData(BaseEventData):
    """批量更新事件数据"""
    start_date: str = ""
    end_date: str = ""
    room_type_ids: list = field(default_factory=list)
    rate_plan_ids: list = field(default_factory=list)
    created: int = 0
    updated: int = 0
    skipped: int = 0
    reason: str = ""
    operator_id: str = ""


@dataclass
class RateCopiedForwardData(BaseEventData):
    """复制到下月事件数据"""
    source_month: str = ""  # YYYY-MM
    target_month: str = ""  # YYYY-MM
    copied: int = 0
    operator_id: str = ""
