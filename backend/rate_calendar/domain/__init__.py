"""
价格日历领域层
"""
from rate_calendar.domain.entities import (
    AdjustmentType,
    BulkUpdateConfig,
    BulkUpdateResult,
    CalendarCell,
    CopyResult,
    EffectiveRate,
    OverrideDraft,
    RateAdjustment,
    RateCalendarEntry,
    RatePlanConfig,
    RestrictionMap,
    RestrictionType,
    RoomTypeConfig,
    ViewMode,
    YieldRestriction,
)
from rate_calendar.domain.errors import RateValidationError
from rate_calendar.domain.restrictions import (
    normalize_restrictions,
    restrictions_to_list,
    toggle_restriction,
    update_restriction_value,
)

__all__ = [
    "AdjustmentType",
    "BulkUpdateConfig",
    "BulkUpdateResult",
    "CalendarCell",
    "CopyResult",
    "EffectiveRate",
    "OverrideDraft",
    "RateAdjustment",
    "RateCalendarEntry",
    "RatePlanConfig",
    "RestrictionMap",
    "RestrictionType",
    "RoomTypeConfig",
    "ViewMode",
    "YieldRestriction",
    "RateValidationError",
    "normalize_restrictions",
    "restrictions_to_list",
    "toggle_restriction",
    "update_restriction_value",
]
