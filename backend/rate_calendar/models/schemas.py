"""
Pydantic Schemas - 请求/响应模型
"""
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from rate_calendar.domain.entities import (
    AdjustmentType, CalendarCell, EffectiveRate, OverrideDraft, RateCalendarEntry,
    RestrictionType, ViewMode, YieldRestriction
)
from rate_calendar.domain.restrictions import restrictions_to_list


# ============== 配置 Schemas ==============

class RoomTypeCreate(BaseModel):
    id: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=100)
    code: str = Field(..., min_length=1, max_length=20)
    base_rate: Optional[Decimal] = Field(None, ge=0)
    is_active: bool = True


class RoomTypeResponse(BaseModel):
    id: str
    name: str
    code: str
    base_rate: Optional[Decimal] = None
    is_active: bool
    model_config = ConfigDict(from_attributes=True)


class RatePlanCreate(BaseModel):
    id: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=100)
    code: str = Field(..., min_length=1, max_length=20)
    base_rate: Optional[Decimal] = Field(None, ge=0)
    is_active: bool = True


class RatePlanResponse(BaseModel):
    id: str
    name: str
    code: str
    base_rate: Optional[Decimal] = None
    is_active: bool
    model_config = ConfigDict(from_attributes=True)


# ============== 价格日历 Schemas ==============

class YieldRestrictionSchema(BaseModel):
    type: RestrictionType
    is_active: bool = True
    value: Optional[int] = None

    def to_domain(self) -> YieldRestriction:
        return YieldRestriction(type=self.type, is_active=self.is_active, value=self.value)

    @classmethod
    def from_domain(cls, restriction: YieldRestriction) -> "YieldRestrictionSchema":
        return cls(type=restriction.type, is_active=restriction.is_active, value=restriction.value)


class ManualOverrideRequest(BaseModel):
    """单格手动覆盖，价格/房量的合法性由引擎校验"""
    date: date
    room_type_id: str
    rate_plan_id: str
    rate: Decimal
    availability: int
    restrictions: List[YieldRestrictionSchema] = []
    reason: str = ""


class RateAdjustmentSchema(BaseModel):
    type: AdjustmentType = AdjustmentType.PERCENTAGE
    value: Decimal = Decimal("0")


class BulkUpdateRequest(BaseModel):
    start_date: date
    end_date: date
    room_type_ids: List[str] = []
    rate_plan_ids: List[str] = []
    rate_adjustment: RateAdjustmentSchema = RateAdjustmentSchema()
    restrictions: List[YieldRestrictionSchema] = []
    apply_to_weekdays: List[bool] = Field(default_factory=lambda: [True] * 7)
    override_existing: bool = False
    reason: str = ""


class BulkUpdateResponse(BaseModel):
    created: int
    updated: int
    skipped: int


class CopyToNextMonthRequest(BaseModel):
    year: int = Field(..., ge=1900, le=9998)
    month: int = Field(..., ge=1, le=12)


class CopyToNextMonthResponse(BaseModel):
    copied: int


class RateCalendarEntryResponse(BaseModel):
    id: str
    room_type_id: str
    rate_plan_id: str
    date: date
    rate: Decimal
    availability: int
    restrictions: List[YieldRestrictionSchema]
    is_override: bool
    override_reason: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None

    @classmethod
    def from_entry(cls, entry: RateCalendarEntry) -> "RateCalendarEntryResponse":
        return cls(
            id=entry.id,
            room_type_id=entry.room_type_id,
            rate_plan_id=entry.rate_plan_id,
            date=entry.date,
            rate=entry.rate,
            availability=entry.availability,
            restrictions=[YieldRestrictionSchema.from_domain(r)
                          for r in restrictions_to_list(entry.restrictions)],
            is_override=entry.is_override,
            override_reason=entry.override_reason,
            created_at=entry.created_at,
            updated_at=entry.updated_at,
            updated_by=entry.updated_by,
        )


class EffectiveRateResponse(BaseModel):
    date: date
    room_type_id: str
    rate_plan_id: str
    rate: Decimal
    availability: int
    restrictions: List[YieldRestrictionSchema]
    is_override: bool

    @classmethod
    def from_effective(cls, target_date: date, room_type_id: str, rate_plan_id: str,
                       effective: EffectiveRate) -> "EffectiveRateResponse":
        return cls(
            date=target_date,
            room_type_id=room_type_id,
            rate_plan_id=rate_plan_id,
            rate=effective.rate,
            availability=effective.availability,
            restrictions=[YieldRestrictionSchema.from_domain(r)
                          for r in restrictions_to_list(effective.restrictions)],
            is_override=effective.is_override,
        )


class OverrideDraftResponse(BaseModel):
    date: date
    room_type_id: str
    rate_plan_id: str
    rate: Decimal
    availability: int
    restrictions: List[YieldRestrictionSchema]
    reason: str
    has_entry: bool

    @classmethod
    def from_draft(cls, draft: OverrideDraft) -> "OverrideDraftResponse":
        return cls(
            date=draft.date,
            room_type_id=draft.room_type_id,
            rate_plan_id=draft.rate_plan_id,
            rate=draft.rate,
            availability=draft.availability,
            restrictions=[YieldRestrictionSchema.from_domain(r)
                          for r in restrictions_to_list(draft.restrictions)],
            reason=draft.reason,
            has_entry=draft.has_entry,
        )


class CalendarCellResponse(BaseModel):
    date: date
    in_current_month: bool
    rate: Decimal
    availability: Optional[int] = None
    restrictions: List[YieldRestrictionSchema]
    is_override: bool
    has_entry: bool

    @classmethod
    def from_cell(cls, cell: CalendarCell) -> "CalendarCellResponse":
        return cls(
            date=cell.date,
            in_current_month=cell.in_current_month,
            rate=cell.rate,
            availability=cell.availability,
            restrictions=[YieldRestrictionSchema.from_domain(r) for r in cell.restrictions],
            is_override=cell.is_override,
            has_entry=cell.has_entry,
        )


class CalendarViewResponse(BaseModel):
    anchor: date
    view_mode: ViewMode
    room_type_id: str
    rate_plan_id: str
    base_rate: Decimal
    cells: List[CalendarCellResponse]
