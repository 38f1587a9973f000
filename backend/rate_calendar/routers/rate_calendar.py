"""
价格日历路由
生效价格查询、手动覆盖、批量调价、复制到下月
"""
import logging
from typing import List, Optional
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from rate_calendar.database import get_db
from rate_calendar.domain.entities import BulkUpdateConfig, RateAdjustment, ViewMode
from rate_calendar.models.schemas import (
    BulkUpdateRequest, BulkUpdateResponse, CalendarCellResponse, CalendarViewResponse,
    CopyToNextMonthRequest, CopyToNextMonthResponse, EffectiveRateResponse,
    ManualOverrideRequest, OverrideDraftResponse, RateCalendarEntryResponse
)
from rate_calendar.security.operator import get_current_operator
from rate_calendar.services.calendar_view import build_calendar_view
from rate_calendar.services.rate_calendar_store import SqlAlchemyRateCalendarStore
from rate_calendar.services.rate_config_service import RateConfigService
from rate_calendar.services.rate_override_engine import RateOverrideEngine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rate-calendar", tags=["价格日历"])


def get_rate_override_engine(db: Session = Depends(get_db)) -> RateOverrideEngine:
    """依赖注入：基于当前会话构建引擎"""
    config = RateConfigService(db)
    return RateOverrideEngine(
        SqlAlchemyRateCalendarStore(db),
        room_types=config.get_room_types(),
        rate_plans=config.get_rate_plans(),
    )


@router.get("/effective-rate", response_model=EffectiveRateResponse)
def get_effective_rate(
    target_date: date = Query(..., alias="date"),
    room_type_id: str = Query(...),
    rate_plan_id: str = Query(...),
    engine: RateOverrideEngine = Depends(get_rate_override_engine)
):
    """获取某一格的生效价格"""
    effective = engine.resolve_effective_rate(target_date, room_type_id, rate_plan_id)
    return EffectiveRateResponse.from_effective(target_date, room_type_id, rate_plan_id, effective)


@router.get("/entries", response_model=List[RateCalendarEntryResponse])
def list_entries(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    room_type_id: Optional[str] = None,
    rate_plan_id: Optional[str] = None,
    engine: RateOverrideEngine = Depends(get_rate_override_engine)
):
    """获取日历条目列表"""
    entries = engine.list_entries(start_date, end_date, room_type_id, rate_plan_id)
    return [RateCalendarEntryResponse.from_entry(e) for e in entries]


@router.get("/draft", response_model=OverrideDraftResponse)
def get_override_draft(
    target_date: date = Query(..., alias="date"),
    room_type_id: str = Query(...),
    rate_plan_id: str = Query(...),
    engine: RateOverrideEngine = Depends(get_rate_override_engine)
):
    """获取手动覆盖的预填值"""
    draft = engine.get_override_draft(target_date, room_type_id, rate_plan_id)
    return OverrideDraftResponse.from_draft(draft)


@router.get("/view", response_model=CalendarViewResponse)
def get_calendar_view(
    anchor: date,
    room_type_id: str,
    rate_plan_id: str,
    view_mode: ViewMode = ViewMode.MONTH,
    engine: RateOverrideEngine = Depends(get_rate_override_engine)
):
    """获取月/周日历网格"""
    cells = build_calendar_view(engine, anchor, room_type_id, rate_plan_id, view_mode)
    return CalendarViewResponse(
        anchor=anchor,
        view_mode=view_mode,
        room_type_id=room_type_id,
        rate_plan_id=rate_plan_id,
        base_rate=engine.get_base_rate(room_type_id, rate_plan_id),
        cells=[CalendarCellResponse.from_cell(c) for c in cells],
    )


@router.put("/overrides", response_model=RateCalendarEntryResponse)
def apply_manual_override(
    data: ManualOverrideRequest,
    engine: RateOverrideEngine = Depends(get_rate_override_engine),
    operator_id: str = Depends(get_current_operator)
):
    """单格手动覆盖"""
    try:
        entry = engine.apply_manual_override(
            data.date,
            data.room_type_id,
            data.rate_plan_id,
            data.rate,
            data.availability,
            [r.to_domain() for r in data.restrictions],
            data.reason,
            operator_id,
        )
    except ValueError as e:
        logger.warning(f"Rate calendar write rejected for {operator_id}: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return RateCalendarEntryResponse.from_entry(entry)


@router.post("/bulk-update", response_model=BulkUpdateResponse)
def apply_bulk_update(
    data: BulkUpdateRequest,
    engine: RateOverrideEngine = Depends(get_rate_override_engine),
    operator_id: str = Depends(get_current_operator)
):
    """批量调价"""
    config = BulkUpdateConfig(
        start_date=data.start_date,
        end_date=data.end_date,
        room_type_ids=tuple(data.room_type_ids),
        rate_plan_ids=tuple(data.rate_plan_ids),
        rate_adjustment=RateAdjustment(
            type=data.rate_adjustment.type,
            value=data.rate_adjustment.value,
        ),
        reason=data.reason,
        restrictions=[r.to_domain() for r in data.restrictions],
        apply_to_weekdays=tuple(data.apply_to_weekdays),
        override_existing=data.override_existing,
    )
    try:
        result = engine.apply_bulk_update(config, operator_id)
    except ValueError as e:
        logger.warning(f"Rate calendar write rejected for {operator_id}: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return BulkUpdateResponse(created=result.created, updated=result.updated, skipped=result.skipped)


@router.post("/copy-next-month", response_model=CopyToNextMonthResponse)
def copy_to_next_month(
    data: CopyToNextMonthRequest,
    engine: RateOverrideEngine = Depends(get_rate_override_engine),
    operator_id: str = Depends(get_current_operator)
):
    """将当月价格复制到下月"""
    try:
        result = engine.copy_to_next_month(date(data.year, data.month, 1), operator_id)
    except ValueError as e:
        logger.warning(f"Rate calendar write rejected for {operator_id}: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return CopyToNextMonthResponse(copied=result.copied)
