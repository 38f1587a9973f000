"""
价格日历视图
按月/按周生成日历网格，周日为每周第一天
"""
from calendar import monthrange
from datetime import date, timedelta
from typing import List, Tuple

from rate_calendar.domain.entities import CalendarCell, ViewMode
from rate_calendar.services.rate_override_engine import RateOverrideEngine, as_date, each_day


def start_of_week(day: date) -> date:
    return day - timedelta(days=(day.weekday() + 1) % 7)


def end_of_week(day: date) -> date:
    return start_of_week(day) + timedelta(days=6)


def calendar_range(anchor: date, view_mode: ViewMode) -> Tuple[date, date]:
    """
    视图覆盖的日期范围

    month: 当月 1 日所在周的周日 ~ 月末所在周的周六
    week:  anchor 所在周的周日 ~ 周六
    """
    anchor = as_date(anchor)
    if ViewMode(view_mode) == ViewMode.MONTH:
        first = anchor.replace(day=1)
        last = anchor.replace(day=monthrange(anchor.year, anchor.month)[1])
        return start_of_week(first), end_of_week(last)
    return start_of_week(anchor), end_of_week(anchor)


def build_calendar_view(engine: RateOverrideEngine, anchor: date, room_type_id: str,
                        rate_plan_id: str, view_mode: ViewMode = ViewMode.MONTH) -> List[CalendarCell]:
    """生成日历网格，无条目的格子显示基础价"""
    anchor = as_date(anchor)
    start, end = calendar_range(anchor, view_mode)
    entries = {
        e.date: e for e in engine.list_entries(start, end, room_type_id, rate_plan_id)
    }
    base_rate = engine.get_base_rate(room_type_id, rate_plan_id)

    cells = []
    for day in each_day(start, end):
        entry = entries.get(day)
        in_month = day.month == anchor.month and day.year == anchor.year
        if entry is None:
            cells.append(CalendarCell(
                date=day,
                in_current_month=in_month,
                rate=base_rate,
                availability=None,
                restrictions=[],
                is_override=False,
                has_entry=False,
            ))
        else:
            cells.append(CalendarCell(
                date=day,
                in_current_month=in_month,
                rate=entry.rate,
                availability=entry.availability,
                restrictions=entry.active_restrictions(),
                is_override=entry.is_override,
                has_entry=True,
            ))
    return cells
