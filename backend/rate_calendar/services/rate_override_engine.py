"""
价格日历覆盖引擎 - 本体操作层
维护 (日期, 房型, 价格方案) 粒度的价格/房量/限制条目

- 无条目时按 价格方案基础价 > 房型基础价 > 0 回退
- 单格手动覆盖
- 按日期范围 + 星期过滤的批量调价，已覆盖条目默认不被批量改写
- 按月内位置复制到下月，目标已有条目时跳过
"""
from calendar import monthrange
from dataclasses import replace
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple
import logging
import uuid

from rate_calendar.config import settings
from rate_calendar.domain.entities import (
    AdjustmentType, BulkUpdateConfig, BulkUpdateResult, CopyResult, EffectiveRate,
    OverrideDraft, RateAdjustment, RateCalendarEntry, RestrictionMap
)
from rate_calendar.domain.errors import RateValidationError
from rate_calendar.domain.restrictions import RestrictionInput, normalize_restrictions
from rate_calendar.models.events import (
    EventType, RateBulkUpdatedData, RateCopiedForwardData, RateOverrideAppliedData
)
from rate_calendar.services.event_bus import Event, event_bus
from rate_calendar.services.rate_calendar_store import RateCalendarStore

logger = logging.getLogger(__name__)

DEFAULT_NEW_ENTRY_AVAILABILITY = settings.DEFAULT_NEW_ENTRY_AVAILABILITY

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
# Numeric(10, 2) 列可容纳的上限（不含）
MAX_RATE = Decimal("100000000")

NaturalKey = Tuple[date, str, str]


def as_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raise RateValidationError(f"无效的日期: {value!r}", field="date")


def _sunday_index(day: date) -> int:
    """周日为 0 的星期序号"""
    return (day.weekday() + 1) % 7


def each_day(start: date, end: date) -> List[date]:
    """[start, end] 闭区间内的每一天"""
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def next_month_start(day: date) -> date:
    return (day.replace(day=1) + timedelta(days=32)).replace(day=1)


def format_copy_source(day: date) -> str:
    """复制来源说明，如 Jun 1, 2024"""
    return f"Copied from {day.strftime('%b')} {day.day}, {day.year}"


def apply_adjustment(rate: Decimal, adjustment: RateAdjustment) -> Decimal:
    """
    按调价规则计算新价格

    percentage: rate * (1 + value / 100)
    fixed:      rate + value
    结果四舍五入到分，低于 0 时取 0

    Raises:
        RateValidationError: 结果超出价格上限
    """
    value = Decimal(str(adjustment.value))
    if AdjustmentType(adjustment.type) == AdjustmentType.PERCENTAGE:
        new_rate = rate * (1 + value / 100)
    else:
        new_rate = rate + value
    if new_rate < 0:
        return ZERO
    if new_rate < MAX_RATE:
        new_rate = new_rate.quantize(CENT, rounding=ROUND_HALF_UP)
    if new_rate >= MAX_RATE:
        raise RateValidationError(f"调价后价格超出上限: {new_rate}", field="rate_adjustment")
    return new_rate


class RateOverrideEngine:
    """
    价格日历覆盖引擎

    Example:
        >>> engine = RateOverrideEngine(InMemoryRateCalendarStore(), room_types, rate_plans)
        >>> engine.apply_manual_override(date(2024, 6, 1), "deluxe", "bar",
        ...                              Decimal("180"), 5, [], "周末活动", "u-1")
        >>> engine.resolve_effective_rate(date(2024, 6, 1), "deluxe", "bar").rate
        Decimal('180.00')
    """

    def __init__(self, store: RateCalendarStore,
                 room_types: Iterable[Any] = (),
                 rate_plans: Iterable[Any] = (),
                 event_publisher: Callable[[Event], None] = None,
                 clock: Callable[[], datetime] = None,
                 id_factory: Callable[[], str] = None,
                 default_availability: int = None,
                 max_bulk_days: int = None):
        """
        初始化引擎

        Args:
            store: 日历条目存储
            room_types: 房型配置，需提供 id 与 base_rate
            rate_plans: 价格方案配置，需提供 id 与 base_rate
            event_publisher: 事件发布器，默认使用全局事件总线
            clock: 当前时间来源
            id_factory: 条目ID生成器
            default_availability: 批量新建条目的默认房量
            max_bulk_days: 单次批量更新的最大天数
        """
        self._store = store
        self._room_types = {rt.id: rt for rt in room_types}
        self._rate_plans = {rp.id: rp for rp in rate_plans}
        # 支持依赖注入事件发布器，便于测试
        self._publish_event = event_publisher or event_bus.publish
        self._clock = clock or datetime.now
        self._new_id = id_factory or (lambda: f"rate-{uuid.uuid4().hex}")
        self._default_availability = (
            DEFAULT_NEW_ENTRY_AVAILABILITY if default_availability is None else default_availability
        )
        self._max_bulk_days = (
            settings.MAX_BULK_RANGE_DAYS if max_bulk_days is None else max_bulk_days
        )

    # ============== 查询 ==============

    def get_base_rate(self, room_type_id: str, rate_plan_id: str) -> Decimal:
        """价格方案基础价优先，其次房型基础价，都未设置时为 0"""
        rate_plan = self._rate_plans.get(rate_plan_id)
        if rate_plan is not None and rate_plan.base_rate is not None:
            return Decimal(str(rate_plan.base_rate))
        room_type = self._room_types.get(room_type_id)
        if room_type is not None and room_type.base_rate is not None:
            return Decimal(str(room_type.base_rate))
        return Decimal("0")

    def find_entry(self, target_date: date, room_type_id: str,
                   rate_plan_id: str) -> Optional[RateCalendarEntry]:
        return self._store.find_by_key(as_date(target_date), room_type_id, rate_plan_id)

    def resolve_effective_rate(self, target_date: date, room_type_id: str,
                               rate_plan_id: str) -> EffectiveRate:
        """获取某一格的生效价格，无条目时回退到基础价"""
        entry = self.find_entry(target_date, room_type_id, rate_plan_id)
        if entry is not None:
            return EffectiveRate(
                rate=entry.rate,
                availability=entry.availability,
                restrictions=dict(entry.restrictions),
                is_override=entry.is_override,
            )
        return EffectiveRate(
            rate=self.get_base_rate(room_type_id, rate_plan_id),
            availability=0,
            restrictions={},
            is_override=False,
        )

    def get_override_draft(self, target_date: date, room_type_id: str,
                           rate_plan_id: str) -> OverrideDraft:
        """手动覆盖编辑的预填值"""
        target_date = as_date(target_date)
        entry = self.find_entry(target_date, room_type_id, rate_plan_id)
        if entry is not None:
            return OverrideDraft(
                date=target_date,
                room_type_id=room_type_id,
                rate_plan_id=rate_plan_id,
                rate=entry.rate,
                availability=entry.availability,
                restrictions=dict(entry.restrictions),
                reason=entry.override_reason,
                has_entry=True,
            )
        return OverrideDraft(
            date=target_date,
            room_type_id=room_type_id,
            rate_plan_id=rate_plan_id,
            rate=self.get_base_rate(room_type_id, rate_plan_id),
            availability=self._default_availability,
            restrictions={},
            reason="",
            has_entry=False,
        )

    def list_entries(self, start_date: Optional[date] = None, end_date: Optional[date] = None,
                     room_type_id: Optional[str] = None,
                     rate_plan_id: Optional[str] = None) -> List[RateCalendarEntry]:
        """按条件筛选条目，按日期、房型、价格方案排序"""
        entries = self._store.get_all()
        if start_date is not None:
            entries = [e for e in entries if e.date >= start_date]
        if end_date is not None:
            entries = [e for e in entries if e.date <= end_date]
        if room_type_id:
            entries = [e for e in entries if e.room_type_id == room_type_id]
        if rate_plan_id:
            entries = [e for e in entries if e.rate_plan_id == rate_plan_id]
        return sorted(entries, key=lambda e: e.natural_key)

    # ============== 校验 ==============

    @staticmethod
    def _validate_rate(rate: Any) -> Decimal:
        if isinstance(rate, bool) or rate is None:
            raise RateValidationError("请输入有效的价格", field="rate")
        try:
            value = Decimal(str(rate).strip())
        except InvalidOperation:
            raise RateValidationError("请输入有效的价格", field="rate")
        if not value.is_finite() or value < 0 or value >= MAX_RATE:
            raise RateValidationError("请输入有效的价格", field="rate")
        value = value.quantize(CENT, rounding=ROUND_HALF_UP)
        if value >= MAX_RATE:
            raise RateValidationError("请输入有效的价格", field="rate")
        return value

    @staticmethod
    def _validate_availability(availability: Any) -> int:
        if isinstance(availability, bool):
            raise RateValidationError("请输入有效的可售房量", field="availability")
        if isinstance(availability, int):
            value = availability
        elif isinstance(availability, str):
            try:
                value = int(availability.strip())
            except ValueError:
                raise RateValidationError("请输入有效的可售房量", field="availability")
        else:
            raise RateValidationError("请输入有效的可售房量", field="availability")
        if value < 0:
            raise RateValidationError("请输入有效的可售房量", field="availability")
        return value

    @staticmethod
    def _validate_actor(actor: str) -> str:
        if not actor or not str(actor).strip():
            raise RateValidationError("操作人不能为空", field="actor")
        return str(actor)

    @staticmethod
    def _validate_ids(ids: Iterable[str], field: str, message: str) -> List[str]:
        # 去重保序，保证每个组合只处理一次
        result = list(dict.fromkeys(ids or ()))
        if not result or any(not i or not str(i).strip() for i in result):
            raise RateValidationError(message, field=field)
        return result

    def _validate_bulk_config(self, config: BulkUpdateConfig) -> Tuple[
            List[str], List[str], List[date], RestrictionMap, RateAdjustment]:
        room_type_ids = self._validate_ids(
            config.room_type_ids, "room_type_ids", "请至少选择一个房型和价格方案"
        )
        rate_plan_ids = self._validate_ids(
            config.rate_plan_ids, "rate_plan_ids", "请至少选择一个房型和价格方案"
        )
        if not config.reason or not config.reason.strip():
            raise RateValidationError("请填写批量更新原因", field="reason")

        start_date = as_date(config.start_date)
        end_date = as_date(config.end_date)
        if end_date < start_date:
            raise RateValidationError("结束日期不能早于开始日期", field="end_date")
        if (end_date - start_date).days + 1 > self._max_bulk_days:
            raise RateValidationError(
                f"批量更新范围不能超过 {self._max_bulk_days} 天", field="end_date"
            )

        weekdays = list(config.apply_to_weekdays)
        if len(weekdays) != 7:
            raise RateValidationError("星期过滤必须包含 7 项（周日起）", field="apply_to_weekdays")

        try:
            adjustment = RateAdjustment(
                type=AdjustmentType(config.rate_adjustment.type),
                value=Decimal(str(config.rate_adjustment.value)),
            )
        except (ValueError, InvalidOperation):
            raise RateValidationError("无效的调价规则", field="rate_adjustment")
        if not adjustment.value.is_finite() or abs(adjustment.value) >= MAX_RATE:
            raise RateValidationError("无效的调价规则", field="rate_adjustment")

        restrictions = normalize_restrictions(config.restrictions)
        days = [d for d in each_day(start_date, end_date) if weekdays[_sunday_index(d)]]
        return room_type_ids, rate_plan_ids, days, restrictions, adjustment

    # ============== 写操作 ==============

    def apply_manual_override(self, target_date: date, room_type_id: str, rate_plan_id: str,
                              rate: Any, availability: Any, restrictions: RestrictionInput,
                              reason: str, actor: str) -> RateCalendarEntry:
        """
        单格手动覆盖

        已有条目时替换价格/房量/限制/原因并保留 created_at，
        否则新建条目。只会新增或替换一条。

        Raises:
            RateValidationError: 价格或房量无效，不写入任何数据
        """
        rate = self._validate_rate(rate)
        availability = self._validate_availability(availability)
        restriction_map = normalize_restrictions(restrictions)
        actor = self._validate_actor(actor)
        target_date = as_date(target_date)
        if not room_type_id or not rate_plan_id:
            raise RateValidationError("请选择房型和价格方案", field="room_type_id")

        key = (target_date, room_type_id, rate_plan_id)
        now = self._clock()
        outcome: Dict[str, Any] = {}

        def update(current: List[RateCalendarEntry]) -> List[RateCalendarEntry]:
            for i, entry in enumerate(current):
                if entry.natural_key == key:
                    current[i] = replace(
                        entry,
                        rate=rate,
                        availability=availability,
                        restrictions=restriction_map,
                        is_override=True,
                        override_reason=reason or "",
                        updated_at=now,
                        updated_by=actor,
                    )
                    outcome.update(entry=current[i], created=False)
                    return current

            new_entry = RateCalendarEntry(
                id=self._new_id(),
                room_type_id=room_type_id,
                rate_plan_id=rate_plan_id,
                date=target_date,
                rate=rate,
                availability=availability,
                restrictions=restriction_map,
                is_override=True,
                override_reason=reason or "",
                created_at=now,
                updated_at=now,
                updated_by=actor,
            )
            outcome.update(entry=new_entry, created=True)
            return current + [new_entry]

        self._store.replace_all(update)
        entry = outcome["entry"]

        logger.info(
            f"Rate override {'created' if outcome['created'] else 'updated'}: "
            f"{target_date} {room_type_id}/{rate_plan_id} rate={rate} "
            f"availability={availability} by {actor}"
        )
        self._publish_event(Event(
            event_type=EventType.RATE_OVERRIDE_APPLIED.value,
            timestamp=now,
            data=RateOverrideAppliedData(
                entry_id=entry.id,
                date=target_date.isoformat(),
                room_type_id=room_type_id,
                rate_plan_id=rate_plan_id,
                rate=str(rate),
                availability=availability,
                created=outcome["created"],
                operator_id=actor,
            ).to_dict(),
            source="rate_override_engine",
        ))
        return entry

    def apply_bulk_update(self, config: BulkUpdateConfig, actor: str) -> BulkUpdateResult:
        """
        批量调价

        对 房型 x 价格方案 x 过滤后日期 的每个组合：
        - 已有条目且（非覆盖 或 override_existing）：以当前价格调价，计为 updated
        - 已有覆盖条目且未勾选 override_existing：跳过，计为 skipped
        - 无条目：以基础价调价新建，房量取默认值，计为 created

        Raises:
            RateValidationError: 配置无效，不写入任何数据
        """
        room_type_ids, rate_plan_ids, days, restrictions, adjustment = \
            self._validate_bulk_config(config)
        actor = self._validate_actor(actor)
        now = self._clock()
        counts = {"created": 0, "updated": 0, "skipped": 0}

        def update(current: List[RateCalendarEntry]) -> List[RateCalendarEntry]:
            index: Dict[NaturalKey, int] = {e.natural_key: i for i, e in enumerate(current)}
            for room_type_id in room_type_ids:
                for rate_plan_id in rate_plan_ids:
                    for day in days:
                        key = (day, room_type_id, rate_plan_id)
                        position = index.get(key)

                        if position is None:
                            base_rate = self.get_base_rate(room_type_id, rate_plan_id)
                            current.append(RateCalendarEntry(
                                id=self._new_id(),
                                room_type_id=room_type_id,
                                rate_plan_id=rate_plan_id,
                                date=day,
                                rate=apply_adjustment(base_rate, adjustment),
                                availability=self._default_availability,
                                restrictions=dict(restrictions),
                                is_override=True,
                                override_reason=config.reason,
                                created_at=now,
                                updated_at=now,
                                updated_by=actor,
                            ))
                            index[key] = len(current) - 1
                            counts["created"] += 1
                            continue

                        entry = current[position]
                        if entry.is_override and not config.override_existing:
                            logger.debug(f"Skip overridden entry {entry.id} on {day}")
                            counts["skipped"] += 1
                            continue

                        current[position] = replace(
                            entry,
                            rate=apply_adjustment(entry.rate, adjustment),
                            restrictions=dict(restrictions) if restrictions else entry.restrictions,
                            is_override=True,
                            override_reason=config.reason,
                            updated_at=now,
                            updated_by=actor,
                        )
                        counts["updated"] += 1
            return current

        self._store.replace_all(update)
        result = BulkUpdateResult(**counts)

        logger.info(
            f"Bulk rate update {config.start_date}..{config.end_date} by {actor}: "
            f"{result.created} created, {result.updated} updated, {result.skipped} skipped"
        )
        self._publish_event(Event(
            event_type=EventType.RATE_BULK_UPDATED.value,
            timestamp=now,
            data=RateBulkUpdatedData(
                start_date=as_date(config.start_date).isoformat(),
                end_date=as_date(config.end_date).isoformat(),
                room_type_ids=room_type_ids,
                rate_plan_ids=rate_plan_ids,
                created=result.created,
                updated=result.updated,
                skipped=result.skipped,
                reason=config.reason,
                operator_id=actor,
            ).to_dict(),
            source="rate_override_engine",
        ))
        return result

    def copy_to_next_month(self, current_month: date, actor: str) -> CopyResult:
        """
        将当月条目复制到下月

        按月内位置对应（当月第 i 天 -> 下月第 i 天），
        下月没有对应位置的条目不复制；目标格已有条目时跳过。
        """
        actor = self._validate_actor(actor)
        month_start = as_date(current_month).replace(day=1)
        month_days = monthrange(month_start.year, month_start.month)[1]
        month_end = month_start + timedelta(days=month_days - 1)
        target_start = next_month_start(month_start)
        target_days = monthrange(target_start.year, target_start.month)[1]
        now = self._clock()
        counts = {"copied": 0, "skipped": 0}

        def update(current: List[RateCalendarEntry]) -> List[RateCalendarEntry]:
            occupied = {e.natural_key for e in current}
            sources = sorted(
                (e for e in current if month_start <= e.date <= month_end),
                key=lambda e: e.date
            )
            for entry in sources:
                position = (entry.date - month_start).days
                if position >= target_days:
                    continue
                target_date = target_start + timedelta(days=position)
                key = (target_date, entry.room_type_id, entry.rate_plan_id)
                if key in occupied:
                    logger.debug(f"Skip copy to {target_date}: target already set")
                    counts["skipped"] += 1
                    continue

                current.append(replace(
                    entry,
                    id=self._new_id(),
                    date=target_date,
                    restrictions=dict(entry.restrictions),
                    created_at=now,
                    updated_at=now,
                    updated_by=actor,
                    override_reason=format_copy_source(entry.date),
                ))
                occupied.add(key)
                counts["copied"] += 1
            return current

        self._store.replace_all(update)

        logger.info(
            f"Copied {counts['copied']} rates from {month_start:%Y-%m} to {target_start:%Y-%m} "
            f"by {actor} ({counts['skipped']} targets already set)"
        )
        self._publish_event(Event(
            event_type=EventType.RATE_COPIED_FORWARD.value,
            timestamp=now,
            data=RateCopiedForwardData(
                source_month=f"{month_start:%Y-%m}",
                target_month=f"{target_start:%Y-%m}",
                copied=counts["copied"],
                operator_id=actor,
            ).to_dict(),
            source="rate_override_engine",
        ))
        return CopyResult(copied=counts["copied"])
