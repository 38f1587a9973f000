"""
价格日历存储端口

引擎只依赖 get_all / replace_all 两个语义：
replace_all 接收 update_fn(current) -> new，对引擎而言原子生效。
"""
from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Callable, List, Optional
import json
import logging

from sqlalchemy.orm import Session

from rate_calendar.domain.entities import RateCalendarEntry
from rate_calendar.domain.restrictions import normalize_restrictions, restrictions_to_list
from rate_calendar.models.ontology import RateCalendar

logger = logging.getLogger(__name__)

UpdateFn = Callable[[List[RateCalendarEntry]], List[RateCalendarEntry]]


class RateCalendarStore(ABC):
    """价格日历条目的有序可变集合"""

    @abstractmethod
    def get_all(self) -> List[RateCalendarEntry]:
        """返回全部条目的快照"""

    @abstractmethod
    def replace_all(self, update_fn: UpdateFn) -> List[RateCalendarEntry]:
        """以函数式更新替换全部条目，返回新集合

        update_fn 抛出异常时不写入任何数据。
        """

    def find_by_key(self, target_date: date, room_type_id: str,
                    rate_plan_id: str) -> Optional[RateCalendarEntry]:
        key = (target_date, room_type_id, rate_plan_id)
        for entry in self.get_all():
            if entry.natural_key == key:
                return entry
        return None


class InMemoryRateCalendarStore(RateCalendarStore):
    """内存存储，用于测试和嵌入式场景"""

    def __init__(self, entries: Optional[List[RateCalendarEntry]] = None):
        self._entries: List[RateCalendarEntry] = list(entries or [])

    def get_all(self) -> List[RateCalendarEntry]:
        return list(self._entries)

    def replace_all(self, update_fn: UpdateFn) -> List[RateCalendarEntry]:
        new_entries = list(update_fn(list(self._entries)))
        self._entries = new_entries
        return list(new_entries)


def record_to_entry(record: RateCalendar) -> RateCalendarEntry:
    """ORM 记录转换为领域条目"""
    raw = json.loads(record.restrictions) if record.restrictions else []
    return RateCalendarEntry(
        id=record.id,
        room_type_id=record.room_type_id,
        rate_plan_id=record.rate_plan_id,
        date=record.date,
        rate=Decimal(str(record.rate)),
        availability=record.availability,
        restrictions=normalize_restrictions(raw),
        is_override=bool(record.is_override),
        override_reason=record.override_reason or "",
        created_at=record.created_at,
        updated_at=record.updated_at,
        updated_by=record.updated_by,
    )


def _write_record(record: RateCalendar, entry: RateCalendarEntry) -> RateCalendar:
    record.room_type_id = entry.room_type_id
    record.rate_plan_id = entry.rate_plan_id
    record.date = entry.date
    record.rate = entry.rate
    record.availability = entry.availability
    record.restrictions = json.dumps([r.to_dict() for r in restrictions_to_list(entry.restrictions)])
    record.is_override = entry.is_override
    record.override_reason = entry.override_reason
    record.created_at = entry.created_at
    record.updated_at = entry.updated_at
    record.updated_by = entry.updated_by
    return record


class SqlAlchemyRateCalendarStore(RateCalendarStore):
    """
    基于 SQLAlchemy 会话的存储

    replace_all 在同一事务内插入新条目、更新变化的条目，失败时回滚。
    条目只增不删，update_fn 丢弃的条目不会被删除。
    """

    def __init__(self, db: Session):
        self.db = db

    def get_all(self) -> List[RateCalendarEntry]:
        records = self.db.query(RateCalendar).order_by(
            RateCalendar.date, RateCalendar.room_type_id, RateCalendar.rate_plan_id
        ).all()
        return [record_to_entry(r) for r in records]

    def find_by_key(self, target_date: date, room_type_id: str,
                    rate_plan_id: str) -> Optional[RateCalendarEntry]:
        record = self.db.query(RateCalendar).filter(
            RateCalendar.date == target_date,
            RateCalendar.room_type_id == room_type_id,
            RateCalendar.rate_plan_id == rate_plan_id
        ).first()
        return record_to_entry(record) if record else None

    def replace_all(self, update_fn: UpdateFn) -> List[RateCalendarEntry]:
        current = self.get_all()
        new_entries = list(update_fn(list(current)))
        current_by_id = {e.id: e for e in current}

        inserted = 0
        changed = 0
        try:
            for entry in new_entries:
                old = current_by_id.get(entry.id)
                if old is None:
                    self.db.add(_write_record(RateCalendar(id=entry.id), entry))
                    inserted += 1
                elif old != entry:
                    record = self.db.query(RateCalendar).filter(RateCalendar.id == entry.id).first()
                    _write_record(record, entry)
                    changed += 1
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.error("Rate calendar write rolled back", exc_info=True)
            raise

        logger.debug(f"Rate calendar persisted: {inserted} inserted, {changed} updated")
        return new_entries
