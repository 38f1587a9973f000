"""
Tests for rate_calendar/services/rate_calendar_store.py
Covers: InMemoryRateCalendarStore, SqlAlchemyRateCalendarStore (round trip, update, rollback),
        engine operations over the SQL store
"""
import pytest
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from sqlalchemy.exc import IntegrityError

from rate_calendar.domain.entities import (
    AdjustmentType, BulkUpdateConfig, RateAdjustment, RateCalendarEntry,
    RatePlanConfig, RestrictionType, RoomTypeConfig, YieldRestriction
)
from rate_calendar.domain.errors import RateValidationError
from rate_calendar.models.ontology import RateCalendar
from rate_calendar.services.rate_calendar_store import (
    InMemoryRateCalendarStore, SqlAlchemyRateCalendarStore
)
from rate_calendar.services.rate_override_engine import RateOverrideEngine


def _entry(entry_id="e-1", day=date(2024, 6, 1), rate="100.00", **kwargs):
    values = dict(
        id=entry_id,
        room_type_id="deluxe",
        rate_plan_id="bar",
        date=day,
        rate=Decimal(rate),
        availability=5,
        restrictions={},
        is_override=False,
        override_reason="",
        created_at=datetime(2024, 1, 1, 8, 0),
        updated_at=datetime(2024, 1, 1, 8, 0),
        updated_by="seed",
    )
    values.update(kwargs)
    return RateCalendarEntry(**values)


class TestInMemoryStore:

    def test_get_all_returns_copy(self):
        store = InMemoryRateCalendarStore([_entry()])
        snapshot = store.get_all()
        snapshot.append(_entry(entry_id="e-2"))
        assert len(store.get_all()) == 1

    def test_replace_all_applies_update(self):
        store = InMemoryRateCalendarStore()
        store.replace_all(lambda current: current + [_entry()])
        assert [e.id for e in store.get_all()] == ["e-1"]

    def test_failed_update_leaves_state(self):
        store = InMemoryRateCalendarStore([_entry()])

        def broken(current):
            current.append(_entry(entry_id="e-2"))
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            store.replace_all(broken)
        assert [e.id for e in store.get_all()] == ["e-1"]

    def test_find_by_key(self):
        store = InMemoryRateCalendarStore([_entry()])
        assert store.find_by_key(date(2024, 6, 1), "deluxe", "bar").id == "e-1"
        assert store.find_by_key(date(2024, 6, 2), "deluxe", "bar") is None


class TestSqlAlchemyStore:

    def test_round_trip(self, db_session):
        store = SqlAlchemyRateCalendarStore(db_session)
        restrictions = {
            RestrictionType.MIN_STAY: YieldRestriction(type=RestrictionType.MIN_STAY, value=2),
            RestrictionType.CTA: YieldRestriction(type=RestrictionType.CTA, is_active=False),
        }
        store.replace_all(lambda current: current + [_entry(restrictions=restrictions, is_override=True)])

        loaded = store.get_all()
        assert len(loaded) == 1
        assert loaded[0].rate == Decimal("100.00")
        assert loaded[0].restrictions == restrictions
        assert loaded[0].is_override is True
        assert loaded[0].created_at == datetime(2024, 1, 1, 8, 0)

    def test_updates_changed_rows(self, db_session):
        store = SqlAlchemyRateCalendarStore(db_session)
        store.replace_all(lambda current: current + [_entry()])

        store.replace_all(lambda current: [replace(e, rate=Decimal("150.00")) for e in current])

        assert db_session.query(RateCalendar).count() == 1
        assert store.find_by_key(date(2024, 6, 1), "deluxe", "bar").rate == Decimal("150.00")

    def test_dropped_entries_are_not_deleted(self, db_session):
        store = SqlAlchemyRateCalendarStore(db_session)
        store.replace_all(lambda current: current + [_entry()])
        store.replace_all(lambda current: [])
        assert len(store.get_all()) == 1

    def test_duplicate_key_rolls_back(self, db_session):
        store = SqlAlchemyRateCalendarStore(db_session)
        store.replace_all(lambda current: current + [_entry()])

        with pytest.raises(IntegrityError):
            store.replace_all(lambda current: current + [
                _entry(entry_id="e-2", day=date(2024, 6, 2)),
                _entry(entry_id="dup"),
            ])

        assert [e.id for e in store.get_all()] == ["e-1"]

    def test_get_all_ordered(self, db_session):
        store = SqlAlchemyRateCalendarStore(db_session)
        store.replace_all(lambda current: current + [
            _entry(entry_id="late", day=date(2024, 6, 9)),
            _entry(entry_id="early", day=date(2024, 6, 2)),
        ])
        assert [e.id for e in store.get_all()] == ["early", "late"]


class TestEngineOverSqlStore:

    @pytest.fixture
    def sql_engine(self, db_session, publisher):
        return RateOverrideEngine(
            SqlAlchemyRateCalendarStore(db_session),
            room_types=[RoomTypeConfig(id="deluxe", base_rate=Decimal("150"))],
            rate_plans=[RatePlanConfig(id="bar")],
            event_publisher=publisher,
        )

    def test_bulk_then_override_then_copy(self, sql_engine, db_session):
        result = sql_engine.apply_bulk_update(BulkUpdateConfig(
            start_date=date(2024, 6, 1),
            end_date=date(2024, 6, 3),
            room_type_ids=("deluxe",),
            rate_plan_ids=("bar",),
            rate_adjustment=RateAdjustment(AdjustmentType.FIXED, Decimal("20")),
            reason="夏季",
        ), "u-1")
        assert (result.created, result.updated) == (3, 0)

        sql_engine.apply_manual_override(date(2024, 6, 2), "deluxe", "bar", "199", 2, [], "VIP", "u-2")
        copied = sql_engine.copy_to_next_month(date(2024, 6, 1), "u-3")

        assert copied.copied == 3
        assert db_session.query(RateCalendar).count() == 6
        july_2 = sql_engine.resolve_effective_rate(date(2024, 7, 2), "deluxe", "bar")
        assert july_2.rate == Decimal("199.00")
        assert july_2.availability == 2

    def test_validation_failure_writes_nothing(self, sql_engine, db_session):
        with pytest.raises(ValueError):
            sql_engine.apply_manual_override(date(2024, 6, 1), "deluxe", "bar", -1, 1, [], "", "u-1")
        assert db_session.query(RateCalendar).count() == 0

    def test_overflowing_bulk_update_writes_nothing(self, sql_engine, db_session):
        sql_engine.apply_manual_override(date(2024, 6, 1), "deluxe", "bar", "99999990", 1, [], "", "u-1")

        with pytest.raises(RateValidationError):
            sql_engine.apply_bulk_update(BulkUpdateConfig(
                start_date=date(2024, 5, 31),
                end_date=date(2024, 6, 1),
                room_type_ids=("deluxe",),
                rate_plan_ids=("bar",),
                rate_adjustment=RateAdjustment(AdjustmentType.FIXED, Decimal("50")),
                reason="夏季",
                override_existing=True,
            ), "u-2")

        assert db_session.query(RateCalendar).count() == 1
        entry = sql_engine.find_entry(date(2024, 6, 1), "deluxe", "bar")
        assert entry.rate == Decimal("99999990.00")
        assert entry.updated_by == "u-1"
