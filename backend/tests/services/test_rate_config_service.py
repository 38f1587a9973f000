"""
Tests for rate_calendar/services/rate_config_service.py
"""
import pytest
from decimal import Decimal

from rate_calendar.models.schemas import RoomTypeCreate, RatePlanCreate
from rate_calendar.services.rate_config_service import RateConfigService


class TestRoomTypes:

    def test_create_and_get(self, db_session):
        svc = RateConfigService(db_session)
        svc.create_room_type(RoomTypeCreate(id="deluxe", name="豪华间", code="DLX", base_rate=Decimal("150")))

        room_type = svc.get_room_type("deluxe")
        assert room_type is not None
        assert room_type.base_rate == Decimal("150")

    def test_duplicate_id(self, db_session, sample_room_type):
        with pytest.raises(ValueError, match="已存在"):
            RateConfigService(db_session).create_room_type(
                RoomTypeCreate(id="deluxe", name="其他", code="OTH")
            )

    def test_duplicate_code(self, db_session, sample_room_type):
        with pytest.raises(ValueError, match="DLX"):
            RateConfigService(db_session).create_room_type(
                RoomTypeCreate(id="deluxe-2", name="其他", code="DLX")
            )

    def test_filter_active(self, db_session):
        svc = RateConfigService(db_session)
        svc.create_room_type(RoomTypeCreate(id="a", name="A", code="A"))
        svc.create_room_type(RoomTypeCreate(id="b", name="B", code="B", is_active=False))

        assert [rt.id for rt in svc.get_room_types(is_active=True)] == ["a"]
        assert len(svc.get_room_types()) == 2


class TestRatePlans:

    def test_create_without_base_rate(self, db_session):
        svc = RateConfigService(db_session)
        plan = svc.create_rate_plan(RatePlanCreate(id="bar", name="门市价", code="BAR"))
        assert plan.base_rate is None
        assert svc.get_rate_plan("bar").code == "BAR"

    def test_duplicate_id(self, db_session, sample_rate_plan):
        with pytest.raises(ValueError):
            RateConfigService(db_session).create_rate_plan(
                RatePlanCreate(id="bar", name="门市价", code="BAR2")
            )

    def test_missing(self, db_session):
        assert RateConfigService(db_session).get_rate_plan("nope") is None
