"""
Pytest 配置和共享 fixtures
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import MagicMock
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from rate_calendar.database import Base, get_db
from rate_calendar.domain.entities import RatePlanConfig, RoomTypeConfig
from rate_calendar.models import ontology  # noqa
from rate_calendar.models.ontology import RoomType, RatePlan
from rate_calendar.services.rate_calendar_store import InMemoryRateCalendarStore
from rate_calendar.services.rate_override_engine import RateOverrideEngine
from rate_calendar.main import app


class FakeClock:
    """可控时钟，每次调用后前进一秒"""

    def __init__(self, start: datetime = datetime(2024, 5, 1, 9, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + timedelta(seconds=1)
        return current


@pytest.fixture(scope="function")
def db_engine():
    """创建内存数据库引擎"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """创建数据库会话"""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture(scope="function")
def client(db_session):
    """创建测试客户端"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def operator_headers():
    """带操作人标识的请求头"""
    return {"X-Operator-Id": "u-front-1"}


# ============== 配置相关 Fixtures ==============

@pytest.fixture
def room_types():
    return [
        RoomTypeConfig(id="deluxe", name="豪华间", code="DLX", base_rate=Decimal("150")),
        RoomTypeConfig(id="standard", name="标准间", code="STD", base_rate=Decimal("200")),
        RoomTypeConfig(id="suite", name="套房", code="STE", base_rate=None),
    ]


@pytest.fixture
def rate_plans():
    return [
        RatePlanConfig(id="bar", name="门市价", code="BAR", base_rate=None),
        RatePlanConfig(id="corp", name="协议价", code="CORP", base_rate=Decimal("120")),
    ]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def publisher():
    return MagicMock()


@pytest.fixture
def memory_store():
    return InMemoryRateCalendarStore()


@pytest.fixture
def rate_engine(memory_store, room_types, rate_plans, publisher, clock):
    """基于内存存储的引擎"""
    return RateOverrideEngine(
        memory_store,
        room_types=room_types,
        rate_plans=rate_plans,
        event_publisher=publisher,
        clock=clock,
    )


@pytest.fixture
def sample_room_type(db_session):
    """创建测试房型"""
    room_type = RoomType(id="deluxe", name="豪华间", code="DLX", base_rate=Decimal("150.00"))
    db_session.add(room_type)
    db_session.commit()
    db_session.refresh(room_type)
    return room_type


@pytest.fixture
def sample_rate_plan(db_session):
    """创建测试价格方案（无基础价）"""
    rate_plan = RatePlan(id="bar", name="门市价", code="BAR", base_rate=None)
    db_session.add(rate_plan)
    db_session.commit()
    db_session.refresh(rate_plan)
    return rate_plan
