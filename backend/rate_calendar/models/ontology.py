"""
核心对象模型 - SQLAlchemy ORM
房型配置、价格方案配置与价格日历条目的持久化表
"""
from datetime import datetime
from sqlalchemy import (
    Column, String, Integer, Numeric, Boolean, Date, DateTime, Text,
    UniqueConstraint, Index
)
from rate_calendar.database import Base


class RoomType(Base):
    """
    房型配置对象
    base_rate 为空时回退到 0
    """
    __tablename__ = "room_types"

    id = Column(String(50), primary_key=True)
    name = Column(String(100), nullable=False)                # 房型名称
    code = Column(String(20), unique=True, nullable=False)    # 房型代码
    base_rate = Column(Numeric(10, 2), nullable=True)         # 基础价格
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class RatePlan(Base):
    """
    价格方案配置对象
    base_rate 优先于房型的 base_rate
    """
    __tablename__ = "rate_plans"

    id = Column(String(50), primary_key=True)
    name = Column(String(100), nullable=False)                # 方案名称
    code = Column(String(20), unique=True, nullable=False)    # 方案代码，如 BAR
    base_rate = Column(Numeric(10, 2), nullable=True)         # 基础价格
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class RateCalendar(Base):
    """
    价格日历条目
    (date, room_type_id, rate_plan_id) 唯一，条目只增不删
    房型/价格方案由外部配置维护，这里不声明外键
    """
    __tablename__ = "rate_calendar"
    __table_args__ = (
        UniqueConstraint("date", "room_type_id", "rate_plan_id", name="uq_rate_calendar_key"),
        Index("ix_rate_calendar_room_plan", "room_type_id", "rate_plan_id"),
    )

    id = Column(String(64), primary_key=True)
    room_type_id = Column(String(50), nullable=False)
    rate_plan_id = Column(String(50), nullable=False)
    date = Column(Date, nullable=False, index=True)
    rate = Column(Numeric(10, 2), nullable=False)
    availability = Column(Integer, nullable=False, default=0)
    restrictions = Column(Text, default="[]")                 # 限制列表(JSON)
    is_override = Column(Boolean, default=False)
    override_reason = Column(Text, default="")
    created_at = Column(DateTime)
    updated_at = Column(DateTime)
    updated_by = Column(String(50))
