"""
价格配置服务 - 本体操作层
管理 RoomType / RatePlan 配置，价格日历引擎只读使用
"""
from typing import List, Optional
import logging

from sqlalchemy.orm import Session

from rate_calendar.models.ontology import RoomType, RatePlan
from rate_calendar.models.schemas import RoomTypeCreate, RatePlanCreate

logger = logging.getLogger(__name__)


class RateConfigService:
    """价格配置服务"""

    def __init__(self, db: Session):
        self.db = db

    # ============== 房型 ==============

    def get_room_types(self, is_active: Optional[bool] = None) -> List[RoomType]:
        """获取房型列表"""
        query = self.db.query(RoomType)
        if is_active is not None:
            query = query.filter(RoomType.is_active == is_active)
        return query.order_by(RoomType.id).all()

    def get_room_type(self, room_type_id: str) -> Optional[RoomType]:
        return self.db.query(RoomType).filter(RoomType.id == room_type_id).first()

    def create_room_type(self, data: RoomTypeCreate) -> RoomType:
        """创建房型"""
        if self.get_room_type(data.id):
            raise ValueError(f"房型 '{data.id}' 已存在")
        if self.db.query(RoomType).filter(RoomType.code == data.code).first():
            raise ValueError(f"房型代码 '{data.code}' 已存在")

        room_type = RoomType(**data.model_dump())
        self.db.add(room_type)
        self.db.commit()
        self.db.refresh(room_type)
        logger.info(f"Room type created: {room_type.id} ({room_type.code})")
        return room_type

    # ============== 价格方案 ==============

    def get_rate_plans(self, is_active: Optional[bool] = None) -> List[RatePlan]:
        """获取价格方案列表"""
        query = self.db.query(RatePlan)
        if is_active is not None:
            query = query.filter(RatePlan.is_active == is_active)
        return query.order_by(RatePlan.id).all()

    def get_rate_plan(self, rate_plan_id: str) -> Optional[RatePlan]:
        return self.db.query(RatePlan).filter(RatePlan.id == rate_plan_id).first()

    def create_rate_plan(self, data: RatePlanCreate) -> RatePlan:
        """创建价格方案"""
        if self.get_rate_plan(data.id):
            raise ValueError(f"价格方案 '{data.id}' 已存在")
        if self.db.query(RatePlan).filter(RatePlan.code == data.code).first():
            raise ValueError(f"价格方案代码 '{data.code}' 已存在")

        rate_plan = RatePlan(**data.model_dump())
        self.db.add(rate_plan)
        self.db.commit()
        self.db.refresh(rate_plan)
        logger.info(f"Rate plan created: {rate_plan.id} ({rate_plan.code})")
        return rate_plan
