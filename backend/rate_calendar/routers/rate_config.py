"""
价格配置路由
房型与价格方案的查询和创建
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from rate_calendar.database import get_db
from rate_calendar.models.schemas import (
    RoomTypeCreate, RoomTypeResponse, RatePlanCreate, RatePlanResponse
)
from rate_calendar.security.operator import get_current_operator
from rate_calendar.services.rate_config_service import RateConfigService

router = APIRouter(prefix="/rate-config", tags=["价格配置"])


@router.get("/room-types", response_model=List[RoomTypeResponse])
def list_room_types(
    is_active: Optional[bool] = None,
    db: Session = Depends(get_db)
):
    """获取房型列表"""
    return RateConfigService(db).get_room_types(is_active)


@router.get("/room-types/{room_type_id}", response_model=RoomTypeResponse)
def get_room_type(room_type_id: str, db: Session = Depends(get_db)):
    """获取房型详情"""
    room_type = RateConfigService(db).get_room_type(room_type_id)
    if not room_type:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="房型不存在")
    return room_type


@router.post("/room-types", response_model=RoomTypeResponse)
def create_room_type(
    data: RoomTypeCreate,
    db: Session = Depends(get_db),
    operator_id: str = Depends(get_current_operator)
):
    """创建房型"""
    try:
        return RateConfigService(db).create_room_type(data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/rate-plans", response_model=List[RatePlanResponse])
def list_rate_plans(
    is_active: Optional[bool] = None,
    db: Session = Depends(get_db)
):
    """获取价格方案列表"""
    return RateConfigService(db).get_rate_plans(is_active)


@router.get("/rate-plans/{rate_plan_id}", response_model=RatePlanResponse)
def get_rate_plan(rate_plan_id: str, db: Session = Depends(get_db)):
    """获取价格方案详情"""
    rate_plan = RateConfigService(db).get_rate_plan(rate_plan_id)
    if not rate_plan:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="价格方案不存在")
    return rate_plan


@router.post("/rate-plans", response_model=RatePlanResponse)
def create_rate_plan(
    data: RatePlanCreate,
    db: Session = Depends(get_db),
    operator_id: str = Depends(get_current_operator)
):
    """创建价格方案"""
    try:
        return RateConfigService(db).create_rate_plan(data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
