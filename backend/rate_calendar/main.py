"""
价格日历服务主应用入口
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from rate_calendar.config import settings
from rate_calendar.database import init_db
from rate_calendar.routers import rate_calendar, rate_config

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    init_db()
    logger.info(f"{settings.APP_NAME} started")
    yield


# 创建应用
app = FastAPI(
    title="RateCalendar - 酒店价格日历服务",
    description="按日期/房型/价格方案管理价格、房量与收益限制",
    version="1.0.0",
    debug=settings.DEBUG,
    lifespan=lifespan
)

# CORS 配置
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # 生产环境应限制具体域名
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 注册路由
app.include_router(rate_config.router)
app.include_router(rate_calendar.router)


@app.get("/")
def root():
    return {"name": settings.APP_NAME, "status": "running"}


@app.get("/health")
def health_check():
    return {"status": "healthy"}
