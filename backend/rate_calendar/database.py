"""
数据库配置 - SQLAlchemy 持久化层
日历条目与房型/价格方案配置的存储
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from rate_calendar.config import settings

engine = create_engine(
    settings.DATABASE_URL,
    connect_args={"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """依赖注入：获取数据库会话"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """初始化数据库表"""
    from rate_calendar.models import ontology  # noqa
    Base.metadata.create_all(bind=engine)
