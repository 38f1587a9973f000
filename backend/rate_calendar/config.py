"""
应用配置
从环境变量读取配置，支持 .env 文件
"""
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """应用设置"""

    # 应用基础配置
    APP_NAME: str = "RateCalendar"
    DEBUG: bool = False

    # 数据库配置
    DATABASE_URL: str = "sqlite:///./rate_calendar.db"

    # 批量创建的日历条目默认可售房量
    DEFAULT_NEW_ENTRY_AVAILABILITY: int = 10

    # 单次批量更新允许的最大天数
    MAX_BULK_RANGE_DAYS: int = 730

    model_config = ConfigDict(env_file=".env", case_sensitive=True)


# 全局设置实例
settings = Settings()
