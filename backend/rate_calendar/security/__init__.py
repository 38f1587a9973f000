"""
操作人标识依赖
"""
from rate_calendar.security.operator import get_current_operator

__all__ = ["get_current_operator"]
