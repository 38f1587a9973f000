"""
价格日历服务
"""
