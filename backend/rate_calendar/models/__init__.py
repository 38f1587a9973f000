# Ontology Models
from rate_calendar.models.ontology import RoomType, RatePlan, RateCalendar

__all__ = ['RoomType', 'RatePlan', 'RateCalendar']
