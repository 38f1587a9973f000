# Services
from rate_calendar.services.event_bus import EventBus, Event, event_bus
from rate_calendar.services.rate_calendar_store import (
    RateCalendarStore, InMemoryRateCalendarStore, SqlAlchemyRateCalendarStore
)
from rate_calendar.services.rate_override_engine import (
    RateOverrideEngine, DEFAULT_NEW_ENTRY_AVAILABILITY
)
from rate_calendar.services.calendar_view import build_calendar_view

__all__ = [
    'EventBus', 'Event', 'event_bus',
    'RateCalendarStore', 'InMemoryRateCalendarStore', 'SqlAlchemyRateCalendarStore',
    'RateOverrideEngine', 'DEFAULT_NEW_ENTRY_AVAILABILITY',
    'build_calendar_view',
]
