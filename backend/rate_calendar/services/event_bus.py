"""
事件总线 - 内存级发布/订阅
价格日历写操作通过它通知渠道同步、审计等订阅方
"""
from typing import Callable, Dict, List, Any, Optional
from dataclasses import dataclass, field
from datetime import datetime
from collections import deque
import logging
import threading
import uuid

logger = logging.getLogger(__name__)


@dataclass
class Event:
    """事件"""
    event_type: str
    timestamp: datetime
    data: Dict[str, Any]
    source: str  # 触发来源（服务名）
    event_id: str = field(default_factory=lambda: uuid.uuid4().hex)


class EventBus:
    """
    内存级事件总线

    处理器同步执行，单个处理器的异常只记录日志，不影响写操作和其他处理器。
    """

    def __init__(self, history_size: int = 100):
        self._subscribers: Dict[str, List[Callable[[Event], None]]] = {}
        self._history: deque = deque(maxlen=history_size)
        self._lock = threading.Lock()

    def subscribe(self, event_type: str, handler: Callable[[Event], None]) -> None:
        with self._lock:
            handlers = self._subscribers.setdefault(event_type, [])
            if handler not in handlers:
                handlers.append(handler)
                logger.debug(f"Handler {handler.__name__} subscribed to {event_type}")

    def unsubscribe(self, event_type: str, handler: Callable[[Event], None]) -> None:
        with self._lock:
            handlers = self._subscribers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)
                logger.debug(f"Handler {handler.__name__} unsubscribed from {event_type}")

    def publish(self, event: Event) -> None:
        """发布事件"""
        self._history.append(event)

        with self._lock:
            handlers = list(self._subscribers.get(event.event_type, []))

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(
                    f"Event handler {handler.__name__} error for {event.event_type}: {e}",
                    exc_info=True
                )

    def get_history(self, event_type: Optional[str] = None, limit: int = 50) -> List[Event]:
        """最近的事件，最新的在前"""
        history = [e for e in self._history if event_type is None or e.event_type == event_type]
        return list(reversed(history))[:limit]

    def clear_subscribers(self) -> None:
        """清空所有订阅（用于测试）"""
        with self._lock:
            self._subscribers.clear()

    def clear_history(self) -> None:
        self._history.clear()


# 全局事件总线实例
event_bus = EventBus()
