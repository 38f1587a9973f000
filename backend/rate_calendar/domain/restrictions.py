"""
收益限制选择集操作

toggle_restriction / update_restriction_value 作用于编辑中的临时限制集合，
返回新的集合，不修改已持久化的日历条目。
"""
from typing import Any, Iterable, List, Mapping, Optional, Union

from rate_calendar.domain.entities import (
    RestrictionMap, RestrictionType, YieldRestriction, sorted_restrictions
)
from rate_calendar.domain.errors import RateValidationError

RestrictionInput = Union[None, Mapping[Any, Any], Iterable[Any]]


def _validate_value(value: Optional[int]) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise RateValidationError(f"限制值必须为整数: {value!r}", field="restrictions")
    if value < 0:
        raise RateValidationError(f"限制值不能为负数: {value}", field="restrictions")
    return value


def _coerce(item: Any) -> YieldRestriction:
    if isinstance(item, YieldRestriction):
        restriction = item
    elif isinstance(item, Mapping):
        try:
            restriction = YieldRestriction.from_dict(item)
        except (KeyError, ValueError) as e:
            raise RateValidationError(f"无效的限制: {item!r}", field="restrictions") from e
    else:
        raise RateValidationError(f"无效的限制: {item!r}", field="restrictions")
    _validate_value(restriction.value)
    return restriction


def normalize_restrictions(restrictions: RestrictionInput) -> RestrictionMap:
    """
    将限制列表或映射转换为按类型索引的集合

    同一类型出现多次视为校验错误。
    """
    if restrictions is None:
        return {}

    items = restrictions.values() if isinstance(restrictions, Mapping) else restrictions
    result: RestrictionMap = {}
    for item in items:
        restriction = _coerce(item)
        if restriction.type in result:
            raise RateValidationError(
                f"限制类型重复: {restriction.type.value}", field="restrictions"
            )
        result[restriction.type] = restriction
    return result


def restrictions_to_list(restrictions: RestrictionMap) -> List[YieldRestriction]:
    return [r for _, r in sorted_restrictions(restrictions)]


def toggle_restriction(selection: RestrictionMap, restriction_type: RestrictionType) -> RestrictionMap:
    """存在则移除，不存在则添加一条启用的限制"""
    restriction_type = RestrictionType(restriction_type)
    result = dict(selection)
    if restriction_type in result:
        del result[restriction_type]
    else:
        result[restriction_type] = YieldRestriction(type=restriction_type, is_active=True)
    return result


def update_restriction_value(selection: RestrictionMap, restriction_type: RestrictionType,
                             value: Optional[int]) -> RestrictionMap:
    """设置指定类型限制的 value，类型不在集合中时原样返回"""
    restriction_type = RestrictionType(restriction_type)
    value = _validate_value(value)
    result = dict(selection)
    current = result.get(restriction_type)
    if current is not None:
        result[restriction_type] = YieldRestriction(
            type=current.type, is_active=current.is_active, value=value
        )
    return result
