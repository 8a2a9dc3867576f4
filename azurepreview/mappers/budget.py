"""Expand/flatten between budget configuration and consumption API models

Expanding turns the flat declarative ``BudgetConfig`` into the nested
``azure.mgmt.consumption.models.Budget`` graph; flattening is the inverse.
All validation happens while expanding, so a bad value never reaches the
API.

The filter facets map onto comparison expressions:

* resource groups -> dimension ``ResourceGroupName``
* resources       -> dimension ``ResourceId``
* meters          -> dimension ``Meter``
* each tag        -> tag expression named after the tag

A single expression is set directly on the filter, several are combined
under ``and``.
"""

from datetime import timezone
from typing import Any, Dict, List, Optional

from azure.mgmt.consumption.models import (
    Budget,
    BudgetComparisonExpression,
    BudgetFilter,
    BudgetFilterProperties,
    BudgetTimePeriod,
    Notification,
)

from ..core.errors import ApiOperationError, ValidationError
from ..core.models import (
    BudgetConfig,
    BudgetFilters,
    CategoryType,
    NotificationConfig,
    NotificationOperator,
    TagFilter,
    TimeGrainType,
    TimePeriod,
)
from ..utils.converters import expand_string_list, flatten_string_list
from ..utils.logger import setup_logger
from ..utils.validation import (
    parse_enum,
    parse_rfc3339,
    string_is_not_empty,
    string_is_uuid,
)

DIMENSION_RESOURCE_GROUP = "ResourceGroupName"
DIMENSION_RESOURCE = "ResourceId"
DIMENSION_METER = "Meter"
OPERATOR_IN = "In"

MAX_NOTIFICATIONS = 5
RFC3339_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

logger = setup_logger("BudgetMapper")


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


def _api_enum(enum_cls: Any, value: Any, key: str) -> Any:
    """Map a value read back from the API onto a known enum member"""
    try:
        return enum_cls(_enum_value(value))
    except ValueError as e:
        raise ApiOperationError(f"unexpected {key} {_enum_value(value)!r} returned by the API") from e


def _in_expression(name: str, values: List[str]) -> BudgetComparisonExpression:
    return BudgetComparisonExpression(name=name, operator=OPERATOR_IN, values=values)


# Time period

def expand_budget_time_period(period: Optional[TimePeriod]) -> Optional[BudgetTimePeriod]:
    if period is None:
        return None

    start = parse_rfc3339(period.start_date, "time_period.start_date")
    end = parse_rfc3339(period.end_date, "time_period.end_date")
    if start >= end:
        raise ValidationError(
            "time_period", f"start_date {period.start_date!r} must be before end_date {period.end_date!r}"
        )

    return BudgetTimePeriod(start_date=start, end_date=end)


def format_budget_date(value: Any) -> str:
    """Serialize an API date as RFC3339 in UTC"""
    if value is None:
        return ""
    if isinstance(value, str):
        value = parse_rfc3339(value, "time_period")
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(RFC3339_FORMAT)


def flatten_budget_time_period(period: Optional[BudgetTimePeriod]) -> List[TimePeriod]:
    if period is None:
        return []
    return [TimePeriod(
        start_date=format_budget_date(period.start_date),
        end_date=format_budget_date(period.end_date),
    )]


# Filters

def expand_budget_filter_meters(meters: Optional[List[str]]) -> List[str]:
    """Validate meter ids; every entry must be a UUID"""
    return [
        string_is_uuid(meter, f"filters.meters[{index}]")
        for index, meter in enumerate(meters or [])
    ]


def expand_budget_filter_tags(tags: Optional[List[TagFilter]]) -> Dict[str, List[str]]:
    """Assemble tag blocks into a name -> values map, rejecting duplicate names"""
    results: Dict[str, List[str]] = {}

    for tag in tags or []:
        name = string_is_not_empty(tag.name, "filters.tag.name")
        if name in results:
            raise ValidationError("filters.tag", f"tag {name!r} is declared more than once")
        results[name] = expand_string_list(tag.values)

    return results


def expand_budget_filters(filters: Optional[BudgetFilters]) -> Optional[BudgetFilter]:
    if filters is None:
        return None

    expressions: List[BudgetFilterProperties] = []

    resource_groups = expand_string_list(filters.resource_groups)
    if resource_groups:
        expressions.append(BudgetFilterProperties(
            dimensions=_in_expression(DIMENSION_RESOURCE_GROUP, resource_groups)
        ))

    resources = expand_string_list(filters.resources)
    if resources:
        expressions.append(BudgetFilterProperties(
            dimensions=_in_expression(DIMENSION_RESOURCE, resources)
        ))

    meters = expand_budget_filter_meters(filters.meters)
    if meters:
        expressions.append(BudgetFilterProperties(
            dimensions=_in_expression(DIMENSION_METER, meters)
        ))

    for name, values in expand_budget_filter_tags(filters.tags).items():
        expressions.append(BudgetFilterProperties(tags=_in_expression(name, values)))

    if not expressions:
        return None

    if len(expressions) == 1:
        only = expressions[0]
        return BudgetFilter(dimensions=only.dimensions, tags=only.tags)

    return BudgetFilter(and_property=expressions)


def _filter_expressions(budget_filter: BudgetFilter) -> List[Any]:
    """Collect every (kind, expression) pair of a filter, nested or not"""
    pairs = []
    for item in [budget_filter] + list(budget_filter.and_property or []):
        if item.dimensions is not None:
            pairs.append(("dimensions", item.dimensions))
        if item.tags is not None:
            pairs.append(("tags", item.tags))
    return pairs


def _flatten_meter(value: str) -> str:
    try:
        return string_is_uuid(value, "filters.meters")
    except ValidationError:
        return value


def flatten_budget_filters(budget_filter: Optional[BudgetFilter]) -> List[BudgetFilters]:
    """Rebuild the filter block; an absent filter becomes an empty list"""
    if budget_filter is None:
        return []

    result = BudgetFilters()

    for kind, expression in _filter_expressions(budget_filter):
        values = flatten_string_list(expression.values)

        if kind == "tags":
            result.tags.append(TagFilter(name=expression.name, values=values))
        elif expression.name == DIMENSION_RESOURCE_GROUP:
            result.resource_groups.extend(values)
        elif expression.name == DIMENSION_RESOURCE:
            result.resources.extend(values)
        elif expression.name == DIMENSION_METER:
            result.meters.extend(_flatten_meter(v) for v in values)
        else:
            logger.debug(f"Ignoring unsupported budget filter dimension {expression.name!r}")

    return [result]


# Notifications

def _validate_notification(notification: NotificationConfig, key: str) -> None:
    if notification.operator is None:
        raise ValidationError(f"{key}.operator", "is required")
    parse_enum(NotificationOperator, notification.operator, f"{key}.operator")
    if notification.threshold is None:
        raise ValidationError(f"{key}.threshold", "is required")
    if isinstance(notification.threshold, bool) or not isinstance(notification.threshold, (int, float)):
        raise ValidationError(f"{key}.threshold", f"expected a number, got {notification.threshold!r}")


def resolve_notification_enabled(
    notification: NotificationConfig, computed_enabled: Optional[Dict[str, bool]] = None
) -> bool:
    if notification.enabled is not None:
        return notification.enabled
    computed = (computed_enabled or {}).get(notification.name)
    return True if computed is None else computed


def expand_budget_notifications(
    notifications: Optional[List[NotificationConfig]],
    computed_enabled: Optional[Dict[str, bool]] = None,
) -> Optional[Dict[str, Notification]]:
    """Build the API notification map.

    An unset ``enabled`` keeps the value last read for that notification name
    (``computed_enabled``), or ``True`` for a notification not seen before.
    """
    if not notifications:
        return None

    if len(notifications) > MAX_NOTIFICATIONS:
        raise ValidationError(
            "notification", f"at most {MAX_NOTIFICATIONS} notifications are allowed, got {len(notifications)}"
        )

    results: Dict[str, Notification] = {}

    for notification in notifications:
        name = string_is_not_empty(notification.name, "notification.name")
        key = f"notification[{name}]"
        if name in results:
            raise ValidationError("notification", f"notification {name!r} is declared more than once")
        _validate_notification(notification, key)

        results[name] = Notification(
            enabled=resolve_notification_enabled(notification, computed_enabled),
            operator=parse_enum(NotificationOperator, notification.operator, f"{key}.operator").value,
            threshold=float(notification.threshold),
            contact_emails=expand_string_list(notification.contact_emails),
            contact_roles=expand_string_list(notification.contact_roles),
            contact_groups=expand_string_list(notification.contact_groups),
        )

    return results


def flatten_budget_notifications(
    notifications: Optional[Dict[str, Optional[Notification]]]
) -> List[NotificationConfig]:
    """Rebuild notification blocks; order follows the API map and is not significant"""
    if notifications is None:
        return []

    results = []
    for name, notification in notifications.items():
        if notification is None:
            results.append(NotificationConfig(name=name))
            continue

        threshold = notification.threshold
        results.append(NotificationConfig(
            name=name,
            enabled=notification.enabled,
            operator=_api_enum(NotificationOperator, notification.operator, f"notification[{name}].operator"),
            threshold=int(threshold) if threshold is not None else None,
            contact_emails=flatten_string_list(notification.contact_emails),
            contact_roles=flatten_string_list(notification.contact_roles),
            contact_groups=flatten_string_list(notification.contact_groups),
        ))

    return results


# Whole budget

def expand_budget(config: BudgetConfig, computed_enabled: Optional[Dict[str, bool]] = None) -> Budget:
    """Validate a budget configuration and build the API object"""
    string_is_not_empty(config.scope, "scope")
    string_is_not_empty(config.name, "name")
    category = parse_enum(CategoryType, config.category, "category")
    time_grain = parse_enum(TimeGrainType, config.time_grain, "time_grain")
    if isinstance(config.amount, bool) or not isinstance(config.amount, int):
        raise ValidationError("amount", f"expected an integer, got {config.amount!r}")
    if config.time_period is None:
        raise ValidationError("time_period", "is required")

    return Budget(
        category=category.value,
        amount=float(config.amount),
        time_grain=time_grain.value,
        time_period=expand_budget_time_period(config.time_period),
        filter=expand_budget_filters(config.filters),
        notifications=expand_budget_notifications(config.notifications, computed_enabled),
    )


def flatten_budget(budget: Budget, scope: str) -> BudgetConfig:
    """Derive the full budget configuration from an API response"""
    time_periods = flatten_budget_time_period(budget.time_period)
    filters = flatten_budget_filters(budget.filter)

    return BudgetConfig(
        scope=scope,
        name=budget.name,
        category=_api_enum(CategoryType, budget.category, "category"),
        amount=int(budget.amount) if budget.amount is not None else 0,
        time_grain=_api_enum(TimeGrainType, budget.time_grain, "time_grain"),
        time_period=time_periods[0] if time_periods else None,
        filters=filters[0] if filters else None,
        notifications=flatten_budget_notifications(budget.notifications),
    )
