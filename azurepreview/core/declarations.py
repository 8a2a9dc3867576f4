"""Decoding of declarative YAML documents into typed configuration

A declarations file looks like::

    provider:
      subscription_id: 00000000-0000-0000-0000-000000000000
    budgets:
      monthly:
        scope: /subscriptions/00000000-0000-0000-0000-000000000000
        name: monthly
        category: Cost
        amount: 1000
        time_grain: BillingMonth
        time_period: {start_date: "2017-06-01T00:00:00Z", end_date: "2035-06-01T00:00:00Z"}
        filters:
          resource_groups: [rg1]
          tag:
            - {name: env, values: [prod]}
        notification:
          - {name: n1, operator: GreaterThan, threshold: 80, contact_roles: [Contributor]}
    subscriptions:
      sandbox:
        name: sandbox
        enrollment_account: /providers/Microsoft.Billing/billingAccounts/1/enrollmentAccounts/2
        offer_type: MS-AZR-0017P
    resources:
      web_apps:
        resource_type: Microsoft.Web/sites
        tags: {env: prod}

Keys follow the resource schema (``filters.tag``, ``notification``); the
encoders write the same shape so state files can be decoded the same way.
"""

import yaml
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import ValidationError
from .models import (
    BudgetConfig,
    BudgetFilters,
    CategoryType,
    NotificationConfig,
    NotificationOperator,
    OfferType,
    ResourcesQuery,
    SubscriptionConfig,
    TagFilter,
    TimeGrainType,
    TimePeriod,
)
from ..utils.validation import parse_enum


@dataclass
class Declarations:
    """Everything declared in one document, keyed by local label"""
    provider: Dict[str, Any] = field(default_factory=dict)
    budgets: Dict[str, BudgetConfig] = field(default_factory=dict)
    subscriptions: Dict[str, SubscriptionConfig] = field(default_factory=dict)
    resources: Dict[str, ResourcesQuery] = field(default_factory=dict)


def _mapping(value: Any, key: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValidationError(key, "expected a mapping")
    return value


def _string_list(value: Any, key: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(key, "expected a list")
    return [None if item is None else str(item) for item in value]


def _required(values: Dict[str, Any], name: str, key: str) -> Any:
    if values.get(name) is None:
        raise ValidationError(f"{key}.{name}", "is required")
    return values[name]


def _single_block(value: Any, key: str) -> Optional[Dict[str, Any]]:
    """Blocks limited to one item may be written as a mapping or a one-element list"""
    if value is None:
        return None
    if isinstance(value, list):
        if not value:
            return None
        if len(value) > 1:
            raise ValidationError(key, "at most one block is allowed")
        value = value[0]
    return _mapping(value, key)


# Budget

def decode_budget(values: Dict[str, Any], key: str = "budget") -> BudgetConfig:
    values = _mapping(values, key)

    period = _single_block(_required(values, "time_period", key), f"{key}.time_period")
    filters = _single_block(values.get("filters"), f"{key}.filters")
    notifications = values.get("notification") or []
    if not isinstance(notifications, list):
        raise ValidationError(f"{key}.notification", "expected a list of blocks")

    amount = _required(values, "amount", key)
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValidationError(f"{key}.amount", f"expected an integer, got {amount!r}")

    return BudgetConfig(
        scope=str(_required(values, "scope", key)),
        name=str(_required(values, "name", key)),
        category=parse_enum(CategoryType, _required(values, "category", key), f"{key}.category"),
        amount=amount,
        time_grain=parse_enum(TimeGrainType, _required(values, "time_grain", key), f"{key}.time_grain"),
        time_period=TimePeriod(
            start_date=str(_required(period, "start_date", f"{key}.time_period")),
            end_date=str(_required(period, "end_date", f"{key}.time_period")),
        ),
        filters=decode_budget_filters(filters, f"{key}.filters") if filters is not None else None,
        notifications=[
            decode_notification(_mapping(item, f"{key}.notification"), f"{key}.notification")
            for item in notifications
        ],
    )


def decode_budget_filters(values: Dict[str, Any], key: str) -> BudgetFilters:
    tags = values.get("tag") or []
    if not isinstance(tags, list):
        raise ValidationError(f"{key}.tag", "expected a list of blocks")

    return BudgetFilters(
        resource_groups=_string_list(values.get("resource_groups"), f"{key}.resource_groups"),
        resources=_string_list(values.get("resources"), f"{key}.resources"),
        meters=_string_list(values.get("meters"), f"{key}.meters"),
        tags=[
            TagFilter(
                name=str(_required(_mapping(tag, f"{key}.tag"), "name", f"{key}.tag")),
                values=_string_list(tag.get("values"), f"{key}.tag.values"),
            )
            for tag in tags
        ],
    )


def decode_notification(values: Dict[str, Any], key: str) -> NotificationConfig:
    operator = values.get("operator")
    threshold = values.get("threshold")
    if threshold is not None and (isinstance(threshold, bool) or not isinstance(threshold, (int, float))):
        raise ValidationError(f"{key}.threshold", f"expected a number, got {threshold!r}")

    def optional_list(name):
        if values.get(name) is None:
            return None
        return _string_list(values[name], f"{key}.{name}")

    return NotificationConfig(
        name=str(_required(values, "name", key)),
        enabled=values.get("enabled"),
        operator=parse_enum(NotificationOperator, operator, f"{key}.operator") if operator is not None else None,
        threshold=threshold,
        contact_emails=optional_list("contact_emails"),
        contact_roles=optional_list("contact_roles"),
        contact_groups=optional_list("contact_groups"),
    )


def encode_budget(config: BudgetConfig) -> Dict[str, Any]:
    result: Dict[str, Any] = {
        "scope": config.scope,
        "name": config.name,
        "category": config.category.value,
        "amount": config.amount,
        "time_grain": config.time_grain.value,
        "time_period": {
            "start_date": config.time_period.start_date,
            "end_date": config.time_period.end_date,
        } if config.time_period else None,
        "notification": [],
    }

    if config.filters is not None:
        result["filters"] = {
            "resource_groups": list(config.filters.resource_groups),
            "resources": list(config.filters.resources),
            "meters": list(config.filters.meters),
            "tag": [{"name": t.name, "values": list(t.values)} for t in config.filters.tags],
        }

    for n in config.notifications:
        block: Dict[str, Any] = {"name": n.name}
        if n.enabled is not None:
            block["enabled"] = n.enabled
        if n.operator is not None:
            block["operator"] = n.operator.value
        if n.threshold is not None:
            block["threshold"] = n.threshold
        for name in ("contact_emails", "contact_roles", "contact_groups"):
            if getattr(n, name) is not None:
                block[name] = list(getattr(n, name))
        result["notification"].append(block)

    return result


# Subscription

def decode_subscription(values: Dict[str, Any], key: str = "subscription") -> SubscriptionConfig:
    values = _mapping(values, key)
    parameters = _mapping(values.get("additional_parameters"), f"{key}.additional_parameters")

    return SubscriptionConfig(
        name=None if values.get("name") is None else str(values["name"]),
        enrollment_account=str(_required(values, "enrollment_account", key)),
        offer_type=parse_enum(OfferType, _required(values, "offer_type", key), f"{key}.offer_type"),
        owners=_string_list(values.get("owners"), f"{key}.owners"),
        additional_parameters={str(k): str(v) for k, v in parameters.items()},
        subscription_id=values.get("subscription_id"),
        tenant_id=values.get("tenant_id"),
    )


def encode_subscription(config: SubscriptionConfig) -> Dict[str, Any]:
    return {
        "name": config.name,
        "enrollment_account": config.enrollment_account,
        "offer_type": config.offer_type.value,
        "owners": list(config.owners),
        "additional_parameters": dict(config.additional_parameters),
        "subscription_id": config.subscription_id,
        "tenant_id": config.tenant_id,
    }


# Data source

def decode_resources_query(values: Dict[str, Any], key: str = "resources") -> ResourcesQuery:
    values = _mapping(values, key)
    tags = _mapping(values.get("tags"), f"{key}.tags")

    def optional(name):
        return None if values.get(name) is None else str(values[name])

    return ResourcesQuery(
        subscription_id=optional("subscription_id"),
        name=optional("name"),
        resource_type=optional("resource_type") or optional("type"),
        resource_group_name=optional("resource_group_name"),
        tags={str(k): str(v) for k, v in tags.items()},
    )


def decode_declarations(document: Any) -> Declarations:
    document = _mapping(document, "document")

    return Declarations(
        provider=_mapping(document.get("provider"), "provider"),
        budgets={
            label: decode_budget(values, f"budgets.{label}")
            for label, values in _mapping(document.get("budgets"), "budgets").items()
        },
        subscriptions={
            label: decode_subscription(values, f"subscriptions.{label}")
            for label, values in _mapping(document.get("subscriptions"), "subscriptions").items()
        },
        resources={
            label: decode_resources_query(values, f"resources.{label}")
            for label, values in _mapping(document.get("resources"), "resources").items()
        },
    )


def load_declarations(path: str) -> Declarations:
    with open(Path(path), "r") as f:
        return decode_declarations(yaml.safe_load(f))
