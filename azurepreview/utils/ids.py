"""Parsing and formatting of composite resource identifiers"""

from dataclasses import dataclass

from ..core.errors import FormatError

BUDGET_ID_SEPARATOR = "/providers/Microsoft.Consumption/budgets"


@dataclass(frozen=True)
class BudgetId:
    """A budget identity split into its scope and name"""
    scope: str
    budget_name: str


def parse_subscription_id(value: str) -> str:
    """Return the subscription GUID from a ``/subscriptions/<guid>`` path"""
    parts = value.split("/")
    if len(parts) != 3:
        raise FormatError(f"error parsing Subscription ID: unexpected format: {value!r}")
    return parts[2]


def format_subscription_id(subscription_guid: str) -> str:
    return f"/subscriptions/{subscription_guid}"


def parse_budget_id(value: str) -> BudgetId:
    """Split a budget resource ID on the consumption provider path.

    Exactly one occurrence of the separator is accepted. The name is what
    follows it, without the leading slash.
    """
    parts = value.split(BUDGET_ID_SEPARATOR)
    if len(parts) != 2:
        raise FormatError(f"error parsing Budget resource ID: unexpected format: {value!r}")

    scope, name = parts
    if name.startswith("/"):
        name = name[1:]
    return BudgetId(scope=scope, budget_name=name)


def format_budget_id(scope: str, budget_name: str) -> str:
    return f"{scope}{BUDGET_ID_SEPARATOR}/{budget_name}"
