"""Consumption budget resource"""

from typing import Any, Dict, Optional

from ..core.errors import ValidationError, is_not_found, wrap_api_error
from ..core.interfaces import IResource
from ..core.models import BudgetConfig, BudgetFilters, ResourceData
from ..mappers.budget import expand_budget, flatten_budget, resolve_notification_enabled
from ..utils.ids import parse_budget_id
from ..utils.logger import setup_logger
from ..utils.validation import parse_rfc3339, string_is_uuid


def _comparable_filters(filters: Optional[BudgetFilters]):
    filters = filters or BudgetFilters()
    meters = []
    for meter in filters.meters:
        try:
            meters.append(string_is_uuid(meter, "filters.meters"))
        except ValidationError:
            meters.append(meter)
    return (
        tuple(filters.resource_groups),
        tuple(filters.resources),
        tuple(meters),
        frozenset((tag.name, tuple(tag.values)) for tag in filters.tags),
    )


def notification_enabled_state(config: Optional[BudgetConfig]) -> Dict[str, bool]:
    """Last known ``enabled`` value per notification name"""
    if config is None:
        return {}
    return {n.name: n.enabled for n in config.notifications if n.enabled is not None}


def _comparable_notifications(config: BudgetConfig, computed_enabled: Optional[Dict[str, bool]] = None):
    return frozenset(
        (
            n.name,
            resolve_notification_enabled(n, computed_enabled),
            getattr(n.operator, "value", n.operator),
            int(n.threshold) if n.threshold is not None else None,
            tuple(n.contact_emails or ()),
            tuple(n.contact_roles or ()),
            tuple(n.contact_groups or ()),
        )
        for n in config.notifications
    )


def _comparable_time_period(config: BudgetConfig):
    period = config.time_period
    if period is None:
        return None
    try:
        return (
            parse_rfc3339(period.start_date, "time_period.start_date"),
            parse_rfc3339(period.end_date, "time_period.end_date"),
        )
    except ValidationError:
        return (period.start_date, period.end_date)


class BudgetResource(IResource):
    """Budget scoped to a subscription, resource group or management group"""

    type_name = "azurepreview_budget"
    force_new = ("scope", "name")

    def __init__(self):
        self.logger = setup_logger(self.__class__.__name__)

    def create(self, data: ResourceData, meta: Any) -> None:
        self._create_or_update(data, meta)

    def update(self, data: ResourceData, meta: Any) -> None:
        # Budgets have no partial update; the full object is sent again
        self._create_or_update(data, meta)

    def _create_or_update(self, data: ResourceData, meta: Any) -> None:
        config: BudgetConfig = data.config
        params = expand_budget(config, notification_enabled_state(data.state))

        self.logger.debug(f"Sending Budget {config.name!r} (Scope {config.scope!r})")
        try:
            response = meta.consumption.budgets.create_or_update(config.scope, config.name, params)
        except Exception as e:
            self.logger.error(f"Failed to create or update Budget {config.name!r}: {e}")
            raise wrap_api_error(
                e, f"error creating or updating Budget {config.name!r} (Scope {config.scope!r})"
            ) from e

        data.id = response.id
        self.logger.info(f"Budget {config.name!r} saved as {data.id}")

        self.read(data, meta)

    def read(self, data: ResourceData, meta: Any) -> None:
        budget_id = parse_budget_id(data.id)

        try:
            response = meta.consumption.budgets.get(budget_id.scope, budget_id.budget_name)
        except Exception as e:
            if is_not_found(e):
                self.logger.info(f"Budget {data.id} no longer exists, removing it from state")
                data.id = ""
                data.state = None
                return
            raise wrap_api_error(e, f"error reading Budget (ID {data.id!r})") from e

        data.state = flatten_budget(response, budget_id.scope)

    def delete(self, data: ResourceData, meta: Any) -> None:
        budget_id = parse_budget_id(data.id)

        try:
            meta.consumption.budgets.delete(budget_id.scope, budget_id.budget_name)
        except Exception as e:
            if not is_not_found(e):
                raise wrap_api_error(
                    e, f"error deleting Budget {budget_id.budget_name!r} (Scope {budget_id.scope!r})"
                ) from e
            self.logger.debug(f"Budget {data.id} was already deleted")

        self.logger.info(f"Budget {data.id} deleted")
        data.id = ""
        data.state = None

    def requires_replacement(self, prior: BudgetConfig, desired: BudgetConfig) -> bool:
        if super().requires_replacement(prior, desired):
            return True
        return _comparable_time_period(prior) != _comparable_time_period(desired)

    def has_changes(self, prior: BudgetConfig, desired: BudgetConfig) -> bool:
        def value(v):
            return getattr(v, "value", v)

        computed_enabled = notification_enabled_state(prior)
        return (
            value(prior.category) != value(desired.category)
            or prior.amount != desired.amount
            or value(prior.time_grain) != value(desired.time_grain)
            or _comparable_filters(prior.filters) != _comparable_filters(desired.filters)
            or _comparable_notifications(prior) != _comparable_notifications(desired, computed_enabled)
        )
