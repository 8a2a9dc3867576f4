from types import SimpleNamespace
from typing import Any, Dict, List, Optional, Tuple

import pytest
from azure.core.exceptions import HttpResponseError, ResourceNotFoundError

from azurepreview.core.models import (
    BudgetConfig,
    CategoryType,
    NotificationConfig,
    NotificationOperator,
    ProviderConfiguration,
    TimeGrainType,
    TimePeriod,
)
from azurepreview.utils.ids import BUDGET_ID_SEPARATOR

SUBSCRIPTION_GUID = "11111111-2222-3333-4444-555555555555"
METER_ID = "0b5c6b5a-4a3d-4b8e-9a1f-2f6c3d1e8a7b"


class FakeBudgets:
    """In-memory stand-in for ``ConsumptionManagementClient.budgets``"""

    def __init__(self):
        self.items: Dict[Tuple[str, str], Any] = {}
        self.calls: List[Tuple[str, str, str]] = []
        self.fail_with: Optional[Exception] = None

    def create_or_update(self, scope, budget_name, parameters):
        self.calls.append(("create_or_update", scope, budget_name))
        if self.fail_with is not None:
            raise self.fail_with
        parameters.id = f"{scope}{BUDGET_ID_SEPARATOR}/{budget_name}"
        parameters.name = budget_name
        self.items[(scope, budget_name)] = parameters
        return parameters

    def get(self, scope, budget_name):
        self.calls.append(("get", scope, budget_name))
        if (scope, budget_name) not in self.items:
            raise ResourceNotFoundError(f"Budget {budget_name} not found")
        return self.items[(scope, budget_name)]

    def delete(self, scope, budget_name):
        self.calls.append(("delete", scope, budget_name))
        if (scope, budget_name) not in self.items:
            raise ResourceNotFoundError(f"Budget {budget_name} not found")
        del self.items[(scope, budget_name)]


class FakePoller:
    def __init__(self, subscription_id):
        self.subscription_id = subscription_id

    def result(self):
        return SimpleNamespace(properties=SimpleNamespace(subscription_id=self.subscription_id))


class FakeAlias:
    def __init__(self, subscriptions):
        self.subscriptions = subscriptions
        self.requests = []

    def begin_create(self, alias_name, body):
        self.requests.append((alias_name, body))
        self.subscriptions.items[SUBSCRIPTION_GUID] = SimpleNamespace(
            display_name=body.properties.display_name,
            subscription_id=SUBSCRIPTION_GUID,
            tenant_id="tenant-1",
        )
        return FakePoller(SUBSCRIPTION_GUID)


class FakeSubscriptionsOperations:
    def __init__(self):
        self.items: Dict[str, Any] = {}

    def get(self, subscription_id):
        if subscription_id not in self.items:
            raise ResourceNotFoundError(f"Subscription {subscription_id} not found")
        return self.items[subscription_id]


class FakeSubscriptionOperations:
    def __init__(self, subscriptions):
        self.subscriptions = subscriptions
        self.renamed: List[Tuple[str, str]] = []
        self.cancelled: List[str] = []

    def rename(self, subscription_id, body):
        self.renamed.append((subscription_id, body.subscription_name))
        self.subscriptions.items[subscription_id].display_name = body.subscription_name

    def cancel(self, subscription_id):
        self.cancelled.append(subscription_id)


class FakeSubscriptionClient:
    def __init__(self):
        self.subscriptions = FakeSubscriptionsOperations()
        self.subscription = FakeSubscriptionOperations(self.subscriptions)
        self.alias = FakeAlias(self.subscriptions)


class FakeResourceOperations:
    def __init__(self, items=None):
        self.items = items or []
        self.filters: List[Optional[str]] = []
        self.fail_with: Optional[Exception] = None

    def list(self, filter=None):
        self.filters.append(filter)
        if self.fail_with is not None:
            raise self.fail_with
        return iter(self.items)


class FakeMeta:
    def __init__(self):
        self.config = ProviderConfiguration(subscription_id=SUBSCRIPTION_GUID)
        self.consumption = SimpleNamespace(budgets=FakeBudgets())
        self.subscription = FakeSubscriptionClient()
        self.resources = SimpleNamespace(resources=FakeResourceOperations())
        self.other_clients: Dict[str, Any] = {}

    def resource_client(self, subscription_id=None):
        if not subscription_id or subscription_id == self.config.subscription_id:
            return self.resources
        return self.other_clients.setdefault(
            subscription_id, SimpleNamespace(resources=FakeResourceOperations())
        )


def http_error(status_code: int, message: str = "boom") -> HttpResponseError:
    error = HttpResponseError(message=message)
    error.status_code = status_code
    return error


@pytest.fixture
def meta() -> FakeMeta:
    return FakeMeta()


@pytest.fixture
def budget_config() -> BudgetConfig:
    return BudgetConfig(
        scope=f"/subscriptions/{SUBSCRIPTION_GUID}",
        name="monthly",
        category=CategoryType.COST,
        amount=1000,
        time_grain=TimeGrainType.BILLING_MONTH,
        time_period=TimePeriod(
            start_date="2017-06-01T00:00:00Z",
            end_date="2035-06-01T00:00:00Z",
        ),
        notifications=[
            NotificationConfig(
                name="n1",
                operator=NotificationOperator.GREATER_THAN,
                threshold=80,
                contact_roles=["Contributor"],
            )
        ],
    )
