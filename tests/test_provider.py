from dataclasses import replace

import pytest

from azurepreview.core.declarations import Declarations
from azurepreview.core.models import OfferType, ResourceData, ResourcesQuery, SubscriptionConfig
from azurepreview.core.provider import Provider, ResourceRegistry
from azurepreview.core.state import StateStore

from .conftest import SUBSCRIPTION_GUID, http_error

BUDGET_ADDRESS = "azurepreview_budget.monthly"
SUBSCRIPTION_ADDRESS = "azurepreview_subscription.sandbox"


@pytest.fixture
def provider(meta) -> Provider:
    return Provider(meta)


@pytest.fixture
def state(tmp_path) -> StateStore:
    return StateStore(str(tmp_path / "state.yml"))


@pytest.fixture
def declarations(budget_config) -> Declarations:
    return Declarations(
        budgets={"monthly": budget_config},
        subscriptions={"sandbox": SubscriptionConfig(
            name="sandbox",
            enrollment_account="/providers/Microsoft.Billing/billingAccounts/1/enrollmentAccounts/2",
            offer_type=OfferType.MS_AZR_0017P,
        )},
        resources={"everything": ResourcesQuery()},
    )


class TestRegistry:
    def test_defaults(self) -> None:
        registry = ResourceRegistry().register_defaults()

        assert registry.resource("azurepreview_budget").type_name == "azurepreview_budget"
        assert registry.data_source("azurepreview_resources")

    def test_unknown_type(self) -> None:
        with pytest.raises(KeyError):
            ResourceRegistry().resource("azurepreview_nothing")


class TestApplyAll:
    def test_creates_everything(self, provider, meta, state, declarations) -> None:
        diagnostics, results = provider.apply_all(declarations, state)

        assert not diagnostics.has_errors
        assert state.get(BUDGET_ADDRESS).id.endswith("/providers/Microsoft.Consumption/budgets/monthly")
        assert state.get(SUBSCRIPTION_ADDRESS).id == f"/subscriptions/{SUBSCRIPTION_GUID}"
        assert set(results) == {"everything"}

    def test_second_apply_is_a_no_op(self, provider, meta, state, declarations) -> None:
        provider.apply_all(declarations, state)
        writes = [c for c in meta.consumption.budgets.calls if c[0] == "create_or_update"]

        provider.apply_all(declarations, state)

        assert [c for c in meta.consumption.budgets.calls if c[0] == "create_or_update"] == writes
        assert len(meta.subscription.alias.requests) == 1

    def test_changed_amount_updates_in_place(self, provider, meta, state, declarations) -> None:
        provider.apply_all(declarations, state)
        declarations.budgets["monthly"] = replace(declarations.budgets["monthly"], amount=5000)

        provider.apply_all(declarations, state)

        assert state.get(BUDGET_ADDRESS).attributes.amount == 5000
        assert not [c for c in meta.consumption.budgets.calls if c[0] == "delete"]

    def test_changed_name_replaces(self, provider, meta, state, declarations) -> None:
        provider.apply_all(declarations, state)
        declarations.budgets["monthly"] = replace(declarations.budgets["monthly"], name="renamed")

        provider.apply_all(declarations, state)

        assert [c[2] for c in meta.consumption.budgets.calls if c[0] == "delete"] == ["monthly"]
        assert state.get(BUDGET_ADDRESS).id.endswith("/renamed")

    def test_removed_declaration_is_destroyed(self, provider, meta, state, declarations) -> None:
        provider.apply_all(declarations, state)
        declarations.subscriptions.clear()

        diagnostics, _ = provider.apply_all(declarations, state)

        assert not diagnostics.has_errors
        assert meta.subscription.subscription.cancelled == [SUBSCRIPTION_GUID]
        assert state.get(SUBSCRIPTION_ADDRESS) is None

    def test_failure_becomes_diagnostic(self, provider, state, declarations) -> None:
        declarations.budgets["monthly"].amount = 10.5

        diagnostics, _ = provider.apply_all(declarations, state)

        assert diagnostics.has_errors
        errors = [d for d in diagnostics if d.address == BUDGET_ADDRESS]
        assert errors[0].detail == "ValidationError"
        assert state.get(BUDGET_ADDRESS) is None
        assert state.get(SUBSCRIPTION_ADDRESS) is not None

    def test_data_source_failure(self, provider, meta, state, declarations) -> None:
        meta.resources.resources.fail_with = http_error(500)

        diagnostics, results = provider.apply_all(declarations, state)

        assert results == {}
        assert [d.address for d in diagnostics] == ["data.azurepreview_resources.everything"]


class TestStateCommands:
    def test_refresh_drops_vanished_objects(self, provider, meta, state, declarations) -> None:
        provider.apply_all(declarations, state)
        meta.consumption.budgets.items.clear()

        diagnostics = provider.refresh_all(state)

        assert len(diagnostics) == 0
        assert state.get(BUDGET_ADDRESS) is None
        assert state.get(SUBSCRIPTION_ADDRESS) is not None

    def test_destroy_all(self, provider, meta, state, declarations) -> None:
        provider.apply_all(declarations, state)

        diagnostics = provider.destroy_all(state)

        assert not diagnostics.has_errors
        assert list(state) == []
        assert meta.consumption.budgets.items == {}

    def test_destroy_without_identity_is_a_no_op(self, provider, meta, budget_config) -> None:
        diagnostics = provider.destroy("azurepreview_budget", ResourceData(config=budget_config))

        assert len(diagnostics) == 0
        assert meta.consumption.budgets.calls == []

    def test_unknown_api_value_becomes_diagnostic(self, provider, meta, state, declarations, budget_config) -> None:
        provider.apply_all(declarations, state)
        meta.consumption.budgets.items[(budget_config.scope, budget_config.name)].category = "Spend"

        diagnostics = provider.refresh_all(state)

        assert [d.address for d in diagnostics] == [BUDGET_ADDRESS]
        assert diagnostics.items[0].detail == "ApiOperationError"
        assert state.get(BUDGET_ADDRESS) is not None
