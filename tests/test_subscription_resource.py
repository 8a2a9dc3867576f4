from dataclasses import replace

import pytest

from azurepreview.core.errors import ApiOperationError, ValidationError
from azurepreview.core.models import OfferType, ResourceData, SubscriptionConfig
from azurepreview.resources.subscription import SubscriptionResource, expand_subscription_alias

from .conftest import SUBSCRIPTION_GUID, http_error

ENROLLMENT_ACCOUNT = "/providers/Microsoft.Billing/billingAccounts/1234/enrollmentAccounts/5678"


@pytest.fixture
def resource() -> SubscriptionResource:
    return SubscriptionResource()


@pytest.fixture
def subscription_config() -> SubscriptionConfig:
    return SubscriptionConfig(
        name="sandbox",
        enrollment_account=ENROLLMENT_ACCOUNT,
        offer_type=OfferType.MS_AZR_0148P,
        owners=["owner-object-id"],
        additional_parameters={"management_group_id": "mg1", "costCenter": "42"},
    )


class TestAliasRequest:
    def test_maps_configuration(self, subscription_config) -> None:
        request = expand_subscription_alias(subscription_config)
        properties = request.properties

        assert properties.display_name == "sandbox"
        assert properties.workload == "DevTest"
        assert properties.billing_scope == ENROLLMENT_ACCOUNT
        assert properties.additional_properties.subscription_owner_id == "owner-object-id"
        assert properties.additional_properties.management_group_id == "mg1"
        assert properties.additional_properties.tags == {"costCenter": "42"}

    def test_production_offer(self, subscription_config) -> None:
        subscription_config.offer_type = OfferType.MS_AZR_0017P
        assert expand_subscription_alias(subscription_config).properties.workload == "Production"

    def test_no_optional_properties(self) -> None:
        config = SubscriptionConfig(enrollment_account=ENROLLMENT_ACCOUNT, offer_type=OfferType.MS_AZR_0017P)
        assert expand_subscription_alias(config).properties.additional_properties is None

    def test_name_too_long(self, subscription_config) -> None:
        subscription_config.name = "x" * 61
        with pytest.raises(ValidationError):
            expand_subscription_alias(subscription_config)

    def test_empty_enrollment_account(self, subscription_config) -> None:
        subscription_config.enrollment_account = ""
        with pytest.raises(ValidationError):
            expand_subscription_alias(subscription_config)

    def test_single_owner_only(self, subscription_config) -> None:
        subscription_config.owners = ["a", "b"]
        with pytest.raises(ValidationError):
            expand_subscription_alias(subscription_config)


class TestSubscriptionResource:
    def test_create(self, resource, meta, subscription_config) -> None:
        data = ResourceData(config=subscription_config)

        resource.create(data, meta)

        assert data.id == f"/subscriptions/{SUBSCRIPTION_GUID}"
        assert data.state.subscription_id == SUBSCRIPTION_GUID
        assert data.state.tenant_id == "tenant-1"
        assert data.state.name == "sandbox"
        assert data.state.enrollment_account == ENROLLMENT_ACCOUNT
        assert len(meta.subscription.alias.requests) == 1

    def test_create_failure(self, resource, meta, subscription_config) -> None:
        def fail(alias_name, body):
            raise http_error(403, "forbidden")

        meta.subscription.alias.begin_create = fail
        data = ResourceData(config=subscription_config)

        with pytest.raises(ApiOperationError) as exc:
            resource.create(data, meta)

        assert ENROLLMENT_ACCOUNT in str(exc.value)
        assert data.id == ""

    def test_rename_only_when_name_changes(self, resource, meta, subscription_config) -> None:
        data = ResourceData(config=subscription_config)
        resource.create(data, meta)

        resource.update(data, meta)
        assert meta.subscription.subscription.renamed == []

        data.config = replace(subscription_config, name="sandbox-2")
        resource.update(data, meta)

        assert meta.subscription.subscription.renamed == [(SUBSCRIPTION_GUID, "sandbox-2")]
        assert data.state.name == "sandbox-2"

    def test_read_missing(self, resource, meta, subscription_config) -> None:
        data = ResourceData(config=subscription_config, id="/subscriptions/unknown")

        resource.read(data, meta)

        assert data.id == ""

    def test_delete_cancels(self, resource, meta, subscription_config) -> None:
        data = ResourceData(config=subscription_config)
        resource.create(data, meta)

        resource.delete(data, meta)

        assert meta.subscription.subscription.cancelled == [SUBSCRIPTION_GUID]
        assert data.id == ""

    def test_immutable_attributes_force_replacement(self, resource, subscription_config) -> None:
        assert resource.requires_replacement(
            subscription_config, replace(subscription_config, owners=["someone-else"])
        )
        assert not resource.requires_replacement(
            subscription_config, replace(subscription_config, name="renamed")
        )

    def test_computed_name_is_not_a_change(self, resource, subscription_config) -> None:
        assert not resource.has_changes(subscription_config, replace(subscription_config, name=None))

    def test_delete_already_removed(self, resource, meta, subscription_config) -> None:
        data = ResourceData(config=subscription_config)
        resource.create(data, meta)

        def gone(subscription_id):
            raise http_error(404, "SubscriptionNotFound")

        meta.subscription.subscription.cancel = gone
        resource.delete(data, meta)

        assert data.id == ""
        assert data.state is None

    def test_delete_failure_keeps_identity(self, resource, meta, subscription_config) -> None:
        data = ResourceData(config=subscription_config)
        resource.create(data, meta)

        def conflict(subscription_id):
            raise http_error(409, "conflict")

        meta.subscription.subscription.cancel = conflict

        with pytest.raises(ApiOperationError) as exc:
            resource.delete(data, meta)

        assert exc.value.status_code == 409
        assert data.id == f"/subscriptions/{SUBSCRIPTION_GUID}"
