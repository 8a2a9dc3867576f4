"""Subscription resource created under an enrollment account"""

import uuid
from dataclasses import replace
from typing import Any, Dict

from azure.mgmt.subscription.models import (
    PutAliasRequest,
    PutAliasRequestAdditionalProperties,
    PutAliasRequestProperties,
    SubscriptionName,
)

from ..core.errors import ValidationError, is_not_found, wrap_api_error
from ..core.interfaces import IResource
from ..core.models import OfferType, ResourceData, SubscriptionConfig
from ..utils.ids import format_subscription_id, parse_subscription_id
from ..utils.logger import setup_logger
from ..utils.validation import parse_enum, string_is_not_empty, string_length_between

# Offer type -> alias workload
WORKLOADS = {
    OfferType.MS_AZR_0017P: "Production",
    OfferType.MS_AZR_0148P: "DevTest",
}

# additional_parameters keys that map onto alias properties; the rest become tags
ALIAS_PARAMETERS = ("management_group_id", "subscription_tenant_id", "reseller_id")


def expand_subscription_alias(config: SubscriptionConfig) -> PutAliasRequest:
    """Validate a subscription configuration and build the alias request"""
    string_is_not_empty(config.enrollment_account, "enrollment_account")
    offer_type = parse_enum(OfferType, config.offer_type, "offer_type")
    if config.name is not None:
        string_length_between(config.name, 1, 60, "name")

    owners = [string_is_not_empty(owner, f"owners[{i}]") for i, owner in enumerate(config.owners)]
    if len(owners) > 1:
        raise ValidationError("owners", "subscription aliases accept a single owner")

    parameters: Dict[str, str] = dict(config.additional_parameters or {})
    management_group_id = parameters.pop("management_group_id", None)
    subscription_tenant_id = parameters.pop("subscription_tenant_id", None)
    reseller_id = parameters.pop("reseller_id", None)

    additional = None
    if owners or management_group_id or subscription_tenant_id or parameters:
        additional = PutAliasRequestAdditionalProperties(
            management_group_id=management_group_id,
            subscription_tenant_id=subscription_tenant_id,
            subscription_owner_id=owners[0] if owners else None,
            tags=parameters or None,
        )

    return PutAliasRequest(properties=PutAliasRequestProperties(
        display_name=config.name,
        workload=WORKLOADS[offer_type],
        billing_scope=config.enrollment_account,
        reseller_id=reseller_id,
        additional_properties=additional,
    ))


class SubscriptionResource(IResource):
    """Subscription lifecycle: create, rename, cancel"""

    type_name = "azurepreview_subscription"
    force_new = ("enrollment_account", "owners", "offer_type", "additional_parameters")

    def __init__(self):
        self.logger = setup_logger(self.__class__.__name__)

    def create(self, data: ResourceData, meta: Any) -> None:
        config: SubscriptionConfig = data.config
        body = expand_subscription_alias(config)
        alias_name = str(uuid.uuid4())
        target = f"Subscription {config.name!r} in Enrollment Account {config.enrollment_account!r}"

        try:
            poller = meta.subscription.alias.begin_create(alias_name, body)
        except Exception as e:
            raise wrap_api_error(e, f"error creating {target}") from e

        self.logger.info(f"Waiting for {target} to finish creating")
        try:
            response = poller.result()
        except Exception as e:
            raise wrap_api_error(e, f"error waiting for {target} to finish creating") from e

        data.id = format_subscription_id(response.properties.subscription_id)
        data.state = replace(config)
        self.logger.info(f"Created subscription {data.id}")

        self.read(data, meta)

    def read(self, data: ResourceData, meta: Any) -> None:
        subscription_id = parse_subscription_id(data.id)

        try:
            response = meta.subscription.subscriptions.get(subscription_id)
        except Exception as e:
            if is_not_found(e):
                self.logger.info(f"Subscription {data.id} no longer exists, removing it from state")
                data.id = ""
                data.state = None
                return
            raise wrap_api_error(e, f"error reading Subscription (ID {data.id!r})") from e

        # Only these attributes are visible on the API; the rest are carried over
        known = data.state or data.config
        data.state = replace(
            known,
            name=response.display_name,
            subscription_id=response.subscription_id,
            tenant_id=response.tenant_id,
        )

    def update(self, data: ResourceData, meta: Any) -> None:
        subscription_id = parse_subscription_id(data.id)
        desired: SubscriptionConfig = data.config

        if self.has_changes(data.state, desired):
            string_length_between(desired.name, 1, 60, "name")
            try:
                meta.subscription.subscription.rename(
                    subscription_id, SubscriptionName(subscription_name=desired.name)
                )
            except Exception as e:
                raise wrap_api_error(e, f"error renaming Subscription (ID {data.id!r})") from e
            self.logger.info(f"Renamed subscription {data.id} to {desired.name!r}")

        self.read(data, meta)

    def delete(self, data: ResourceData, meta: Any) -> None:
        subscription_id = parse_subscription_id(data.id)

        # Cancellation is asynchronous on the Azure side and is not awaited
        try:
            meta.subscription.subscription.cancel(subscription_id)
        except Exception as e:
            if not is_not_found(e):
                raise wrap_api_error(e, f"error cancelling Subscription (ID {data.id!r})") from e
            self.logger.debug(f"Subscription {data.id} was already removed")
        else:
            self.logger.info(f"Cancelled subscription {data.id}")

        data.id = ""
        data.state = None

    def has_changes(self, prior: SubscriptionConfig, desired: SubscriptionConfig) -> bool:
        if desired.name is None:
            return False
        previous = prior.name if prior is not None else None
        return previous != desired.name
