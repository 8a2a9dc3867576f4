"""Authentication and client construction for Azure services"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from azure.identity import AzureAuthorityHosts, AzureCliCredential, ClientSecretCredential
from azure.mgmt.consumption import ConsumptionManagementClient
from azure.mgmt.resource import ResourceManagementClient
from azure.mgmt.subscription import SubscriptionClient

from .. import USER_AGENT
from ..core.errors import ValidationError
from ..core.models import ProviderConfiguration
from ..utils.config import normalize_environment
from ..utils.logger import setup_logger


@dataclass(frozen=True)
class CloudEnvironment:
    """Endpoints of one Azure cloud"""
    name: str
    authority_host: str
    resource_manager: str

    @property
    def credential_scopes(self) -> List[str]:
        return [f"{self.resource_manager}/.default"]


CLOUD_ENVIRONMENTS: Dict[str, CloudEnvironment] = {
    "public": CloudEnvironment(
        "public", AzureAuthorityHosts.AZURE_PUBLIC_CLOUD, "https://management.azure.com"
    ),
    "usgovernment": CloudEnvironment(
        "usgovernment", AzureAuthorityHosts.AZURE_GOVERNMENT, "https://management.usgovcloudapi.net"
    ),
    "china": CloudEnvironment(
        "china", AzureAuthorityHosts.AZURE_CHINA, "https://management.chinacloudapi.cn"
    ),
}


def get_cloud_environment(name: str) -> CloudEnvironment:
    return CLOUD_ENVIRONMENTS[normalize_environment(name)]


@dataclass
class ProviderMeta:
    """Clients shared by every operation of one configured provider.

    Built once and passed explicitly to each resource operation. Only the
    per-subscription resource client cache behind ``resource_client`` grows
    afterwards.
    """
    config: ProviderConfiguration
    cloud: CloudEnvironment
    credential: Any
    consumption: Any
    resources: Any
    subscription: Any
    _resource_clients: Dict[str, Any] = field(default_factory=dict, repr=False)

    def resource_client(self, subscription_id: Optional[str] = None) -> Any:
        """Resource client for the provider subscription or an explicit one"""
        if not subscription_id or subscription_id == self.config.subscription_id:
            return self.resources

        if subscription_id not in self._resource_clients:
            self._resource_clients[subscription_id] = ResourceManagementClient(
                self.credential,
                subscription_id,
                base_url=self.cloud.resource_manager,
                credential_scopes=self.cloud.credential_scopes,
                user_agent=USER_AGENT,
            )
        return self._resource_clients[subscription_id]


class AuthenticationManager:
    """Builds the credential and the client bundle for a provider configuration"""

    def __init__(self, config: ProviderConfiguration):
        self.logger = setup_logger(self.__class__.__name__)
        self.config = config
        self.cloud = get_cloud_environment(config.environment)
        self.credential = None

    def get_credential(self):
        """Service principal when fully configured, Azure CLI otherwise"""
        if self.credential is not None:
            return self.credential

        config = self.config
        if config.client_id and config.client_secret and config.tenant_id:
            self.credential = ClientSecretCredential(
                tenant_id=config.tenant_id,
                client_id=config.client_id,
                client_secret=config.client_secret,
                authority=self.cloud.authority_host,
            )
            self.logger.info("Authenticating with a service principal")
        else:
            self.credential = AzureCliCredential()
            self.logger.info("Authenticating with the Azure CLI")

        return self.credential

    def build_meta(self) -> ProviderMeta:
        """Create the SDK clients used by resources and data sources"""
        if not self.config.subscription_id:
            raise ValidationError("subscription_id", "is required to build management clients")

        credential = self.get_credential()
        client_kwargs = {
            "base_url": self.cloud.resource_manager,
            "credential_scopes": self.cloud.credential_scopes,
            "user_agent": USER_AGENT,
        }
        subscription_id = self.config.subscription_id

        meta = ProviderMeta(
            config=self.config,
            cloud=self.cloud,
            credential=credential,
            consumption=ConsumptionManagementClient(credential, subscription_id, **client_kwargs),
            resources=ResourceManagementClient(credential, subscription_id, **client_kwargs),
            subscription=SubscriptionClient(credential, **client_kwargs),
        )
        self.logger.debug(
            f"Created clients for subscription {subscription_id} in the {self.cloud.name} cloud"
        )
        return meta
