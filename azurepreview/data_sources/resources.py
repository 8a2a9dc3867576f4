"""Generic resource lookup data source"""

import uuid
from typing import Any, Dict, List, Optional

from ..core.errors import wrap_api_error
from ..core.interfaces import IDataSource
from ..core.models import ResourcesQuery, ResourcesResult, ResourceSummary
from ..utils.logger import setup_logger
from ..utils.validation import optional_string_is_not_empty


def build_resource_filter(query: ResourcesQuery) -> str:
    """OData filter for the resources list call"""
    filters = []

    if query.resource_type:
        filters.append(f"resourceType eq '{query.resource_type}'")
    if query.name:
        filters.append(f"name eq '{query.name}'")
    if query.resource_group_name:
        filters.append(f"resourceGroup eq '{query.resource_group_name}'")

    return " and ".join(filters)


def matches_tags(resource_tags: Optional[Dict[str, str]], required: Dict[str, str]) -> bool:
    """Every required tag must be present with exactly the required value"""
    if not required:
        return True
    if not resource_tags:
        return False
    return all(resource_tags.get(name) == value for name, value in required.items())


class ResourcesDataSource(IDataSource):
    """Lists resources matching type, name, resource group and tags"""

    type_name = "azurepreview_resources"

    def __init__(self):
        self.logger = setup_logger(self.__class__.__name__)

    def read(self, query: ResourcesQuery, meta: Any) -> ResourcesResult:
        for key in ("subscription_id", "name", "resource_type", "resource_group_name"):
            optional_string_is_not_empty(getattr(query, key), key)

        client = meta.resource_client(query.subscription_id)
        odata_filter = build_resource_filter(query)
        self.logger.debug(f"Listing resources with filter {odata_filter!r}")

        resources: List[ResourceSummary] = []
        try:
            for value in client.resources.list(filter=odata_filter or None):
                if not matches_tags(value.tags, query.tags):
                    continue
                resources.append(ResourceSummary(
                    id=value.id,
                    name=value.name,
                    type=value.type,
                    location=value.location,
                ))
        except Exception as e:
            raise wrap_api_error(e, "error reading resources") from e

        self.logger.info(f"Found {len(resources)} resources")
        return ResourcesResult(id=str(uuid.uuid4()), query=query, resources=resources)
