"""Provider host: resource registry and lifecycle orchestration"""

from typing import Any, Dict, List, Optional, Tuple

from .declarations import Declarations
from .errors import ProviderError
from .interfaces import IDataSource, IResource
from .models import Diagnostics, ResourceData, ResourcesResult
from .state import StateStore
from ..data_sources.resources import ResourcesDataSource
from ..resources.budget import BudgetResource
from ..resources.subscription import SubscriptionResource
from ..utils.logger import setup_logger


class ResourceRegistry:
    """Registry of resource and data source handlers by type name"""

    def __init__(self):
        self.logger = setup_logger(self.__class__.__name__)
        self._resources: Dict[str, IResource] = {}
        self._data_sources: Dict[str, IDataSource] = {}

    def register_defaults(self) -> "ResourceRegistry":
        self.register_resource(BudgetResource())
        self.register_resource(SubscriptionResource())
        self.register_data_source(ResourcesDataSource())
        return self

    def register_resource(self, handler: IResource) -> None:
        self._resources[handler.type_name] = handler
        self.logger.debug(f"Registered resource: {handler.type_name}")

    def register_data_source(self, handler: IDataSource) -> None:
        self._data_sources[handler.type_name] = handler
        self.logger.debug(f"Registered data source: {handler.type_name}")

    def resource(self, type_name: str) -> IResource:
        if type_name not in self._resources:
            raise KeyError(f"unknown resource type {type_name!r}")
        return self._resources[type_name]

    def data_source(self, type_name: str) -> IDataSource:
        if type_name not in self._data_sources:
            raise KeyError(f"unknown data source {type_name!r}")
        return self._data_sources[type_name]


class Provider:
    """Drives create/read/update/delete for declared objects.

    Operations never raise ``ProviderError``; failures are collected as
    diagnostics and the affected object keeps its prior state.
    """

    def __init__(self, meta: Any, registry: Optional[ResourceRegistry] = None):
        self.meta = meta
        self.registry = registry or ResourceRegistry().register_defaults()
        self.logger = setup_logger(self.__class__.__name__)

    def _run(self, diagnostics: Diagnostics, address: str, operation, *args) -> bool:
        try:
            operation(*args)
            return True
        except ProviderError as e:
            self.logger.error(f"{address}: {e}")
            diagnostics.add_error(str(e), detail=type(e).__name__, address=address)
            return False

    def refresh(self, type_name: str, data: ResourceData, address: str = "") -> Diagnostics:
        """Read an existing object; a vanished object just loses its identity"""
        diagnostics = Diagnostics()
        if data.id:
            self._run(diagnostics, address, self.registry.resource(type_name).read, data, self.meta)
        return diagnostics

    def apply(self, type_name: str, data: ResourceData, address: str = "") -> Diagnostics:
        """Converge one object onto ``data.config``"""
        handler = self.registry.resource(type_name)
        diagnostics = self.refresh(type_name, data, address)
        if diagnostics.has_errors:
            return diagnostics

        if not data.id:
            self.logger.info(f"{address}: creating")
            self._run(diagnostics, address, handler.create, data, self.meta)
        elif handler.requires_replacement(data.state, data.config):
            self.logger.info(f"{address}: replacing")
            if self._run(diagnostics, address, handler.delete, data, self.meta):
                self._run(diagnostics, address, handler.create, data, self.meta)
        elif handler.has_changes(data.state, data.config):
            self.logger.info(f"{address}: updating")
            self._run(diagnostics, address, handler.update, data, self.meta)
        else:
            self.logger.info(f"{address}: up to date")

        return diagnostics

    def destroy(self, type_name: str, data: ResourceData, address: str = "") -> Diagnostics:
        diagnostics = Diagnostics()
        if data.id:
            self.logger.info(f"{address}: destroying")
            self._run(diagnostics, address, self.registry.resource(type_name).delete, data, self.meta)
        return diagnostics

    def read_data_source(self, type_name: str, query: Any, address: str = "") -> Tuple[Optional[ResourcesResult], Diagnostics]:
        diagnostics = Diagnostics()
        try:
            return self.registry.data_source(type_name).read(query, self.meta), diagnostics
        except ProviderError as e:
            self.logger.error(f"{address}: {e}")
            diagnostics.add_error(str(e), detail=type(e).__name__, address=address)
            return None, diagnostics

    # Whole documents

    def _declared(self, declarations: Declarations) -> List[Tuple[str, str, Any]]:
        declared = []
        for label, config in declarations.budgets.items():
            declared.append((BudgetResource.type_name, label, config))
        for label, config in declarations.subscriptions.items():
            declared.append((SubscriptionResource.type_name, label, config))
        return declared

    def apply_all(self, declarations: Declarations, state: StateStore) -> Tuple[Diagnostics, Dict[str, ResourcesResult]]:
        """Apply every declared object, destroy objects no longer declared, read data sources"""
        diagnostics = Diagnostics()
        declared_addresses = set()

        for type_name, label, config in self._declared(declarations):
            address = StateStore.address(type_name, label)
            declared_addresses.add(address)
            entry = state.get(address)
            data = ResourceData(
                config=config,
                id=entry.id if entry else "",
                state=entry.attributes if entry else None,
            )
            diagnostics.extend(self.apply(type_name, data, address))
            state.record(address, type_name, data)

        for address, entry in state:
            if address in declared_addresses:
                continue
            data = ResourceData(config=entry.attributes, id=entry.id, state=entry.attributes)
            diagnostics.extend(self.destroy(entry.type_name, data, address))
            state.record(address, entry.type_name, data)

        results = {}
        for label, query in declarations.resources.items():
            address = f"data.{ResourcesDataSource.type_name}.{label}"
            result, read_diagnostics = self.read_data_source(ResourcesDataSource.type_name, query, address)
            diagnostics.extend(read_diagnostics)
            if result is not None:
                results[label] = result

        return diagnostics, results

    def refresh_all(self, state: StateStore) -> Diagnostics:
        diagnostics = Diagnostics()
        for address, entry in state:
            data = ResourceData(config=entry.attributes, id=entry.id, state=entry.attributes)
            diagnostics.extend(self.refresh(entry.type_name, data, address))
            state.record(address, entry.type_name, data)
        return diagnostics

    def destroy_all(self, state: StateStore) -> Diagnostics:
        diagnostics = Diagnostics()
        for address, entry in state:
            data = ResourceData(config=entry.attributes, id=entry.id, state=entry.attributes)
            diagnostics.extend(self.destroy(entry.type_name, data, address))
            state.record(address, entry.type_name, data)
        return diagnostics
