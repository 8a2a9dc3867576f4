"""Core interfaces for provider resources and data sources"""

from abc import ABC, abstractmethod
from typing import Any, Tuple

from .models import ResourceData


class IResource(ABC):
    """A managed object with a create/read/update/delete lifecycle.

    Every operation works on a ``ResourceData``: ``config`` holds the desired
    configuration, ``id`` the remote identity and ``state`` the attributes
    last read from the API. Operations raise ``ProviderError`` subclasses.
    """

    type_name: str = ""
    # Attributes whose change requires replacing the remote object
    force_new: Tuple[str, ...] = ()

    @abstractmethod
    def create(self, data: ResourceData, meta: Any) -> None:
        """Create the remote object and set ``data.id``"""
        pass

    @abstractmethod
    def read(self, data: ResourceData, meta: Any) -> None:
        """Refresh ``data.state``; clear ``data.id`` if the object is gone"""
        pass

    @abstractmethod
    def update(self, data: ResourceData, meta: Any) -> None:
        """Push mutable attribute changes"""
        pass

    @abstractmethod
    def delete(self, data: ResourceData, meta: Any) -> None:
        """Remove the remote object and clear ``data.id``"""
        pass

    def requires_replacement(self, prior: Any, desired: Any) -> bool:
        return any(
            getattr(prior, name, None) != getattr(desired, name, None)
            for name in self.force_new
        )

    @abstractmethod
    def has_changes(self, prior: Any, desired: Any) -> bool:
        """Whether an update is needed to move from ``prior`` to ``desired``"""
        pass


class IDataSource(ABC):
    """A read-only lookup"""

    type_name: str = ""

    @abstractmethod
    def read(self, query: Any, meta: Any) -> Any:
        pass
