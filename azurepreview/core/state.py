"""Local state file: identities and last-read attributes of managed objects"""

import yaml
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional, Tuple

from .declarations import decode_budget, decode_subscription, encode_budget, encode_subscription
from .errors import ValidationError
from .models import ResourceData
from ..utils.logger import setup_logger

# resource type -> (encoder, decoder)
CODECS: Dict[str, Tuple[Callable[[Any], Dict[str, Any]], Callable[..., Any]]] = {
    "azurepreview_budget": (encode_budget, decode_budget),
    "azurepreview_subscription": (encode_subscription, decode_subscription),
}


@dataclass
class StateEntry:
    """One managed object as recorded in the state file"""
    type_name: str
    id: str
    attributes: Any = None


class StateStore:
    """YAML-backed map of ``<type>.<label>`` addresses to state entries"""

    def __init__(self, path: str):
        self.logger = setup_logger(self.__class__.__name__)
        self.path = Path(path)
        self.entries: Dict[str, StateEntry] = {}

    @staticmethod
    def address(type_name: str, label: str) -> str:
        return f"{type_name}.{label}"

    def load(self) -> "StateStore":
        if not self.path.exists():
            self.logger.debug(f"No state file at {self.path}, starting empty")
            return self

        with open(self.path, "r") as f:
            document = yaml.safe_load(f) or {}

        for address, raw in (document.get("resources") or {}).items():
            type_name = raw.get("type")
            if type_name not in CODECS:
                raise ValidationError(address, f"unknown resource type {type_name!r} in state")
            _, decode = CODECS[type_name]
            attributes = raw.get("attributes")
            self.entries[address] = StateEntry(
                type_name=type_name,
                id=raw.get("id", ""),
                attributes=decode(attributes, address) if attributes else None,
            )

        self.logger.debug(f"Loaded {len(self.entries)} entries from {self.path}")
        return self

    def save(self) -> None:
        resources = {}
        for address, entry in sorted(self.entries.items()):
            encode, _ = CODECS[entry.type_name]
            resources[address] = {
                "type": entry.type_name,
                "id": entry.id,
                "attributes": encode(entry.attributes) if entry.attributes is not None else None,
            }

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            yaml.safe_dump({"version": 1, "resources": resources}, f, default_flow_style=False, sort_keys=False)

        self.logger.debug(f"Saved {len(resources)} entries to {self.path}")

    def get(self, address: str) -> Optional[StateEntry]:
        return self.entries.get(address)

    def record(self, address: str, type_name: str, data: ResourceData) -> None:
        """Store the outcome of an operation; an empty identity removes the entry"""
        if data.id:
            self.entries[address] = StateEntry(type_name=type_name, id=data.id, attributes=data.state)
        else:
            self.entries.pop(address, None)

    def __iter__(self) -> Iterator[Tuple[str, StateEntry]]:
        return iter(list(self.entries.items()))
