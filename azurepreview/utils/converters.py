"""Conversions between declared string lists and API string lists"""

from typing import Iterable, List, Optional


def expand_string_list(items: Optional[Iterable[Optional[str]]]) -> List[str]:
    """Copy a declared list for the API; missing entries become empty strings"""
    if items is None:
        return []
    return [item if item is not None else "" for item in items]


def flatten_string_list(items: Optional[Iterable[str]]) -> List[str]:
    """Copy an API list back into configuration form; ``None`` becomes ``[]``"""
    if items is None:
        return []
    return list(items)
