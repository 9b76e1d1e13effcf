"""
Dictionary helpers for building message payloads.
"""

import copy
from typing import Any, Dict


def expand_object(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Expand dotted keys into nested dictionaries.

    Examples:
        >>> expand_object({'flags.dnd5e.roll': {'type': 'damage'}})
        {'flags': {'dnd5e': {'roll': {'type': 'damage'}}}}
    """
    expanded: Dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, dict):
            value = expand_object(value)
        target = expanded
        *parents, leaf = key.split('.')
        for part in parents:
            target = target.setdefault(part, {})
        if isinstance(value, dict) and isinstance(target.get(leaf), dict):
            merge_object(target[leaf], value)
        else:
            target[leaf] = value
    return expanded


def merge_object(original: Dict[str, Any], other: Dict[str, Any],
                 insert_keys: bool = True, overwrite: bool = True) -> Dict[str, Any]:
    """
    Recursively merge ``other`` into ``original`` in place.

    Dotted keys in ``other`` are expanded first. Nested dictionaries are
    merged key by key; any other value replaces the existing one only when
    ``overwrite`` is set. Keys missing from ``original`` are added only when
    ``insert_keys`` is set.

    Args:
        original: Dictionary to update
        other: Values to merge in
        insert_keys: Add keys that ``original`` does not have
        overwrite: Replace values that ``original`` already has

    Returns:
        ``original``, for chaining
    """
    for key, value in expand_object(other or {}).items():
        if key not in original:
            if insert_keys:
                original[key] = copy.deepcopy(value)
            continue
        existing = original[key]
        if isinstance(existing, dict) and isinstance(value, dict):
            merge_object(existing, value, insert_keys=insert_keys, overwrite=overwrite)
        elif overwrite:
            original[key] = copy.deepcopy(value)
    return original
