"""Dotted-path helpers over nested dicts.

``set_path(tree, "http.request.method", "GET")`` creates the intermediate
dicts as needed. Paths never escape the tree they are given.
"""

import copy
from typing import Any

_MISSING = object()


def split_path(path: str) -> list[str]:
    return [part for part in path.split(".") if part]


def get_path(tree: dict, path: str, default: Any = None) -> Any:
    """Return the value at *path*, or *default* when any segment is missing."""
    node: Any = tree
    for key in split_path(path):
        if not isinstance(node, dict) or key not in node:
            return default
        node = node[key]
    return node


def has_path(tree: dict, path: str) -> bool:
    return get_path(tree, path, _MISSING) is not _MISSING


def set_path(tree: dict, path: str, value: Any) -> None:
    """Insert *value* at *path*, replacing non-dict intermediates."""
    keys = split_path(path)
    if not keys:
        raise ValueError("empty field path")
    _insert(tree, keys, value)


def _insert(node: dict, keys: list[str], value: Any) -> None:
    head = keys[0]
    if len(keys) == 1:
        node[head] = value
        return
    child = node.get(head)
    if not isinstance(child, dict):
        child = {}
        node[head] = child
    _insert(child, keys[1:], value)


def merge_defaults(target: dict, defaults: dict) -> dict:
    """Recursively copy *defaults* into *target* without overwriting.

    Keys already present in *target* win; nested dicts are merged key by key.
    """
    for key, value in defaults.items():
        if key not in target:
            target[key] = copy.deepcopy(value)
        elif isinstance(target[key], dict) and isinstance(value, dict):
            merge_defaults(target[key], value)
    return target
