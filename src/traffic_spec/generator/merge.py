"""Spec merger — unions two specs, the master winning at path/method level."""

import copy
from typing import Any


def sort_tree(value: Any) -> Any:
    """Return a copy with every mapping's keys sorted, recursively.

    Array order is preserved; objects inside arrays are sorted too.
    """
    if isinstance(value, dict):
        return {key: sort_tree(value[key]) for key in sorted(value)}
    if isinstance(value, list):
        return [sort_tree(item) for item in value]
    return value


def merge_specs(master: dict, to_merge: dict) -> dict:
    """Copy paths and methods missing from ``master`` over from ``to_merge``.

    Operations that exist in both are taken from ``master`` untouched.
    Neither input is modified.
    """
    merged = copy.deepcopy(master)
    paths = merged.setdefault("paths", {})

    for path, path_item in to_merge.get("paths", {}).items():
        if path not in paths:
            paths[path] = copy.deepcopy(path_item)
            continue
        for method, operation in path_item.items():
            if method not in paths[path]:
                paths[path][method] = copy.deepcopy(operation)

    merged["paths"] = sort_tree(paths)
    return merged
