"""Example merge engine — folds observed bodies into deduplicated example pools.

Each pool keeps every distinct body as an individual example plus one
accumulator holding the deep-merge of all of them. The accumulator is the
most complete picture of a payload and feeds schema inference.

Deep-merge is not commutative for conflicting scalars: the value folded last
wins, so a different ingestion order can change the accumulator (never the
set of individual examples).
"""

import base64
import copy
import json
from typing import Any, Callable

from pydantic import BaseModel, Field, PrivateAttr

ACCUMULATOR_NAME = "merged"
EXAMPLE_PREFIX = "example-"
DEFAULT_WIDTH = 4
DIAGNOSTIC_FIELDS = ("traceback",)

BINARY_UPLOAD_CONTENT = {
    "multipart/form-data": {
        "schema": {
            "properties": {
                "filename": {
                    "description": "",
                    "format": "binary",
                    "type": "string",
                }
            },
            "type": "object",
        }
    }
}

ArrayMerge = Callable[[list, list], list]


def overwrite_arrays(base: list, overlay: list) -> list:
    """Arrays are snapshots: the later array replaces the earlier one."""
    return copy.deepcopy(overlay)


def deep_merge(base: Any, overlay: Any, array_merge: ArrayMerge = overwrite_arrays) -> Any:
    """Merge ``overlay`` onto ``base`` without mutating either.

    Objects merge key by key, arrays go through ``array_merge``, anything
    else is replaced by ``overlay``.
    """
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = copy.deepcopy(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = deep_merge(merged[key], value, array_merge)
            else:
                merged[key] = copy.deepcopy(value)
        return merged
    if isinstance(base, list) and isinstance(overlay, list):
        return array_merge(base, overlay)
    return copy.deepcopy(overlay)


def serialize(value: Any) -> str:
    """Deterministic serialization used for duplicate detection."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def example_name(number: int, width: int = DEFAULT_WIDTH) -> str:
    return f"{EXAMPLE_PREFIX}{number:0{width}d}"


class ExamplePool(BaseModel):
    """Examples observed for one slot: a request body or one response status."""

    accumulator: Any = None
    examples: dict[str, Any] = Field(default_factory=dict)

    _seen: set[str] = PrivateAttr(default_factory=set)

    def model_post_init(self, __context: Any) -> None:
        self._seen = {serialize(value) for value in self.examples.values()}

    def __len__(self) -> int:
        return len(self.examples)

    def fold(self, value: Any, array_merge: ArrayMerge = overwrite_arrays) -> bool:
        """Fold a parsed body into the pool.

        Returns False when an identical example is already stored; the pool
        is left untouched in that case.
        """
        key = serialize(value)
        if key in self._seen:
            return False

        if self.examples:
            self.accumulator = deep_merge(self.accumulator, value, array_merge)
        else:
            self.accumulator = copy.deepcopy(value)

        self.examples[example_name(len(self.examples) + 1)] = copy.deepcopy(value)
        self._seen.add(key)
        return True

    def to_openapi(self) -> dict:
        """Render as an OpenAPI ``examples`` mapping, accumulator included."""
        rendered = {ACCUMULATOR_NAME: {"value": copy.deepcopy(self.accumulator)}}
        for name, value in self.examples.items():
            rendered[name] = {"value": copy.deepcopy(value)}
        return rendered


def decode_body(text: str, encoding: str | None = None) -> Any:
    """Decode a captured body (optionally base64) and parse it as JSON.

    Raises ValueError when the body cannot be decoded or parsed.
    """
    if encoding == "base64":
        text = base64.b64decode(text, validate=True).decode("utf-8")
    return json.loads(text)


def fold_response_body(pool: ExamplePool, body: Any) -> bool:
    """Fold a response body, ignoring diagnostics and near-empty payloads."""
    if isinstance(body, dict):
        body = {k: v for k, v in body.items() if k not in DIAGNOSTIC_FIELDS}
    if not isinstance(body, (dict, list)) or len(body) <= 1:
        return False
    return pool.fold(body)

