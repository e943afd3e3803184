"""Schema inferencer — derives a JSON Schema from a set of example payloads.

The reconciler treats the inferencer as an external collaborator: anything
with an awaitable ``infer(name, samples)`` returning a JSON-Schema-shaped
dict can be plugged in. ``SampleSchemaInferencer`` is the default.
"""

import json
from typing import Any

from traffic_spec.errors import SchemaInferenceError

JSON_SCHEMA_DRAFT = "http://json-schema.org/draft-06/schema#"

# Order used when a property has been seen with several types.
TYPE_ORDER = ("object", "array", "string", "number", "integer", "boolean", "null")


def infer_value(value: Any) -> dict:
    """Infer the schema of a single JSON value. Properties are alphabetized."""
    if value is None:
        return {"type": "null"}
    if isinstance(value, bool):
        return {"type": "boolean"}
    if isinstance(value, int):
        return {"type": "integer"}
    if isinstance(value, float):
        return {"type": "number"}
    if isinstance(value, str):
        return {"type": "string"}
    if isinstance(value, list):
        items: dict = {}
        for item in value:
            items = merge_schemas(items, infer_value(item))
        return {"type": "array", "items": items}
    if isinstance(value, dict):
        return {
            "type": "object",
            "properties": {key: infer_value(value[key]) for key in sorted(value)},
        }
    raise SchemaInferenceError(f"unsupported value of type {type(value).__name__}")


def _types(schema: dict) -> set[str]:
    declared = schema.get("type")
    if declared is None:
        return set()
    if isinstance(declared, str):
        return {declared}
    return set(declared)


def merge_schemas(first: dict, second: dict) -> dict:
    """Union two inferred schemas. Properties are never marked required."""
    if not first:
        return second
    if not second:
        return first

    types = _types(first) | _types(second)
    if "number" in types:
        types.discard("integer")

    merged: dict[str, Any] = {}
    ordered = [t for t in TYPE_ORDER if t in types]
    merged["type"] = ordered[0] if len(ordered) == 1 else ordered

    if "object" in types:
        props1 = first.get("properties", {})
        props2 = second.get("properties", {})
        merged["properties"] = {
            key: merge_schemas(props1.get(key, {}), props2.get(key, {}))
            for key in sorted(set(props1) | set(props2))
        }
    if "array" in types:
        merged["items"] = merge_schemas(first.get("items", {}), second.get("items", {}))
    return merged


def to_openapi_schema(schema: dict) -> dict:
    """Convert a JSON Schema into an OpenAPI 3.0 schema object.

    Type lists become ``nullable`` and/or ``anyOf``; ``$schema`` is dropped.
    """
    converted = {k: v for k, v in schema.items() if k not in ("$schema", "type", "properties", "items")}

    if "properties" in schema:
        converted["properties"] = {k: to_openapi_schema(v) for k, v in schema["properties"].items()}
    if "items" in schema:
        converted["items"] = to_openapi_schema(schema["items"])

    declared = schema.get("type")
    if not isinstance(declared, list):
        if declared is not None:
            converted["type"] = declared
        return converted

    types = [t for t in declared if t != "null"]
    nullable = len(types) != len(declared)
    if len(types) == 1:
        converted["type"] = types[0]
    elif types:
        variants = []
        for t in types:
            variant: dict[str, Any] = {"type": t}
            if t == "object" and "properties" in converted:
                variant["properties"] = converted["properties"]
            if t == "array" and "items" in converted:
                variant["items"] = converted["items"]
            variants.append(variant)
        converted.pop("properties", None)
        converted.pop("items", None)
        converted["anyOf"] = variants
    if nullable:
        converted["nullable"] = True
    return converted


class SampleSchemaInferencer:
    """Infers a schema from serialized samples by unioning per-sample schemas."""

    def __init__(self, draft: str = JSON_SCHEMA_DRAFT):
        self.draft = draft

    async def infer(self, name: str, samples: list[str]) -> dict:
        """Infer one schema covering every sample in the named sample set."""
        if not samples:
            raise SchemaInferenceError(f"{name}: no samples to infer a schema from")

        schema: dict = {}
        for index, sample in enumerate(samples):
            try:
                value = json.loads(sample)
            except json.JSONDecodeError as e:
                raise SchemaInferenceError(f"{name}: sample {index} is not valid JSON") from e
            schema = merge_schemas(schema, infer_value(value))

        return {"$schema": self.draft, **schema}
