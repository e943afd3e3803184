"""Spec reconciler — rebuilds schemas and examples from a curated example file.

Paths and methods of the prior spec that the curated file does not mention
are carried over unchanged.
"""

import copy
from enum import Enum
from typing import Any

import click

from traffic_spec.generator.identity import operation_id
from traffic_spec.generator.responses import classify
from traffic_spec.generator.validator import CurationResult, validate_examples
from traffic_spec.schema import SampleSchemaInferencer, to_openapi_schema

JSON_MEDIA_TYPE = "application/json"
UNKNOWN_TAG = "UNKNOWN"


class ElementKind(str, Enum):
    """Payload discriminators that map to a shared schema component."""

    ENTITY = "shoji:entity"
    CATALOG = "shoji:catalog"
    VIEW = "shoji:view"

    @property
    def component_ref(self) -> str:
        kind = self.value.split(":", 1)[1]
        return f"#/components/schemas/Shoji-{kind}-element"


ELEMENT_KINDS = {kind.value for kind in ElementKind}


def skeleton_operation(path: str, method: str, server_url: str = "") -> dict:
    """Minimal operation for a path/method that only exists in the curated file."""
    op_id = operation_id(method, path)
    return {
        "operationId": op_id,
        "summary": op_id,
        "description": "",
        "parameters": [],
        "responses": {},
        "tags": [UNKNOWN_TAG],
        "meta": {"originalPath": f"{server_url.rstrip('/')}{path}"},
    }


def link_element_schema(schema: dict, first_example: Any, label: str) -> dict:
    """Point ``properties.element`` at the shared component for its discriminator.

    Unrecognized discriminators leave the inferred schema as is and are
    reported for review.
    """
    properties = schema.get("properties")
    if not properties or "element" not in properties:
        return schema

    element = first_example.get("element") if isinstance(first_example, dict) else None
    try:
        kind = ElementKind(element)
    except ValueError:
        click.echo(f"  {label}: unrecognized element {element!r}, schema left as inferred", err=True)
        return schema

    properties["element"] = {"$ref": kind.component_ref}
    return schema


class SpecReconciler:
    """Attaches inferred schemas and published examples to a prior spec."""

    def __init__(self, inferencer=None):
        self.inferencer = inferencer or SampleSchemaInferencer()

    async def reconcile(self, prior: dict, curated: dict) -> dict:
        spec = copy.deepcopy(prior)
        paths = spec.setdefault("paths", {})
        server_url = _first_server_url(spec)

        for path, methods in curated.items():
            path_item = paths.setdefault(path, {})
            for method, slots in methods.items():
                if method not in path_item:
                    path_item[method] = skeleton_operation(path, method, server_url)
                await self._reconcile_operation(path_item[method], path, method, slots)

        return spec

    async def _reconcile_operation(self, operation: dict, path: str, method: str, slots: dict) -> None:
        request_examples = slots.get("request", {})
        if request_examples:
            label = f"{path} {method} request"
            media = (
                operation.setdefault("requestBody", {})
                .setdefault("content", {})
                .setdefault(JSON_MEDIA_TYPE, {})
            )
            await self._attach(media, request_examples, label, f"{path}-{method}-request")

        responses = operation.setdefault("responses", {})
        for status, examples in slots.get("response", {}).items():
            if not examples:
                continue
            label = f"{path} {method} {status}"
            response = responses.setdefault(str(status), {})
            if "description" not in response:
                description = classify(int(status), method) if str(status).isdigit() else None
                if description:
                    response["description"] = description
            media = response.setdefault("content", {}).setdefault(JSON_MEDIA_TYPE, {})
            await self._attach(media, examples, label, f"{path}-{method}-{status}")

    async def _attach(self, media: dict, examples: dict, label: str, sample_name: str) -> None:
        result: CurationResult = validate_examples(examples, label)
        click.echo(f"{label}: {len(examples)} examples, {len(result.published)} published")

        json_schema = await self.inferencer.infer(sample_name, result.all_examples)
        json_schema = link_element_schema(json_schema, result.first_published, label)

        media["schema"] = to_openapi_schema(json_schema)
        media["examples"] = result.published


def _first_server_url(spec: dict) -> str:
    servers = spec.get("servers") or []
    if servers and isinstance(servers[0], dict):
        return servers[0].get("url", "")
    return ""


def strip_meta(spec: dict) -> dict:
    """Remove the transient ``meta`` block from every operation."""
    stripped = copy.deepcopy(spec)
    for path_item in stripped.get("paths", {}).values():
        for operation in path_item.values():
            if isinstance(operation, dict):
                operation.pop("meta", None)
    return stripped
