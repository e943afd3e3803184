"""Spec builder — folds captured transactions into an OpenAPI-shaped spec."""

import copy
import json
import re
from typing import Any

import click
from pydantic import BaseModel, Field

from traffic_spec.generator.examples import (
    ACCUMULATOR_NAME,
    BINARY_UPLOAD_CONTENT,
    ExamplePool,
    decode_body,
    fold_response_body,
)
from traffic_spec.generator.identity import assign_identity
from traffic_spec.generator.merge import sort_tree
from traffic_spec.generator.paths import normalize, path_parameters
from traffic_spec.generator.reconcile import ELEMENT_KINDS
from traffic_spec.generator.responses import classify
from traffic_spec.parser.base import CapturedRequest, CapturedResponse, QueryParam, Transaction
from traffic_spec.parser.config import SynthesisConfig

JSON_MEDIA_TYPE = "application/json"
CLIENT_ERROR_STATUS = 400


class Operation(BaseModel):
    """One documented endpoint while the ingestion run is building it."""

    operation_id: str
    summary: str
    tag: str
    description: str = ""
    parameters: list[dict] = Field(default_factory=list)
    responses: dict[str, dict] = Field(default_factory=dict)
    request_pool: ExamplePool = Field(default_factory=ExamplePool)
    response_pools: dict[str, ExamplePool] = Field(default_factory=dict)
    binary_upload: bool = False
    original_path: str = ""
    element: str = ""

    def to_openapi(self) -> dict:
        operation: dict[str, Any] = {
            "operationId": self.operation_id,
            "summary": self.summary,
            "description": self.description,
            "parameters": copy.deepcopy(self.parameters),
            "responses": {},
            "tags": [self.tag],
            "meta": {"originalPath": self.original_path, "element": self.element},
        }

        if len(self.request_pool):
            operation["requestBody"] = {
                "content": {
                    JSON_MEDIA_TYPE: {
                        "examples": self.request_pool.to_openapi(),
                        "schema": {"properties": {}, "type": "object"},
                    }
                }
            }
        elif self.binary_upload:
            operation["requestBody"] = {"content": copy.deepcopy(BINARY_UPLOAD_CONTENT)}

        for status in sorted(set(self.responses) | set(self.response_pools)):
            response = dict(self.responses.get(status, {}))
            pool = self.response_pools.get(status)
            if pool is not None and len(pool):
                response["content"] = {
                    JSON_MEDIA_TYPE: {
                        "examples": pool.to_openapi(),
                        "schema": {"properties": {}, "type": "object"},
                    }
                }
            operation["responses"][status] = response
        return operation


class SpecBuilder:
    """Owns the path/method tree for a single ingestion run."""

    def __init__(self, config: SynthesisConfig):
        self.config = config
        self.paths: dict[str, dict[str, Operation]] = {}
        self.path_params: dict[str, list[dict]] = {}
        self.skipped_bodies = 0

    # -- ingestion ------------------------------------------------------------

    def ingest(self, transactions: list[Transaction]) -> None:
        for item in transactions:
            self.ingest_one(item)

    def ingest_one(self, item: Transaction) -> None:
        request, response = item.request, item.response

        if self.config.api_base_path not in request.url:
            if _looks_like_api(item):
                click.echo(f"  apiBasePath mismatch: {request.url}", err=True)
            return

        template = normalize(request.url, self.config.path_replace)
        if not template:
            return

        if template not in self.paths:
            self.paths[template] = {}
            self.path_params[template] = path_parameters(template)

        method = request.method.lower()
        operation = self.paths[template].get(method)
        if operation is None:
            identity = assign_identity(method, template, self.config.tags)
            operation = Operation(
                operation_id=identity.operation_id,
                summary=identity.summary,
                tag=identity.tag,
            )
            self.paths[template][method] = operation

        operation.original_path = request.url

        description = classify(response.status, method)
        if description is not None:
            operation.responses[str(response.status)] = {"description": description}

        _add_query_params(operation, request.query_string)

        if request.body_size > 0 and response.status < CLIENT_ERROR_STATUS:
            self._merge_request_example(operation, request)

        if response.body_size > 0:
            self._merge_response_example(operation, response)

    def _merge_request_example(self, operation: Operation, request: CapturedRequest) -> None:
        post_data = request.post_data
        if post_data is None or not post_data.text:
            operation.binary_upload = True
            return
        try:
            body = decode_body(post_data.text, post_data.encoding)
        except ValueError:
            self.skipped_bodies += 1
            return
        operation.request_pool.fold(body)

    def _merge_response_example(self, operation: Operation, response: CapturedResponse) -> None:
        content = response.content
        if not content.text:
            return
        try:
            body = decode_body(content.text, content.encoding)
        except ValueError:
            self.skipped_bodies += 1
            return

        status = str(response.status)
        pool = operation.response_pools.get(status, ExamplePool())
        if not fold_response_body(pool, body):
            return
        operation.response_pools[status] = pool

        if isinstance(body, dict):
            if isinstance(body.get("description"), str) and body["description"]:
                operation.description = body["description"]
            if isinstance(body.get("element"), str) and body["element"]:
                operation.element = body["element"]

    # -- output ---------------------------------------------------------------

    def build(self) -> dict:
        """Render the spec, sorted, with the configured global replacements applied."""
        paths: dict[str, dict] = {}
        for template, methods in self.paths.items():
            path_item: dict[str, Any] = {"parameters": copy.deepcopy(self.path_params[template])}
            for method, operation in methods.items():
                path_item[method] = operation.to_openapi()
            paths[template] = path_item

        spec = {
            "openapi": "3.0.0",
            "info": {"title": self.config.title, "version": self.config.version},
            "servers": [{"url": url} for url in self.config.servers],
            "paths": sort_tree(paths),
        }
        return apply_replacements(spec, self.config.replace)

    @property
    def operation_count(self) -> int:
        return sum(len(methods) for methods in self.paths.values())


def path_list(spec: dict) -> list[str]:
    """Path keys of a built spec, as written."""
    return sorted(spec.get("paths", {}))


def method_list(spec: dict) -> list[str]:
    """One ``tag<TAB>path<TAB>method<TAB>summary`` row per operation of a built spec."""
    rows = []
    for path, path_item in spec.get("paths", {}).items():
        for method, operation in path_item.items():
            if method == "parameters":
                continue
            tag = (operation.get("tags") or [""])[0]
            rows.append(f"{tag}\t{path}\t{method}\t{operation.get('summary', '')}")
    return sorted(rows)


def _looks_like_api(item: Transaction) -> bool:
    mime_type = item.response.content.mime_type or ""
    return "api" in item.request.url or "application/json" in mime_type


def _add_query_params(operation: Operation, query: list[QueryParam]) -> None:
    known = {p["name"] for p in operation.parameters if p.get("in") == "query"}
    for param in query:
        if param.name in known:
            continue
        operation.parameters.append({
            "schema": {"type": "string", "default": param.value, "example": param.value},
            "in": "query",
            "name": param.name,
            "description": param.name,
        })
        known.add(param.name)


def apply_replacements(spec: dict, replacements: dict[str, str]) -> dict:
    """Run regex substitutions over the serialized spec (hostnames, sample credentials)."""
    if not replacements:
        return spec
    text = json.dumps(spec)
    for pattern, replacement in replacements.items():
        text = re.sub(pattern, replacement, text)
    return json.loads(text)


# -- curation file --------------------------------------------------------------

def _exportable(examples: dict) -> dict[str, Any]:
    """Pick the examples offered for curation from an OpenAPI ``examples`` map.

    With a single observed example the accumulator is identical to it and
    is left out.
    """
    individual = [name for name in examples if name != ACCUMULATOR_NAME]
    exported = {}
    for name, example in examples.items():
        if name == ACCUMULATOR_NAME and len(individual) == 1:
            continue
        exported[name] = example.get("value")
    return exported


def export_examples(spec: dict, element_kinds: set[str] = ELEMENT_KINDS) -> dict:
    """Build the curation file ``path -> method -> {request, response}`` from a spec.

    When some request examples carry a recognized ``element`` discriminator,
    the ones without it are left out.
    """
    exported: dict[str, dict] = {}
    for path, path_item in spec.get("paths", {}).items():
        exported[path] = {}
        for method, operation in path_item.items():
            if method in ("parameters", "options"):
                continue
            entry: dict[str, dict] = {"request": {}, "response": {}}

            request_examples = (
                operation.get("requestBody", {}).get("content", {}).get(JSON_MEDIA_TYPE, {}).get("examples")
            )
            if request_examples:
                candidates = _exportable(request_examples)
                if element_kinds:
                    tagged = {n: v for n, v in candidates.items() if _element_of(v) in element_kinds}
                    if tagged:
                        candidates = tagged
                entry["request"] = candidates

            for status, response in operation.get("responses", {}).items():
                examples = response.get("content", {}).get(JSON_MEDIA_TYPE, {}).get("examples")
                if examples:
                    entry["response"][status] = _exportable(examples)

            exported[path][method] = entry
    return sort_tree(exported)


def _element_of(value: Any) -> Any:
    return value.get("element") if isinstance(value, dict) else None
