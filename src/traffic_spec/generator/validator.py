"""Validates curated example files and renumbers the published examples."""

import json
from typing import Any

from pydantic import BaseModel

from traffic_spec.errors import CurationError, MalformedInputError
from traffic_spec.generator.examples import EXAMPLE_PREFIX, DEFAULT_WIDTH

PUBLISH_MARKER = "gexample"


class CurationResult(BaseModel):
    """Outcome of validating one example slot."""

    all_examples: list[str]  # every example, serialized, for schema inference
    published: dict[str, dict]  # {example-NNNN: {"value": ...}}
    first_published: Any = None


def is_published(example_name: str) -> bool:
    return PUBLISH_MARKER in example_name


def published_width(count: int) -> int:
    """Zero-padding width so lexicographic and numeric order agree."""
    return max(DEFAULT_WIDTH, len(str(count)))


def validate_examples(examples: dict[str, Any], label: str) -> CurationResult:
    """Check that an example slot has been curated and renumber its published examples.

    Raises CurationError when examples exist but none carries the publish marker.
    """
    all_examples = []
    published_values = []
    for name, value in examples.items():
        all_examples.append(json.dumps(value))
        if is_published(name):
            published_values.append(value)

    if examples and not published_values:
        raise CurationError(
            f"{label} has {len(examples)} examples with no {PUBLISH_MARKER}s"
        )

    width = published_width(len(published_values))
    published = {
        f"{EXAMPLE_PREFIX}{i:0{width}d}": {"value": value}
        for i, value in enumerate(published_values, start=1)
    }

    return CurationResult(
        all_examples=all_examples,
        published=published,
        first_published=published_values[0] if published_values else None,
    )


def _slot_error(examples: dict, label: str) -> str | None:
    try:
        validate_examples(examples, label)
    except CurationError as e:
        return str(e)
    return None


def _require_mapping(value: Any, label: str) -> dict:
    if not isinstance(value, dict):
        raise MalformedInputError(f"{label} must be a mapping, got {type(value).__name__}")
    return value


def check_curation(curated: dict) -> dict[str, str]:
    """Validate every slot of a curated example file.

    Returns dict of {"<path> <method> <slot>": error_message} for slots that
    still need curation.
    Raises MalformedInputError when an entry is not a mapping.
    """
    errors = {}
    for path, methods in curated.items():
        _require_mapping(methods, path)
        for method, slots in methods.items():
            _require_mapping(slots, f"{path} {method}")
            label = f"{path} {method} request"
            request = _require_mapping(slots.get("request", {}), label)
            error = _slot_error(request, label)
            if error:
                errors[label] = error
            responses = _require_mapping(slots.get("response", {}), f"{path} {method} response")
            for status, examples in responses.items():
                label = f"{path} {method} {status}"
                error = _slot_error(_require_mapping(examples, label), label)
                if error:
                    errors[label] = error
    return errors
