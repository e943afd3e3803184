"""Reading and writing JSON/YAML documents (specs and example files)."""

import json
from pathlib import Path

import yaml

from traffic_spec.errors import MalformedInputError


def load_json_document(file_path: Path) -> dict:
    """Load a JSON object from disk, raising MalformedInputError on bad input."""
    text = file_path.read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedInputError(f"{file_path} contains invalid json") from e
    if not isinstance(data, dict):
        raise MalformedInputError(f"{file_path} must contain a JSON object")
    return data


def write_document(data: dict, file_path: Path) -> list[Path]:
    """Write ``data`` as pretty JSON and as a sibling ``<name>.yaml``.

    Returns the written paths.
    """
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")

    yaml_path = file_path.with_name(file_path.name + ".yaml")
    yaml_path.write_text(
        yaml.safe_dump(data, sort_keys=False, allow_unicode=True),
        encoding="utf-8",
    )
    return [file_path, yaml_path]


def write_lines(lines: list[str], file_path: Path) -> Path:
    """Write a plain text debug list, one entry per line."""
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text("\n".join(lines), encoding="utf-8")
    return file_path
