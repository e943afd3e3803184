"""Synthesis configuration: base path filter, path/tag rules and redactions."""

import re
from pathlib import Path

import yaml
from pydantic import BaseModel, ValidationError, field_validator

from traffic_spec.errors import ConfigError


class SynthesisConfig(BaseModel):
    """Settings for one traffic-to-spec run.

    ``path_replace`` and ``replace`` are ordered: rules are applied in the
    order they appear in the file.
    """

    api_base_path: str
    path_replace: dict[str, str] = {}  # regex -> replacement, applied to raw URLs
    replace: dict[str, str] = {}  # regex -> replacement, applied to the serialized spec
    tags: list[list[str]] = []  # [keyword] or [keyword, display name]
    title: str = "Generated API"
    version: str = "1.0.0"
    servers: list[str] = ["/"]

    @field_validator("path_replace", "replace")
    @classmethod
    def _patterns_compile(cls, rules: dict[str, str]) -> dict[str, str]:
        for pattern in rules:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"invalid pattern {pattern!r}: {e}") from e
        return rules

    @field_validator("tags")
    @classmethod
    def _tag_rules_have_keyword(cls, rules: list[list[str]]) -> list[list[str]]:
        for rule in rules:
            if not rule or not rule[0]:
                raise ValueError("every tag rule needs a keyword")
        return rules


def load_config(file_path: Path, api_base_path: str | None = None) -> SynthesisConfig:
    """Load a YAML or JSON config file. ``api_base_path`` overrides the file."""
    text = file_path.read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"{file_path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{file_path} must contain a mapping")

    if api_base_path:
        data["api_base_path"] = api_base_path

    try:
        return SynthesisConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"{file_path}: {e}") from e
