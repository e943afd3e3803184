"""Operation identity — operationId, tag and summary for a (method, path) pair.

Tags and summaries are heuristics: they give a readable first draft that
may still need manual correction in the generated spec.
"""

import re

from pydantic import BaseModel

DEFAULT_TAG = "Miscellaneous"
FALLBACK_SUMMARY = "SUMMARY"

FIXED_SUMMARIES = {"login": "Log in", "logout": "Log out"}

ID_SUFFIX = "_id"


class OperationIdentity(BaseModel):
    operation_id: str
    summary: str
    tag: str


def operation_id(method: str, template: str) -> str:
    """``get`` + ``/datasets/{dataset_id}/`` -> ``get-datasets-dataset_id``."""
    stripped = re.sub(r"(^/|/$|{|})", "", template)
    return f"{method}-{stripped.replace('/', '-')}"


def capitalize(s: str) -> str:
    return s[:1].upper() + s[1:]


def derive_tag(template: str, tag_rules: list[list[str]], default: str = DEFAULT_TAG) -> str:
    """Return the tag of the first rule whose keyword occurs in the template.

    Rules are checked in order; the first match wins even if a later rule
    is more specific.
    """
    for rule in tag_rules:
        if rule[0] in template:
            return rule[1] if len(rule) > 1 else capitalize(rule[0])
    return default


def derive_summary(method: str, template: str) -> str:
    """Derive a human summary from the last one or two path segments."""
    segments = [s for s in template.split("/") if s]
    last = segments[-1] if segments else ""
    owner = segments[-3].strip("{}") if len(segments) >= 3 else ""

    if last in FIXED_SUMMARIES:
        return FIXED_SUMMARIES[last]

    bare = last.strip("{}")
    if bare.endswith(ID_SUFFIX) and bare != ID_SUFFIX:
        resource = bare[: -len(ID_SUFFIX)]
        if method == "get":
            return f"{capitalize(resource)} details"
        if method == "post":
            return f"Create {resource}"
        if method in ("patch", "put"):
            return f"Update {resource}"
        if method == "delete":
            return f"Delete {resource}"

    prefix = f"{singularize(owner)} " if owner else ""
    if method == "get":
        return f"List {prefix}{pluralize(last)}".strip()
    if method == "post":
        return f"Create {prefix}{singularize(last)}".strip()
    if method in ("put", "patch"):
        return f"Update {prefix}{pluralize(last)}".strip()
    if method == "delete":
        return f"Delete {prefix}{pluralize(last)}".strip()
    return FALLBACK_SUMMARY


def assign_identity(method: str, template: str, tag_rules: list[list[str]]) -> OperationIdentity:
    return OperationIdentity(
        operation_id=operation_id(method, template),
        summary=derive_summary(method, template),
        tag=derive_tag(template, tag_rules),
    )


# -- inflection ---------------------------------------------------------------

_UNCOUNTABLE = {"data", "info", "metadata", "series", "status", "settings", "preferences"}


def singularize(word: str) -> str:
    """Convert a plural resource name to singular."""
    if not word or word.lower() in _UNCOUNTABLE:
        return word
    if word.endswith("ies") and len(word) > 3:
        return word[:-3] + "y"
    if word.endswith(("ses", "xes", "ches", "shes")):
        return word[:-2]
    if word.endswith("s") and not word.endswith("ss"):
        return word[:-1]
    return word


def pluralize(word: str) -> str:
    """Convert a singular resource name to plural. Plurals pass through."""
    if not word or word.lower() in _UNCOUNTABLE:
        return word
    if singularize(word) != word:
        return word
    if word.endswith("y") and word[-2:-1] not in ("a", "e", "i", "o", "u", ""):
        return word[:-1] + "ies"
    if word.endswith(("s", "x", "ch", "sh")):
        return word + "es"
    return word + "s"
