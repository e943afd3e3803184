"""Path normalizer — turns captured URLs into parameterized path templates."""

import re
from urllib.parse import urlsplit

PLACEHOLDER_PATTERN = re.compile(r"{(.*?)}")


def normalize(raw_url: str, rules: dict[str, str]) -> str:
    """Apply the ordered ``pattern -> replacement`` rules to a raw URL.

    Returns the path template, or "" when the rules erase the URL (the
    transaction is then dropped). Scheme, host and query string left over
    after substitution are discarded.
    """
    result = raw_url
    for pattern, replacement in rules.items():
        result = re.sub(pattern, replacement, result)

    if not result:
        return ""
    return urlsplit(result).path or "/"


def path_parameters(template: str) -> list[dict]:
    """Build the OpenAPI path parameters for every ``{name}`` in the template."""
    parameters = []
    for name in PLACEHOLDER_PATTERN.findall(template):
        resource = name.replace("_id", "")
        parameters.append({
            "description": f"Unique ID of the {resource} you are working with",
            "in": "path",
            "name": name,
            "required": True,
            "schema": {"type": "string"},
        })
    return parameters
