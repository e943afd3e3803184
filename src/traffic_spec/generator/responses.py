"""Response classifier — canonical descriptions for (status code, method) pairs."""

METHODS = ("get", "post", "put", "patch", "delete")

RESPONSE_DESCRIPTIONS: dict[tuple[int, str], str] = {
    (200, "get"): "Success",
    (200, "post"): "Item created",
    (200, "patch"): "Item updated",
    (200, "delete"): "Item deleted",
    (201, "post"): "Item created",
    (202, "post"): "Item created",
    (204, "get"): "Success",
    (204, "post"): "Item created",
    (204, "put"): "Item updated",
    (204, "patch"): "Item updated",
    (204, "delete"): "Item deleted",
    (400, "get"): "Bad request",
    (400, "post"): "Bad request",
    (400, "put"): "Bad request",
    (400, "patch"): "Bad request",
    (400, "delete"): "Deletion failed - item in use",
    **{(401, m): "Unauthorized" for m in METHODS},
    **{(404, m): "Item not found" for m in METHODS},
    **{(405, m): "Not allowed" for m in METHODS},
}


def classify(status: int, method: str) -> str | None:
    """Return the response description, or None when the pair is not documented."""
    return RESPONSE_DESCRIPTIONS.get((status, method.lower()))
