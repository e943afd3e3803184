"""HAR (HTTP Archive) capture parser.

Parses capture files exported from browser DevTools or a recording proxy
into Transaction models.
"""

import json
from pathlib import Path

from pydantic import ValidationError

from traffic_spec.errors import MalformedInputError
from .base import Transaction


def parse_har(file_path: Path) -> list[Transaction]:
    """Parse a single HAR file into a list of Transaction."""
    text = file_path.read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedInputError(f"{file_path} contains invalid json") from e

    if not isinstance(data, dict) or not isinstance(data.get("log"), dict):
        raise MalformedInputError(f"{file_path} is not a valid har file: missing 'log'")

    entries = data["log"].get("entries", [])
    if not isinstance(entries, list):
        raise MalformedInputError(f"{file_path} is not a valid har file: 'log.entries' is not a list")

    transactions = []
    for index, entry in enumerate(entries):
        try:
            transactions.append(Transaction.model_validate(entry))
        except ValidationError as e:
            raise MalformedInputError(f"{file_path} entry {index} is malformed: {e}") from e
    return transactions


def parse_captures(file_paths: list[Path]) -> list[Transaction]:
    """Combine several capture files into one transaction list, in file order."""
    transactions: list[Transaction] = []
    for file_path in file_paths:
        transactions.extend(parse_har(file_path))
    return transactions
