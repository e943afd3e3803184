"""Exceptions raised by the synthesis pipeline.

Library code raises these; the CLI turns them into a ``click.ClickException``
so the run halts before anything is written.
"""


class TrafficSpecError(Exception):
    """Base class for every fatal pipeline error."""


class MalformedInputError(TrafficSpecError):
    """A capture file or JSON document is not valid JSON or has the wrong shape."""


class ConfigError(TrafficSpecError):
    """The synthesis configuration file is missing fields or malformed."""


class CurationError(TrafficSpecError):
    """An example set has examples but none of them is marked for publication."""


class SchemaInferenceError(TrafficSpecError):
    """The schema inferencer could not derive a schema from a sample set."""
