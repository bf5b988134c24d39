"""Renderers for report output.

All renderers implement the BaseRenderer interface and are decoupled from
the analyzer: they only see OutputDescriptor rows and the serialized report.
"""

from .base import BaseRenderer, serialize_value
from .bulk_jsonlines_renderer import BulkJSONLinesRenderer
from .cli_renderer import CLIRenderer
from .json_renderer import JSONRenderer

__all__ = [
    "BaseRenderer",
    "BulkJSONLinesRenderer",
    "CLIRenderer",
    "JSONRenderer",
    "serialize_value",
]
