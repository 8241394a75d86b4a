from tabsh.models.pipeline import Pipeline
from tabsh.models.sinks import Sink
from tabsh.models.sources import Source
from tabsh.models.table import Table
from tabsh.models.transforms import Transform
from tabsh.models.values import Float, Integer, Size, Text, parse_size, format_size, extract_bytes
from tabsh.errors import TabshUserError

__all__ = [
    "Pipeline", "Sink", "Source", "Table", "Transform", "TabshUserError",
    "Text", "Integer", "Float", "Size", "parse_size", "format_size", "extract_bytes",
]
