from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import List, Optional, TextIO

from tabsh.models.table import Table

DEFAULT_PADDING = 4
DEFAULT_EMPTY_NOTICE = "(empty table)"


@dataclass(frozen=True)
class Sink:
    """Renders the final table of a pipeline as a bordered text grid."""

    padding: int = DEFAULT_PADDING
    empty_notice: str = DEFAULT_EMPTY_NOTICE
    stream: Optional[TextIO] = None

    def column_widths(self, table: Table) -> List[int]:
        widths = [len(h) for h in table.columns]
        for row in table:
            for i, cell in enumerate(row):
                widths[i] = max(widths[i], len(cell.render()))
        return [w + self.padding for w in widths]

    def render(self, table: Table) -> str:
        if len(table) == 0:
            return self.empty_notice + "\n"

        widths = self.column_widths(table)
        border = "+" + "+".join("-" * w for w in widths) + "+"

        def _line(cells) -> str:
            # one space on the left, the rest of the padding on the right
            return "|" + "|".join(f" {c:<{w - 2}} " for c, w in zip(cells, widths)) + "|"

        lines = [border, _line(table.columns), border]
        for row in table:
            lines.append(_line(cell.render() for cell in row))
        lines.append(border)
        return "\n".join(lines) + "\n"

    def write(self, table: Table) -> None:
        out = self.stream if self.stream is not None else sys.stdout
        out.write(self.render(table))

    def __str__(self) -> str:
        return f"Sink(padding={self.padding})"
