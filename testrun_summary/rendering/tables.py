"""Column alignment of text tables rendered side by side."""

import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

type Alignment = Literal["left", "right"]

_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*m")


@dataclass(frozen=True, kw_only=True)
class TableBlock:
    """A grid of cells with its own formatting.

    Rows may hold different numbers of cells. Every cell that is followed by
    another cell in its row is padded to the width of its column; the last
    cell of a row is emitted as is.
    """

    cells: Sequence[Sequence[str]]
    min_width: int = 0
    padding: int = 0
    pad_char: str = " "
    align: Alignment = "left"

    def render(self) -> list[str]:
        """Render one aligned line per row."""
        widths = self._column_widths()
        lines: list[str] = []
        for row in self.cells:
            parts = [self._pad(cell, widths[i]) for i, cell in enumerate(row[:-1])]
            if row:
                parts.append(row[-1])
            lines.append("".join(parts))
        return lines

    def _column_widths(self) -> list[int]:
        widths: list[int] = []
        for row in self.cells:
            for i, cell in enumerate(row[:-1]):
                width = max(self.min_width, visible_width(cell) + self.padding)
                if i == len(widths):
                    widths.append(width)
                elif width > widths[i]:
                    widths[i] = width
        return widths

    def _pad(self, cell: str, width: int) -> str:
        fill = self.pad_char * (width - visible_width(cell))
        return fill + cell if self.align == "right" else cell + fill


def visible_width(text: str) -> int:
    """Length of text as displayed, ignoring color escape sequences."""
    return len(_ANSI_ESCAPE.sub("", text))


def format_table_blocks(*blocks: TableBlock) -> list[str]:
    """Render blocks independently and join them horizontally.

    The i-th output line is the concatenation of the i-th line of every
    block, so each block keeps its own column widths and padding style.

    Raises:
        ValueError: If no block is given or the blocks have different row counts

    """
    if not blocks:
        raise ValueError("At least one table block is required")

    row_counts = {len(block.cells) for block in blocks}
    if len(row_counts) != 1:
        raise ValueError(f"Table blocks have different row counts: {row_counts}")

    rendered = [block.render() for block in blocks]
    return ["".join(parts) for parts in zip(*rendered, strict=True)]
