"""Tests for table block formatting."""

import pytest

from testrun_summary.rendering.tables import (
    TableBlock,
    format_table_blocks,
    visible_width,
)


def test_concatenates_independently_aligned_blocks() -> None:
    """Each block computes its own column widths before being joined."""
    labels = TableBlock(
        cells=[["a", ":"], ["bbb", ":"], ["cc", ":"]],
        padding=1,
        pad_char=".",
    )
    values = TableBlock(
        cells=[["1", "x"], ["22", "y"], ["333", "z"]],
        padding=2,
    )

    lines = format_table_blocks(labels, values)

    assert lines == ["a...:1    x", "bbb.:22   y", "cc..:333  z"]
    assert lines == [
        left + right
        for left, right in zip(labels.render(), values.render(), strict=True)
    ]


def test_right_alignment_pads_on_the_left() -> None:
    """Right aligned cells are padded before their text."""
    block = TableBlock(cells=[["a", ":"], ["bbb", ":"]], padding=2, align="right")

    assert format_table_blocks(block) == ["    a:", "  bbb:"]


def test_min_width_applies_to_narrow_columns() -> None:
    """Columns are at least min_width wide."""
    block = TableBlock(cells=[["a", "b"]], min_width=6)

    assert format_table_blocks(block) == ["a     b"]


def test_rows_with_fewer_cells() -> None:
    """The last cell of each row is not padded."""
    block = TableBlock(cells=[["a", "b", "c"], ["dd", "e"]], padding=1)

    assert format_table_blocks(block) == ["a  b c", "dd e"]


def test_color_sequences_do_not_count_towards_width() -> None:
    """Escape sequences are ignored when measuring cells."""
    colored = "\x1b[36mab\x1b[0m"
    block = TableBlock(cells=[[colored, "x"], ["abc", "y"]], padding=1)

    assert format_table_blocks(block) == [colored + "  x", "abc y"]
    assert visible_width(colored) == 2


def test_empty_rows_render_as_empty_lines() -> None:
    """A row without cells gives an empty line."""
    block = TableBlock(cells=[["a", "b"], []], padding=1)

    assert format_table_blocks(block) == ["a b", ""]


def test_requires_at_least_one_block() -> None:
    """Formatting nothing is an error."""
    with pytest.raises(ValueError, match="At least one"):
        format_table_blocks()


def test_blocks_must_have_equal_row_counts() -> None:
    """Blocks with different row counts cannot be joined."""
    with pytest.raises(ValueError, match="different row counts"):
        format_table_blocks(
            TableBlock(cells=[["a"], ["b"]]),
            TableBlock(cells=[["c"]]),
        )
