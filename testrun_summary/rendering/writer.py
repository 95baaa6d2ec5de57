"""Text sink decorator indenting every line after the first."""

from typing import Protocol


class TextSink(Protocol):
    """Anything text can be written to."""

    def write(self, text: str, /) -> int:
        """Write text and return the number of characters written."""
        ...


class IndentedWriter:
    """Writer inserting a pad at the start of each line except the first one.

    Whitespace-only lines are left unpadded. Wrapping an ``IndentedWriter``
    in another one adds both pads, so nesting gives deeper indentation.
    """

    def __init__(self, output: TextSink, pad: str) -> None:
        """Wrap ``output``, prefixing new lines with ``pad``."""
        self._output = output
        self._pad = pad
        self._at_line_start = False

    def write(self, text: str) -> int:
        """Write text, padding every non-blank line that follows a line break."""
        start = 0
        while start < len(text):
            end = text.find("\n", start) + 1 or len(text)
            chunk = text[start:end]

            if self._at_line_start and chunk.strip():
                self._output.write(self._pad)
                self._at_line_start = False

            self._output.write(chunk)

            if chunk.endswith("\n"):
                self._at_line_start = True
            start = end

        return len(text)
