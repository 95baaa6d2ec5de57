"""Terminal colors used by the summary report."""

from dataclasses import dataclass

from termcolor import colored

SUCCESS_GLYPH = "✓"
FAILURE_GLYPH = "✗"


@dataclass(frozen=True)
class Palette:
    """Applies report colors, or leaves text untouched when disabled.

    Whether the output is a terminal is decided by the caller, so an enabled
    palette always emits escape sequences.
    """

    enabled: bool = False

    def value(self, text: str) -> str:
        """Color a computed value."""
        return self._color(text, "cyan")

    def muted(self, text: str) -> str:
        """Color secondary information."""
        return self._color(text, "cyan", dark=True)

    def success(self, text: str) -> str:
        """Color a passing outcome."""
        return self._color(text, "green")

    def failure(self, text: str) -> str:
        """Color a failing outcome."""
        return self._color(text, "red")

    def glyph(self, passed: bool) -> str:
        """Return the colored pass/fail mark."""
        return self.success(SUCCESS_GLYPH) if passed else self.failure(FAILURE_GLYPH)

    def _color(self, text: str, color: str, *, dark: bool = False) -> str:
        if not self.enabled:
            return text
        attrs = ["dark"] if dark else None
        return colored(text, color, attrs=attrs, force_color=True)
