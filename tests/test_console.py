"""Tests for terminal-safe output."""
import io

from depsweep.utils import logger, safe_console
from depsweep.utils.logger import sanitize_for_terminal
from depsweep.utils.safe_console import SafeConsole


class TestSanitize:

    def test_utf8_terminal_is_untouched(self, monkeypatch):
        monkeypatch.setattr(logger, 'is_utf8_capable', lambda: True)
        assert sanitize_for_terminal("✔ done") == "✔ done"

    def test_ascii_terminal_gets_fallbacks(self, monkeypatch):
        monkeypatch.setattr(logger, 'is_utf8_capable', lambda: False)
        assert sanitize_for_terminal("✔ done → next") == "[OK] done -> next"


class TestSafeConsole:

    def test_helpers_escape_markup(self):
        buffer = io.StringIO()
        console = SafeConsole(file=buffer, width=120)
        console.warn("Dependency '[bold]x' is either used or not found.")
        assert "[bold]x" in buffer.getvalue()

    def test_sanitizes_on_ascii_terminal(self, monkeypatch):
        monkeypatch.setattr(safe_console, 'is_utf8_capable', lambda: False)
        buffer = io.StringIO()
        console = SafeConsole(file=buffer, width=120)
        console.success("Removed 2 unused dependencies.")
        assert buffer.getvalue().startswith("[OK] Removed 2")
