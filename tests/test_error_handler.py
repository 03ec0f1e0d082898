"""Tests for the unified CLI error handler."""
import pytest
import typer

from replant.error_handler import _debug_mode, handle_errors
from replant.errors import ManifestNotFoundError, ReplantError


class TestHandleErrorsDecorator:
    def test_passes_through_on_success(self):
        @handle_errors
        def good_func():
            return "ok"

        assert good_func() == "ok"

    def test_catches_replant_error(self):
        @handle_errors
        def bad_func():
            raise ManifestNotFoundError("/src/pubspec.yaml")

        with pytest.raises(typer.Exit) as exc_info:
            bad_func()
        assert exc_info.value.exit_code == 1

    def test_custom_exit_code(self):
        class Fatal(ReplantError):
            exit_code = 3

        @handle_errors
        def bad_func():
            raise Fatal("stop")

        with pytest.raises(typer.Exit) as exc_info:
            bad_func()
        assert exc_info.value.exit_code == 3

    def test_catches_unexpected_error(self):
        @handle_errors
        def crash_func():
            raise RuntimeError("oops")

        with pytest.raises(typer.Exit) as exc_info:
            crash_func()
        assert exc_info.value.exit_code == 1

    def test_catches_keyboard_interrupt(self):
        @handle_errors
        def interrupted():
            raise KeyboardInterrupt()

        with pytest.raises(typer.Exit) as exc_info:
            interrupted()
        assert exc_info.value.exit_code == 130

    def test_typer_exit_passes_through(self):
        @handle_errors
        def exits():
            raise typer.Exit(2)

        with pytest.raises(typer.Exit) as exc_info:
            exits()
        assert exc_info.value.exit_code == 2


class TestDebugMode:
    def test_debug_off_by_default(self):
        assert _debug_mode() is False

    def test_debug_on_with_1(self, monkeypatch):
        monkeypatch.setenv("REPLANT_DEBUG", "1")
        assert _debug_mode() is True

    def test_debug_on_with_true(self, monkeypatch):
        monkeypatch.setenv("REPLANT_DEBUG", "true")
        assert _debug_mode() is True

    def test_debug_off_with_0(self, monkeypatch):
        monkeypatch.setenv("REPLANT_DEBUG", "0")
        assert _debug_mode() is False
