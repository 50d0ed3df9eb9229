"""Tests for opening URLs in the system browser."""

import asyncio
import os

import pytest

from rijksmuseum_mcp.browser import open_command, open_in_browser


class FakeProcess:
    """Stand-in for asyncio.subprocess.Process."""

    def __init__(self, returncode: int, stderr: bytes = b"") -> None:
        self.returncode = returncode
        self._stderr = stderr

    async def communicate(self) -> tuple[bytes | None, bytes]:
        return None, self._stderr


def patch_exec(monkeypatch: pytest.MonkeyPatch, result) -> list[tuple]:
    calls: list[tuple] = []

    async def fake_exec(*args, **kwargs):
        calls.append(args)
        if isinstance(result, BaseException):
            raise result
        return result

    monkeypatch.setattr(asyncio, "create_subprocess_exec", fake_exec)
    return calls


class TestOpenCommand:
    """Tests for platform command selection."""

    @pytest.mark.parametrize(
        ("platform", "expected"),
        [
            ("darwin", ["open", "http://x/y"]),
            ("linux", ["xdg-open", "http://x/y"]),
        ],
    )
    def test_platforms(self, platform: str, expected: list[str]) -> None:
        """Test the opener for each platform."""
        assert open_command("http://x/y", platform) == expected


class TestOpenInBrowser:
    """Tests for open_in_browser."""

    async def test_success(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a zero exit status means the browser was opened."""
        calls = patch_exec(monkeypatch, FakeProcess(0))

        result = await open_in_browser("https://lh3.example.com/img")

        assert result.opened is True
        assert result.detail is None
        assert len(calls) == 1
        assert calls[0][-1] == "https://lh3.example.com/img"

    async def test_missing_opener(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a missing opener executable is reported, not raised."""
        patch_exec(monkeypatch, FileNotFoundError(2, "No such file or directory"))

        result = await open_in_browser("http://x/y")

        assert result.opened is False
        assert "No such file or directory" in result.detail

    async def test_non_zero_exit(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a failing opener reports its stderr."""
        patch_exec(monkeypatch, FakeProcess(3, b"no display available\n"))

        result = await open_in_browser("http://x/y")

        assert result.opened is False
        assert result.detail.endswith("failed: no display available")

    async def test_non_zero_exit_without_stderr(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the exit status is reported when stderr is empty."""
        patch_exec(monkeypatch, FakeProcess(4))

        result = await open_in_browser("http://x/y")

        assert result.opened is False
        assert "exit status 4" in result.detail


class TestOpenInBrowserWindows:
    """Tests for open_in_browser on Windows."""

    async def test_query_string_kept_whole(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a URL with '&' is handed over intact and no process is spawned."""
        opened: list[str] = []
        monkeypatch.setattr(os, "startfile", opened.append, raising=False)
        calls = patch_exec(monkeypatch, FakeProcess(0))

        result = await open_in_browser("https://x/y?a=1&calc", platform="win32")

        assert result.opened is True
        assert opened == ["https://x/y?a=1&calc"]
        assert calls == []

    async def test_start_failure(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test an OSError from the shell association is reported, not raised."""

        def fail(url: str) -> None:
            raise OSError(1155, "No application is associated with the specified file")

        monkeypatch.setattr(os, "startfile", fail, raising=False)

        result = await open_in_browser("http://x/y", platform="win32")

        assert result.opened is False
        assert "No application is associated" in result.detail
