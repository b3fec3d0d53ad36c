"""Tests for the terminal host's clipboard handling."""

from __future__ import annotations

import asyncio
import stat
from pathlib import Path

import pytest

from giant_ai.hosts.terminal import TerminalHost

pytestmark = pytest.mark.subprocess


def write_script(directory: Path, name: str, body: str) -> Path:
    path = directory / name
    path.write_text("#!/bin/sh\n" + body)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.mark.asyncio
async def test_clipboard_command_receives_text(tmp_path):
    sink = tmp_path / "clipboard.txt"
    copy = write_script(tmp_path, "copy", f'cat > "{sink}"\n')

    await TerminalHost(cwd=tmp_path, clipboard_command=[str(copy)]).set_clipboard("src/auth.go:12: handleLogin")

    assert sink.read_text() == "src/auth.go:12: handleLogin"


@pytest.mark.asyncio
async def test_slow_clipboard_does_not_block_the_loop(tmp_path):
    sink = tmp_path / "clipboard.txt"
    copy = write_script(tmp_path, "copy", f'sleep 1\ncat > "{sink}"\n')
    host = TerminalHost(cwd=tmp_path, clipboard_command=[str(copy)])
    ticks = []

    async def ticker():
        for _ in range(5):
            await asyncio.sleep(0.05)
            ticks.append(sink.exists())

    await asyncio.gather(host.set_clipboard("results"), ticker())

    assert ticks == [False] * 5
    assert sink.read_text() == "results"


@pytest.mark.asyncio
async def test_failing_clipboard_prints_text(tmp_path, capsys):
    broken = write_script(tmp_path, "copy", "echo 'no display' >&2\nexit 1\n")

    await TerminalHost(cwd=tmp_path, clipboard_command=[str(broken)]).set_clipboard("a.py:1: x")

    assert capsys.readouterr().out == "a.py:1: x\n"


@pytest.mark.asyncio
async def test_missing_clipboard_binary_prints_text(tmp_path, capsys):
    host = TerminalHost(cwd=tmp_path, clipboard_command=["giant-ai-definitely-missing-copy"])

    await host.set_clipboard("a.py:1: x")

    assert capsys.readouterr().out == "a.py:1: x\n"
