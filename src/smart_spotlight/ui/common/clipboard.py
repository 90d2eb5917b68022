"""Clipboard and fenced-code helpers for the result view."""

from __future__ import annotations

import re

from PySide6.QtWidgets import QApplication

FENCE_RE = re.compile(r"```(?:[a-zA-Z0-9_+-]+)?\n(.*?)```", re.DOTALL)


def extract_fenced_code_blocks(text: str) -> list[str]:
    """Bodies of the ``` fenced blocks in a markdown result, in order."""
    return [block.strip("\n") for block in FENCE_RE.findall(text or "")]


def copy_to_clipboard(text: str) -> None:
    QApplication.clipboard().setText(text or "")
