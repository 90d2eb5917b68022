"""Shared UI utilities: stylesheets, window shape, clipboard and markdown helpers."""

from smart_spotlight.ui.common.clipboard import copy_to_clipboard, extract_fenced_code_blocks
from smart_spotlight.ui.common.styles import (
    BUTTON_STYLE,
    CONTAINER_STYLE,
    ERROR_STYLE,
    INPUT_STYLE,
    LIST_STYLE,
    PRIMARY_BUTTON_STYLE,
    RESULT_STYLE,
    apply_rounded_mask,
)

__all__ = [
    "copy_to_clipboard",
    "extract_fenced_code_blocks",
    "apply_rounded_mask",
    "BUTTON_STYLE",
    "CONTAINER_STYLE",
    "ERROR_STYLE",
    "INPUT_STYLE",
    "LIST_STYLE",
    "PRIMARY_BUTTON_STYLE",
    "RESULT_STYLE",
]
