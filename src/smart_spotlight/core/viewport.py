"""Window sizing policy for the spotlight surface.

Maps the handful of UI conditions to host window dimensions. The caller
applies the result; nothing here touches a window.
"""

from __future__ import annotations

from dataclasses import dataclass

WINDOW_WIDTH = 600
MIN_HEIGHT = 60
MAX_HEIGHT = 800
ERROR_EXTRA_HEIGHT = 40
SUGGESTIONS_EXTRA_HEIGHT = 200
RESPONSE_HEIGHT = 600


@dataclass(frozen=True)
class ViewportConditions:
    has_error: bool = False
    has_response: bool = False
    has_suggestions: bool = False


@dataclass(frozen=True)
class WindowSize:
    width: int
    height: int


DEFAULT_SIZE = WindowSize(WINDOW_WIDTH, MIN_HEIGHT)
RESPONSE_SIZE = WindowSize(WINDOW_WIDTH, RESPONSE_HEIGHT)


def calculate_height(conditions: ViewportConditions) -> int:
    """Return the window height for the given conditions.

    A shown response wins over everything else. Otherwise the height grows
    from the minimum by the error and suggestion increments, clamped to
    the maximum.
    """
    if conditions.has_response:
        return RESPONSE_HEIGHT

    height = MIN_HEIGHT
    if conditions.has_error:
        height += ERROR_EXTRA_HEIGHT
    if conditions.has_suggestions:
        height += SUGGESTIONS_EXTRA_HEIGHT
    return max(MIN_HEIGHT, min(height, MAX_HEIGHT))


def window_size(
    has_error: bool = False,
    has_response: bool = False,
    has_suggestions: bool = False,
) -> WindowSize:
    conditions = ViewportConditions(
        has_error=has_error,
        has_response=has_response,
        has_suggestions=has_suggestions,
    )
    return WindowSize(WINDOW_WIDTH, calculate_height(conditions))
