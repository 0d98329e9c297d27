"""Rendering of alert and toast components for the web interface."""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Dict, Union

Renderer = Callable[[str, Dict[str, Any]], Any]


class AlertColor(str, Enum):
    DEFAULT = "primary"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class InvalidColorError(ValueError):
    """The color is not one of the alert colors."""

    def __init__(self) -> None:
        super().__init__("invalid color")


def _color(color: Union[str, AlertColor]) -> str:
    try:
        return AlertColor(color).value
    except ValueError:
        raise InvalidColorError() from None


def render_ephemeral_alert(color: Union[str, AlertColor], message: str, render: Renderer) -> Any:
    """Render an alert that disappears by itself."""
    name = _color(color)
    return render(f"components/alerts/ephemeral/ephemeral_alert_{name}", {"message": message})


def render_alert(color: Union[str, AlertColor], message: str, render: Renderer) -> Any:
    """Render a persistent alert."""
    name = _color(color)
    return render(f"components/alerts/default/alert_{name}", {"message": message})


def render_ephemeral_toast(color: Union[str, AlertColor], message: str, render: Renderer) -> Any:
    """Render a toast that disappears by itself."""
    name = _color(color)
    return render(f"components/toasts/ephemeral/ephemeral_toast_{name}", {"message": message})


def render_toast(color: Union[str, AlertColor], message: str, render: Renderer) -> Any:
    """Render a persistent toast."""
    name = _color(color)
    return render(f"components/toasts/default/toast_{name}", {"message": message})