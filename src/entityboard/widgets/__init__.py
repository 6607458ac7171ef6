from __future__ import annotations

from .base import RenderSink, WidgetResult
from .entity import EntityWidget, parse_widget_config

__all__ = ["EntityWidget", "RenderSink", "WidgetResult", "parse_widget_config"]
