from __future__ import annotations

import logging
import subprocess
import threading
from pathlib import Path
from typing import Iterable

from .dashboard import DashboardData, collect_all
from .models import DEFAULT_TEXT_SIZE
from .renderers import render_with
from .widgets.base import WidgetResult

logger = logging.getLogger(__name__)


def set_gnome_wallpaper(image_path: Path) -> None:
    uri = image_path.resolve().as_uri()
    subprocess.run(
        ["gsettings", "set", "org.gnome.desktop.background", "picture-uri", uri],
        check=True
    )
    # Dark-style GNOME sessions read picture-uri-dark instead
    subprocess.run(
        ["gsettings", "set", "org.gnome.desktop.background", "picture-uri-dark", uri],
        check=False
    )


class SurfaceSink:
    """Collects published widget cards and draws them onto one image."""

    def __init__(
        self,
        out_path: Path,
        renderer: str = "pillow",
        resolution: tuple[int, int] = (1920, 1080),
        columns: int = 3,
        theme: dict | None = None,
        web_cfg: dict | None = None,
        set_wallpaper: bool = False,
    ) -> None:
        self.out_path = out_path
        self.renderer = renderer
        self.resolution = resolution
        self.columns = columns
        self.theme = theme or {}
        self.web_cfg = web_cfg or {}
        self.set_wallpaper = set_wallpaper
        self._latest: dict[int, WidgetResult] = {}
        self._lock = threading.Lock()

    def publish(
        self,
        instance_id: int,
        text: str | None,
        label: str,
        is_error: bool,
        text_size: float = DEFAULT_TEXT_SIZE,
        stale: bool = False,
    ) -> WidgetResult:
        result = WidgetResult(
            instance_id=instance_id,
            title=label,
            text=text or "",
            text_size=text_size,
            ok=not is_error,
            # Error results carry the cached fallback text
            stale=stale or is_error,
        )
        with self._lock:
            self._latest[instance_id] = result
        return result

    def forget(self, instance_ids: Iterable[int]) -> None:
        with self._lock:
            for instance_id in instance_ids:
                self._latest.pop(instance_id, None)

    def snapshot(self, order: Iterable[int] | None = None) -> DashboardData:
        with self._lock:
            return collect_all(dict(self._latest), order)

    def flush(self, order: Iterable[int] | None = None) -> Path:
        dash = self.snapshot(order)
        rendered = render_with(
            self.renderer,
            self.out_path,
            dash,
            self.resolution,
            self.columns,
            self.theme,
            self.web_cfg,
        )
        logger.info("Rendered %d widget(s) to %s", len(dash.results), rendered)
        if self.set_wallpaper:
            set_gnome_wallpaper(rendered)
        return rendered
