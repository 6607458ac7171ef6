from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os
import yaml

SUPPORTED_RESOLUTIONS = {
    "1920x1080": (1920, 1080),
    "3840x2160": (3840, 2160),
    "2560x1600": (2560, 1600),
}

def _expand(path: str) -> str:
    return os.path.expanduser(os.path.expandvars(path))

@dataclass(frozen=True)
class Config:
    raw: dict

    @property
    def home_assistant_url(self) -> str:
        url = str(self.raw.get("home_assistant", {}).get("url", "http://homeassistant.local:8123"))
        return url.rstrip("/")

    @property
    def home_assistant_token(self) -> str:
        # Allows "token: $HASS_TOKEN" so secrets stay out of the file
        return os.path.expandvars(str(self.raw.get("home_assistant", {}).get("token", "")))

    @property
    def request_timeout(self) -> float:
        return float(self.raw.get("home_assistant", {}).get("timeout", 10))

    @property
    def store_kind(self) -> str:
        return str(self.raw.get("store", {}).get("kind", "json"))

    @property
    def store_path(self) -> Path:
        path = self.raw.get("store", {}).get("path", "~/.local/state/entityboard/widgets.json")
        return Path(_expand(path))

    @property
    def resolution(self) -> tuple[int, int]:
        res = self.raw.get("resolution", "1920x1080")
        if res not in SUPPORTED_RESOLUTIONS:
            raise ValueError(f"Unsupported resolution {res!r}. Supported: {list(SUPPORTED_RESOLUTIONS)}")
        return SUPPORTED_RESOLUTIONS[res]

    @property
    def columns(self) -> int:
        return int(self.raw.get("columns", 3))

    @property
    def output_path(self) -> Path:
        out = self.raw.get("output", {}).get("path", "~/.cache/entityboard/entityboard.png")
        return Path(_expand(out))

    @property
    def set_gnome_wallpaper(self) -> bool:
        return bool(self.raw.get("output", {}).get("set_gnome_wallpaper", False))

    @property
    def renderer_kind(self) -> str:
        return str(self.raw.get("renderer", {}).get("kind", "pillow"))

    @property
    def theme(self) -> dict:
        return dict(self.raw.get("theme", {}))

    @property
    def web_renderer(self) -> dict:
        return dict(self.raw.get("web_renderer", {}))

    @property
    def log_level(self) -> str:
        return str(self.raw.get("logging", {}).get("level", "INFO"))

def load_config(path: str | Path) -> Config:
    p = Path(_expand(str(path)))
    raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError("config.yaml must contain a YAML mapping at top level.")
    return Config(raw=raw)
