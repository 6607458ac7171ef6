from __future__ import annotations

import argparse
import asyncio
import json

from .client import HomeAssistantClient
from .config import Config, load_config
from .logging import configure_logging
from .models import EntitySnapshot
from .renderers import RENDERERS
from .resolver import TextResolver
from .store import get_widget_store
from .surface import SurfaceSink
from .widgets.entity import (
    ATTRIBUTE_IDS,
    ATTRIBUTE_SEPARATOR,
    ENTITY_ID,
    LABEL,
    STATE_SEPARATOR,
    TEXT_SIZE,
    EntityWidget,
)

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="entityboard")
    ap.add_argument("--config", default="config.yaml", help="Path to config.yaml")
    sub = ap.add_subparsers(dest="command", required=True)

    cfg = sub.add_parser("configure", help="Create or replace a widget")
    cfg.add_argument("id", type=int)
    cfg.add_argument("entity", help="Entity id, e.g. sensor.outside_temperature")
    cfg.add_argument("--attributes", default=None, help="Comma-separated attribute keys")
    cfg.add_argument("--label")
    cfg.add_argument("--text-size", help="Text size in sp (default 30)")
    cfg.add_argument("--state-separator", default="")
    cfg.add_argument("--attribute-separator", default="")

    ref = sub.add_parser("refresh", help="Resolve widgets and render the board")
    ref.add_argument("ids", type=int, nargs="*")
    ref.add_argument("--renderer", choices=list(RENDERERS), help="Override renderer.kind from config")
    ref.add_argument("--no-set", action="store_true", help="Do not set GNOME wallpaper")

    ev = sub.add_parser("event", help="Apply a pushed entity state and render the board")
    ev.add_argument("entity")
    ev.add_argument("state")
    ev.add_argument("--attributes", default="{}", help="Attributes as a JSON object")
    ev.add_argument("--renderer", choices=list(RENDERERS), help="Override renderer.kind from config")
    ev.add_argument("--no-set", action="store_true", help="Do not set GNOME wallpaper")

    rm = sub.add_parser("delete", help="Remove widgets and their cached text")
    rm.add_argument("ids", type=int, nargs="+")

    sub.add_parser("list", help="Show configured widgets")
    return ap

def build_widget(cfg: Config, renderer: str | None = None, set_wallpaper: bool = True) -> tuple[EntityWidget, SurfaceSink]:
    store = get_widget_store(cfg.store_kind, cfg.store_path)
    client = HomeAssistantClient(cfg.home_assistant_url, cfg.home_assistant_token, cfg.request_timeout)
    sink = SurfaceSink(
        cfg.output_path,
        renderer=renderer or cfg.renderer_kind,
        resolution=cfg.resolution,
        columns=cfg.columns,
        theme=cfg.theme,
        web_cfg=cfg.web_renderer,
        set_wallpaper=cfg.set_gnome_wallpaper and set_wallpaper,
    )
    return EntityWidget(store, TextResolver(client, store), sink), sink

async def _run(args: argparse.Namespace, cfg: Config) -> int:
    renderer = getattr(args, "renderer", None)
    widget, sink = build_widget(cfg, renderer, not getattr(args, "no_set", False))

    if args.command == "configure":
        result = await widget.save_entity_configuration(args.id, {
            ENTITY_ID: args.entity,
            ATTRIBUTE_IDS: args.attributes,
            LABEL: args.label,
            TEXT_SIZE: args.text_size,
            STATE_SEPARATOR: args.state_separator,
            ATTRIBUTE_SEPARATOR: args.attribute_separator,
        })
        if result is None:
            return 1
        print(f"{result.instance_id}\t{result.title}\t{result.text}" + ("\t(stale)" if result.stale else ""))
        return 0

    if args.command == "refresh":
        await widget.show_cached()
        await widget.on_refresh_all(args.ids or None)
        sink.flush()
        return 0

    if args.command == "event":
        try:
            attributes = json.loads(args.attributes)
        except json.JSONDecodeError as e:
            raise SystemExit(f"--attributes is not valid JSON: {e}") from e
        if not isinstance(attributes, dict):
            raise SystemExit("--attributes must be a JSON object")
        await widget.show_cached()
        widget.handle_push(args.entity, EntitySnapshot(args.entity, args.state, attributes))
        await widget.drain()
        sink.flush()
        return 0

    if args.command == "delete":
        await widget.on_delete(args.ids)
        return 0

    if args.command == "list":
        for config in await widget.list_widgets():
            text = await widget.cached_text(config.instance_id)
            attrs = ",".join(config.attribute_keys) or "-"
            print(f"{config.instance_id}\t{config.entity_id}\t{attrs}\t{config.display_label}\t{text or ''}")
        return 0

    return 2

def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = load_config(args.config)
    configure_logging(cfg.log_level)
    return asyncio.run(_run(args, cfg))
