from __future__ import annotations

import logging
import sys

from pythonjsonlogger import jsonlogger

from entityboard.logging import configure_logging


def test_configure_logging_installs_single_json_handler(monkeypatch):
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", list(root.handlers))
    level = root.level

    try:
        configure_logging("debug")
        configure_logging("debug")

        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, jsonlogger.JsonFormatter)
        assert root.handlers[0].stream is sys.stderr
    finally:
        root.setLevel(level)
