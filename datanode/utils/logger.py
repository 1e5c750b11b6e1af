"""Process-wide logging setup."""

from __future__ import annotations

import logging

_HANDLER_NAME = "datanode-console"
_FORMAT = "[%(asctime)s %(levelname)s %(name)s] %(message)s"


def init_logger() -> logging.Logger:
    """Send INFO and above to stderr; safe to call more than once."""
    root = logging.getLogger()
    root.setLevel(logging.INFO)
    if not any(handler.get_name() == _HANDLER_NAME for handler in root.handlers):
        handler = logging.StreamHandler()
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
    return root