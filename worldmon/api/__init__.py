from worldmon.api.server import APIHandlers, create_app, parse_limit
from worldmon.api.handlers import monitor_handlers

__all__ = ["APIHandlers", "create_app", "monitor_handlers", "parse_limit"]
