"""
Structured logging for multisend.

JSON logs with timestamp, wallet, event_type. Use get_logger() in all modules.
"""

from multisend.multisend_logging.logger import bind_wallet, get_logger

__all__ = ["bind_wallet", "get_logger"]
