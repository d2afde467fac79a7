"""
Test that multisend_logging can be imported without circular import and logger works.
"""

from __future__ import annotations


def test_logging_import():
    """Import get_logger from multisend_logging and use the logger."""
    from multisend.multisend_logging import get_logger

    logger = get_logger("test")
    assert logger is not None
    assert hasattr(logger, "info")
    assert hasattr(logger, "debug")
    assert hasattr(logger, "warning")
    assert hasattr(logger, "error")
    # Smoke test: call info (should not raise)
    logger.info("test_message", key="value")


def test_bind_wallet_binds_wallet():
    from structlog.testing import capture_logs

    from multisend.multisend_logging import bind_wallet

    with capture_logs() as logs:
        bind_wallet("wallet-1").warning("send_failed_retrying", attempt=1)
    assert logs[0]["event"] == "send_failed_retrying"
    assert logs[0]["wallet"] == "wallet-1"
    assert logs[0]["attempt"] == 1
    assert logs[0]["log_level"] == "warning"
