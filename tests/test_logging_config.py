import logging

import pytest

from arrow_agent.logging_config import REDACTED, mask_secrets, setup_logging


def test_mask_secrets_redacts_bound_keys():
    event = {"event": "boot", "agent_private_key": "0xdead", "api_key": "", "chain": "base"}

    masked = mask_secrets(logging.getLogger("test"), "info", event)

    assert masked["agent_private_key"] == REDACTED
    assert masked["api_key"] == ""
    assert masked["chain"] == "base"


@pytest.mark.parametrize("level,expected", [("debug", logging.DEBUG), ("WARNING", logging.WARNING), ("bogus", logging.INFO)])
def test_setup_logging_applies_level(level, expected):
    assert setup_logging(level) == expected
    assert logging.getLogger().level == expected
    assert logging.getLogger("httpx").level >= logging.WARNING
