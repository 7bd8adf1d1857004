import logging

from common.logging.logger import ContextFormatter, LOG_FORMAT, render_context


def test_render_context_drops_none_values():
    assert render_context({"user_id": "bob", "following": True, "session_id": None}) == "user_id=bob following=True"
    assert render_context(None) == "-"
    assert render_context({"session_id": None}) == "-"


def test_formatter_without_context():
    record = logging.LogRecord("travelshare", logging.INFO, __file__, 1, "Follow toggled", None, None)
    assert ContextFormatter(LOG_FORMAT).format(record).endswith("INFO | Follow toggled | -")
