import logging

from app.core.logging import setup_logging
from app.utils.logging_redaction import RedactingFilter, redact_message


def test_redacts_bearer_tokens():
    assert redact_message("Authorization: Bearer abc.def-123") == "Authorization: Bearer [REDACTED]"


def test_redacts_secret_keys():
    assert redact_message("using sk-abcdefghijklmnop1234") == "using sk-[REDACTED]"


def test_redacts_password_pairs():
    assert redact_message("login password=hunter2 ok") == "login password=[REDACTED] ok"


def test_redacts_database_url_credentials():
    message = redact_message("connecting to postgresql://invest_user:s3cret@db:5432/invest")
    assert message == "connecting to postgresql://invest_user:[REDACTED]@db:5432/invest"


def test_leaves_plain_messages_alone():
    assert redact_message("Investment created: inv-1 ₹1000") == "Investment created: inv-1 ₹1000"


def test_filter_formats_args_before_redacting():
    record = logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="key %s",
        args=("api_key=abc123",),
        exc_info=None,
    )

    assert RedactingFilter().filter(record) is True
    assert record.getMessage() == "key api_key=[REDACTED]"


def test_setup_logging_installs_filter_once():
    root = logging.getLogger()
    try:
        setup_logging("DEBUG")
        setup_logging("DEBUG")

        assert sum(isinstance(f, RedactingFilter) for f in root.filters) == 1
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
        assert logging.getLogger("httpx").level == logging.WARNING
    finally:
        for target in [root, *root.handlers]:
            for f in [f for f in target.filters if isinstance(f, RedactingFilter)]:
                target.removeFilter(f)
