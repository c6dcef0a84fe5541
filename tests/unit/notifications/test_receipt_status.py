"""Unit tests for receipt retry bookkeeping."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from modules.notifications.models import (
    LAST_ERROR_MAX_LENGTH,
    ReceiptEmailStatus,
    compute_backoff_seconds,
)
from modules.notifications.receipts import _percent, format_money

pytestmark = pytest.mark.unit

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "attempts, seconds",
    [(0, 60), (1, 60), (2, 120), (3, 240), (6, 1920), (7, 3600), (20, 3600)],
)
def test_backoff_doubles_then_caps(attempts, seconds):
    assert compute_backoff_seconds(attempts) == seconds


class TestMarkFailed:
    def test_schedules_next_retry(self):
        status = ReceiptEmailStatus()

        status.mark_failed("smtp down", now=NOW)
        status.mark_failed("smtp down", now=NOW)

        assert status.attempts == 2
        assert status.last_error == "smtp down"
        assert status.next_retry_at == NOW + timedelta(seconds=120)

    def test_error_is_truncated(self):
        status = ReceiptEmailStatus()

        status.mark_failed("x" * 5000, now=NOW)

        assert len(status.last_error) == LAST_ERROR_MAX_LENGTH

    def test_mark_sent_clears_retry_state(self):
        status = ReceiptEmailStatus()
        status.mark_failed("boom", now=NOW)

        status.mark_sent(now=NOW)

        assert status.sent is True
        assert status.sent_at == NOW
        assert status.last_error == ""
        assert status.next_retry_at is None
        assert status.attempts == 1


class TestFormatting:
    def test_money_uses_currency_symbol(self):
        assert format_money(Decimal("105000"), "NGN") == "₦105,000.00"
        assert format_money(Decimal("55.255"), "USD") == "$55.26"

    @pytest.mark.parametrize(
        "rate, text",
        [(Decimal("0.075"), "7.5"), (Decimal("0.1"), "10"), (Decimal("0.2"), "20")],
    )
    def test_percent(self, rate, text):
        assert _percent(rate) == text
