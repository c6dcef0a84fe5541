"""Integration tests for the Celery configuration."""

import pytest

pytestmark = pytest.mark.integration


class TestCeleryConfig:
    def test_celery_app_is_importable(self):
        from config.celery import app

        assert app.main == "storefront"

    def test_celery_app_exported_from_init(self):
        from config import celery_app

        assert celery_app.main == "storefront"

    def test_celery_serializer_is_json(self, settings):
        assert settings.CELERY_TASK_SERIALIZER == "json"
        assert settings.CELERY_RESULT_SERIALIZER == "json"
        assert settings.CELERY_ACCEPT_CONTENT == ["json"]

    def test_celery_timezone_matches_django(self, settings):
        assert settings.CELERY_TIMEZONE == settings.TIME_ZONE

    def test_receipt_sweep_is_scheduled(self, settings):
        entry = settings.CELERY_BEAT_SCHEDULE["retry-pending-receipts"]
        assert entry["task"] == "notifications.retry_pending_receipts"

    def test_notification_tasks_registered(self):
        import modules.notifications.tasks  # noqa: F401
        from config.celery import app

        assert {
            "notifications.send_order_receipt",
            "notifications.retry_pending_receipts",
            "notifications.send_status_update",
        } <= set(app.tasks)


class TestSweepTask:
    def test_sweep_runs_eagerly(self):
        from modules.notifications.tasks import retry_pending_receipts

        result = retry_pending_receipts.delay()

        assert result.successful()
        assert result.result == {"processed": 0, "sent": 0}
