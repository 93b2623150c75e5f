"""HTTP surface: auth guards, status codes and response shapes."""
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

from models import NotificationSettings, UserProfile, RetentionScanResult, RetentionReminderResult
from services.sms_service import SMSConfigurationError
from services.transport_result import TransportResult


# ============================================================================
# Health
# ============================================================================

def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_root(client):
    assert client.get("/api").json()["status"] == "operational"


# ============================================================================
# Dispatch
# ============================================================================

def test_dispatch_requires_auth(client):
    response = client.post("/api/notifications/dispatch", json={"event": "order_placed", "payload": {}})
    assert response.status_code == 401


def test_client_dispatch_for_self_is_queued(client, client_headers):
    with patch("routes.notifications.enqueue_notification", new_callable=AsyncMock, return_value="task-1") as enqueue:
        response = client.post(
            "/api/notifications/dispatch",
            json={"event": "order_placed", "payload": {"order_number": "TFC-1"}},
            headers=client_headers,
        )

    assert response.status_code == 202
    assert response.json() == {"queued": True, "task_id": "task-1"}
    assert enqueue.call_args.kwargs["user_id"] == "user-1"


def test_client_cannot_dispatch_for_another_user(client, client_headers):
    with patch("routes.notifications.enqueue_notification", new_callable=AsyncMock) as enqueue:
        response = client.post(
            "/api/notifications/dispatch",
            json={"event": "order_placed", "user_id": "someone-else", "payload": {}},
            headers=client_headers,
        )
    assert response.status_code == 403
    enqueue.assert_not_awaited()


def test_unknown_event_is_rejected(client, admin_headers):
    response = client.post(
        "/api/notifications/dispatch",
        json={"event": "invoice_created", "user_id": "user-1", "payload": {}},
        headers=admin_headers,
    )
    assert response.status_code == 422


def test_admin_dispatch_queues_admin_task(client, client_headers):
    with patch("routes.notifications.enqueue_notification", new_callable=AsyncMock, return_value="task-2") as enqueue:
        response = client.post(
            "/api/notifications/admin-dispatch",
            json={"event": "booking_created", "payload": {"customer_name": "Sam"}},
            headers=client_headers,
        )
    assert response.status_code == 202
    assert enqueue.call_args.kwargs["recipient_type"].value == "admin"


# ============================================================================
# Settings / preferences
# ============================================================================

def test_settings_require_admin(client, client_headers):
    response = client.get("/api/admin/notification-settings", headers=client_headers)
    assert response.status_code == 403


def test_get_settings_not_configured(client, admin_headers):
    store = MagicMock()
    store.get_notification_settings = AsyncMock(return_value=None)
    with patch("routes.admin_notifications.notification_settings_store", store):
        response = client.get("/api/admin/notification-settings", headers=admin_headers)
    assert response.status_code == 404


def test_put_settings_saves_and_audits(client, admin_headers):
    store = MagicMock()
    store.save_notification_settings = AsyncMock(side_effect=lambda s: s)
    body = {
        "email_enabled": True,
        "sms_enabled": False,
        "notifications": {"order_placed": {"email": True, "sms": False, "recipients": ["client"]}},
    }
    with patch("routes.admin_notifications.notification_settings_store", store), \
         patch("routes.admin_notifications.create_audit_log", new_callable=AsyncMock) as audit:
        response = client.put("/api/admin/notification-settings", json=body, headers=admin_headers)

    assert response.status_code == 200
    saved = store.save_notification_settings.call_args.args[0]
    assert isinstance(saved, NotificationSettings)
    assert saved.notifications["order_placed"].email is True
    assert audit.call_args.kwargs["action"].value == "NOTIFICATION_SETTINGS_UPDATED"


def test_get_preferences_defaults_to_opted_in(client, client_headers):
    store = MagicMock()
    store.get_user_profile = AsyncMock(return_value=UserProfile(id="user-1", notification_downloads=False))
    with patch("routes.profile.profile_store", store):
        response = client.get("/api/profile/notification-preferences", headers=client_headers)
    assert response.json() == {"notification_project_updates": True, "notification_downloads": False}


def test_put_preferences_updates_current_user(client, client_headers):
    store = MagicMock()
    store.update_notification_preferences = AsyncMock(
        return_value=UserProfile(id="user-1", notification_project_updates=False)
    )
    with patch("routes.profile.profile_store", store), \
         patch("routes.profile.create_audit_log", new_callable=AsyncMock):
        response = client.put(
            "/api/profile/notification-preferences",
            json={"notification_project_updates": False},
            headers=client_headers,
        )
    assert response.status_code == 200
    user_id, prefs = store.update_notification_preferences.call_args.args
    assert user_id == "user-1"
    assert prefs.notification_project_updates is False
    assert prefs.notification_downloads is None


# ============================================================================
# Retention trigger
# ============================================================================

def test_retention_requires_cron_secret_or_admin(client):
    response = client.post("/api/retention/send-reminders")
    assert response.status_code == 401


def test_retention_with_cron_secret(client):
    job = MagicMock()
    job.run_scan = AsyncMock(return_value=RetentionScanResult(
        reminders_sent=1,
        message="Sent 1 retention reminder(s)",
        results=[RetentionReminderResult(
            order_number="TFC-1",
            email="jane@example.com",
            days_remaining=7,
            item_count=2,
            expires_at=datetime(2026, 3, 8, 12, tzinfo=timezone.utc),
        )],
    ))
    with patch("auth.CRON_SECRET", "s3cret"), \
         patch("routes.retention.retention_reminder_job", job):
        response = client.post("/api/retention/send-reminders", headers={"X-Cron-Secret": "s3cret"})

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["reminders_sent"] == 1
    assert data["message"] == "Sent 1 retention reminder(s)"
    assert data["results"][0]["order_number"] == "TFC-1"


def test_retention_wrong_cron_secret_rejected(client):
    with patch("auth.CRON_SECRET", "s3cret"):
        response = client.post("/api/retention/send-reminders", headers={"X-Cron-Secret": "nope"})
    assert response.status_code == 401


def test_retention_fatal_error_returns_500(client, admin_headers):
    job = MagicMock()
    job.run_scan = AsyncMock(return_value=RetentionScanResult(success=False, error="Database not connected"))
    with patch("routes.retention.retention_reminder_job", job):
        response = client.post("/api/retention/send-reminders", headers=admin_headers)
    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Database not connected"}


# ============================================================================
# Raw email / SMS
# ============================================================================

def test_send_email_missing_fields(client, client_headers):
    response = client.post("/api/email/send", json={"to": "jane@example.com"}, headers=client_headers)
    assert response.status_code == 400


def test_send_email_not_configured(client, client_headers):
    service = MagicMock()
    service.is_configured = MagicMock(return_value=False)
    with patch("routes.email.email_service", service):
        response = client.post(
            "/api/email/send",
            json={"to": "jane@example.com", "subject": "Hi", "html": "<p>Hi</p>"},
            headers=client_headers,
        )
    assert response.status_code == 500


def test_send_email_parses_from_header(client, client_headers):
    service = MagicMock()
    service.is_configured = MagicMock(return_value=True)
    service.send_email = AsyncMock(return_value=TransportResult(success=True, status="sent", provider_message_id="pm-1"))
    with patch("routes.email.email_service", service):
        response = client.post(
            "/api/email/send",
            json={"to": "jane@example.com", "subject": "Hi", "html": "<p>Hi</p>", "from": "Studio <studio@tfcmediagroup.com>"},
            headers=client_headers,
        )
    assert response.status_code == 200
    assert response.json()["id"] == "pm-1"
    kwargs = service.send_email.call_args.kwargs
    assert kwargs["from_name"] == "Studio"
    assert kwargs["from_address"] == "studio@tfcmediagroup.com"


def test_send_email_provider_error_is_502(client, client_headers):
    service = MagicMock()
    service.is_configured = MagicMock(return_value=True)
    service.send_email = AsyncMock(return_value=TransportResult(success=False, status="failed", error="bad"))
    with patch("routes.email.email_service", service):
        response = client.post(
            "/api/email/send",
            json={"to": "jane@example.com", "subject": "Hi", "html": "<p>Hi</p>"},
            headers=client_headers,
        )
    assert response.status_code == 502


def test_send_sms_requires_admin(client, client_headers):
    response = client.post("/api/sms/send", json={"to": "+15551234567", "message": "hi"}, headers=client_headers)
    assert response.status_code == 403


def test_send_sms_missing_credentials_is_500(client, admin_headers):
    service = MagicMock()
    service.send_sms = AsyncMock(side_effect=SMSConfigurationError("Twilio credentials not configured"))
    with patch("routes.sms.sms_service", service):
        response = client.post("/api/sms/send", json={"to": "+15551234567", "message": "hi"}, headers=admin_headers)
    assert response.status_code == 500


def test_send_sms_provider_error_is_400(client, admin_headers):
    service = MagicMock()
    service.send_sms = AsyncMock(return_value=TransportResult(success=False, status="failed", error="Invalid 'To'", code="21211"))
    with patch("routes.sms.sms_service", service):
        response = client.post("/api/sms/send", json={"to": "+1555", "message": "hi"}, headers=admin_headers)
    assert response.status_code == 400


def test_send_sms_missing_fields(client, admin_headers):
    response = client.post("/api/sms/send", json={"to": "+15551234567"}, headers=admin_headers)
    assert response.status_code == 400


# ============================================================================
# Download package email
# ============================================================================

def test_resend_download_email(client, admin_headers):
    orders = MagicMock()
    orders.get_download_package = AsyncMock(return_value={
        "id": "pkg-1",
        "order_id": "o1",
        "zip_url": "https://cdn.example.com/pkg.zip",
        "expires_at": "2026-03-03T12:00:00+00:00",
        "item_count": 10,
        "file_size": 1024 ** 3,
    })
    orders.get_order = AsyncMock(return_value={
        "id": "o1",
        "client_id": "user-1",
        "order_items": [{"id": "i1", "gallery_item": {"id": "g1", "session_name": "Smith Wedding"}}],
    })
    profiles = MagicMock()
    profiles.get_user_profile = AsyncMock(return_value=UserProfile(id="user-1", email="jane@example.com", name="Jane"))
    service = MagicMock()
    service.send_email = AsyncMock(return_value=TransportResult(success=True, status="sent", provider_message_id="pm-9"))

    with patch("routes.downloads.order_store", orders), \
         patch("routes.downloads.profile_store", profiles), \
         patch("routes.downloads.email_service", service), \
         patch("routes.downloads.create_audit_log", new_callable=AsyncMock):
        response = client.post("/api/downloads/pkg-1/resend-email", headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == {"success": True, "email_id": "pm-9", "sent_to": "jane@example.com"}
    html = service.send_email.call_args.kwargs["html"]
    assert "Smith Wedding" in html
    assert "1.00 GB" in html


def test_resend_download_email_unknown_package(client, admin_headers):
    orders = MagicMock()
    orders.get_download_package = AsyncMock(return_value=None)
    with patch("routes.downloads.order_store", orders):
        response = client.post("/api/downloads/nope/resend-email", headers=admin_headers)
    assert response.status_code == 404


# ============================================================================
# Manual job run
# ============================================================================

def test_run_job_invalid_id(client, admin_headers):
    response = client.post("/api/admin/jobs/run", json={"job": "nope"}, headers=admin_headers)
    assert response.status_code == 400
    assert "retention_reminders" in response.json()["detail"]


def test_run_job_retention(client, admin_headers):
    runner = AsyncMock(return_value={"message": "Sent 2 retention reminder(s)", "count": 2})
    with patch.dict("job_runner.JOB_RUNNERS", {"retention_reminders": runner}), \
         patch("routes.admin_notifications.create_audit_log", new_callable=AsyncMock):
        response = client.post("/api/admin/jobs/run", json={"job": "retention_reminders"}, headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["message"] == "Sent 2 retention reminder(s)"
    assert response.json()["count"] == 2
