"""Template rendering: subjects, amounts, dates, pluralisation and retention urgency."""
from datetime import datetime, timezone

import pytest

from models import NotificationEvent
from services.notification_errors import TemplateNotFound
from services.template_renderer import (
    render_email,
    render_admin_email,
    render_sms,
    render_retention_reminder,
    render_download_package_ready,
    render_invoice_created,
    render_payment_request,
    render_payment_reminder,
    render_payment_received,
    render_project_update,
    render_support_status,
    retention_urgency,
)
from utils.formatting import format_email_date, format_amount, pluralize, format_long_date, format_long_datetime


class TestClientEmails:
    def test_order_placed_lists_items_and_total(self):
        rendered = render_email(
            NotificationEvent.ORDER_PLACED,
            {
                "order_number": "TFC-1001",
                "total": 37.5,
                "items": [
                    {"name": "Print 8x10", "quantity": 2, "price": 12.5},
                    {"name": "Digital File", "quantity": 1, "price": 12.5},
                ],
            },
            "Jane",
        )
        assert rendered.subject == "Order Confirmation - #TFC-1001"
        assert "Hi Jane," in rendered.html
        assert "Print 8x10" in rendered.html
        assert "$12.50" in rendered.html
        assert "$37.50" in rendered.html
        assert "Total: $37.50" in rendered.text

    def test_order_completed_links_download(self):
        rendered = render_email(
            NotificationEvent.ORDER_COMPLETED,
            {"order_number": "TFC-1001", "download_url": "https://tfcmediagroup.com/portal/downloads/abc"},
            "Jane",
        )
        assert rendered.subject == "Your Order is Ready! - #TFC-1001"
        assert 'href="https://tfcmediagroup.com/portal/downloads/abc"' in rendered.html

    def test_booking_confirmed_formats_date(self):
        rendered = render_email(
            NotificationEvent.BOOKING_CONFIRMED,
            {"service_type": "Headshots", "confirmed_date": "2026-01-09", "confirmed_time": "3:00 PM"},
            "Jane",
        )
        assert rendered.subject == "Booking Confirmed!"
        assert "Jan 9, 2026" in rendered.html
        assert "Headshots" in rendered.html

    def test_booking_created_has_no_client_email(self):
        with pytest.raises(TemplateNotFound):
            render_email(NotificationEvent.BOOKING_CREATED, {}, "Jane")

    def test_values_are_not_escaped(self):
        rendered = render_email(NotificationEvent.ORDER_COMPLETED, {"order_number": "<b>1</b>"}, "Jane")
        assert "<strong>#<b>1</b></strong>" in rendered.html


class TestAdminEmail:
    def test_booking_created(self):
        rendered = render_admin_email(
            NotificationEvent.BOOKING_CREATED,
            {
                "customer_name": "Sam",
                "customer_email": "sam@example.com",
                "customer_phone": "+15551234567",
                "service_type": "Wedding",
                "booking_date": "2026-06-20",
                "booking_time": "2:00 PM",
            },
        )
        assert rendered.subject == "New Booking Received!"
        assert "sam@example.com" in rendered.html
        assert "+15551234567" in rendered.html
        assert "Jun 20, 2026" in rendered.html

    def test_other_events_have_no_admin_template(self):
        with pytest.raises(TemplateNotFound):
            render_admin_email(NotificationEvent.ORDER_COMPLETED, {})


class TestSms:
    def test_order_placed(self):
        assert render_sms(NotificationEvent.ORDER_PLACED, {"order_number": "42", "total": 99}) == (
            "Your order #42 has been confirmed! Total: $99.00"
        )

    def test_order_completed(self):
        assert render_sms(NotificationEvent.ORDER_COMPLETED, {"order_number": "42"}) == (
            "Your order #42 is ready for download! Visit your client portal to download."
        )

    def test_booking_confirmed(self):
        message = render_sms(
            NotificationEvent.BOOKING_CONFIRMED,
            {"service_type": "Headshots", "confirmed_date": "2026-01-09", "confirmed_time": "3:00 PM"},
        )
        assert message == "Your booking for Headshots on 2026-01-09 at 3:00 PM has been confirmed!"

    def test_booking_created_has_no_sms(self):
        with pytest.raises(TemplateNotFound):
            render_sms(NotificationEvent.BOOKING_CREATED, {})


class TestRetentionReminder:
    @pytest.mark.parametrize(
        "days,expected",
        [(90, "info"), (31, "info"), (30, "warning"), (15, "warning"), (8, "warning"), (7, "urgent"), (1, "urgent")],
    )
    def test_urgency_thresholds(self, days, expected):
        assert retention_urgency(days) == expected

    def test_urgent_copy_and_colours(self):
        rendered = render_retention_reminder("Jane", 7, 3, "https://tfcmediagroup.com/portal/downloads")
        assert rendered.subject == "7 days remaining to download your media"
        assert "#dc3545" in rendered.html
        assert "final reminder" in rendered.text
        assert "3 items" in rendered.text
        assert "7 DAYS REMAINING" in rendered.text
        assert "download them today" in rendered.text

    def test_info_copy(self):
        rendered = render_retention_reminder("Jane", 90, 1, "https://x/portal/downloads")
        assert "#17a2b8" in rendered.html
        assert "friendly reminder" in rendered.text
        assert "1 item available" in rendered.text
        assert "https://x/portal/downloads" in rendered.html

    def test_warning_colours(self):
        rendered = render_retention_reminder("Jane", 30, 2, "https://x")
        assert "#ffc107" in rendered.html
        assert "#fff3cd" in rendered.html

    def test_single_day_is_singular(self):
        rendered = render_retention_reminder("Jane", 1, 2, "https://x")
        assert "1 DAY REMAINING" in rendered.text
        assert "What happens after 1 day?" in rendered.text


class TestDownloadPackageReady:
    def test_size_in_gb_and_expiry(self):
        rendered = render_download_package_ready(
            client_name="Jane",
            event_name="Smith Wedding",
            item_count=120,
            file_size=3 * 1024 ** 3 // 2,
            download_url="https://cdn.example.com/pkg.zip",
            expires_at=datetime(2026, 1, 9, 15, 5, tzinfo=timezone.utc),
        )
        assert rendered.subject == "Your Download Package is Ready! 📦"
        assert "1.50 GB" in rendered.html
        assert '"Smith Wedding"' in rendered.html
        assert "January 9, 2026 at 3:05 PM" in rendered.text
        assert "120 high-resolution items" in rendered.text


class TestFormatting:
    def test_format_email_date(self):
        assert format_email_date("2026-01-09") == "Jan 9, 2026"
        assert format_email_date("next tuesday") == "next tuesday"

    def test_format_amount(self):
        assert format_amount(12.5) == "$12.50"
        assert format_amount(None) == "$0.00"

    def test_pluralize(self):
        assert pluralize(1, "item") == "item"
        assert pluralize(0, "item") == "items"
        assert pluralize(2, "day") == "days"

    def test_format_long_datetime(self):
        assert format_long_datetime(datetime(2026, 1, 9, 0, 30)) == "January 9, 2026 at 12:30 AM"

    def test_format_long_date(self):
        assert format_long_date("2026-02-15") == "February 15, 2026"
        assert format_long_date("soon") == "soon"


INVOICE = dict(
    client_name="Jane",
    invoice_number="INV-0042",
    title="Wedding Package",
    total_amount=1000,
    payment_link="https://tfcmediagroup.com/#/pay/tok-1",
)


class TestInvoiceEmails:
    def test_invoice_requiring_full_payment(self):
        rendered = render_invoice_created(
            **INVOICE, amount_due=1000, payment_type="full", due_date="2026-02-15", notes="Deposit non-refundable"
        )
        assert rendered.subject == "Invoice INV-0042 from TFC Media"
        assert "Full payment is required." in rendered.html
        assert "February 15, 2026" in rendered.html
        assert "Deposit non-refundable" in rendered.html
        assert "https://tfcmediagroup.com/#/pay/tok-1" in rendered.text
        assert "Amount Due Now: $1000.00" in rendered.text

    def test_partial_invoice_states_initial_payment(self):
        rendered = render_invoice_created(**INVOICE, amount_due=250, payment_type="partial")
        assert "Initial payment of $250.00 is required." in rendered.html
        assert "Due Date" not in rendered.html

    def test_unparseable_due_date_is_omitted(self):
        rendered = render_invoice_created(**INVOICE, amount_due=1000, payment_type="full", due_date="soon")
        assert "Due Date" not in rendered.html
        assert "Due Date" not in rendered.text

    def test_payment_request_shows_requested_amount_as_due(self):
        rendered = render_payment_request(**INVOICE, amount_requested=100)
        assert rendered.subject == "Payment Request: $100.00 for Invoice INV-0042"
        assert "Payment Request: Wedding Package" in rendered.html
        assert "Initial payment of $100.00 is required." in rendered.html

    def test_payment_reminder_states_outstanding_balance(self):
        rendered = render_payment_reminder(**INVOICE, remaining_balance=400)
        assert rendered.subject == "Payment Reminder: Invoice INV-0042"
        assert "outstanding balance of $400.00" in rendered.text

    def test_payment_received_partial(self):
        rendered = render_payment_received(
            client_name="Jane",
            invoice_number="INV-0042",
            title="Wedding Package",
            payment_amount=250,
            total_amount=1000,
            amount_paid=250,
            remaining_balance=750,
            payment_date=datetime(2026, 3, 2, 18, 0, tzinfo=timezone.utc),
        )
        assert rendered.subject == "Payment Received - Invoice INV-0042"
        assert "We've received your payment of <strong>$250.00</strong>" in rendered.html
        assert "Remaining Balance: $750.00" in rendered.html
        assert "Payment Method: Card" in rendered.text
        assert "Payment Date: March 2, 2026" in rendered.text
        assert "Invoice Fully Paid" not in rendered.html

    def test_payment_received_fully_paid(self):
        rendered = render_payment_received(
            client_name="Jane",
            invoice_number="INV-0042",
            title="Wedding Package",
            payment_amount=750,
            total_amount=1000,
            amount_paid=1000,
            remaining_balance=0,
            payment_date="2026-03-02",
            payment_method="Bank Transfer",
            is_fully_paid=True,
        )
        assert rendered.subject == "Payment Received - Invoice INV-0042 Fully Paid!"
        assert "✓ Invoice Fully Paid" in rendered.html
        assert "Your invoice is now fully paid! Thank you for your business!" in rendered.text
        assert "Remaining Balance" not in rendered.text


class TestProjectAndSupportEmails:
    def test_project_update_lists_changes(self):
        rendered = render_project_update(
            client_name="Jane",
            project_name="Smith Wedding",
            updates={
                "status": {"old": "in_progress", "new": "completed"},
                "progress": {"old": 60, "new": 100},
                "unrelated": {"old": 1, "new": 2},
            },
            portal_url="https://tfcmediagroup.com/portal",
        )
        assert rendered.subject == 'Project Update: "Smith Wedding"'
        assert "In Progress → <strong>Completed</strong>" in rendered.html
        assert "60% → <strong>100%</strong>" in rendered.html
        assert "Congratulations! Your project is complete!" in rendered.text
        assert "unrelated" not in rendered.text.lower()

    def test_project_uploaded_points_to_deliverables(self):
        rendered = render_project_update(
            client_name="Jane",
            project_name="Smith Wedding",
            updates={"status": {"old": "editing", "new": "uploaded"}},
            portal_url="https://tfcmediagroup.com/portal",
        )
        assert "Your deliverables are ready!" in rendered.html

    def test_support_status_resolved_with_response(self):
        rendered = render_support_status(
            name="Jane",
            ticket_number="1042",
            subject="Missing photos",
            status="resolved",
            admin_response="We re-uploaded the gallery.",
        )
        assert rendered.subject == "Support Ticket Update - #1042"
        assert "#10B981" in rendered.html
        assert "Response from Support Team:" in rendered.html
        assert "Your issue has been resolved!" in rendered.text
        assert "Status: Resolved" in rendered.text

    def test_support_status_unknown_label_passes_through(self):
        rendered = render_support_status(name="Jane", ticket_number="7", subject="Billing", status="waiting")
        assert "Status: waiting" in rendered.text
        assert "Response from Support Team" not in rendered.html
