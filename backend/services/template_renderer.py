"""
Notification Templates - Branded HTML + plaintext email and SMS templates.

Includes: Order Placed, Order Completed, Booking Confirmed (client),
New Booking (admin), Retention Reminder, Download Package Ready,
Invoice / Payment Request / Payment Reminder / Payment Received,
Project Update, Support Ticket Status.

All functions are pure: payload in, rendered message out. Values are
interpolated as given, no HTML escaping.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional
import os

from models import NotificationEvent
from services.notification_errors import TemplateNotFound
from utils.formatting import (
    format_amount,
    format_email_date,
    format_long_date,
    format_long_datetime,
    pluralize,
)

# Branding constants
COMPANY_NAME = "TFC Media"
BRAND_COLOR_PRIMARY = "#0EA5E9"  # Sky blue
BRAND_COLOR_SUCCESS = "#10B981"  # Emerald
BRAND_COLOR_BUTTON = "#667eea"
APP_URL = os.getenv("APP_URL", "https://tfcmediagroup.com").rstrip("/")

# Retention urgency -> (accent colour, background colour)
URGENCY_COLORS = {
    "urgent": ("#dc3545", "#f8d7da"),
    "warning": ("#ffc107", "#fff3cd"),
    "info": ("#17a2b8", "#d1ecf1"),
}


@dataclass
class RenderedEmail:
    subject: str
    html: str
    text: Optional[str] = None


def _build_email_header(title: str, gradient_from: str, gradient_to: str) -> str:
    """Build consistent branded header."""
    return f"""
        <div style="background: linear-gradient(135deg, {gradient_from} 0%, {gradient_to} 100%); padding: 40px 30px; text-align: center; border-radius: 8px 8px 0 0;">
            <h1 style="margin: 0; color: #ffffff; font-size: 28px; font-weight: bold;">{title}</h1>
        </div>
    """


def _build_email_footer(signoff: str, signature: str = COMPANY_NAME, color: str = BRAND_COLOR_PRIMARY) -> str:
    """Build consistent branded footer."""
    return f"""
        <div style="background-color: #f9fafb; padding: 30px; text-align: center; border-radius: 0 0 8px 8px;">
            <p style="margin: 0 0 10px; font-size: 14px; color: #6b7280;">{signoff}</p>
            <p style="margin: 0; font-size: 14px; color: {color}; font-weight: 600;">{signature}</p>
        </div>
    """


def _wrap(title: str, inner: str) -> str:
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="utf-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
        <title>{title}</title>
    </head>
    <body style="margin: 0; padding: 40px 20px; font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif; background-color: #f3f4f6;">
        <div style="max-width: 600px; margin: 0 auto; background-color: #ffffff; border-radius: 8px; box-shadow: 0 4px 6px rgba(0, 0, 0, 0.1);">
            {inner}
        </div>
    </body>
    </html>
    """


def _detail_rows(rows) -> str:
    return "".join(
        f"""
                    <tr>
                        <td style="padding: 8px 0; color: #6b7280;">{label}:</td>
                        <td style="padding: 8px 0; text-align: right; color: #374151;">{value}</td>
                    </tr>"""
        for label, value in rows
    )


def _year() -> int:
    return datetime.now(timezone.utc).year


# ============================================================================
# ORDER PLACED (client)
# ============================================================================

def build_order_placed_email(payload: Dict[str, Any], recipient_name: str) -> RenderedEmail:
    order_number = payload.get("order_number", "")
    items = payload.get("items") or []

    items_html = "".join(
        f"""
                    <tr>
                        <td style="padding: 12px; border-bottom: 1px solid #e5e7eb;">{item.get("name", "")}</td>
                        <td style="padding: 12px; border-bottom: 1px solid #e5e7eb; text-align: center;">{item.get("quantity", 1)}</td>
                        <td style="padding: 12px; border-bottom: 1px solid #e5e7eb; text-align: right;">{format_amount(item.get("price"))}</td>
                    </tr>"""
        for item in items
    )
    items_text = "\n".join(
        f"- {item.get('name', '')} x{item.get('quantity', 1)}: {format_amount(item.get('price'))}"
        for item in items
    )
    total = format_amount(payload.get("total"))

    inner = f"""
        {_build_email_header("Order Confirmed!", BRAND_COLOR_PRIMARY, "#A855F7")}
        <div style="padding: 40px 30px;">
            <p style="margin: 0 0 20px; font-size: 16px; color: #374151;">Hi {recipient_name},</p>
            <p style="margin: 0 0 20px; font-size: 16px; color: #374151;">Thank you for your order! We've received your order and will begin processing it right away.</p>

            <div style="background-color: #f9fafb; border-radius: 8px; padding: 20px; margin: 30px 0;">
                <p style="margin: 0 0 10px; font-size: 14px; color: #6b7280;">Order Number</p>
                <p style="margin: 0; font-size: 24px; font-weight: bold; color: {BRAND_COLOR_PRIMARY};">#{order_number}</p>
            </div>

            <h2 style="margin: 30px 0 20px; font-size: 20px; color: #111827;">Order Details</h2>
            <table style="width: 100%; border-collapse: collapse;">
                <thead>
                    <tr style="background-color: #f9fafb;">
                        <th style="padding: 12px; text-align: left; font-size: 14px; font-weight: 600; color: #374151;">Item</th>
                        <th style="padding: 12px; text-align: center; font-size: 14px; font-weight: 600; color: #374151;">Qty</th>
                        <th style="padding: 12px; text-align: right; font-size: 14px; font-weight: 600; color: #374151;">Price</th>
                    </tr>
                </thead>
                <tbody>{items_html}
                </tbody>
                <tfoot>
                    <tr>
                        <td colspan="2" style="padding: 16px 12px; text-align: right; font-size: 16px; font-weight: 600; color: #111827;">Total:</td>
                        <td style="padding: 16px 12px; text-align: right; font-size: 18px; font-weight: bold; color: {BRAND_COLOR_PRIMARY};">{total}</td>
                    </tr>
                </tfoot>
            </table>

            <p style="margin: 30px 0 0; font-size: 14px; color: #6b7280;">We'll send you another email when your order is ready for download.</p>
        </div>
        {_build_email_footer("Questions? Contact us anytime.")}
    """

    text = f"""Hi {recipient_name},

Thank you for your order! We've received your order and will begin processing it right away.

Order Number: #{order_number}

{items_text}

Total: {total}

We'll send you another email when your order is ready for download.

{COMPANY_NAME}"""

    return RenderedEmail(
        subject=f"Order Confirmation - #{order_number}",
        html=_wrap("Order Confirmation", inner),
        text=text,
    )


# ============================================================================
# ORDER COMPLETED (client)
# ============================================================================

def build_order_completed_email(payload: Dict[str, Any], recipient_name: str) -> RenderedEmail:
    order_number = payload.get("order_number", "")
    download_url = payload.get("download_url") or f"{APP_URL}/portal/downloads"

    inner = f"""
        {_build_email_header("Your Order is Ready!", BRAND_COLOR_SUCCESS, "#059669")}
        <div style="padding: 40px 30px;">
            <p style="margin: 0 0 20px; font-size: 16px; color: #374151;">Hi {recipient_name},</p>
            <p style="margin: 0 0 30px; font-size: 16px; color: #374151;">Great news! Your order <strong>#{order_number}</strong> has been completed and is ready for download.</p>

            <div style="text-align: center; margin: 30px 0;">
                <a href="{download_url}" style="display: inline-block; background: linear-gradient(135deg, {BRAND_COLOR_PRIMARY} 0%, #A855F7 100%); color: #ffffff; text-decoration: none; padding: 16px 40px; border-radius: 8px; font-size: 16px; font-weight: bold;">
                    Download Your Files
                </a>
            </div>

            <p style="margin: 30px 0 0; font-size: 14px; color: #6b7280;">You can also access your downloads anytime from your client portal.</p>
        </div>
        {_build_email_footer("Thank you for choosing TFC Media!", color=BRAND_COLOR_SUCCESS)}
    """

    text = f"""Hi {recipient_name},

Great news! Your order #{order_number} has been completed and is ready for download.

Download your files: {download_url}

You can also access your downloads anytime from your client portal.

{COMPANY_NAME}"""

    return RenderedEmail(
        subject=f"Your Order is Ready! - #{order_number}",
        html=_wrap("Order Ready", inner),
        text=text,
    )


# ============================================================================
# BOOKING CONFIRMED (client)
# ============================================================================

def build_booking_confirmed_email(payload: Dict[str, Any], recipient_name: str) -> RenderedEmail:
    service_type = payload.get("service_type", "")
    confirmed_date = format_email_date(payload.get("confirmed_date"))
    confirmed_time = payload.get("confirmed_time", "")

    rows = _detail_rows([
        ("Service", service_type),
        ("Date", confirmed_date),
        ("Time", confirmed_time),
    ])

    inner = f"""
        {_build_email_header("Booking Confirmed!", BRAND_COLOR_SUCCESS, "#059669")}
        <div style="padding: 40px 30px;">
            <p style="margin: 0 0 20px; font-size: 16px; color: #374151;">Hi {recipient_name},</p>
            <p style="margin: 0 0 30px; font-size: 16px; color: #374151;">Great news! Your booking has been confirmed.</p>

            <div style="background-color: #f9fafb; border-radius: 8px; padding: 20px;">
                <h2 style="margin: 0 0 20px; font-size: 20px; color: #111827;">Booking Details</h2>
                <table style="width: 100%; border-collapse: collapse;">{rows}
                </table>
            </div>

            <p style="margin: 30px 0 0; font-size: 14px; color: #6b7280;">We look forward to seeing you! If you need to make any changes, please contact us as soon as possible.</p>
        </div>
        {_build_email_footer("Questions? Contact us anytime.", color=BRAND_COLOR_SUCCESS)}
    """

    text = f"""Hi {recipient_name},

Great news! Your booking has been confirmed.

Service: {service_type}
Date: {confirmed_date}
Time: {confirmed_time}

We look forward to seeing you! If you need to make any changes, please contact us as soon as possible.

{COMPANY_NAME}"""

    return RenderedEmail(subject="Booking Confirmed!", html=_wrap("Booking Confirmed", inner), text=text)


# ============================================================================
# NEW BOOKING (admin)
# ============================================================================

def build_booking_created_admin_email(payload: Dict[str, Any]) -> RenderedEmail:
    customer_phone = payload.get("customer_phone") or "Not provided"
    booking_date = format_email_date(payload.get("booking_date"))
    details = [
        ("Service", payload.get("service_type", "")),
        ("Date", booking_date),
        ("Time", payload.get("booking_time", "")),
        ("Customer", payload.get("customer_name", "")),
        ("Email", payload.get("customer_email", "")),
        ("Phone", customer_phone),
    ]

    inner = f"""
        {_build_email_header("New Booking Received!", BRAND_COLOR_PRIMARY, "#0284C7")}
        <div style="padding: 40px 30px;">
            <p style="margin: 0 0 20px; font-size: 16px; color: #374151;">A new booking has been submitted:</p>
            <div style="background-color: #f9fafb; border-radius: 8px; padding: 20px;">
                <table style="width: 100%; border-collapse: collapse;">{_detail_rows(details)}
                </table>
            </div>
            <p style="margin: 30px 0 0; font-size: 14px; color: #6b7280;">Log in to the admin panel to review and confirm this booking.</p>
        </div>
        {_build_email_footer("Booking notification", signature=f"{COMPANY_NAME} Admin", color=BRAND_COLOR_SUCCESS)}
    """

    text = "New Booking Request\n\n" + "\n".join(f"{label}: {value}" for label, value in details)
    text += "\n\nPlease review and confirm this booking in the admin panel."

    return RenderedEmail(subject="New Booking Received!", html=_wrap("New Booking", inner), text=text)


# ============================================================================
# SMS
# ============================================================================

def build_order_placed_sms(payload: Dict[str, Any]) -> str:
    return (
        f"Your order #{payload.get('order_number', '')} has been confirmed! "
        f"Total: {format_amount(payload.get('total'))}"
    )


def build_order_completed_sms(payload: Dict[str, Any]) -> str:
    return (
        f"Your order #{payload.get('order_number', '')} is ready for download! "
        "Visit your client portal to download."
    )


def build_booking_confirmed_sms(payload: Dict[str, Any]) -> str:
    return (
        f"Your booking for {payload.get('service_type', '')} on "
        f"{payload.get('confirmed_date', '')} at "
        f"{payload.get('confirmed_time', '')} has been confirmed!"
    )


# Event -> template lookups. Adding an event is one entry per channel.
EMAIL_TEMPLATES: Dict[NotificationEvent, Callable[[Dict[str, Any], str], RenderedEmail]] = {
    NotificationEvent.ORDER_PLACED: build_order_placed_email,
    NotificationEvent.ORDER_COMPLETED: build_order_completed_email,
    NotificationEvent.BOOKING_CONFIRMED: build_booking_confirmed_email,
}

ADMIN_EMAIL_TEMPLATES: Dict[NotificationEvent, Callable[[Dict[str, Any]], RenderedEmail]] = {
    NotificationEvent.BOOKING_CREATED: build_booking_created_admin_email,
}

SMS_TEMPLATES: Dict[NotificationEvent, Callable[[Dict[str, Any]], str]] = {
    NotificationEvent.ORDER_PLACED: build_order_placed_sms,
    NotificationEvent.ORDER_COMPLETED: build_order_completed_sms,
    NotificationEvent.BOOKING_CONFIRMED: build_booking_confirmed_sms,
}


def render_email(event: NotificationEvent, payload: Dict[str, Any], recipient_name: str) -> RenderedEmail:
    builder = EMAIL_TEMPLATES.get(event)
    if builder is None:
        raise TemplateNotFound(f"No email template for event: {event.value}")
    return builder(payload or {}, recipient_name or "")


def render_admin_email(event: NotificationEvent, payload: Dict[str, Any]) -> RenderedEmail:
    builder = ADMIN_EMAIL_TEMPLATES.get(event)
    if builder is None:
        raise TemplateNotFound(f"No admin email template for event: {event.value}")
    return builder(payload or {})


def render_sms(event: NotificationEvent, payload: Dict[str, Any]) -> str:
    builder = SMS_TEMPLATES.get(event)
    if builder is None:
        raise TemplateNotFound(f"No SMS template for event: {event.value}")
    return builder(payload or {})


# ============================================================================
# RETENTION REMINDER
# ============================================================================

def retention_urgency(days_remaining: int) -> str:
    if days_remaining <= 7:
        return "urgent"
    if days_remaining <= 30:
        return "warning"
    return "info"


def render_retention_reminder(
    client_name: str,
    days_remaining: int,
    item_count: int,
    downloads_url: str,
) -> RenderedEmail:
    """
    Build the 'media will be archived soon' reminder.

    Urgency drives colours and copy: <=7 days urgent (red, "final"),
    <=30 warning (amber), otherwise info (teal).
    """
    urgency = retention_urgency(days_remaining)
    color, background = URGENCY_COLORS[urgency]
    tone = "final" if urgency == "urgent" else "friendly"
    day_word = pluralize(days_remaining, "day")
    item_word = pluralize(item_count, "item")

    if urgency == "urgent":
        closing_html = "⚠️ <strong>Don't lose access to your memories – download them today!</strong>"
        closing_text = "Don't lose access to your memories – download them today!"
    else:
        closing_html = closing_text = "Don't miss out – download your media before it's archived."

    policy = [
        "Your media will be moved to cold storage",
        "Thumbnails and watermarked versions will remain visible",
        "High-resolution originals will be archived",
        "You can request restoration for a fee",
    ]
    policy_html = "".join(f'<li style="margin: 8px 0;">{line}</li>' for line in policy)
    policy_text = "\n".join(f"- {line}" for line in policy)

    html = f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="utf-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
    </head>
    <body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif; line-height: 1.6; color: #333; margin: 0; padding: 0; background-color: #f5f5f5;">
        <div style="max-width: 600px; margin: 40px auto; background: white; border-radius: 12px; overflow: hidden; box-shadow: 0 4px 6px rgba(0,0,0,0.1);">
            <div style="background: {color}; color: white; padding: 40px 30px; text-align: center;">
                <h1 style="margin: 0; font-size: 28px; font-weight: 700;">⏰ Download Reminder</h1>
            </div>
            <div style="padding: 40px 30px;">
                <p style="font-size: 16px;">Hi {client_name},</p>
                <p style="font-size: 16px;">This is a {tone} reminder that your media will be archived soon.</p>

                <div style="font-size: 64px; font-weight: 700; text-align: center; margin: 30px 0; color: {color}; line-height: 1;">{days_remaining}</div>
                <div style="font-size: 18px; text-align: center; color: #666; margin-top: 10px;">{day_word} remaining</div>

                <div style="background: {background}; border-left: 4px solid {color}; padding: 20px; margin: 24px 0; border-radius: 4px;">
                    <p style="margin: 0; font-size: 18px; font-weight: 600; text-align: center;">
                        You have <strong>{item_count} {item_word}</strong> available for download
                    </p>
                </div>

                <div style="text-align: center; margin: 30px 0;">
                    <a href="{downloads_url}" style="display: inline-block; padding: 16px 32px; background: {BRAND_COLOR_BUTTON}; color: white; text-decoration: none; border-radius: 8px; font-weight: 600; font-size: 16px;">Download Now</a>
                </div>

                <p style="font-size: 16px; font-weight: 600; margin-top: 30px;">What happens after {days_remaining} {day_word}?</p>
                <ul style="font-size: 16px; margin: 16px 0; padding-left: 24px;">{policy_html}</ul>

                <p style="font-size: 16px; margin-top: 30px;">{closing_html}</p>
                <p style="font-size: 16px; margin-top: 30px;">Best regards,<br><strong>{COMPANY_NAME} Team</strong></p>
            </div>
            <div style="text-align: center; padding: 30px; color: #666; font-size: 14px; background: #f8f9fa;">
                <p>© {_year()} {COMPANY_NAME}. All rights reserved.</p>
                <p style="margin-top: 10px; font-size: 12px;">You're receiving this reminder based on our 6-month retention policy.</p>
            </div>
        </div>
    </body>
    </html>
    """

    text = f"""Hi {client_name},

This is a {tone} reminder that your media will be archived soon.

{days_remaining} {day_word.upper()} REMAINING

You have {item_count} {item_word} available for download.

Download now: {downloads_url}

What happens after {days_remaining} {day_word}?
{policy_text}

{closing_text}

Best regards,
{COMPANY_NAME} Team"""

    return RenderedEmail(
        subject=f"{days_remaining} days remaining to download your media",
        html=html,
        text=text,
    )


# ============================================================================
# DOWNLOAD PACKAGE READY
# ============================================================================

def render_download_package_ready(
    client_name: str,
    event_name: str,
    item_count: int,
    file_size: int,
    download_url: str,
    expires_at: datetime,
) -> RenderedEmail:
    """Zip package email; file_size is in bytes and shown as GB with two decimals."""
    file_size_gb = f"{(file_size or 0) / 1024 / 1024 / 1024:.2f}"
    expiry = format_long_datetime(expires_at)
    item_phrase = f"{item_count} high-resolution {pluralize(item_count, 'item')}"

    html = f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="utf-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
    </head>
    <body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif; line-height: 1.6; color: #333; margin: 0; padding: 0; background-color: #f5f5f5;">
        <div style="max-width: 600px; margin: 40px auto; background: white; border-radius: 12px; overflow: hidden; box-shadow: 0 4px 6px rgba(0,0,0,0.1);">
            <div style="background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); color: white; padding: 40px 30px; text-align: center;">
                <h1 style="margin: 0; font-size: 28px; font-weight: 700;">📦 Your Download Package is Ready!</h1>
            </div>
            <div style="padding: 40px 30px;">
                <p style="font-size: 16px;">Hi {client_name},</p>
                <p style="font-size: 16px;">Great news! Your download package for <strong>"{event_name}"</strong> is ready to download.</p>

                <div style="background: #f8f9fa; border-left: 4px solid #667eea; padding: 20px; margin: 24px 0; border-radius: 4px;">
                    <p><strong>📦 Package Contains:</strong> {item_phrase}</p>
                    <p><strong>💾 Total Size:</strong> {file_size_gb} GB</p>
                    <p><strong>⏰ Link Expires:</strong> {expiry}</p>
                </div>

                <div style="text-align: center; margin: 30px 0;">
                    <a href="{download_url}" style="display: inline-block; padding: 16px 32px; background: {BRAND_COLOR_BUTTON}; color: white; text-decoration: none; border-radius: 8px; font-weight: 600; font-size: 16px;">Download Package ({file_size_gb} GB)</a>
                </div>

                <div style="background: #fff3cd; border-left: 4px solid #ffc107; padding: 16px; margin: 24px 0; border-radius: 4px;">
                    <p style="margin: 0;"><strong>⚠️ Important:</strong> This download link expires in 48 hours. Your individual downloads remain available for 6 months in your Downloads page.</p>
                </div>

                <p style="font-size: 16px;">You can also download individual items anytime from your <a href="{APP_URL}/portal/downloads" style="color: #667eea; text-decoration: none; font-weight: 600;">Downloads page</a>.</p>
                <p style="font-size: 16px; margin-top: 30px;">Questions? Just reply to this email.</p>
                <p style="font-size: 16px; margin-top: 20px;">Best regards,<br><strong>{COMPANY_NAME} Team</strong></p>
            </div>
            <div style="text-align: center; padding: 30px; color: #666; font-size: 14px; background: #f8f9fa;">
                <p>© {_year()} {COMPANY_NAME}. All rights reserved.</p>
                <p style="margin-top: 10px; font-size: 12px;">You're receiving this email because you requested a download package.</p>
            </div>
        </div>
    </body>
    </html>
    """

    text = f"""Hi {client_name},

Your download package for "{event_name}" is ready!

Package Contains: {item_phrase}
Total Size: {file_size_gb} GB
Link Expires: {expiry}

Download here: {download_url}

Important: This download link expires in 48 hours. Your individual downloads remain available for 6 months.

You can also download items from: {APP_URL}/portal/downloads

Best regards,
{COMPANY_NAME} Team"""

    return RenderedEmail(subject="Your Download Package is Ready! 📦", html=html, text=text)


# ============================================================================
# INVOICES / PAYMENTS (client)
# ============================================================================

def _invoice_email(
    header: str,
    intro: str,
    client_name: str,
    invoice_number: str,
    title: str,
    total_amount: float,
    amount_due: float,
    payment_link: str,
    due_date=None,
    notes: Optional[str] = None,
) -> RenderedEmail:
    due_label = format_long_date(due_date) if due_date else ""
    if due_date and due_label == str(due_date):
        # Unparseable due dates are omitted.
        due_label = ""
    total = format_amount(total_amount)
    due_now = format_amount(amount_due)

    due_html = f"""
            <div style="background-color: #fef3c7; border-radius: 8px; padding: 16px; margin: 0 0 20px;">
                <p style="margin: 0; font-size: 14px; color: #92400e;"><strong>Due Date:</strong> {due_label}</p>
            </div>""" if due_label else ""
    notes_html = f"""
            <div style="margin: 20px 0; padding: 16px; background-color: #f9fafb; border-left: 4px solid {BRAND_COLOR_PRIMARY};">
                <p style="margin: 0 0 8px; font-size: 14px; font-weight: 600; color: #374151;">Notes</p>
                <p style="margin: 0; font-size: 14px; color: #6b7280;">{notes}</p>
            </div>""" if notes else ""

    inner = f"""
        {_build_email_header(header, BRAND_COLOR_PRIMARY, "#A855F7")}
        <div style="padding: 40px 30px;">
            <p style="margin: 0 0 10px; font-size: 14px; color: #6b7280; text-align: center;">{invoice_number}</p>
            <p style="margin: 0 0 20px; font-size: 16px; color: #374151;">Hi {client_name},</p>
            <p style="margin: 0 0 20px; font-size: 16px; color: #374151;">{intro}</p>

            <div style="background-color: #f9fafb; border-radius: 8px; padding: 20px; margin: 0 0 20px;">
                <p style="margin: 0 0 8px; font-size: 14px; color: #6b7280;">Invoice For</p>
                <p style="margin: 0; font-size: 18px; font-weight: 600; color: #111827;">{title}</p>
            </div>
            {due_html}
            <table style="width: 100%; border-collapse: collapse; margin: 0 0 20px;">
                <tr>
                    <td style="padding: 16px; color: #6b7280;">Total Amount</td>
                    <td style="padding: 16px; text-align: right; font-weight: 600; color: #111827;">{total}</td>
                </tr>
                <tr style="background-color: #fef3c7;">
                    <td style="padding: 16px; font-weight: 600; color: #92400e;">Amount Due Now</td>
                    <td style="padding: 16px; text-align: right; font-weight: 700; font-size: 20px; color: #f59e0b;">{due_now}</td>
                </tr>
            </table>
            {notes_html}
            <div style="text-align: center; margin: 30px 0;">
                <a href="{payment_link}" style="display: inline-block; background: linear-gradient(135deg, {BRAND_COLOR_PRIMARY} 0%, #A855F7 100%); color: #ffffff; text-decoration: none; padding: 16px 40px; border-radius: 8px; font-weight: 600; font-size: 16px;">View &amp; Pay Invoice</a>
            </div>
            <p style="margin: 0; font-size: 12px; color: #9ca3af; text-align: center;">Or copy this link: <a href="{payment_link}" style="color: {BRAND_COLOR_PRIMARY}; word-break: break-all;">{payment_link}</a></p>
        </div>
        {_build_email_footer("Questions? Contact us anytime.")}
    """

    text_lines = [
        f"Hi {client_name},",
        "",
        intro,
        "",
        f"Invoice: {invoice_number}",
        f"Invoice For: {title}",
    ]
    if due_label:
        text_lines.append(f"Due Date: {due_label}")
    text_lines += [f"Total Amount: {total}", f"Amount Due Now: {due_now}"]
    if notes:
        text_lines += ["", f"Notes: {notes}"]
    text_lines += ["", f"View & pay invoice: {payment_link}", "", COMPANY_NAME]

    return RenderedEmail(subject="", html=_wrap(header, inner), text="\n".join(text_lines))


def render_invoice_created(
    client_name: str,
    invoice_number: str,
    title: str,
    total_amount: float,
    amount_due: float,
    payment_type: str,
    payment_link: str,
    due_date=None,
    notes: Optional[str] = None,
) -> RenderedEmail:
    """New invoice email. payment_type "full" asks for the whole total, anything else for amount_due."""
    if payment_type == "full":
        requirement = "Full payment is required"
    else:
        requirement = f"Initial payment of {format_amount(amount_due)} is required"
    email = _invoice_email(
        "New Invoice",
        f"You've received a new invoice from {COMPANY_NAME}. {requirement}.",
        client_name, invoice_number, title, total_amount, amount_due, payment_link, due_date, notes,
    )
    email.subject = f"Invoice {invoice_number} from {COMPANY_NAME}"
    return email


def render_payment_request(
    client_name: str,
    invoice_number: str,
    title: str,
    total_amount: float,
    amount_requested: float,
    payment_link: str,
    due_date=None,
    notes: Optional[str] = None,
) -> RenderedEmail:
    """Installment request against an existing invoice; the requested amount is shown as due now."""
    email = render_invoice_created(
        client_name=client_name,
        invoice_number=invoice_number,
        title=f"Payment Request: {title}",
        total_amount=total_amount,
        amount_due=amount_requested,
        payment_type="partial",
        payment_link=payment_link,
        due_date=due_date,
        notes=notes,
    )
    email.subject = f"Payment Request: {format_amount(amount_requested)} for Invoice {invoice_number}"
    return email


def render_payment_reminder(
    client_name: str,
    invoice_number: str,
    title: str,
    total_amount: float,
    remaining_balance: float,
    payment_link: str,
    due_date=None,
) -> RenderedEmail:
    email = _invoice_email(
        "Payment Reminder",
        f"This is a friendly reminder that invoice {invoice_number} has an outstanding balance of "
        f"{format_amount(remaining_balance)}.",
        client_name, invoice_number, title, total_amount, remaining_balance, payment_link, due_date,
    )
    email.subject = f"Payment Reminder: Invoice {invoice_number}"
    return email


def render_payment_received(
    client_name: str,
    invoice_number: str,
    title: str,
    payment_amount: float,
    total_amount: float,
    amount_paid: float,
    remaining_balance: float,
    payment_date,
    payment_method: Optional[str] = None,
    is_fully_paid: bool = False,
) -> RenderedEmail:
    """Payment receipt. Fully paid invoices get a badge and a different subject."""
    paid_now = format_amount(payment_amount)
    remaining = format_amount(remaining_balance)
    method = payment_method or "Card"
    paid_on = format_long_date(payment_date)

    details = [
        ("Invoice", invoice_number),
        ("For", title),
        ("Payment Amount", paid_now),
        ("Payment Method", method),
        ("Payment Date", paid_on),
        ("Invoice Total", format_amount(total_amount)),
        ("Total Paid", format_amount(amount_paid)),
    ]

    if is_fully_paid:
        badge_html = f"""
            <div style="text-align: center; margin: 20px 0;">
                <span style="display: inline-block; background-color: #d1fae5; color: #065f46; padding: 8px 20px; border-radius: 9999px; font-weight: 600;">✓ Invoice Fully Paid</span>
            </div>"""
        status_line = "Your invoice is now fully paid! Thank you for your business!"
    else:
        badge_html = f"""
            <div style="text-align: center; margin: 20px 0;">
                <span style="display: inline-block; background-color: #fef3c7; color: #92400e; padding: 8px 20px; border-radius: 9999px; font-weight: 600;">Remaining Balance: {remaining}</span>
            </div>"""
        status_line = (
            f"You have a remaining balance of {remaining}. "
            "Please make your next payment at your earliest convenience."
        )
        details.append(("Remaining Balance", remaining))

    inner = f"""
        {_build_email_header("Payment Received!", BRAND_COLOR_SUCCESS, "#059669")}
        <div style="padding: 40px 30px;">
            <p style="margin: 0 0 10px; font-size: 14px; color: #6b7280; text-align: center;">Thank you for your payment</p>
            <p style="margin: 0 0 20px; font-size: 16px; color: #374151;">Hi {client_name},</p>
            <p style="margin: 0 0 20px; font-size: 16px; color: #374151;">We've received your payment of <strong>{paid_now}</strong> for invoice <strong>{invoice_number}</strong>.</p>
            {badge_html}
            <div style="background-color: #f9fafb; border-radius: 8px; padding: 20px;">
                <table style="width: 100%; border-collapse: collapse;">{_detail_rows(details)}
                </table>
            </div>

            <p style="margin: 30px 0 0; font-size: 16px; color: #374151;">{status_line}</p>
            <p style="margin: 20px 0 0; font-size: 14px; color: #6b7280;">This is your payment receipt. Please keep it for your records.</p>
        </div>
        {_build_email_footer("Questions? Contact us anytime.", color=BRAND_COLOR_SUCCESS)}
    """

    text = f"""Hi {client_name},

We've received your payment of {paid_now} for invoice {invoice_number}.

""" + "\n".join(f"{label}: {value}" for label, value in details) + f"""

{status_line}

This is your payment receipt. Please keep it for your records.

{COMPANY_NAME}"""

    if is_fully_paid:
        subject = f"Payment Received - Invoice {invoice_number} Fully Paid!"
    else:
        subject = f"Payment Received - Invoice {invoice_number}"
    return RenderedEmail(subject=subject, html=_wrap("Payment Received", inner), text=text)


# ============================================================================
# PROJECT UPDATE (client)
# ============================================================================

PROJECT_UPDATE_FIELDS = (
    ("status", "Status"),
    ("progress", "Progress"),
    ("current_step", "Current Step"),
)


def format_project_status(value) -> str:
    """in_progress -> In Progress"""
    return " ".join(word.capitalize() for word in str(value or "").split("_"))


def _project_change_value(field: str, value) -> str:
    if field == "status":
        return format_project_status(value)
    if field == "progress" and value is not None:
        return f"{value}%"
    return str(value if value is not None else "")


def render_project_update(
    client_name: str,
    project_name: str,
    updates: Dict[str, Dict[str, Any]],
    portal_url: str,
) -> RenderedEmail:
    """
    Project change summary. updates maps status/progress/current_step to
    {"old": ..., "new": ...}; unknown keys are ignored.
    """
    changes = [
        (label, _project_change_value(field, updates[field].get("old")), _project_change_value(field, updates[field].get("new")))
        for field, label in PROJECT_UPDATE_FIELDS
        if isinstance(updates.get(field), dict)
    ]
    rows = _detail_rows([(label, f"{old} → <strong>{new}</strong>") for label, old, new in changes])

    status_change = updates.get("status")
    new_status = status_change.get("new") if isinstance(status_change, dict) else None
    callout_html = callout_text = ""
    if new_status == "completed":
        callout_text = "🎉 Congratulations! Your project is complete!"
    elif new_status == "uploaded":
        callout_text = "📦 Your deliverables are ready! Check your portal to download your files."
    if callout_text:
        callout_html = f"""
            <div style="background-color: #d1fae5; border-radius: 8px; padding: 16px; margin: 20px 0;">
                <p style="margin: 0; font-size: 16px; color: #065f46; font-weight: 600;">{callout_text}</p>
            </div>"""

    inner = f"""
        {_build_email_header("📢 Project Update", BRAND_COLOR_PRIMARY, "#A855F7")}
        <div style="padding: 40px 30px;">
            <p style="margin: 0 0 20px; font-size: 16px; color: #374151;">Hi {client_name},</p>
            <p style="margin: 0 0 20px; font-size: 16px; color: #374151;">We have an update on your project <strong>"{project_name}"</strong>!</p>

            <div style="background-color: #f9fafb; border-radius: 8px; padding: 20px;">
                <h2 style="margin: 0 0 20px; font-size: 20px; color: #111827;">What's Changed</h2>
                <table style="width: 100%; border-collapse: collapse;">{rows}
                </table>
            </div>
            {callout_html}
            <div style="text-align: center; margin: 30px 0;">
                <a href="{portal_url}" style="display: inline-block; background: linear-gradient(135deg, {BRAND_COLOR_PRIMARY} 0%, #A855F7 100%); color: #ffffff; text-decoration: none; padding: 16px 40px; border-radius: 8px; font-size: 16px; font-weight: bold;">View Project Details</a>
            </div>

            <p style="margin: 30px 0 0; font-size: 16px; color: #374151;">Best regards,<br><strong>The {COMPANY_NAME} Team</strong></p>
        </div>
        {_build_email_footer("Questions? Contact us anytime.")}
    """

    text_lines = [f"Hi {client_name},", "", f'We have an update on your project "{project_name}"!', "", "What's Changed:"]
    text_lines += [f"- {label}: {old} -> {new}" for label, old, new in changes]
    if callout_text:
        text_lines += ["", callout_text]
    text_lines += ["", f"View project details: {portal_url}", "", "Best regards,", f"The {COMPANY_NAME} Team"]

    return RenderedEmail(
        subject=f'Project Update: "{project_name}"',
        html=_wrap("Project Update", inner),
        text="\n".join(text_lines),
    )


# ============================================================================
# SUPPORT TICKET STATUS (client)
# ============================================================================

SUPPORT_STATUS_INFO = {
    "new": ("New", "#3B82F6"),
    "in-progress": ("In Progress", "#F59E0B"),
    "resolved": ("Resolved", "#10B981"),
    "closed": ("Closed", "#6B7280"),
}

SUPPORT_STATUS_CLOSINGS = {
    "resolved": (
        "Your issue has been resolved! If you have any further questions or if the issue persists, "
        "please don't hesitate to create a new support ticket."
    ),
    "in-progress": "Our support team is actively working on your request. We'll keep you updated on the progress.",
}


def render_support_status(
    name: str,
    ticket_number: str,
    subject: str,
    status: str,
    admin_response: Optional[str] = None,
) -> RenderedEmail:
    label, color = SUPPORT_STATUS_INFO.get(status, (status, "#6B7280"))
    closing = SUPPORT_STATUS_CLOSINGS.get(status, "")

    response_html = f"""
            <div style="margin: 20px 0; padding: 16px; background-color: #eff6ff; border-left: 4px solid {BRAND_COLOR_PRIMARY}; border-radius: 4px;">
                <p style="margin: 0 0 8px; font-size: 14px; font-weight: 600; color: #1e40af;">Response from Support Team:</p>
                <p style="margin: 0; font-size: 14px; color: #374151; white-space: pre-wrap;">{admin_response}</p>
            </div>""" if admin_response else ""
    closing_html = f'<p style="margin: 20px 0 0; font-size: 16px; color: #374151;">{closing}</p>' if closing else ""

    inner = f"""
        {_build_email_header("Support Ticket Update", BRAND_COLOR_PRIMARY, "#0284C7")}
        <div style="padding: 40px 30px;">
            <p style="margin: 0 0 20px; font-size: 16px; color: #374151;">Dear {name},</p>
            <p style="margin: 0 0 20px; font-size: 16px; color: #374151;">Your support ticket has been updated:</p>

            <div style="background-color: #f9fafb; border-radius: 8px; padding: 20px;">
                <p style="margin: 0 0 8px; font-size: 14px; color: #6b7280;">Ticket #{ticket_number}</p>
                <p style="margin: 0 0 12px; font-size: 16px; font-weight: 600; color: #111827;">{subject}</p>
                <span style="display: inline-block; background-color: {color}; color: #ffffff; padding: 4px 12px; border-radius: 9999px; font-size: 13px; font-weight: 600;">{label}</span>
            </div>
            {response_html}
            {closing_html}
        </div>
        {_build_email_footer("Best regards,", signature=f"{COMPANY_NAME} Support Team")}
    """

    text_lines = [
        f"Dear {name},",
        "",
        "Your support ticket has been updated:",
        "",
        f"Ticket: #{ticket_number}",
        f"Subject: {subject}",
        f"Status: {label}",
    ]
    if admin_response:
        text_lines += ["", "Response from Support Team:", admin_response]
    if closing:
        text_lines += ["", closing]
    text_lines += ["", "Best regards,", f"{COMPANY_NAME} Support Team"]

    return RenderedEmail(
        subject=f"Support Ticket Update - #{ticket_number}",
        html=_wrap("Support Ticket Update", inner),
        text="\n".join(text_lines),
    )
