"""
Motor-backed stores: settings singleton, profile preferences, retention window query, site contact email.
"""
import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

from models import NotificationPreferences, NotificationSettings, EventNotificationConfig, RecipientType
from services.notification_stores import (
    NotificationSettingsStore,
    ProfileStore,
    OrderStore,
    SiteSettingsStore,
    InvoiceStore,
    SETTINGS_DOC_ID,
)


class AsyncIterCursor:
    def __init__(self, items):
        self._items = list(items)

    def __aiter__(self):
        self._iter = iter(self._items)
        return self

    async def __anext__(self):
        try:
            return next(self._iter)
        except StopIteration:
            raise StopAsyncIteration


@pytest.mark.asyncio
async def test_settings_missing_returns_none():
    db = MagicMock()
    db.notification_settings.find_one = AsyncMock(return_value=None)
    with patch("services.notification_stores.database.get_db", return_value=db):
        assert await NotificationSettingsStore().get_notification_settings() is None
    assert db.notification_settings.find_one.call_args.args[0] == {"_id": SETTINGS_DOC_ID}


@pytest.mark.asyncio
async def test_save_settings_upserts_singleton():
    db = MagicMock()
    db.notification_settings.update_one = AsyncMock()
    settings = NotificationSettings(
        email_enabled=True,
        notifications={"order_placed": EventNotificationConfig(email=True, recipients=[RecipientType.CLIENT])},
    )
    with patch("services.notification_stores.database.get_db", return_value=db):
        saved = await NotificationSettingsStore().save_notification_settings(settings)

    assert saved.updated_at is not None
    args, kwargs = db.notification_settings.update_one.call_args
    assert args[0] == {"_id": SETTINGS_DOC_ID}
    assert args[1]["$set"]["notifications"]["order_placed"]["recipients"] == ["client"]
    assert kwargs["upsert"] is True


@pytest.mark.asyncio
async def test_get_profile_without_id_skips_lookup():
    db = MagicMock()
    db.profiles.find_one = AsyncMock()
    with patch("services.notification_stores.database.get_db", return_value=db):
        assert await ProfileStore().get_user_profile(None) is None
    db.profiles.find_one.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_preferences_only_sets_supplied_flags():
    db = MagicMock()
    db.profiles.update_one = AsyncMock(return_value=MagicMock(matched_count=1))
    db.profiles.find_one = AsyncMock(return_value={"id": "user-1", "notification_downloads": False})
    with patch("services.notification_stores.database.get_db", return_value=db):
        profile = await ProfileStore().update_notification_preferences(
            "user-1", NotificationPreferences(notification_downloads=False)
        )

    assert db.profiles.update_one.call_args.args[1] == {"$set": {"notification_downloads": False}}
    assert profile.notification_downloads is False
    assert profile.notification_project_updates is None


@pytest.mark.asyncio
async def test_update_preferences_unknown_user():
    db = MagicMock()
    db.profiles.update_one = AsyncMock(return_value=MagicMock(matched_count=0))
    with patch("services.notification_stores.database.get_db", return_value=db):
        result = await ProfileStore().update_notification_preferences(
            "ghost", NotificationPreferences(notification_project_updates=True)
        )
    assert result is None


@pytest.mark.asyncio
async def test_expiring_orders_query_is_inclusive_and_skips_malformed():
    start = datetime(2026, 3, 8, tzinfo=timezone.utc)
    end = datetime(2026, 3, 8, 23, 59, 59, 999999, tzinfo=timezone.utc)
    db = MagicMock()
    db.orders.find = MagicMock(return_value=AsyncIterCursor([
        {"id": "o1", "order_number": "TFC-1", "retention_expires_at": start, "order_items": []},
        {"id": "o2"},
    ]))
    with patch("services.notification_stores.database.get_db", return_value=db):
        orders = await OrderStore().query_orders_expiring_between(start, end)

    assert [o.id for o in orders] == ["o1"]
    query = db.orders.find.call_args.args[0]
    assert query == {"archived": False, "retention_expires_at": {"$gte": start, "$lte": end}}


@pytest.mark.asyncio
async def test_site_contact_email_blank_is_none():
    db = MagicMock()
    db.site_settings.find_one = AsyncMock(return_value={"contact_email": "  "})
    with patch("services.notification_stores.database.get_db", return_value=db):
        assert await SiteSettingsStore().get_site_contact_email() is None


@pytest.mark.asyncio
async def test_database_client_returns_aware_datetimes(monkeypatch):
    from database import Database

    monkeypatch.setenv("MONGO_URL", "mongodb://localhost:27017")
    monkeypatch.setenv("DB_NAME", "tfc_test")
    mongo_db = MagicMock()
    mongo_db.command = AsyncMock(return_value={"ok": 1})
    with patch("database.AsyncIOMotorClient") as motor_client, \
         patch.object(Database, "_create_indexes", new_callable=AsyncMock):
        motor_client.return_value.__getitem__.return_value = mongo_db
        await Database().connect()

    assert motor_client.call_args.kwargs["tz_aware"] is True


@pytest.mark.asyncio
async def test_seed_closes_connection_when_save_fails():
    from scripts import seed_notification_settings as seed

    db = MagicMock()
    db.notification_settings.find_one = AsyncMock(return_value=None)
    store = MagicMock()
    store.save_notification_settings = AsyncMock(side_effect=Exception("write concern"))
    with patch.object(seed.database, "connect", new_callable=AsyncMock), \
         patch.object(seed.database, "close", new_callable=AsyncMock) as close, \
         patch.object(seed.database, "get_db", return_value=db), \
         patch.object(seed, "notification_settings_store", store):
        with pytest.raises(Exception, match="write concern"):
            await seed.seed_notification_settings()

    close.assert_awaited_once()
    assert seed.DEFAULT_SETTINGS.email_from_address.endswith("@tfcmediagroup.com")


@pytest.mark.asyncio
async def test_invoice_payment_lookup_is_scoped_to_invoice():
    db = MagicMock()
    db.invoice_payments.find_one = AsyncMock(return_value=None)
    with patch("services.notification_stores.database.get_db", return_value=db):
        assert await InvoiceStore().get_invoice_payment("inv-1", "pay-1") is None
    assert db.invoice_payments.find_one.call_args.args[0] == {"id": "pay-1", "invoice_id": "inv-1"}
