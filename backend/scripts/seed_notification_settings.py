"""
Seed default notification settings
Run once per environment. Existing settings are left untouched unless --force is passed.
"""
import asyncio
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from database import database
from models import NotificationSettings, EventNotificationConfig, RecipientType
from services.notification_stores import notification_settings_store, SETTINGS_DOC_ID

DEFAULT_SETTINGS = NotificationSettings(
    email_enabled=True,
    email_from_name="TFC Media",
    email_from_address="notifications@tfcmediagroup.com",
    sms_enabled=False,
    notifications={
        "order_placed": EventNotificationConfig(email=True, sms=False, recipients=[RecipientType.CLIENT]),
        "booking_created": EventNotificationConfig(email=True, sms=False, recipients=[RecipientType.ADMIN]),
        "order_completed": EventNotificationConfig(email=True, sms=False, recipients=[RecipientType.CLIENT]),
        "booking_confirmed": EventNotificationConfig(email=True, sms=False, recipients=[RecipientType.CLIENT]),
    },
)


async def seed_notification_settings(force: bool = False):
    await database.connect()
    db = database.get_db()

    print("Seeding notification settings...")
    print("=" * 80)

    try:
        existing = await db.notification_settings.find_one({"_id": SETTINGS_DOC_ID}, {"_id": 1})
        if existing and not force:
            print("Notification settings already exist, skipping (use --force to overwrite)")
        else:
            await notification_settings_store.save_notification_settings(DEFAULT_SETTINGS)
            print(f"✅ Saved defaults for {len(DEFAULT_SETTINGS.notifications)} events")
    finally:
        await database.close()

if __name__ == "__main__":
    asyncio.run(seed_notification_settings(force="--force" in sys.argv))
