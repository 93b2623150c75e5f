"""
Notification eligibility.

Decides whether one (event, user, channel, recipient type) notification may fire.
Checks run in a fixed order and the first failing check wins:

1. settings row exists
2. channel globally enabled
3. event has a config
4. channel enabled for the event
5. recipient type listed for the event
6. (client only) profile exists and has not explicitly opted out of the
   preference mapped to the event

Settings and profile are read fresh on every call; there is no cache.
"""
import logging
from typing import Optional

from models import (
    NotificationEvent,
    NotificationChannel,
    RecipientType,
    NotificationSettings,
    PREFERENCE_FIELD_BY_EVENT,
)
from services.notification_stores import (
    NotificationSettingsStore,
    ProfileStore,
    notification_settings_store,
    profile_store,
)

logger = logging.getLogger(__name__)


class NotificationEligibility:
    def __init__(
        self,
        settings_store: Optional[NotificationSettingsStore] = None,
        profiles: Optional[ProfileStore] = None,
    ):
        self.settings_store = settings_store or notification_settings_store
        self.profiles = profiles or profile_store

    async def should_send(
        self,
        event: NotificationEvent,
        user_id: Optional[str],
        channel: NotificationChannel,
        recipient_type: RecipientType = RecipientType.CLIENT,
    ) -> bool:
        try:
            settings = await self.settings_store.get_notification_settings()
        except Exception as e:
            logger.error(f"Failed to load notification settings: {e}")
            settings = None
        if settings is None:
            logger.info(f"Notification blocked ({event.value}/{channel.value}): settings not found")
            return False

        reason = self.check_settings(settings, event, channel, recipient_type)
        if reason:
            logger.info(f"Notification blocked ({event.value}/{channel.value}/{recipient_type.value}): {reason}")
            return False

        if recipient_type == RecipientType.CLIENT:
            try:
                profile = await self.profiles.get_user_profile(user_id)
            except Exception as e:
                logger.error(f"Failed to load profile {user_id}: {e}")
                profile = None
            if profile is None:
                logger.info(f"Notification blocked ({event.value}/{channel.value}): profile {user_id} not found")
                return False

            preference_field = PREFERENCE_FIELD_BY_EVENT[event]
            if getattr(profile, preference_field) is False:
                logger.info(
                    f"Notification blocked ({event.value}/{channel.value}): "
                    f"user {user_id} opted out via {preference_field}"
                )
                return False

        return True

    @staticmethod
    def check_settings(
        settings: NotificationSettings,
        event: NotificationEvent,
        channel: NotificationChannel,
        recipient_type: RecipientType,
    ) -> Optional[str]:
        """Settings-only checks; returns the blocking reason or None."""
        if not settings.channel_enabled(channel):
            return f"{channel.value} disabled globally"

        event_config = settings.event_config(event)
        if event_config is None:
            return "no config for event"

        if not getattr(event_config, channel.value):
            return f"{channel.value} disabled for event"

        if recipient_type not in event_config.recipients:
            return f"{recipient_type.value} not a configured recipient"

        return None


notification_eligibility = NotificationEligibility()
