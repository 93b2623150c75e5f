"""Error taxonomy for the notification core.

None of these escape dispatch or the retention scan; they are raised by
transports/renderers and recovered at the smallest scope (per channel,
per order).
"""


class NotificationError(Exception):
    """Base class for notification failures."""


class ConfigurationMissing(NotificationError):
    """No settings row, or provider credentials are not configured."""


class RecipientUnreachable(NotificationError):
    """No profile, no email, or no phone for the recipient."""


class TransportFailure(NotificationError):
    """Provider returned a non-success response."""

    def __init__(self, message: str, code=None):
        super().__init__(message)
        self.code = code


class TemplateNotFound(NotificationError):
    """No template registered for an (event, channel) pair."""
