from postsiva.notifications.navigation import (
    Confirm,
    ConsoleNavigator,
    Navigator,
    RecordingNavigator,
    always_confirm,
    never_confirm,
)
from postsiva.notifications.toasts import (
    ConsoleNotifier,
    Notifier,
    RecordingNotifier,
    Toast,
    ToastVariant,
)

__all__ = [
    "Confirm",
    "ConsoleNavigator",
    "ConsoleNotifier",
    "Navigator",
    "Notifier",
    "RecordingNavigator",
    "RecordingNotifier",
    "Toast",
    "ToastVariant",
    "always_confirm",
    "never_confirm",
]
