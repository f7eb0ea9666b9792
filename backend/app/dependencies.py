"""
Shared FastAPI dependency helpers.

`get_notifier` returns the notification sender that `app.main` built at
startup and parked on `app.state`. Database sessions come from
`app.db.get_db`.
"""

from fastapi import Request

from app.services.notifications import NotificationSender, build_notifier


def get_notifier(request: Request) -> NotificationSender:
    """Return the process-wide sender, building one if startup did not."""
    notifier = getattr(request.app.state, "notifier", None)
    if notifier is None:
        notifier = build_notifier()
        request.app.state.notifier = notifier
    return notifier
