"""Exception taxonomy shared by services and routers."""
from typing import Optional


class ReplyDeskError(Exception):
    pass


class NotFound(ReplyDeskError):
    """Raised when an email id cannot be resolved in the requested mailbox.

    Rendered as a normal 200 payload; the UI shows its own not-found view.
    """

    def __init__(self, email_id: str, account: Optional[str] = None, reason: Optional[str] = None):
        self.email_id = email_id
        self.account = account
        self.reason = reason or "Email not found"
        super().__init__(f"Email not found: {email_id}")


class DuplicateTemplate(ReplyDeskError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"A template named '{name}' already exists.")


class UpstreamError(ReplyDeskError):
    """AI completion or mail transport failure.

    Generation lets it propagate to the request; sending records it on the
    reply row and reports a boolean failure instead.
    """

    def __init__(self, message: str, service: str = 'upstream'):
        self.service = service
        super().__init__(message)
