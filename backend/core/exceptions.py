"""
Action error taxonomy.

Recoverable failures are raised as ``ActionError`` subclasses inside an action
handler and turned into ``{"error": message}`` values by the action
validator. ``Redirect`` is control flow, not an error: it aborts the normal
return of an action and is turned into a 303 response by the route layer.
"""


class ActionError(Exception):
    """Base class for failures returned to the caller as ``{"error": ...}``."""

    def __init__(self, message: str, **fields):
        self.message = message
        # Extra values echoed back to the form (e.g. the submitted email)
        self.fields = fields
        super().__init__(message)


class ValidationFailed(ActionError):
    """Submitted form data did not match the action schema."""


class AuthError(ActionError):
    """Bad credentials or missing session. Messages never reveal which."""


class ConflictError(ActionError):
    """Duplicate email, membership or invitation."""


class StateError(ActionError):
    """Referenced record is in the wrong state (e.g. consumed invitation)."""


class Redirect(Exception):
    """Abort the action and send the client to ``url``."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(url)
