from __future__ import annotations


class CommandError(Exception):
    """
    Base class for failures that end a /today request.

    Each subclass carries the HTTP status and the user-facing text returned to
    Slack. The exception message itself is for server logs only.
    """

    status_code: int = 500
    public_message: str = "Server error"
    ephemeral: bool = False


# PUBLIC_INTERFACE
class ConfigurationError(CommandError):
    """A required secret or setting is missing or invalid."""

    status_code = 500
    public_message = "Server configuration error"


# PUBLIC_INTERFACE
class AuthenticationError(CommandError):
    """The Slack signature is invalid or the request timestamp is stale."""

    status_code = 401
    public_message = "Invalid request signature"


# PUBLIC_INTERFACE
class UpstreamError(CommandError):
    """Todoist returned a non-success status, bad JSON, or the call failed."""

    # Slack only shows the body of 2xx responses to the user
    status_code = 200
    public_message = "Sorry, there was an error fetching your tasks. Please try again later."
    ephemeral = True
