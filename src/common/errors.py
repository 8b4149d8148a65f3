"""Error taxonomy shared by detection, fetching and remediation."""


class RehabError(Exception):
    """Base class for all errors raised by this tool."""


class NotFound(RehabError, LookupError):
    """A registry or graph lookup found no entry."""


class ParseError(RehabError, ValueError):
    """Malformed manifest, module version or graph line."""


class RemoteIOError(RehabError):
    """A hosting API call failed for a reason other than permissions."""


class AuthError(RehabError):
    """The token lacks permission to write to the repository."""


class UnsupportedHost(RehabError):
    """A module path does not map to a supported hosting service."""


class FetchError(RehabError):
    """The build tool could not be run or its output could not be read."""
