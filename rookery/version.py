"""Version string and the default server name derived from it."""

VERSION = "master"


def default_server_name() -> str:
    """Return the server name announced when none is configured."""
    return f"Rookery/{VERSION}"