"""Admin CLI for Cozy-style document platforms."""

__version__ = "0.1.0"

# Name under which OAuth clients are registered; stale ones are revoked by it.
CLIENT_NAME = "ACH"
SOFTWARE_ID = f"{CLIENT_NAME}-{__version__}"
