"""Session bootstrap: stored token reuse, OAuth authorization and revocation.

:func:`create_session` is the only entry point commands need.  When a token
file exists it is trusted as-is and no request is made.  Otherwise a new OAuth
client is registered for the requested doctypes, the user consents in the
browser, the token is written to disk and every older client registered under
the same name is revoked.
"""

from __future__ import annotations

import logging
import webbrowser
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, FrozenSet, Iterable, List, Optional

from .. import CLIENT_NAME, SOFTWARE_ID, __version__
from .config import REDIRECT_PORT
from .errors import RevocationFailed
from .listener import CallbackListener
from .platform import CLIENTS_DOCTYPE, PermissionScope, PlatformClient
from .token_store import Credential, read_credential, write_credential

log = logging.getLogger(__name__)

ClientFactory = Callable[..., PlatformClient]


@dataclass
class Session:
    url: str
    token: str
    client: PlatformClient
    client_id: Optional[str] = None
    # None when built from a stored token: its scope is unknown
    scopes: Optional[FrozenSet[PermissionScope]] = None


def compute_scopes(doctypes: Iterable[str]) -> List[PermissionScope]:
    """Return ``doctype:ALL`` scopes plus the one needed to revoke peers."""
    scopes: List[PermissionScope] = []
    for doctype in list(doctypes) + [CLIENTS_DOCTYPE]:
        scope = PermissionScope(str(doctype))
        if scope not in scopes:
            scopes.append(scope)
    return scopes


def client_identity() -> dict:
    return {
        "client_name": CLIENT_NAME,
        "software_id": SOFTWARE_ID,
        "software_version": __version__,
    }


def _open_browser(url: str) -> None:
    log.info("Open this URL to authorize ACH: %s", url)
    try:
        if not webbrowser.open(url, new=2):
            log.warning("Could not open a browser, please visit the URL above")
    except webbrowser.Error as e:
        log.warning("Could not open a browser (%s), please visit the URL above", e)


async def authorize(
    client: PlatformClient,
    doctypes: Iterable[str],
    token_path: Path,
    *,
    port: int = REDIRECT_PORT,
    timeout: float | None = None,
    open_browser: Callable[[str], None] = _open_browser,
) -> Session:
    """Run the interactive OAuth flow and persist the resulting token.

    The callback listener is bound before the client is registered and is
    closed before this returns or raises.
    """
    scopes = compute_scopes(doctypes)
    async with CallbackListener(port=port) as listener:
        registration = await client.register_client(scopes, listener.redirect_uri, client_identity())
        log.debug("Registered OAuth client %s", registration.client_id)
        open_browser(registration.consent_url)
        callback_url = await listener.wait(timeout)

    token = await registration.exchange(callback_url)
    client.token = token
    log.debug("Writing token file to %s", token_path)
    write_credential(token_path, Credential(token=token))
    return Session(
        url=client.url,
        token=token,
        client=client,
        client_id=registration.client_id,
        scopes=frozenset(scopes),
    )


async def revoke_stale_clients(session: Session) -> List[str]:
    """Delete the older OAuth clients registered as ``CLIENT_NAME``.

    Returns the ids that were deleted.  Failures are logged, never raised.
    """
    try:
        clients = await session.client.list_clients()
    except Exception as e:
        log.error("Cannot revoke ACH clients: %s", RevocationFailed(f"listing clients failed: {e}"))
        return []

    stale: List[str] = []
    for oauth_client in clients:
        if oauth_client.name == CLIENT_NAME and oauth_client.id != session.client_id and oauth_client.id not in stale:
            stale.append(oauth_client.id)

    revoked: List[str] = []
    for client_id in stale:
        log.debug("Revoking ACH client %s", client_id)
        try:
            await session.client.delete_client(client_id)
        except Exception as e:
            log.error("Cannot revoke ACH client %s: %s", client_id, RevocationFailed(str(e)))
            continue
        revoked.append(client_id)
    return revoked


async def create_session(
    token_path: Path,
    url: str,
    doctypes: Iterable[str],
    *,
    client_factory: ClientFactory = PlatformClient,
    timeout: float | None = None,
    port: int = REDIRECT_PORT,
    open_browser: Callable[[str], None] = _open_browser,
) -> Session:
    """Return an authenticated session for *url*.

    A token file at *token_path* is reused without any network round trip.
    A corrupt token file raises instead of starting a new authorization.
    """
    token_path = Path(token_path)
    credential = read_credential(token_path)
    if credential is not None:
        log.debug("Using token file %s", token_path)
        return Session(url=url, token=credential.token, client=client_factory(url, credential.token))

    log.info("No token in %s, starting authorization", token_path)
    client = client_factory(url)
    session = await authorize(
        client,
        doctypes,
        token_path,
        port=port,
        timeout=timeout,
        open_browser=open_browser,
    )
    await revoke_stale_clients(session)
    return session
