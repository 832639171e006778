"""Client for the remote document platform.

Only the handful of endpoints the CLI needs are wrapped: OAuth client
registration, the ``/data`` API for documents and ``/settings/clients`` for
revocation.  Every method is a coroutine; the blocking :mod:`urllib` call is
dispatched with :func:`asyncio.to_thread` so the event loop stays free for the
OAuth callback listener.
"""

from __future__ import annotations

import asyncio
import secrets
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import parse_qs, quote, urlencode, urlparse

from .errors import CollectionMissing, PlatformError, RegistrationFailed
from .http import http_form_post, http_json

# Permission needed to list and delete OAuth clients of the instance
CLIENTS_DOCTYPE = "io.cozy.oauth.clients"


@dataclass(frozen=True)
class PermissionScope:
    doctype: str
    capability: str = "ALL"

    def __str__(self) -> str:
        return f"{self.doctype}:{self.capability}"


@dataclass(frozen=True)
class ClientIdentity:
    id: str
    name: str


@dataclass
class Registration:
    """A freshly registered OAuth client waiting for user consent."""

    client: "PlatformClient"
    client_id: str
    client_secret: str
    redirect_uri: str
    scopes: List[PermissionScope]
    state: str = field(default_factory=lambda: secrets.token_urlsafe(16))

    @property
    def consent_url(self) -> str:
        query = urlencode(
            {
                "client_id": self.client_id,
                "redirect_uri": self.redirect_uri,
                "state": self.state,
                "response_type": "code",
                "scope": " ".join(str(s) for s in self.scopes),
            }
        )
        return f"{self.client.url}/auth/authorize?{query}"

    async def exchange(self, callback_url: str) -> str:
        """Trade the redirect URL received after consent for an access token."""
        params = parse_qs(urlparse(callback_url).query)
        code = (params.get("code") or [None])[0]
        state = (params.get("state") or [None])[0]
        if not code:
            error = (params.get("error") or ["no authorization code"])[0]
            raise RegistrationFailed(f"Authorization was not granted: {error}")
        if state != self.state:
            raise RegistrationFailed("OAuth state mismatch in callback URL")
        fields = {
            "grant_type": "authorization_code",
            "code": code,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
        try:
            data = await asyncio.to_thread(
                http_form_post, f"{self.client.url}/auth/access_token", fields
            )
        except PlatformError as e:
            raise RegistrationFailed(f"Token exchange failed: {e}") from e
        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            raise RegistrationFailed("Token exchange returned no access_token")
        return token


class PlatformClient:
    """Thin async wrapper around the instance REST API."""

    def __init__(self, url: str, token: str | None = None):
        self.url = url.rstrip("/")
        self.token = token

    async def _request(self, method: str, path: str, payload: Any = None) -> Any:
        return await asyncio.to_thread(http_json, method, f"{self.url}{path}", self.token, payload)

    # --- OAuth -------------------------------------------------------------

    async def register_client(
        self,
        scopes: Iterable[PermissionScope],
        redirect_uri: str,
        identity: Dict[str, str],
    ) -> Registration:
        """Register an OAuth client; ``identity`` holds ``client_name`` and ``software_id``."""
        payload = {"redirect_uris": [redirect_uri], **identity}
        try:
            data = await self._request("POST", "/auth/register", payload)
        except PlatformError as e:
            raise RegistrationFailed(f"Client registration rejected: {e}") from e
        if not isinstance(data, dict) or not data.get("client_id"):
            raise RegistrationFailed("Client registration returned no client_id")
        return Registration(
            client=self,
            client_id=data["client_id"],
            client_secret=data.get("client_secret", ""),
            redirect_uri=redirect_uri,
            scopes=list(scopes),
        )

    async def list_clients(self) -> List[ClientIdentity]:
        data = await self._request("GET", "/settings/clients")
        rows = data.get("data", []) if isinstance(data, dict) else []
        return [
            ClientIdentity(id=row.get("id") or row.get("_id"), name=(row.get("attributes") or {}).get("client_name", ""))
            for row in rows
        ]

    async def delete_client(self, client_id: str) -> None:
        try:
            await self._request("DELETE", f"/settings/clients/{quote(client_id, safe='')}")
        except PlatformError as e:
            # already gone
            if e.status != 404:
                raise

    # --- documents ---------------------------------------------------------

    async def fetch_all(self, doctype: str) -> List[dict]:
        """Return every document of *doctype*, design documents excluded."""
        try:
            data = await self._request("GET", f"/data/{doctype}/_all_docs?include_docs=true")
        except PlatformError as e:
            if e.status == 404 and "does not exist" in e.message.lower():
                raise CollectionMissing(e.status, e.message, e.url) from e
            raise
        rows = data.get("rows") if isinstance(data, dict) else None
        if not isinstance(rows, list):
            raise PlatformError(
                None, f"Unexpected response listing {doctype}: no rows", f"{self.url}/data/{doctype}/_all_docs"
            )
        return [r["doc"] for r in rows if not r.get("id", "").startswith("_design") and r.get("doc")]

    async def get_document(self, doctype: str, doc_id: str) -> dict:
        return await self._request("GET", f"/data/{doctype}/{quote(doc_id, safe='')}")

    async def create_document(self, doctype: str, doc: dict) -> dict:
        data = await self._request("POST", f"/data/{doctype}/", doc)
        return _unwrap(data)

    async def put_document(self, doctype: str, doc: dict) -> dict:
        """Create or update *doc* under its own ``_id``."""
        data = await self._request("PUT", f"/data/{doctype}/{quote(doc['_id'], safe='')}", doc)
        return _unwrap(data)

    async def delete_document(self, doctype: str, doc_id: str, rev: str) -> None:
        await self._request("DELETE", f"/data/{doctype}/{quote(doc_id, safe='')}?rev={quote(rev, safe='')}")

    async def update_all(self, doctype: str, docs: Iterable[dict]) -> List[dict]:
        return [await self.put_document(doctype, doc) for doc in docs]


def _unwrap(data: Any) -> Optional[dict]:
    if isinstance(data, dict) and isinstance(data.get("data"), dict):
        return data["data"]
    return data if isinstance(data, dict) else None
