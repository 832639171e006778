import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from ach_cli.core.errors import CollectionMissing, PlatformError, RegistrationFailed  # noqa: E402
from ach_cli.core.platform import ClientIdentity  # noqa: E402
from ach_cli.core.session import Session  # noqa: E402

MUTATING = {"create_document", "put_document", "delete_document", "update_all", "delete_client"}


class FakeRegistration:
    def __init__(self, platform, client_id, redirect_uri):
        self.platform = platform
        self.client_id = client_id
        self.redirect_uri = redirect_uri
        self.state = "xyz"

    @property
    def consent_url(self):
        return f"{self.platform.url}/auth/authorize?client_id={self.client_id}"

    async def exchange(self, callback_url):
        self.platform.calls.append(("exchange", callback_url))
        return "fresh-token"


class FakePlatform:
    """In-memory stand-in for :class:`ach_cli.core.platform.PlatformClient`."""

    def __init__(self, docs=None, clients=None, missing=(), failing=(), reject=False, url="https://alice.example"):
        self.url = url
        self.token = None
        self.docs = {k: [dict(d) for d in v] for k, v in (docs or {}).items()}
        self.clients = list(clients or [])
        self.missing = set(missing)
        self.failing = set(failing)
        self.reject = reject
        self.fail_listing = False
        self.calls = []
        self.registrations = []
        self._seq = 0

    @property
    def mutations(self):
        return [c for c in self.calls if c[0] in MUTATING]

    async def register_client(self, scopes, redirect_uri, identity):
        self.calls.append(("register_client", [str(s) for s in scopes], redirect_uri, identity))
        if self.reject:
            raise RegistrationFailed("Client registration rejected: [HTTP 400] bad request")
        reg = FakeRegistration(self, "new-client", redirect_uri)
        self.registrations.append(reg)
        self.clients.append(ClientIdentity("new-client", identity["client_name"]))
        return reg

    async def list_clients(self):
        self.calls.append(("list_clients",))
        if self.fail_listing:
            raise PlatformError(500, "boom")
        return list(self.clients)

    async def delete_client(self, client_id):
        self.calls.append(("delete_client", client_id))
        self.clients = [c for c in self.clients if c.id != client_id]

    async def fetch_all(self, doctype):
        self.calls.append(("fetch_all", doctype))
        if doctype in self.missing:
            raise CollectionMissing(404, "Database does not exist.")
        if doctype in self.failing:
            raise PlatformError(500, "Internal Server Error")
        return [dict(d) for d in self.docs.get(doctype, [])]

    async def get_document(self, doctype, doc_id):
        self.calls.append(("get_document", doctype, doc_id))
        for doc in self.docs.get(doctype, []):
            if doc["_id"] == doc_id:
                return dict(doc)
        raise PlatformError(404, "not_found")

    async def create_document(self, doctype, doc):
        self.calls.append(("create_document", doctype, dict(doc)))
        self._seq += 1
        stored = {**doc, "_id": f"gen-{self._seq}", "_rev": "1-a"}
        self.docs.setdefault(doctype, []).append(stored)
        return stored

    async def put_document(self, doctype, doc):
        self.calls.append(("put_document", doctype, dict(doc)))
        docs = self.docs.setdefault(doctype, [])
        stored = {**doc, "_rev": "2-b"}
        for i, existing in enumerate(docs):
            if existing["_id"] == doc["_id"]:
                docs[i] = stored
                break
        else:
            docs.append(stored)
        return stored

    async def delete_document(self, doctype, doc_id, rev):
        self.calls.append(("delete_document", doctype, doc_id, rev))
        self.docs[doctype] = [d for d in self.docs.get(doctype, []) if d["_id"] != doc_id]

    async def update_all(self, doctype, docs):
        docs = list(docs)
        self.calls.append(("update_all", doctype, docs))
        return docs


@pytest.fixture
def make_platform():
    return FakePlatform


@pytest.fixture
def make_session():
    def _make(platform, client_id=None):
        return Session(url=platform.url, token="tok", client=platform, client_id=client_id)

    return _make
