import asyncio
import json
import logging
import socket
import webbrowser
from types import SimpleNamespace
from urllib.parse import urlparse

import pytest

from ach_cli import CLIENT_NAME
from ach_cli.core import session as session_mod
from ach_cli.core.errors import CorruptCredential, RegistrationFailed
from ach_cli.core.platform import ClientIdentity, PermissionScope
from ach_cli.core.session import compute_scopes, create_session, revoke_stale_clients


def free_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def browser_that_consents(platform, opened):
    """Fake browser: the user accepts and the platform redirects to the listener."""

    async def redirect(uri):
        port = urlparse(uri).port
        reader, writer = await asyncio.open_connection("127.0.0.1", port)
        writer.write(b"GET /do_access?code=abc&state=xyz HTTP/1.1\r\nHost: localhost\r\n\r\n")
        await writer.drain()
        await reader.read()
        writer.close()

    def open_browser(url):
        opened.append(url)
        asyncio.get_running_loop().create_task(redirect(platform.registrations[-1].redirect_uri))

    return open_browser


def test_compute_scopes_adds_clients_scope_once():
    scopes = compute_scopes(["io.cozy.bills", "io.cozy.bills", "io.cozy.oauth.clients"])
    assert [str(s) for s in scopes] == ["io.cozy.bills:ALL", "io.cozy.oauth.clients:ALL"]
    assert compute_scopes([]) == [PermissionScope("io.cozy.oauth.clients")]


def test_stored_token_skips_registration(tmp_path, make_platform):
    token_path = tmp_path / "token.json"
    token_path.write_text('{"token": "stored"}')
    platform = make_platform()
    built = []

    def factory(url, token=None):
        built.append((url, token))
        return platform

    session = asyncio.run(create_session(token_path, "https://alice.example", ["io.cozy.bills"], client_factory=factory))
    assert session.token == "stored"
    assert session.client is platform
    assert session.scopes is None
    assert built == [("https://alice.example", "stored")]
    assert platform.calls == []


def test_corrupt_token_fails_without_network(tmp_path, make_platform):
    token_path = tmp_path / "token.json"
    token_path.write_text("{not json")
    platform = make_platform()

    with pytest.raises(CorruptCredential):
        asyncio.run(create_session(token_path, "https://alice.example", [], client_factory=lambda *a: platform))
    assert platform.calls == []
    assert token_path.read_text() == "{not json"


def test_authorization_flow_writes_token_and_revokes(tmp_path, make_platform):
    token_path = tmp_path / "token.json"
    platform = make_platform(
        clients=[
            ClientIdentity("old-1", CLIENT_NAME),
            ClientIdentity("other", "Cozy Desktop"),
            ClientIdentity("old-2", CLIENT_NAME),
        ]
    )
    opened = []
    port = free_port()

    session = asyncio.run(
        create_session(
            token_path,
            "https://alice.example",
            ["io.cozy.bills"],
            client_factory=lambda *a: platform,
            port=port,
            timeout=5,
            open_browser=browser_that_consents(platform, opened),
        )
    )

    register = [c for c in platform.calls if c[0] == "register_client"]
    assert len(register) == 1
    _, scopes, redirect_uri, identity = register[0]
    assert scopes == ["io.cozy.bills:ALL", "io.cozy.oauth.clients:ALL"]
    assert redirect_uri == f"http://localhost:{port}/do_access"
    assert identity["client_name"] == CLIENT_NAME
    assert opened == [platform.registrations[0].consent_url]
    assert ("exchange", f"http://localhost:{port}/do_access?code=abc&state=xyz") in platform.calls

    assert json.loads(token_path.read_text()) == {"token": "fresh-token"}
    assert session.token == "fresh-token"
    assert platform.token == "fresh-token"
    assert session.client_id == "new-client"
    assert PermissionScope("io.cozy.oauth.clients") in session.scopes

    deleted = [c[1] for c in platform.calls if c[0] == "delete_client"]
    assert deleted == ["old-1", "old-2"]
    assert [c.id for c in platform.clients] == ["other", "new-client"]
    # revocation only after the token is on disk
    assert platform.calls.index(("list_clients",)) > platform.calls.index(
        ("exchange", f"http://localhost:{port}/do_access?code=abc&state=xyz")
    )


@pytest.mark.parametrize("fails_by_raising", [False, True])
def test_browser_failure_is_not_fatal(tmp_path, make_platform, monkeypatch, caplog, fails_by_raising):
    caplog.set_level(logging.INFO, logger="ach_cli.core.session")
    token_path = tmp_path / "token.json"
    platform = make_platform()
    opened = []
    consent = browser_that_consents(platform, opened)

    def broken_open(url, new=0):
        # the user copies the logged URL by hand
        consent(url)
        if fails_by_raising:
            raise webbrowser.Error("no runnable browser")
        return False

    monkeypatch.setattr(session_mod, "webbrowser", SimpleNamespace(open=broken_open, Error=webbrowser.Error))
    session = asyncio.run(
        create_session(
            token_path,
            "https://alice.example",
            ["io.cozy.bills"],
            client_factory=lambda *a: platform,
            port=free_port(),
            timeout=5,
        )
    )

    assert session.token == "fresh-token"
    assert json.loads(token_path.read_text()) == {"token": "fresh-token"}
    assert platform.registrations[0].consent_url in caplog.text
    assert "Could not open a browser" in caplog.text


def test_registration_failure_releases_port_and_writes_nothing(tmp_path, make_platform):
    token_path = tmp_path / "token.json"
    platform = make_platform(reject=True)
    port = free_port()

    with pytest.raises(RegistrationFailed):
        asyncio.run(
            create_session(token_path, "https://alice.example", [], client_factory=lambda *a: platform, port=port)
        )
    assert not token_path.exists()
    assert ("list_clients",) not in platform.calls
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        s.bind(("127.0.0.1", port))


def test_revocation_deletes_each_stale_client_once(make_platform, make_session):
    platform = make_platform(
        clients=[
            ClientIdentity("a", CLIENT_NAME),
            ClientIdentity("a", CLIENT_NAME),
            ClientIdentity("me", CLIENT_NAME),
            ClientIdentity("b", "Other app"),
        ]
    )
    session = make_session(platform, client_id="me")

    assert asyncio.run(revoke_stale_clients(session)) == ["a"]
    assert [c for c in platform.calls if c[0] == "delete_client"] == [("delete_client", "a")]

    # nothing left to revoke
    platform.calls.clear()
    assert asyncio.run(revoke_stale_clients(session)) == []
    assert platform.mutations == []


def test_revocation_failure_is_logged_not_raised(make_platform, make_session, caplog):
    platform = make_platform()
    platform.fail_listing = True
    session = make_session(platform, client_id="me")

    assert asyncio.run(revoke_stale_clients(session)) == []
    assert "Cannot revoke ACH clients" in caplog.text


def test_failed_deletion_does_not_stop_other_revocations(make_platform, make_session, monkeypatch, caplog):
    platform = make_platform(clients=[ClientIdentity("a", CLIENT_NAME), ClientIdentity("b", CLIENT_NAME)])
    original = platform.delete_client

    async def flaky_delete(client_id):
        if client_id == "a":
            raise session_mod.RevocationFailed("nope")
        await original(client_id)

    monkeypatch.setattr(platform, "delete_client", flaky_delete)
    session = make_session(platform, client_id="me")

    assert asyncio.run(revoke_stale_clients(session)) == ["b"]
    assert "Cannot revoke ACH client a" in caplog.text
