"""Core utilities for ach CLI."""

from .config import (
    CONFIG_PATH,
    DEFAULT_URL,
    get_url_and_token_path,
    load_config,
    resolve_token_path,
    resolve_url,
)
from .errors import (
    AchError,
    AuthorizationTimeout,
    CollectionMissing,
    CorruptCredential,
    FetchFailed,
    PlatformError,
    PortUnavailable,
    RegistrationFailed,
    RevocationFailed,
    ScriptNotFound,
)
from .http import http_json, http_form_post
from .platform import ClientIdentity, PermissionScope, PlatformClient, Registration
from .token_store import Credential, read_credential, write_credential
from .listener import CallbackListener
from .session import Session, authorize, compute_scopes, create_session, revoke_stale_clients
from .export import StripPolicy, export_doctypes, fetch_doctype, strip_metadata, write_artifact
from .bulk import delete_documents, drop_collections, import_data, load_artifact
from .harness import ScriptUnit, load_registry, load_script, run_script, script_doctypes
from .utils import render_diff, tqdm
from .interactive import confirm_destructive, pick_script

__all__ = [
    "CONFIG_PATH", "DEFAULT_URL", "get_url_and_token_path", "load_config", "resolve_token_path", "resolve_url",
    "AchError", "AuthorizationTimeout", "CollectionMissing", "CorruptCredential", "FetchFailed",
    "PlatformError", "PortUnavailable", "RegistrationFailed", "RevocationFailed", "ScriptNotFound",
    "http_json", "http_form_post",
    "ClientIdentity", "PermissionScope", "PlatformClient", "Registration",
    "Credential", "read_credential", "write_credential",
    "CallbackListener",
    "Session", "authorize", "compute_scopes", "create_session", "revoke_stale_clients",
    "StripPolicy", "export_doctypes", "fetch_doctype", "strip_metadata", "write_artifact",
    "delete_documents", "drop_collections", "import_data", "load_artifact",
    "ScriptUnit", "load_registry", "load_script", "run_script", "script_doctypes",
    "render_diff", "tqdm",
    "confirm_destructive", "pick_script",
]
