"""Credential chain used to reach the vault.

Layers are tried in this order and any layer that is unavailable is skipped:
environment service principal, managed identity, Azure CLI session, Azure
PowerShell session, and finally an interactive browser login. The chain itself
is azure-identity's ``ChainedTokenCredential``; nothing here negotiates tokens.
"""
from __future__ import annotations

from typing import Optional
from urllib.parse import urlparse

from azure.core.credentials import TokenCredential
from azure.core.exceptions import ClientAuthenticationError
from azure.identity import (
    AzureCliCredential,
    AzurePowerShellCredential,
    ChainedTokenCredential,
    EnvironmentCredential,
    InteractiveBrowserCredential,
    ManagedIdentityCredential,
)

from ..config import Settings, load_settings
from ..errors import AuthenticationError
from ..utils.logging import get_logger

VAULT_SCOPE = "https://vault.azure.net/.default"
MANAGED_HSM_SCOPE = "https://managedhsm.azure.net/.default"

log = get_logger()


def scope_for(vault_url: str) -> str:
    host = (urlparse(vault_url).hostname or "").lower()
    if ".managedhsm." in host:
        return MANAGED_HSM_SCOPE
    return VAULT_SCOPE


def build_credential(settings: Optional[Settings] = None) -> ChainedTokenCredential:
    settings = settings or load_settings()
    layers = [
        EnvironmentCredential(),
        ManagedIdentityCredential(),
        AzureCliCredential(),
        AzurePowerShellCredential(),
    ]
    if settings.interactive_login:
        layers.append(InteractiveBrowserCredential())
    log.debug("credential chain: %s", ", ".join(type(c).__name__ for c in layers))
    return ChainedTokenCredential(*layers)


def ensure_token(credential: TokenCredential, vault_url: str) -> None:
    """Fail fast when no credential layer can produce a token for the vault."""
    scope = scope_for(vault_url)
    try:
        credential.get_token(scope)
    except ClientAuthenticationError as e:
        raise AuthenticationError(f"Failed to obtain credentials: {e.message}") from e
    log.debug("token acquired for scope %s", scope)


__all__ = ["build_credential", "ensure_token", "scope_for", "VAULT_SCOPE", "MANAGED_HSM_SCOPE"]
