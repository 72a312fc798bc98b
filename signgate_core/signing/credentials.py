"""
Credential Store
================
Resolves an API key to its shared app secret.
"""

import os
from abc import ABC, abstractmethod
from typing import Dict, Mapping, Optional


class CredentialStore(ABC):
    """Lookup of api_key_id -> shared secret."""

    @abstractmethod
    async def get_secret(self, api_key_id: str) -> Optional[str]:
        """Return the shared secret, or None if the key is unknown."""


class StaticCredentialStore(CredentialStore):
    """Fixed credential table, read-only after construction."""

    def __init__(self, credentials: Mapping[str, str]):
        self._credentials: Dict[str, str] = dict(credentials)

    @classmethod
    def from_env(cls, key_var: str = "API_KEY", secret_var: str = "APP_KEY") -> "StaticCredentialStore":
        """Single-app store from environment variables; empty if either is unset."""
        api_key = os.getenv(key_var)
        app_key = os.getenv(secret_var)
        if api_key and app_key:
            return cls({api_key: app_key})
        return cls({})

    async def get_secret(self, api_key_id: str) -> Optional[str]:
        return self._credentials.get(api_key_id)

    def __contains__(self, api_key_id: str) -> bool:
        return api_key_id in self._credentials
