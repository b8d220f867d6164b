"""HTTP Basic credentials held in memory.

The secret is stored in a :class:`bytearray` so that it can be overwritten in
place by :meth:`Credentials.clear`. The header value is derived on demand and
never cached. Neither value appears in ``repr()`` output or log records.

See Also:
    :rfc:`7617` for the ``Basic`` scheme.
"""

from __future__ import annotations

import base64
import threading

from moesifkeys.config import resolve_credential
from moesifkeys.exceptions import ConfigError
from moesifkeys.models import AuthConfig


class Credentials:
    """Username and secret for the key microservice.

    Args:
        username: Basic-auth user name. Must not contain a colon.
        secret: Basic-auth password.

    Example::

        creds = Credentials("analytics", "s3cret")
        headers = {"Authorization": creds.basic_auth_header()}
        creds.clear()
    """

    def __init__(self, username: str, secret: str) -> None:
        if not username:
            raise ConfigError("Microservice username must not be empty")
        if ":" in username:
            raise ConfigError("Microservice username must not contain ':'")
        self._username = username
        self._secret = bytearray(secret.encode("utf-8"))
        self._cleared = False
        self._lock = threading.Lock()

    @property
    def username(self) -> str:
        return self._username

    @property
    def is_cleared(self) -> bool:
        """Whether :meth:`clear` has been called."""
        return self._cleared

    def basic_auth_header(self) -> str:
        """Return the ``Authorization`` header value for these credentials.

        Raises:
            ConfigError: If the credentials have been cleared.
        """
        with self._lock:
            if self._cleared:
                raise ConfigError("Credentials have been cleared")
            raw = self._username.encode("utf-8") + b":" + bytes(self._secret)
        encoded = base64.b64encode(raw).decode("ascii")
        return f"Basic {encoded}"

    def clear(self) -> None:
        """Overwrite the secret with zeros and mark the credentials unusable."""
        with self._lock:
            for i in range(len(self._secret)):
                self._secret[i] = 0
            self._secret = bytearray()
            self._cleared = True

    def __repr__(self) -> str:
        return f"Credentials(username={self._username!r}, secret='***')"


def credentials_from_settings(auth: AuthConfig) -> Credentials:
    """Build :class:`Credentials` from the ``auth`` settings section.

    Raises:
        ConfigError: If no username is configured or the secret source
            cannot be resolved.
    """
    if not auth.username:
        raise ConfigError(
            "No microservice username configured "
            "(set auth.username or MOESIFKEYS_USERNAME)"
        )
    return Credentials(auth.username, resolve_credential(auth.source))
