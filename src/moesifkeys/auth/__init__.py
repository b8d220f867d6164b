"""Credentials for the key microservice.

:class:`Credentials` holds the Basic-auth username and secret in memory and
builds the ``Authorization`` header for every microservice call. The secret
can be wiped with :meth:`Credentials.clear` when the owning retriever is
closed.
"""

from moesifkeys.auth.credentials import Credentials, credentials_from_settings

__all__ = ["Credentials", "credentials_from_settings"]
