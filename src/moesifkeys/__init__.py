"""moesifkeys -- Organization to Moesif key cache backed by the key microservice.

This package keeps an in-memory map from organization ID to the Moesif
application key ("service key") issued for it, refreshed from a remote
key-issuing microservice, plus one lazily built collector client per
distinct key.

Typical usage::

    from moesifkeys import KeyRetriever, Credentials, load_settings

    settings = load_settings()
    with KeyRetriever(settings, Credentials("analytics", "s3cret")) as retriever:
        retriever.refresh_all()
        key = retriever.lookup("org-42")

Modules:
    cache: Thread-safe dual map with per-key reference counting.
    retriever: Facade combining transport, decoding, retry, and cache.
    retry: Fixed-delay bounded retry combinator.
    decoder: JSON body to :class:`~moesifkeys.models.KeyEntry` decoding.
    client: Microservice transport and collector client factory.
    config: XDG-aware settings and credential source resolution.
    app: Typer CLI entry point.
"""

from moesifkeys.auth import Credentials
from moesifkeys.cache import KeyCache
from moesifkeys.config import load_settings
from moesifkeys.models import KeyEntry, Settings
from moesifkeys.retriever import KeyRetriever

__version__ = "0.1.0"

__all__ = [
    "Credentials",
    "KeyCache",
    "KeyEntry",
    "KeyRetriever",
    "Settings",
    "load_settings",
]
