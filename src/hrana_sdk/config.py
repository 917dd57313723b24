"""
Connection configuration dataclass for Hrana clients.

Provides an immutable configuration container and the URL normalisation
shared by ``HranaClient``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import cast
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from .protocol import WireProtocol

_SCHEME_MAP = {
    "libsql": "https",
    "ws": "http",
    "wss": "https",
}

# Query parameters carrying the credential
_TOKEN_PARAMS = ("authToken", "jwt")


def normalize_url(url: str) -> str:
    """
    Convert a database URL to the HTTP base URL pipelines are posted under.

    ``libsql://`` becomes ``https://`` (``http://`` with ``?tls=0``),
    ``ws://``/``wss://`` become ``http://``/``https://``. Credential and
    ``tls`` query parameters are dropped and a trailing slash is stripped.
    """
    parts = urlsplit(url)
    query = parse_qsl(parts.query, keep_blank_values=True)
    scheme = parts.scheme.lower()

    tls = dict(query).get("tls")
    if scheme == "libsql" and tls == "0":
        scheme = "http"
    else:
        scheme = _SCHEME_MAP.get(scheme, scheme)

    kept = [(k, v) for k, v in query if k not in _TOKEN_PARAMS and k != "tls"]
    path = parts.path.rstrip("/")
    return urlunsplit((scheme, parts.netloc, path, urlencode(kept), parts.fragment))


def token_from_url(url: str) -> str | None:
    """Get the credential from an ``authToken`` or ``jwt`` query parameter."""
    query = dict(parse_qsl(urlsplit(url).query))
    for name in _TOKEN_PARAMS:
        if query.get(name):
            return query[name]
    return None


@dataclass(frozen=True)
class StreamConfig:
    """
    Immutable configuration for a Hrana client.

    Attributes:
        url: Base URL of the database (http, https, ws, wss or libsql scheme)
        auth_token: Bearer credential (JWT), optional
        protocol: Wire encoding ("protobuf" or "json")
        timeout: Default request timeout in seconds
    """

    url: str
    auth_token: str | None = None
    protocol: WireProtocol = "protobuf"
    timeout: float = 30.0

    def __post_init__(self) -> None:
        if self.protocol not in ("protobuf", "json"):
            raise ValueError(f"Invalid protocol '{self.protocol}'. Must be 'protobuf' or 'json'.")

    @property
    def base_url(self) -> str:
        return normalize_url(self.url)

    @classmethod
    def from_url(cls, url: str, **kwargs: object) -> StreamConfig:
        """
        Build a configuration from a URL that may carry the credential.

        Example:
            StreamConfig.from_url("libsql://db.example.com?authToken=ey...")
        """
        config = cls(url=url, **kwargs)  # type: ignore[arg-type]
        token = token_from_url(url)
        if token and config.auth_token is None:
            config = replace(config, auth_token=token)
        return config

    @classmethod
    def from_env(cls, prefix: str = "HRANA_") -> StreamConfig:
        """
        Build a configuration from environment variables.

        Reads ``<prefix>URL`` (required), ``<prefix>AUTH_TOKEN``,
        ``<prefix>PROTOCOL`` and ``<prefix>TIMEOUT``.
        """
        url = os.getenv(f"{prefix}URL")
        if not url:
            raise ValueError(f"Environment variable {prefix}URL is not set")

        timeout = os.getenv(f"{prefix}TIMEOUT")
        return cls.from_url(
            url,
            auth_token=os.getenv(f"{prefix}AUTH_TOKEN") or None,
            protocol=cast(WireProtocol, os.getenv(f"{prefix}PROTOCOL", "protobuf")),
            timeout=float(timeout) if timeout else 30.0,
        )


__all__ = ["StreamConfig", "WireProtocol", "normalize_url", "token_from_url"]
