"""Per-request context derivation.

An invalid or expired token is treated exactly like a missing one: the request
proceeds as Anonymous and each protected procedure rejects it on its own.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from taskboard.auth.credentials import CredentialVerifier, VerificationFailure

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class Anonymous:
    pass


@dataclass(frozen=True)
class Authenticated:
    identity: int


@dataclass(frozen=True)
class RequestContext:
    auth: Anonymous | Authenticated = field(default_factory=Anonymous)
    request: Any = None

    @property
    def identity(self) -> int | None:
        if isinstance(self.auth, Authenticated):
            return self.auth.identity
        return None

    @classmethod
    def for_identity(cls, identity: int, request: Any = None) -> "RequestContext":
        return cls(auth=Authenticated(identity), request=request)


def _get_header(headers: Mapping[str, str], name: str) -> str | None:
    value = headers.get(name)
    if value is not None:
        return value
    # plain dicts are case sensitive, Starlette Headers are not
    lowered = name.lower()
    for key, val in headers.items():
        if key.lower() == lowered:
            return val
    return None


def extract_bearer_token(headers: Mapping[str, str]) -> str | None:
    auth_header = _get_header(headers, "Authorization")
    if not auth_header or not auth_header.startswith(BEARER_PREFIX):
        return None
    return auth_header[len(BEARER_PREFIX) :].strip() or None


class ContextBuilder:
    def __init__(self, verifier: CredentialVerifier):
        self.verifier = verifier

    def build(self, headers: Mapping[str, str], request: Any = None) -> RequestContext:
        token = extract_bearer_token(headers)
        if token is None:
            return RequestContext(request=request)

        try:
            identity = self.verifier.verify(token)
        except VerificationFailure as e:
            logger.debug(f"Bearer token rejected, continuing as anonymous: {e}")
            return RequestContext(request=request)

        return RequestContext.for_identity(identity, request=request)
