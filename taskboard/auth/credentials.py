"""Bearer token signing/verification and password hashing."""

from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

IDENTITY_CLAIM = "userId"


class VerificationFailure(Exception):
    """Token is malformed, expired, badly signed or carries no identity."""


class CredentialVerifier:
    def __init__(
        self,
        secret: str,
        expires_in: timedelta = timedelta(days=7),
        algorithm: str = "HS256",
    ):
        if not secret:
            raise ValueError("signing secret must not be empty")
        self._secret = secret
        self.expires_in = expires_in
        self.algorithm = algorithm

    def sign(self, identity: int, now: datetime | None = None) -> str:
        issued = now or datetime.now(timezone.utc)
        payload = {
            IDENTITY_CLAIM: identity,
            "iat": issued,
            "exp": issued + self.expires_in,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str, now: datetime | None = None) -> int:
        """Return the identity encoded in ``token``.

        Raises VerificationFailure for anything that is not a valid, unexpired
        token signed with this verifier's secret.
        """
        options = {"require": ["exp"]}
        if now is not None:
            # PyJWT checks expiry against the wall clock, so do it ourselves
            options["verify_exp"] = False
        try:
            payload = jwt.decode(
                token, self._secret, algorithms=[self.algorithm], options=options
            )
        except jwt.PyJWTError as e:
            raise VerificationFailure(str(e)) from e

        if now is not None and payload["exp"] <= now.timestamp():
            raise VerificationFailure("Signature has expired")

        identity = payload.get(IDENTITY_CLAIM)
        if not isinstance(identity, int) or isinstance(identity, bool):
            raise VerificationFailure("token carries no identity")
        return identity


def hash_password(password: str, rounds: int = 10) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds)).decode(
        "ascii"
    )


def check_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("ascii"))
    except ValueError:
        # not a bcrypt hash, or a password over 72 bytes
        return False
