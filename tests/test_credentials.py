from datetime import datetime, timedelta, timezone

import jwt
import pytest

from taskboard.auth.credentials import (
    CredentialVerifier,
    VerificationFailure,
    check_password,
    hash_password,
)


@pytest.fixture
def verifier() -> CredentialVerifier:
    return CredentialVerifier("secret-a")


class TestVerify:
    def test_round_trips_identity(self, verifier: CredentialVerifier):
        token = verifier.sign(42)
        assert verifier.verify(token) == 42

    def test_token_carries_only_identity_and_times(self, verifier: CredentialVerifier):
        payload = jwt.decode(verifier.sign(7), "secret-a", algorithms=["HS256"])
        assert set(payload) == {"userId", "iat", "exp"}
        assert payload["exp"] - payload["iat"] == int(timedelta(days=7).total_seconds())

    def test_wrong_secret_fails(self, verifier: CredentialVerifier):
        token = CredentialVerifier("secret-b").sign(42)
        with pytest.raises(VerificationFailure):
            verifier.verify(token)

    @pytest.mark.parametrize("token", ["", "not-a-token", "a.b.c", "Bearer x"])
    def test_malformed_fails(self, verifier: CredentialVerifier, token: str):
        with pytest.raises(VerificationFailure):
            verifier.verify(token)

    def test_expired_fails(self, verifier: CredentialVerifier):
        issued = datetime.now(timezone.utc) - timedelta(days=8)
        token = verifier.sign(42, now=issued)
        with pytest.raises(VerificationFailure):
            verifier.verify(token)

    def test_expiry_is_checked_against_given_time(self, verifier: CredentialVerifier):
        token = verifier.sign(42)
        later = datetime.now(timezone.utc) + timedelta(days=7, seconds=1)
        assert verifier.verify(token, now=datetime.now(timezone.utc)) == 42
        with pytest.raises(VerificationFailure):
            verifier.verify(token, now=later)

    def test_missing_identity_claim_fails(self, verifier: CredentialVerifier):
        exp = datetime.now(timezone.utc) + timedelta(hours=1)
        token = jwt.encode({"sub": "42", "exp": exp}, "secret-a", algorithm="HS256")
        with pytest.raises(VerificationFailure):
            verifier.verify(token)

    def test_non_integer_identity_fails(self, verifier: CredentialVerifier):
        exp = datetime.now(timezone.utc) + timedelta(hours=1)
        for value in ("42", True, None):
            token = jwt.encode({"userId": value, "exp": exp}, "secret-a", algorithm="HS256")
            with pytest.raises(VerificationFailure):
                verifier.verify(token)

    def test_empty_secret_rejected(self):
        with pytest.raises(ValueError):
            CredentialVerifier("")


class TestPasswords:
    def test_hash_is_not_plaintext_and_verifies(self):
        hashed = hash_password("secret1", rounds=4)
        assert hashed != "secret1"
        assert check_password("secret1", hashed)
        assert not check_password("secret2", hashed)

    def test_garbage_hash_does_not_verify(self):
        assert not check_password("secret1", "plain-text")
