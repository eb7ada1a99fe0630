"""Unit tests for credential issuing and verification."""

import base64
import json

import jwt
import pytest

from shortener.core.errors import (
    AuthenticationAppError,
    BadSignatureError,
    ExpiredCredentialError,
    MalformedCredentialError,
)
from shortener.models import Tier
from shortener.services.token_codec import TokenCodec

SECRET = "unit-test-secret"


def _b64decode(segment: str) -> bytes:
    return base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


def _flip_signature_bit(credential: str, bit: int) -> str:
    header, payload, signature = credential.split(".")
    raw = bytearray(_b64decode(signature))
    raw[bit // 8] ^= 1 << (bit % 8)
    return ".".join([header, payload, _b64encode(bytes(raw))])


@pytest.fixture
def codec() -> TokenCodec:
    return TokenCodec(SECRET)


class TestRoundTrip:
    @pytest.mark.parametrize("tier", [Tier.TIER1, Tier.TIER2])
    @pytest.mark.parametrize("subject_id", ["u-1", "65f0c0ffee", "a" * 64])
    def test_issue_then_verify_returns_same_identity(self, codec, subject_id, tier) -> None:
        identity = codec.verify(codec.issue(subject_id, tier))

        assert identity.subject_id == subject_id
        assert identity.tier is tier

    def test_tier_given_as_string(self, codec) -> None:
        identity = codec.verify(codec.issue("u-1", "Tier2"))
        assert identity.tier is Tier.TIER2
        assert identity.raw_tier == "Tier2"

    def test_unknown_tier_is_preserved_as_unknown(self, codec) -> None:
        identity = codec.verify(codec.issue("u-1", "Guest"))
        assert identity.tier is Tier.UNKNOWN
        assert identity.raw_tier == "Guest"

    def test_claims_are_sub_tier_iat(self, codec) -> None:
        credential = codec.issue("u-1", Tier.TIER1)
        claims = json.loads(_b64decode(credential.split(".")[1]))

        assert claims["sub"] == "u-1"
        assert claims["tier"] == "Tier1"
        assert isinstance(claims["iat"], int)
        assert "exp" not in claims


class TestSignature:
    @pytest.mark.parametrize("bit", [0, 1, 7, 8, 100, 128, 200, 255])
    def test_single_bit_flip_is_rejected(self, codec, bit) -> None:
        tampered = _flip_signature_bit(codec.issue("u-1", Tier.TIER1), bit)

        with pytest.raises(BadSignatureError) as exc_info:
            codec.verify(tampered)

        assert exc_info.value.code == "bad_signature"
        assert isinstance(exc_info.value, AuthenticationAppError)

    def test_other_secret_is_rejected(self, codec) -> None:
        foreign = TokenCodec("another-secret").issue("u-1", Tier.TIER1)

        with pytest.raises(BadSignatureError):
            codec.verify(foreign)

    def test_tampered_payload_is_rejected(self, codec) -> None:
        header, _, signature = codec.issue("u-1", Tier.TIER2).split(".")
        forged_payload = _b64encode(json.dumps({"sub": "u-1", "tier": "Tier1", "iat": 1}).encode())

        with pytest.raises(BadSignatureError):
            codec.verify(".".join([header, forged_payload, signature]))

    def test_unsigned_token_is_rejected(self, codec) -> None:
        unsigned = jwt.encode({"sub": "u-1", "tier": "Tier1", "iat": 1}, key=None, algorithm="none")

        with pytest.raises(AuthenticationAppError):
            codec.verify(unsigned)


class TestMalformed:
    @pytest.mark.parametrize("credential", ["", "not-a-token", "a.b", "a.b.c", "...."])
    def test_garbage_is_malformed(self, codec, credential) -> None:
        with pytest.raises(MalformedCredentialError) as exc_info:
            codec.verify(credential)

        assert exc_info.value.code == "malformed_credential"

    @pytest.mark.parametrize("missing", ["sub", "tier", "iat"])
    def test_missing_claim_is_malformed(self, codec, missing) -> None:
        claims = {"sub": "u-1", "tier": "Tier1", "iat": 1_700_000_000}
        del claims[missing]
        credential = jwt.encode(claims, SECRET, algorithm="HS256")

        with pytest.raises(MalformedCredentialError):
            codec.verify(credential)

    def test_non_string_tier_is_malformed(self, codec) -> None:
        credential = jwt.encode({"sub": "u-1", "tier": 1, "iat": 1_700_000_000}, SECRET, algorithm="HS256")

        with pytest.raises(MalformedCredentialError):
            codec.verify(credential)


class TestExpiry:
    def test_no_expiry_by_default(self) -> None:
        old = TokenCodec(SECRET, clock=lambda: 1_000_000.0).issue("u-1", Tier.TIER1)
        assert TokenCodec(SECRET).verify(old).subject_id == "u-1"

    def test_expired_credential_is_rejected(self) -> None:
        codec = TokenCodec(SECRET, ttl_seconds=60, clock=lambda: 1_000_000.0)

        with pytest.raises(ExpiredCredentialError) as exc_info:
            codec.verify(codec.issue("u-1", Tier.TIER1))

        assert exc_info.value.code == "expired_credential"

    def test_unexpired_credential_is_accepted(self) -> None:
        codec = TokenCodec(SECRET, ttl_seconds=3600)
        assert codec.verify(codec.issue("u-1", Tier.TIER1)).tier is Tier.TIER1


def test_empty_secret_is_rejected() -> None:
    with pytest.raises(ValueError):
        TokenCodec("")
