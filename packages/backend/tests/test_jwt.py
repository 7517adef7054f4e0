"""Token issuer / validator tests.

Learn: these call create_access_token / verify_token directly with an
explicit clock, so expiry boundaries are exact and no sleeping is needed.
"""

import base64
import json
from datetime import datetime, timedelta, timezone

import jwt as pyjwt
import pytest

from coursereg.auth.identity import Identity, Role
from coursereg.auth.jwt import TokenError, create_access_token, verify_token
from coursereg.config import settings

T0 = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def _b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode()


def _unb64(segment: str) -> bytes:
    return base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))


class TestCreateAccessToken:
    def test_claims_are_exactly_sub_role_iat_exp(self):
        issued = create_access_token("alice", Role.TEACHER, now=T0)
        payload = pyjwt.decode(
            issued.access_token,
            settings.jwt_secret,
            algorithms=["HS256"],
            options={"verify_exp": False, "verify_iat": False},
        )
        assert payload == {
            "sub": "alice",
            "role": "TEACHER",
            "iat": int(T0.timestamp()),
            "exp": int(T0.timestamp()) + 3600,
        }

    def test_default_ttl_comes_from_settings(self):
        issued = create_access_token("alice", Role.TEACHER)
        assert issued.expires_in == settings.token_ttl_seconds == 3600
        assert issued.token_type == "Bearer"

    @pytest.mark.parametrize("ttl", [0, -1])
    def test_non_positive_ttl_is_rejected(self, ttl):
        with pytest.raises(ValueError, match="positive"):
            create_access_token("alice", Role.TEACHER, ttl_seconds=ttl)

    def test_wire_format_is_three_segments_with_hs256_header(self):
        token = create_access_token("bob", Role.STUDENT).access_token
        segments = token.split(".")
        assert len(segments) == 3
        header = json.loads(_unb64(segments[0]))
        assert header["alg"] == "HS256"

    def test_same_claims_same_key_always_verify(self):
        for _ in range(3):
            token = create_access_token("alice", Role.TEACHER, now=T0).access_token
            assert verify_token(token, now=T0) == Identity("alice", Role.TEACHER)


class TestExpiry:
    def test_accepted_one_second_before_expiry(self):
        token = create_access_token("alice", Role.TEACHER, ttl_seconds=3600, now=T0).access_token
        identity = verify_token(token, now=T0 + timedelta(seconds=3599))
        assert identity.username == "alice"

    def test_accepted_at_exact_expiry(self):
        token = create_access_token("alice", Role.TEACHER, ttl_seconds=3600, now=T0).access_token
        assert verify_token(token, now=T0 + timedelta(seconds=3600)).role is Role.TEACHER

    def test_rejected_after_expiry(self):
        token = create_access_token("alice", Role.TEACHER, ttl_seconds=3600, now=T0).access_token
        with pytest.raises(TokenError, match="expired"):
            verify_token(token, now=T0 + timedelta(seconds=3601))

    def test_rejected_half_a_second_after_expiry(self):
        token = create_access_token("alice", Role.TEACHER, ttl_seconds=3600, now=T0).access_token
        with pytest.raises(TokenError, match="expired"):
            verify_token(token, now=T0 + timedelta(seconds=3600, milliseconds=500))

    def test_expired_token_with_real_clock(self):
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = create_access_token("alice", Role.TEACHER, now=past).access_token
        with pytest.raises(TokenError):
            verify_token(token)


class TestTampering:
    def test_any_single_bit_flip_in_signature_fails(self):
        token = create_access_token("alice", Role.TEACHER, now=T0).access_token
        header, claims, signature = token.split(".")
        raw = _unb64(signature)

        for bit in range(len(raw) * 8):
            flipped = bytearray(raw)
            flipped[bit // 8] ^= 1 << (bit % 8)
            forged = f"{header}.{claims}.{_b64(bytes(flipped))}"
            with pytest.raises(TokenError):
                verify_token(forged, now=T0)

    def test_role_escalation_in_claims_fails(self):
        token = create_access_token("bob", Role.STUDENT, now=T0).access_token
        header, claims, signature = token.split(".")
        payload = json.loads(_unb64(claims))
        payload["role"] = "TEACHER"
        forged_claims = _b64(json.dumps(payload, separators=(",", ":")).encode())
        with pytest.raises(TokenError):
            verify_token(f"{header}.{forged_claims}.{signature}", now=T0)

    def test_wrong_secret_fails(self):
        token = pyjwt.encode(
            {"sub": "alice", "role": "TEACHER", "iat": T0, "exp": T0 + timedelta(hours=1)},
            "some-other-secret-that-is-long-enough-000",
            algorithm="HS256",
        )
        with pytest.raises(TokenError):
            verify_token(token, now=T0)

    def test_unsigned_alg_none_token_fails(self):
        token = pyjwt.encode(
            {"sub": "alice", "role": "TEACHER", "iat": T0, "exp": T0 + timedelta(hours=1)},
            "",
            algorithm="none",
        )
        with pytest.raises(TokenError):
            verify_token(token, now=T0)

    @pytest.mark.parametrize("garbage", ["", "not-a-token", "a.b.c", "a.b"])
    def test_malformed_tokens_fail(self, garbage):
        with pytest.raises(TokenError):
            verify_token(garbage, now=T0)


class TestClaimValidation:
    def _sign(self, payload: dict) -> str:
        return pyjwt.encode(payload, settings.jwt_secret, algorithm="HS256")

    def test_missing_role_claim_fails(self):
        token = self._sign({"sub": "alice", "iat": T0, "exp": T0 + timedelta(hours=1)})
        with pytest.raises(TokenError):
            verify_token(token, now=T0)

    def test_missing_exp_claim_fails(self):
        token = self._sign({"sub": "alice", "role": "TEACHER", "iat": T0})
        with pytest.raises(TokenError):
            verify_token(token, now=T0)

    def test_unknown_role_fails(self):
        token = self._sign(
            {"sub": "alice", "role": "ADMIN", "iat": T0, "exp": T0 + timedelta(hours=1)}
        )
        with pytest.raises(TokenError, match="role"):
            verify_token(token, now=T0)

    def test_prefixed_role_is_not_accepted(self):
        token = self._sign(
            {"sub": "alice", "role": "ROLE_TEACHER", "iat": T0, "exp": T0 + timedelta(hours=1)}
        )
        with pytest.raises(TokenError):
            verify_token(token, now=T0)
