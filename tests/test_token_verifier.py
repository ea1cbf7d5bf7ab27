"""Tests for tracking token verification."""

import string

import pytest

from engagement_api.core import (
    SignatureInvalidError,
    TokenCodec,
    TokenExpiredError,
    TokenRevokedError,
    TokenVerifier,
)
from engagement_api.models import VerificationReason
from engagement_api.telemetry import clear_dev_logs, get_dev_logs


BASE64URL_ALPHABET = string.ascii_letters + string.digits + "-_"


def _replace_char(token: str, index: int) -> str:
    replacement = "A" if token[index] != "A" else "B"
    return token[:index] + replacement + token[index + 1 :]


@pytest.mark.asyncio
class TestVerify:
    """Verification outcomes."""

    async def test_valid_token(self, codec, verifier):
        token = codec.encode("user-1", {"newsletter_id": "2025-W01"})

        result = await verifier.verify(token)

        assert result.valid is True
        assert result.subject == "user-1"
        assert result.context == {"newsletter_id": "2025-W01"}
        assert result.reason is None

    async def test_every_signature_character_is_checked(self, codec, verifier):
        """Changing any single character of the signature invalidates the token."""
        token = codec.encode("user-1")
        signature_start = token.rindex(".") + 1

        for index in range(signature_start, len(token)):
            for replacement in BASE64URL_ALPHABET:
                if replacement == token[index]:
                    continue
                tampered = token[:index] + replacement + token[index + 1 :]
                result = await verifier.verify(tampered)
                assert (index, replacement, result.reason) == (
                    index,
                    replacement,
                    VerificationReason.SIGNATURE_INVALID,
                )

    async def test_tampered_payload_rejected(self, codec, verifier):
        token = codec.encode("user-1")
        header, payload, signature = token.split(".")

        for index in range(len(payload)):
            tampered = f"{header}.{_replace_char(payload, index)}.{signature}"
            result = await verifier.verify(tampered)
            assert result.valid is False
            assert result.reason in (
                VerificationReason.SIGNATURE_INVALID,
                VerificationReason.MALFORMED,
            )

    async def test_forged_subject_rejected(self, codec, clock, verifier):
        """A token re-signed with another secret does not verify."""
        forger = TokenCodec("some-other-secret", clock=clock)
        result = await verifier.verify(forger.encode("admin"))
        assert result.reason == VerificationReason.SIGNATURE_INVALID

    async def test_expired_token(self, codec, verifier):
        result = await verifier.verify(codec.encode("user-1", ttl=-1))
        assert result.valid is False
        assert result.reason == VerificationReason.EXPIRED

    async def test_expiry_follows_clock(self, codec, clock, verifier):
        token = codec.encode("user-1", ttl=60)

        clock.advance(60)
        assert (await verifier.verify(token)).valid is True

        clock.advance(1)
        assert (await verifier.verify(token)).reason == VerificationReason.EXPIRED

    async def test_malformed_token(self, verifier):
        result = await verifier.verify("garbage")
        assert result.valid is False
        assert result.reason == VerificationReason.MALFORMED

    async def test_revoked_token(self, codec, verifier, revocations):
        token = codec.encode("user-1")
        await revocations.revoke(token)

        result = await verifier.verify(token)
        assert result.valid is False
        assert result.reason == VerificationReason.REVOKED

    async def test_registered_token_still_valid(self, codec, verifier, revocations):
        token = codec.encode("user-1")
        await revocations.register(token)
        assert (await verifier.verify(token)).valid is True

    async def test_storage_failure_fails_closed(self, codec, failing_store):
        verifier = TokenVerifier(codec, failing_store)

        result = await verifier.verify(codec.encode("user-1"))

        assert result.valid is False
        assert result.reason == VerificationReason.STORAGE_UNAVAILABLE

    async def test_revocation_is_per_token(self, codec, verifier, revocations):
        """Revoking one user's token leaves other users' tokens valid."""
        token_a = codec.encode("user-a")
        token_b = codec.encode("user-b")

        await revocations.revoke(token_a)

        assert (await verifier.verify(token_a)).valid is False
        result_b = await verifier.verify(token_b)
        assert result_b.valid is True
        assert result_b.subject == "user-b"

    async def test_result_never_contains_token(self, codec, verifier):
        token = codec.encode("user-1")
        result = await verifier.verify(_replace_char(token, len(token) - 1))
        dumped = result.model_dump_json()
        assert token.split(".")[2] not in dumped
        assert "test-tracking-secret" not in dumped

    async def test_signature_rejection_tracked(self, codec, verifier):
        clear_dev_logs()
        token = codec.encode("user-1")

        await verifier.verify(_replace_char(token, len(token) - 1))

        assert get_dev_logs("token_signature_rejected")
        rejected = get_dev_logs("token_rejected")
        assert rejected[-1]["properties"]["reason"] == "signature_invalid"


@pytest.mark.asyncio
class TestCheck:
    """Raising variant used by admin code paths."""

    async def test_returns_payload(self, codec, verifier):
        payload = await verifier.check(codec.encode("user-1"))
        assert payload.subject == "user-1"

    async def test_raises_typed_errors(self, codec, verifier, revocations):
        token = codec.encode("user-1")

        with pytest.raises(SignatureInvalidError):
            await verifier.check(_replace_char(token, len(token) - 1))

        with pytest.raises(TokenExpiredError):
            await verifier.check(codec.encode("user-1", ttl=-1))

        await revocations.revoke(token)
        with pytest.raises(TokenRevokedError):
            await verifier.check(token)

    async def test_error_messages_are_generic(self, codec, verifier):
        token = codec.encode("user-1")
        with pytest.raises(SignatureInvalidError) as exc_info:
            await verifier.check(_replace_char(token, len(token) - 1))
        assert str(exc_info.value) == "signature invalid"
