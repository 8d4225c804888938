"""Tests for the scoped signing credential."""

from __future__ import annotations

from pathlib import Path

import pytest

from evmcall.errors import InvalidPrivateKeyError, SigningError
from evmcall.signer import SigningKey, address_of, as_signing_key
from evmcall.types import Address

from conftest import PRIVATE_KEY, RECIPIENT, SENDER

TX = {
    "to": Address.from_hex(RECIPIENT).checksum,
    "value": 1,
    "data": "0x",
    "gas": 21000,
    "nonce": 0,
    "chainId": 1337,
    "type": 2,
    "maxFeePerGas": 10**9,
    "maxPriorityFeePerGas": 10**9,
    "accessList": [],
}


class TestParsing:
    @pytest.mark.parametrize(
        "key",
        [PRIVATE_KEY, PRIVATE_KEY[2:], "  " + PRIVATE_KEY + "\n", bytes.fromhex(PRIVATE_KEY[2:])],
    )
    def test_accepted_forms(self, key) -> None:
        assert SigningKey(key).address == Address.from_hex(SENDER)

    @pytest.mark.parametrize(
        "key",
        [
            "",
            PRIVATE_KEY[:-2],
            PRIVATE_KEY + "00",
            "0x" + "gg" * 32,
            "0x" + "00" * 32,
            "0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141",
            b"\x01" * 33,
            None,
        ],
    )
    def test_rejected_forms(self, key) -> None:
        with pytest.raises(InvalidPrivateKeyError):
            SigningKey(key)

    def test_message_never_contains_key(self) -> None:
        bad = PRIVATE_KEY[:-1] + "z"
        with pytest.raises(InvalidPrivateKeyError) as exc_info:
            SigningKey(bad)
        assert bad[2:] not in str(exc_info.value)
        assert exc_info.value.context == {}

    def test_repr_hides_secret(self) -> None:
        key = SigningKey(PRIVATE_KEY)
        assert PRIVATE_KEY[2:] not in repr(key)
        assert SENDER in repr(key)


class TestLifecycle:
    def test_sign_once_then_released(self) -> None:
        key = SigningKey(PRIVATE_KEY)
        signed, message_hash = key.sign_transaction(dict(TX))
        assert len(message_hash) == 32
        assert len(signed.raw_transaction) > 0
        assert key.released
        assert bytes(key._secret) == b"\x00" * 32
        with pytest.raises(SigningError):
            key.sign_transaction(dict(TX))

    def test_failed_signing_still_wipes(self) -> None:
        key = SigningKey(PRIVATE_KEY)
        broken = dict(TX)
        del broken["gas"]
        with pytest.raises(SigningError):
            key.sign_transaction(broken)
        assert key.released
        assert bytes(key._secret) == b"\x00" * 32

    def test_with_block_wipes_on_error(self) -> None:
        key = SigningKey(PRIVATE_KEY)
        with pytest.raises(RuntimeError):
            with key:
                raise RuntimeError("boom")
        assert key.released
        assert bytes(key._secret) == b"\x00" * 32

    def test_wipe(self) -> None:
        key = SigningKey(PRIVATE_KEY)
        key.wipe()
        assert "released" in repr(key)
        with pytest.raises(SigningError):
            key.sign_transaction(dict(TX))

    def test_generate(self) -> None:
        key = SigningKey.generate()
        assert isinstance(key.address, Address)
        assert not key.released

    def test_as_signing_key_passes_handles_through(self) -> None:
        key = SigningKey(PRIVATE_KEY)
        assert as_signing_key(key) is key
        assert isinstance(as_signing_key(PRIVATE_KEY), SigningKey)

    def test_address_of_does_not_consume(self) -> None:
        key = SigningKey(PRIVATE_KEY)
        assert address_of(key) == Address.from_hex(SENDER)
        assert not key.released
        assert address_of(PRIVATE_KEY) == Address.from_hex(SENDER)


class TestFromEnv:
    def test_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PRIVATE_KEY", PRIVATE_KEY)
        assert SigningKey.from_env().address == Address.from_hex(SENDER)

    def test_missing_variable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("EVMCALL_TEST_KEY", raising=False)
        with pytest.raises(InvalidPrivateKeyError, match="EVMCALL_TEST_KEY"):
            SigningKey.from_env("EVMCALL_TEST_KEY")

    def test_from_env_file(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        # Registered first so the variable load_dotenv sets is removed afterwards
        monkeypatch.setenv("EVMCALL_TEST_KEY", "placeholder")
        env_file = tmp_path / ".env"
        env_file.write_text(f"EVMCALL_TEST_KEY={PRIVATE_KEY}\n", encoding="utf-8")
        key = SigningKey.from_env("EVMCALL_TEST_KEY", env_path=env_file)
        assert key.address == Address.from_hex(SENDER)
