"""
Credential store tests.
"""

import json

import pytest

from near_client.codec.base58 import b58encode
from near_client.keys.credentials import Credential, FileCredentialStore, MemoryCredentialStore
from near_client.runtime.errors import CredentialError, ErrorCode


def record_for(keypair, account_id="alice.test", public_key=None):
    return {
        "account_id": account_id,
        "public_key": (public_key or keypair.public_key).to_string(),
        "private_key": keypair.private_key.to_string(),
    }


def write_record(base_dir, record, network_id="testnet", account_id="alice.test"):
    path = base_dir / network_id / f"{account_id}.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(record), encoding="utf-8")
    return path


class TestFileCredentialStore:

    def test_load_valid_file(self, tmp_path, fake_keypair):
        write_record(tmp_path, record_for(fake_keypair))
        credential = FileCredentialStore(tmp_path).load("testnet", "alice.test")

        assert credential.account_id == "alice.test"
        assert credential.public_key == fake_keypair.public_key
        signature = credential.key_pair.sign(b"hello")
        assert fake_keypair.verify(b"hello", signature)

    def test_swapped_public_key_is_rejected(self, tmp_path, fake_keypair, other_keypair):
        write_record(tmp_path, record_for(fake_keypair, public_key=other_keypair.public_key))

        with pytest.raises(CredentialError) as exc_info:
            FileCredentialStore(tmp_path).load("testnet", "alice.test")

        assert exc_info.value.code == ErrorCode.KEY_MISMATCH

    def test_account_mismatch(self, tmp_path, fake_keypair):
        write_record(tmp_path, record_for(fake_keypair, account_id="mallory.test"))
        with pytest.raises(CredentialError):
            FileCredentialStore(tmp_path).load("testnet", "alice.test")

    def test_non_ed25519_key(self, tmp_path, fake_keypair):
        record = record_for(fake_keypair)
        record["public_key"] = record["public_key"].replace("ed25519:", "secp256k1:")
        write_record(tmp_path, record)

        with pytest.raises(CredentialError):
            FileCredentialStore(tmp_path).load("testnet", "alice.test")

    def test_missing_field(self, tmp_path, fake_keypair):
        record = record_for(fake_keypair)
        del record["private_key"]
        write_record(tmp_path, record)

        with pytest.raises(CredentialError):
            FileCredentialStore(tmp_path).load("testnet", "alice.test")

    def test_missing_file(self, tmp_path):
        with pytest.raises(CredentialError) as exc_info:
            FileCredentialStore(tmp_path).load("testnet", "alice.test")
        assert exc_info.value.code == ErrorCode.CREDENTIAL_NOT_FOUND

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "testnet" / "alice.test.json"
        path.parent.mkdir(parents=True)
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(CredentialError):
            FileCredentialStore(tmp_path).load("testnet", "alice.test")

    def test_non_object_json(self, tmp_path):
        path = tmp_path / "testnet" / "alice.test.json"
        path.parent.mkdir(parents=True)
        path.write_text("[]", encoding="utf-8")

        with pytest.raises(CredentialError):
            FileCredentialStore(tmp_path).load("testnet", "alice.test")

    def test_save_then_load(self, tmp_path, fake_keypair):
        store = FileCredentialStore(tmp_path)
        path = store.save("local", Credential("alice.test", fake_keypair))

        assert path == tmp_path / "local" / "alice.test.json"
        assert store.load("local", "alice.test").public_key == fake_keypair.public_key

    def test_error_message_hides_private_key(self, tmp_path, fake_keypair):
        record = record_for(fake_keypair)
        record["private_key"] = "secp256k1:" + record["private_key"][len("ed25519:"):]
        write_record(tmp_path, record)

        with pytest.raises(CredentialError) as exc_info:
            FileCredentialStore(tmp_path).load("testnet", "alice.test")
        assert record["private_key"] not in str(exc_info.value)


class TestMemoryCredentialStore:

    def test_add_and_load(self, fake_keypair):
        store = MemoryCredentialStore()
        store.add("testnet", Credential("alice.test", fake_keypair))

        assert store.load("testnet", "alice.test").public_key == fake_keypair.public_key

    def test_network_scoped(self, fake_keypair):
        store = MemoryCredentialStore()
        store.add("testnet", record_for(fake_keypair))

        with pytest.raises(CredentialError):
            store.load("mainnet", "alice.test")

    def test_raw_record_validated_on_load(self, fake_keypair, other_keypair):
        store = MemoryCredentialStore()
        store.add("testnet", record_for(fake_keypair, public_key=other_keypair.public_key))

        with pytest.raises(CredentialError):
            store.load("testnet", "alice.test")


class TestMalformedKeys:

    def test_private_key_not_base58(self, tmp_path, fake_keypair):
        record = record_for(fake_keypair)
        record["private_key"] = "ed25519:0OIl-not-base58"
        write_record(tmp_path, record)

        with pytest.raises(CredentialError) as exc_info:
            FileCredentialStore(tmp_path).load("testnet", "alice.test")

        assert exc_info.value.code == ErrorCode.INVALID_CREDENTIAL
        assert "0OIl-not-base58" not in str(exc_info.value)

    def test_public_key_not_base58(self, fake_keypair):
        record = record_for(fake_keypair)
        record["public_key"] = "ed25519:0000"
        store = MemoryCredentialStore()
        store.add("testnet", record)

        with pytest.raises(CredentialError) as exc_info:
            store.load("testnet", "alice.test")
        assert exc_info.value.code == ErrorCode.INVALID_CREDENTIAL

    def test_wrong_length_key_is_not_a_mismatch(self, fake_keypair):
        record = record_for(fake_keypair)
        record["public_key"] = "ed25519:" + b58encode(b"\x01" * 31)
        store = MemoryCredentialStore()
        store.add("testnet", record)

        with pytest.raises(CredentialError) as exc_info:
            store.load("testnet", "alice.test")
        assert exc_info.value.code == ErrorCode.INVALID_CREDENTIAL
