"""Unit tests for JsonRpcConnection with mocked HTTP calls"""

import base64
import json

import pytest
import requests
from unittest.mock import patch

from near_client.codec.base58 import b58encode
from near_client.rpc.connection import JsonRpcConnection
from near_client.runtime.errors import (
    KeyLookupError, RpcError, SubmissionError, SubmissionErrorKind,
)
from near_client.tx.actions import FullAccessPermission, FunctionCallPermission

NODE_URL = "http://node.example.com"


class MockResponse:
    """Mock response for testing"""

    def __init__(self, status_code=200, json_data=None, reason="OK", raise_for_json=False):
        self.status_code = status_code
        self.reason = reason
        self._json_data = json_data or {}
        self._raise_for_json = raise_for_json

    def json(self):
        if self._raise_for_json:
            raise json.JSONDecodeError("Invalid JSON", "", 0)
        return self._json_data


def rpc_result(result):
    return MockResponse(json_data={"jsonrpc": "2.0", "id": 1, "result": result})


def rpc_error(cause_name, data=None, message="Server error", info=None):
    error = {"name": "HANDLER_ERROR", "cause": {"name": cause_name, "info": info or {}},
             "code": -32000, "message": message}
    if data is not None:
        error["data"] = data
    return MockResponse(json_data={"jsonrpc": "2.0", "id": 1, "error": error})


@patch('near_client.rpc.connection.requests.Session.post')
class TestJsonRpcConnection:
    """Test cases for JsonRpcConnection"""

    def test_request_structure(self, mock_post):
        mock_post.return_value = rpc_result({"header": {"height": 7, "hash": b58encode(b"\x01" * 32)}})

        JsonRpcConnection(NODE_URL + "/", timeout=12.0).block()

        call_args = mock_post.call_args
        assert call_args[0][0] == NODE_URL
        assert call_args[1]['json']['jsonrpc'] == "2.0"
        assert call_args[1]['json']['method'] == "block"
        assert call_args[1]['json']['params'] == {"finality": "final"}
        assert call_args[1]['headers'] == {"Content-Type": "application/json"}
        assert call_args[1]['timeout'] == 12.0

    def test_block(self, mock_post):
        block_hash = b"\x01" * 32
        mock_post.return_value = rpc_result({
            "header": {"height": 7, "hash": b58encode(block_hash), "prev_hash": "11111111111111111111111111111111"}
        })

        header = JsonRpcConnection(NODE_URL).block()

        assert header.height == 7
        assert header.hash_bytes == block_hash

    def test_malformed_block(self, mock_post):
        mock_post.return_value = rpc_result({"chunks": []})
        with pytest.raises(RpcError):
            JsonRpcConnection(NODE_URL).block()

    def test_view_access_key_full_access(self, mock_post, fake_keypair):
        mock_post.return_value = rpc_result({
            "nonce": 41, "permission": "FullAccess", "block_height": 9, "block_hash": "abc",
        })

        info = JsonRpcConnection(NODE_URL).view_access_key("alice.test", fake_keypair.public_key)

        assert info.nonce == 41
        assert isinstance(info.permission, FullAccessPermission)
        assert info.full_access
        params = mock_post.call_args[1]['json']['params']
        assert params["request_type"] == "view_access_key"
        assert params["account_id"] == "alice.test"
        assert params["public_key"] == fake_keypair.public_key.to_string()

    def test_view_access_key_function_call(self, mock_post, fake_keypair):
        mock_post.return_value = rpc_result({
            "nonce": 3,
            "permission": {"FunctionCall": {
                "allowance": "250000000000000000000000",
                "receiver_id": "app.test",
                "method_names": ["vote"],
            }},
        })

        info = JsonRpcConnection(NODE_URL).view_access_key("alice.test", fake_keypair.public_key)

        assert isinstance(info.permission, FunctionCallPermission)
        assert info.permission.allowance == 250000000000000000000000
        assert info.permission.method_names == ("vote",)
        assert not info.full_access

    def test_unknown_access_key(self, mock_post, fake_keypair):
        mock_post.return_value = rpc_error("UNKNOWN_ACCESS_KEY")
        with pytest.raises(KeyLookupError):
            JsonRpcConnection(NODE_URL).view_access_key("alice.test", fake_keypair.public_key)

    def test_unknown_access_key_in_result(self, mock_post, fake_keypair):
        mock_post.return_value = rpc_result({"error": "access key does not exist while viewing"})
        with pytest.raises(KeyLookupError):
            JsonRpcConnection(NODE_URL).view_access_key("alice.test", fake_keypair.public_key)

    def test_send_transaction_encodes_base64(self, mock_post):
        mock_post.return_value = rpc_result({
            "status": {"SuccessValue": ""},
            "transaction": {"hash": "9fR3"},
        })

        result = JsonRpcConnection(NODE_URL).send_transaction(b"\x01\x02\x03")

        assert result.succeeded
        assert result.transaction_hash == "9fR3"
        request = mock_post.call_args[1]['json']
        assert request["method"] == "broadcast_tx_commit"
        assert request["params"] == [base64.b64encode(b"\x01\x02\x03").decode()]

    def test_failure_status_is_returned(self, mock_post):
        failure = {"ActionError": {"index": 0, "kind": {"FunctionCallError": {}}}}
        mock_post.return_value = rpc_result({"status": {"Failure": failure}, "transaction": {"hash": "h"}})

        result = JsonRpcConnection(NODE_URL).send_transaction(b"\x00")

        assert not result.succeeded
        assert result.failure == failure

    def test_invalid_nonce(self, mock_post):
        mock_post.return_value = rpc_error(
            "INVALID_TRANSACTION",
            data={"TxExecutionError": {"InvalidTxError": {"InvalidNonce": {"ak_nonce": 50, "tx_nonce": 42}}}},
        )

        with pytest.raises(SubmissionError) as exc_info:
            JsonRpcConnection(NODE_URL).send_transaction(b"\x00")

        assert exc_info.value.is_nonce_conflict
        assert exc_info.value.ak_nonce == 50

    def test_not_enough_balance_is_permanent(self, mock_post):
        mock_post.return_value = rpc_error(
            "INVALID_TRANSACTION",
            data={"TxExecutionError": {"InvalidTxError": {"NotEnoughBalance": {"balance": "1", "cost": "2"}}}},
        )

        with pytest.raises(SubmissionError) as exc_info:
            JsonRpcConnection(NODE_URL).send_transaction(b"\x00")

        assert exc_info.value.kind is SubmissionErrorKind.PERMANENT
        assert exc_info.value.permanent

    def test_timeout_on_broadcast_is_transient(self, mock_post):
        mock_post.return_value = rpc_error("TIMEOUT_ERROR")

        with pytest.raises(SubmissionError) as exc_info:
            JsonRpcConnection(NODE_URL).send_transaction(b"\x00")

        assert exc_info.value.kind is SubmissionErrorKind.TRANSIENT

    def test_other_errors_are_rpc_errors(self, mock_post):
        mock_post.return_value = rpc_error("UNKNOWN_BLOCK")
        with pytest.raises(RpcError) as exc_info:
            JsonRpcConnection(NODE_URL).block()
        assert exc_info.value.rpc_code == -32000

    def test_request_exception(self, mock_post):
        mock_post.side_effect = requests.exceptions.ConnectionError("refused")
        with pytest.raises(RpcError) as exc_info:
            JsonRpcConnection(NODE_URL).block()
        assert isinstance(exc_info.value.cause, requests.exceptions.ConnectionError)

    def test_http_error_without_json(self, mock_post):
        mock_post.return_value = MockResponse(status_code=503, reason="Service Unavailable", raise_for_json=True)
        with pytest.raises(RpcError) as exc_info:
            JsonRpcConnection(NODE_URL).block()
        assert exc_info.value.rpc_code == 503


def test_context_manager_closes_owned_session():
    with patch('near_client.rpc.connection.requests.Session.close') as mock_close:
        with JsonRpcConnection(NODE_URL):
            pass
    mock_close.assert_called_once()


def test_borrowed_session_left_open():
    session = requests.Session()
    with patch.object(session, "close") as mock_close:
        JsonRpcConnection(NODE_URL, session=session).close()
    mock_close.assert_not_called()
