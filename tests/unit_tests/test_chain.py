"""Unit tests for the Web3 chain client."""

from unittest.mock import MagicMock, Mock, PropertyMock, patch

import pytest
from web3.exceptions import ContractLogicError, TimeExhausted

from moni.chain import ChainClient
from moni.config_models import OrchestrationConfig
from moni.errors import (
    ConfirmationTimeout,
    MissingCredential,
    SubmissionFailed,
    TransactionReverted,
)

ACCOUNT = "0x" + "11" * 20
TARGET = "0x" + "22" * 20


def make_client(private_key="0x" + "01" * 32):
    mock_w3 = MagicMock()
    mock_w3.eth.chain_id = 10143
    mock_w3.eth.gas_price = 50_000_000_000
    mock_w3.eth.get_transaction_count.return_value = 7
    mock_w3.eth.estimate_gas.return_value = 21000

    mock_account = Mock()
    mock_account.address = ACCOUNT
    mock_signed_tx = Mock()
    mock_signed_tx.raw_transaction = b"signed_tx_data"
    mock_account.sign_transaction.return_value = mock_signed_tx
    mock_w3.eth.account.from_key.return_value = mock_account

    mock_w3.eth.send_raw_transaction.return_value = bytes.fromhex("ab" * 32)

    client = ChainClient(
        rpc_url="https://rpc.example.com",
        private_key=private_key,
        w3=mock_w3,
        settings=OrchestrationConfig(),
        poll_latency=0,
    )
    return client, mock_w3, mock_account


class TestChainClient:
    """Test signing, submission and confirmation."""

    def test_address_without_key(self):
        client, _, _ = make_client(private_key=None)

        assert not client.has_credential
        with pytest.raises(MissingCredential):
            client.address
        with pytest.raises(MissingCredential):
            client.send_value(TARGET, 1)

    def test_send_value_builds_signed_transaction(self):
        client, mock_w3, mock_account = make_client()

        tx_hash = client.send_value(TARGET, 10**18)

        assert tx_hash == "0x" + "ab" * 32
        tx = mock_account.sign_transaction.call_args[0][0]
        assert tx["from"] == ACCOUNT
        assert tx["to"] == TARGET
        assert tx["value"] == 10**18
        assert tx["nonce"] == 7
        assert tx["chainId"] == 10143
        assert tx["gasPrice"] == 50_000_000_000
        assert tx["gas"] == int(21000 * 1.2)
        mock_w3.eth.get_transaction_count.assert_called_once_with(ACCOUNT, "pending")
        mock_w3.eth.send_raw_transaction.assert_called_once_with(b"signed_tx_data")

    def test_write_contract_encodes_call(self):
        client, mock_w3, mock_account = make_client()
        mock_contract = Mock()
        mock_contract.address = TARGET
        mock_contract.encode_abi.return_value = "0xa9059cbb"
        mock_w3.eth.contract.return_value = mock_contract

        client.write_contract(TARGET, [], "transfer", ACCOUNT, 5, value=0)

        mock_contract.encode_abi.assert_called_once_with("transfer", args=[ACCOUNT, 5])
        tx = mock_account.sign_transaction.call_args[0][0]
        assert tx["data"] == "0xa9059cbb"
        assert tx["to"] == TARGET

    def test_simulated_revert_is_not_sent(self):
        client, mock_w3, _ = make_client()
        mock_w3.eth.estimate_gas.side_effect = ContractLogicError("execution reverted")

        with pytest.raises(TransactionReverted):
            client.send_value(TARGET, 1)
        mock_w3.eth.send_raw_transaction.assert_not_called()

    def test_estimate_failure_uses_default_gas(self):
        client, mock_w3, mock_account = make_client()
        mock_w3.eth.estimate_gas.side_effect = ValueError("estimate unavailable")

        client.send_value(TARGET, 1)

        tx = mock_account.sign_transaction.call_args[0][0]
        assert tx["gas"] == 300000

    def test_rejected_submission(self):
        client, mock_w3, _ = make_client()
        mock_w3.eth.send_raw_transaction.side_effect = ValueError("nonce too low")

        with pytest.raises(SubmissionFailed) as exc_info:
            client.send_value(TARGET, 1)
        assert "nonce too low" in exc_info.value.message

    def test_receipt_timeout(self):
        client, mock_w3, _ = make_client()
        mock_w3.eth.wait_for_transaction_receipt.side_effect = TimeExhausted("slow")

        with pytest.raises(ConfirmationTimeout) as exc_info:
            client.wait_for_receipt("0x" + "cd" * 32, timeout=1)
        assert "may still be mined" in exc_info.value.message

    def test_waits_for_extra_confirmations(self):
        client, mock_w3, _ = make_client()
        mock_w3.eth.wait_for_transaction_receipt.return_value = {
            "status": 1,
            "blockNumber": 10,
        }
        type(mock_w3.eth).block_number = PropertyMock(side_effect=[10, 10, 11])

        receipt = client.wait_for_receipt("0x" + "cd" * 32, timeout=30, confirmations=2)

        assert receipt["blockNumber"] == 10

    def test_reverted_receipt_returned_immediately(self):
        client, mock_w3, _ = make_client()
        mock_w3.eth.wait_for_transaction_receipt.return_value = {
            "status": 0,
            "blockNumber": 10,
        }

        receipt = client.wait_for_receipt("0x" + "cd" * 32, confirmations=5)

        assert receipt["status"] == 0

    def test_latest_blocks_skips_failures(self):
        client, mock_w3, _ = make_client()
        mock_w3.eth.block_number = 100

        def get_block(number):
            if number == 99:
                raise ValueError("pruned")
            return {
                "number": number,
                "hash": bytes.fromhex("ef" * 32),
                "timestamp": 1_700_000_000,
                "transactions": ["0x1", "0x2"],
            }

        mock_w3.eth.get_block.side_effect = get_block

        blocks = client.latest_blocks(3)

        assert [b["number"] for b in blocks] == [100, 98]
        assert blocks[0]["transactions"] == 2
        assert blocks[0]["timestamp"].startswith("2023-11-14T22:13:20")

    @patch("moni.chain.get_private_key")
    def test_from_env_rejects_bad_key(self, mock_get_private_key):
        mock_get_private_key.return_value = "0xnot-a-key"

        with pytest.raises(MissingCredential):
            ChainClient.from_env(rpc_url="http://localhost:8545")
