"""Web3 client for the Monad testnet: reads, signed writes and confirmation.

SECURITY WARNING: This module holds the signing key. Never log or expose it.
"""

import logging
import threading
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Union

from eth_typing import HexStr
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted
from web3.types import TxParams

from .abis import ERC20_ABI
from .config_loader import PRIVATE_KEY_ENV, get_config, get_private_key
from .config_models import OrchestrationConfig
from .errors import (
    ConfirmationTimeout,
    MissingCredential,
    SubmissionFailed,
    TransactionReverted,
)

logger = logging.getLogger(__name__)


class ChainClient:
    """Thin wrapper over a Web3 instance plus an optional signing account.

    Read methods work without a key. Anything that signs raises
    ``MissingCredential`` when no key was supplied.
    """

    def __init__(
        self,
        rpc_url: str | None = None,
        private_key: str | None = None,
        w3: Web3 | None = None,
        settings: OrchestrationConfig | None = None,
        poll_latency: float | None = None,
    ):
        config = get_config()
        self.rpc_url = rpc_url or config.default_chain.rpc_url
        self.w3 = w3 or Web3(Web3.HTTPProvider(self.rpc_url))
        self.settings = settings or config.orchestration
        self.poll_latency = (
            poll_latency if poll_latency is not None else config.default_chain.block_time
        )
        self._account = self.w3.eth.account.from_key(private_key) if private_key else None
        # one signer, one nonce sequence
        self._submit_lock = threading.Lock()

    @classmethod
    def from_env(cls, rpc_url: str | None = None) -> "ChainClient":
        """Create a client using the key from TEST_WALLET_PRIVATE_KEY, if set."""
        private_key = get_private_key()
        try:
            return cls(rpc_url=rpc_url, private_key=private_key)
        except ValueError as e:
            raise MissingCredential(f"Invalid private key in {PRIVATE_KEY_ENV}: {e}")

    @property
    def has_credential(self) -> bool:
        return self._account is not None

    @property
    def address(self) -> str:
        """Address of the signing account."""
        return self._require_account().address

    def _require_account(self):
        if self._account is None:
            raise MissingCredential(
                f"No signing key configured. Set {PRIVATE_KEY_ENV} in the environment "
                "or .env file (test wallets only)."
            )
        return self._account

    # Reads

    def get_balance(self, address: str) -> int:
        return self.w3.eth.get_balance(Web3.to_checksum_address(address))

    def get_gas_price(self) -> int:
        return self.w3.eth.gas_price

    def get_block(self, block_identifier: Union[int, str] = "latest"):
        return self.w3.eth.get_block(block_identifier)

    def get_block_number(self) -> int:
        return self.w3.eth.block_number

    def get_transaction(self, tx_hash: str):
        return self.w3.eth.get_transaction(HexStr(tx_hash))

    def get_receipt(self, tx_hash: str):
        return self.w3.eth.get_transaction_receipt(HexStr(tx_hash))

    def read_contract(
        self, address: str, abi: List[Dict], function: str, *args, caller: str | None = None
    ) -> Any:
        """Call a contract function without sending a transaction.

        ``caller`` sets msg.sender for functions whose result depends on it.
        """
        contract = self.w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)
        call = contract.functions[function](*args)
        if caller:
            return call.call({"from": Web3.to_checksum_address(caller)})
        return call.call()

    def token_balance(self, token_address: str, owner: str) -> int:
        return self.read_contract(
            token_address, ERC20_ABI, "balanceOf", Web3.to_checksum_address(owner)
        )

    # Writes

    def write_contract(
        self, address: str, abi: List[Dict], function: str, *args, value: int = 0
    ) -> str:
        """Sign and broadcast a contract call. Returns the transaction hash.

        Does not wait for the receipt.
        """
        contract = self.w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)
        tx: TxParams = {
            "to": contract.address,
            "value": int(value),
            "data": HexStr(contract.encode_abi(function, args=list(args))),
        }
        logger.info(f"Submitting {function} on {contract.address} (value={value})")
        return self._send(tx)

    def send_value(self, to_address: str, value: int) -> str:
        """Send native value to an address. Returns the transaction hash."""
        tx: TxParams = {"to": Web3.to_checksum_address(to_address), "value": int(value)}
        logger.info(f"Submitting native transfer of {value} wei to {tx['to']}")
        return self._send(tx)

    def _send(self, tx: TxParams) -> str:
        account = self._require_account()

        with self._submit_lock:
            tx["from"] = account.address
            try:
                tx["nonce"] = self.w3.eth.get_transaction_count(account.address, "pending")
                tx["chainId"] = self.w3.eth.chain_id
                tx["gasPrice"] = self.w3.eth.gas_price
            except Exception as e:
                raise SubmissionFailed(f"Could not prepare transaction: {e}")

            try:
                tx["gas"] = int(self.w3.eth.estimate_gas(tx) * self.settings.gas_buffer)
            except ContractLogicError as e:
                raise TransactionReverted(f"Transaction would revert: {e}")
            except Exception as e:
                logger.warning(f"Gas estimation failed ({e}); using default gas limit")
                tx["gas"] = self.settings.default_gas_limit

            signed_tx = account.sign_transaction(tx)
            try:
                tx_hash = self.w3.eth.send_raw_transaction(signed_tx.raw_transaction)
            except Exception as e:
                raise SubmissionFailed(f"RPC rejected the transaction: {e}")

        tx_hash_hex = Web3.to_hex(tx_hash)
        logger.info(f"Transaction sent with hash: {tx_hash_hex}")
        return tx_hash_hex

    def wait_for_receipt(
        self,
        tx_hash: str,
        timeout: float | None = None,
        confirmations: int | None = None,
    ):
        """Block until the transaction is mined and buried ``confirmations`` deep.

        A reverted receipt is returned as soon as it is mined; callers check
        its status.

        Raises:
            ConfirmationTimeout: If the deadline passes first. The transaction
                may still be mined afterwards.
        """
        timeout = timeout if timeout is not None else self.settings.confirmation_timeout
        confirmations = confirmations or self.settings.confirmations
        deadline = time.monotonic() + timeout

        try:
            receipt = self.w3.eth.wait_for_transaction_receipt(
                HexStr(tx_hash), timeout=timeout, poll_latency=self.poll_latency
            )
        except TimeExhausted:
            raise ConfirmationTimeout(tx_hash, timeout)

        if receipt["status"] != 1:
            return receipt

        while confirmations > 1:
            depth = self.w3.eth.block_number - receipt["blockNumber"] + 1
            if depth >= confirmations:
                break
            if time.monotonic() >= deadline:
                raise ConfirmationTimeout(tx_hash, timeout)
            time.sleep(self.poll_latency)

        return receipt

    # Explorer-style views

    def latest_blocks(self, count: int = 5) -> List[Dict[str, Any]]:
        """Summaries of the newest ``count`` blocks. Unreadable blocks are skipped."""
        latest = self.get_block_number()
        blocks = []
        for number in range(latest, max(latest - count, -1), -1):
            try:
                block = self.get_block(number)
            except Exception as e:
                logger.error(f"Error fetching block {number}: {e}")
                continue
            blocks.append(
                {
                    "number": block["number"],
                    "hash": Web3.to_hex(block["hash"]),
                    "timestamp": datetime.fromtimestamp(
                        block["timestamp"], tz=timezone.utc
                    ).isoformat(),
                    "transactions": len(block["transactions"]),
                }
            )
        return blocks

    def transaction_details(self, tx_hash: str) -> Dict[str, Any]:
        tx = self.get_transaction(tx_hash)
        receipt = self.get_receipt(tx_hash)
        return {
            "hash": Web3.to_hex(tx["hash"]),
            "from": tx["from"],
            "to": tx["to"] if tx["to"] else None,
            "value": tx["value"],
            "gas": tx["gas"],
            "status": "Success" if receipt["status"] == 1 else "Failed",
            "blockNumber": receipt["blockNumber"],
            "blockHash": Web3.to_hex(receipt["blockHash"]),
            "gasUsed": receipt["gasUsed"],
        }
