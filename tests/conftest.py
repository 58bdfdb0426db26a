"""Shared fixtures: an in-memory chain client that records every call."""

import threading
from typing import Dict, List

import pytest

from moni.config_loader import get_config
from moni.errors import ConfirmationTimeout, MissingCredential, SubmissionFailed
from moni.orchestrator import TransactionOrchestrator
from moni.registry import get_registry

SENDER = "0x" + "11" * 20
RECIPIENT = "0x" + "22" * 20
COLLECTION = "0x" + "33" * 20


class FakeChain:
    """Stands in for ChainClient.

    Writes return sequential hashes and are mined immediately. Set
    ``reverting`` / ``write_errors`` / ``timeouts`` (keyed by function name)
    to script failures.
    """

    def __init__(self, address: str = SENDER, amount_out: int = 1_000_000):
        self.address = address
        self.amount_out = amount_out
        self.native_balance = 10**24
        self.token_balances: Dict[str, int] = {}
        self.allowances: Dict[str, int] = {}
        self.reverting = set()
        self.write_errors: Dict[str, Exception] = {}
        self.timeouts = set()
        self.quote_error: Exception | None = None
        self.calls: List[tuple] = []
        self._receipts: Dict[str, dict] = {}
        self._functions: Dict[str, str] = {}
        self._counter = 0
        self._lock = threading.Lock()

    def _record(self, *call):
        with self._lock:
            self.calls.append(call)

    def names(self, kind: str | None = None) -> List[str]:
        """Function names in call order, optionally only reads or writes."""
        return [c[1] for c in self.calls if kind is None or c[0] == kind]

    def writes(self, function: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == "write" and c[1] == function]

    # Reads

    def get_balance(self, address):
        self._record("read", "get_balance", (address,))
        return self.native_balance

    def token_balance(self, token_address, owner):
        self._record("read", "balanceOf", (token_address, owner))
        return self.token_balances.get(token_address.lower(), 10**24)

    def read_contract(self, address, abi, function, *args, caller=None):
        self._record("read", function, args)
        if function == "allowance":
            return self.allowances.get(address.lower(), 0)
        if function == "getAmountsOut":
            if self.quote_error is not None:
                raise self.quote_error
            return [args[0], self.amount_out]
        if function == "createCollection":
            return COLLECTION
        raise AssertionError(f"unexpected read {function}")

    def get_block(self, block_identifier="latest"):
        return {"number": 1000, "timestamp": 1_700_000_000}

    # Writes

    def _mine(self, function: str, call: tuple) -> str:
        # one lock for record and counter so block numbers follow write order
        with self._lock:
            self.calls.append(call)
            if function in self.write_errors:
                raise self.write_errors[function]
            self._counter += 1
            tx_hash = "0x" + format(self._counter, "064x")
            self._receipts[tx_hash] = {
                "status": 0 if function in self.reverting else 1,
                "blockNumber": 100 + self._counter,
                "contractAddress": None,
            }
            self._functions[tx_hash] = function
        return tx_hash

    def write_contract(self, address, abi, function, *args, value=0):
        return self._mine(function, ("write", function, args, value, address))

    def send_value(self, to_address, value):
        return self._mine("native_transfer", ("write", "native_transfer", (to_address,), value, None))

    def wait_for_receipt(self, tx_hash, timeout=None, confirmations=None):
        function = self._functions[tx_hash]
        self._record("wait", function, (tx_hash, confirmations))
        if function in self.timeouts:
            raise ConfirmationTimeout(tx_hash, timeout or 60)
        return self._receipts[tx_hash]


class NoKeyChain(FakeChain):
    @property
    def address(self):
        raise MissingCredential("No signing key configured")

    @address.setter
    def address(self, value):
        pass


@pytest.fixture
def config():
    return get_config()


@pytest.fixture
def registry():
    return get_registry()


@pytest.fixture
def chain():
    return FakeChain()


@pytest.fixture
def orchestrator(chain, config, registry):
    return TransactionOrchestrator(chain, registry=registry, config=config)


@pytest.fixture
def submission_error():
    return SubmissionFailed("RPC rejected the transaction: nonce too low")
