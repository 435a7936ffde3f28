"""
hyperevm_vrf.ledger.web3_client
===============================

`LedgerClient` implementation over web3.py for the DrandVRF_Split contract.

- Reads (`getRequest`, `lastId`) are plain `eth_call`s.
- Writes are built with `build_transaction`, signed locally with an
  `eth_account` LocalAccount and broadcast as raw transactions.
- Receipts are decoded into `TxReceipt` with the request lifecycle events.

Every web3 failure is mapped to `ContractError` (reads) or
`TransactionError` (writes) so nothing chain-SDK specific leaks upward.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.logs import DISCARD

from ..errors import ConfigurationError, ContractError, TransactionError
from ..hexutil import is_address
from .abi import EVENT_RANDOMNESS_FULFILLED, EVENT_RANDOMNESS_REQUESTED, VRF_ABI
from .base import DecodedEvent, FeeOverrides, TxReceipt, VrfRequest

__all__ = ["Web3LedgerClient", "Web3PendingTx"]

_ZERO_ADDRESS = "0x" + "00" * 20
_DECODED_EVENTS = (EVENT_RANDOMNESS_REQUESTED, EVENT_RANDOMNESS_FULFILLED)


def _jsonable(v: Any) -> Any:
    if isinstance(v, (bytes, bytearray)):
        return Web3.to_hex(bytes(v))
    return v


class Web3PendingTx:
    """A broadcast transaction; `wait()` blocks until it is mined."""

    def __init__(self, ledger: "Web3LedgerClient", tx_hash: str, operation: str) -> None:
        self._ledger = ledger
        self._tx_hash = tx_hash
        self.operation = operation

    @property
    def tx_hash(self) -> str:
        return self._tx_hash

    def wait(self, timeout_s: Optional[float] = None) -> TxReceipt:
        timeout = self._ledger.receipt_timeout_s if timeout_s is None else float(timeout_s)
        try:
            raw = self._ledger.w3.eth.wait_for_transaction_receipt(self._tx_hash, timeout=timeout)
        except Exception as e:
            raise TransactionError(
                message="confirmation failed",
                operation=self.operation,
                tx_hash=self._tx_hash,
                cause=str(e),
            ) from e
        return self._ledger.decode_receipt(raw)


class Web3LedgerClient:
    """
    Parameters
    ----------
    w3 : Web3
        Connected web3 instance (e.g. `Web3(Web3.HTTPProvider(rpc_url))`).
    vrf_address : str
        DrandVRF_Split contract address.
    account : LocalAccount | None
        Signer for writes. Read-only use is fine without one.
    chain_id : int | None
        Chain id put into transactions; read from the node when omitted.
    """

    def __init__(
        self,
        w3: Web3,
        vrf_address: str,
        account: Optional[LocalAccount] = None,
        *,
        chain_id: Optional[int] = None,
        receipt_timeout_s: float = 120.0,
    ) -> None:
        if not is_address(vrf_address):
            raise ConfigurationError("invalid VRF contract address", field="vrf_address", value=vrf_address)
        self.w3 = w3
        self._address = Web3.to_checksum_address(vrf_address)
        self.account = account
        self.chain_id = chain_id
        self.receipt_timeout_s = float(receipt_timeout_s)
        self.contract = w3.eth.contract(address=self._address, abi=VRF_ABI)

    @classmethod
    def from_rpc_url(
        cls,
        rpc_url: str,
        vrf_address: str,
        account: Optional[LocalAccount] = None,
        **kwargs: Any,
    ) -> "Web3LedgerClient":
        return cls(Web3(Web3.HTTPProvider(rpc_url)), vrf_address, account, **kwargs)

    @property
    def address(self) -> str:
        return self._address

    # --- reads -----------------------------------------------------------

    def get_request(self, request_id: int) -> VrfRequest:
        try:
            row = self.contract.functions.getRequest(int(request_id)).call()
        except Exception as e:
            raise ContractError(
                message="failed to read request",
                operation="getRequest",
                contract_address=self._address,
                cause=str(e),
                context={"request_id": int(request_id)},
            ) from e
        try:
            req = VrfRequest.from_tuple(row)
        except (TypeError, ValueError) as e:
            raise ContractError(
                message="unexpected getRequest result shape",
                operation="getRequest",
                contract_address=self._address,
                cause=str(e),
                context={"request_id": int(request_id)},
            ) from e
        if req.requester.lower() == _ZERO_ADDRESS:
            raise ContractError(
                message=f"request {request_id} not found",
                operation="getRequest",
                contract_address=self._address,
                context={"request_id": int(request_id)},
            )
        return req

    def last_id(self) -> int:
        try:
            return int(self.contract.functions.lastId().call())
        except Exception as e:
            raise ContractError(
                message="failed to read lastId",
                operation="lastId",
                contract_address=self._address,
                cause=str(e),
            ) from e

    # --- writes ----------------------------------------------------------

    def fulfill_randomness(
        self,
        request_id: int,
        round_number: int,
        signature: Tuple[int, int],
        fee_overrides: Optional[FeeOverrides] = None,
    ) -> Web3PendingTx:
        fn = self.contract.functions.fulfillRandomness(
            int(request_id), int(round_number), [int(signature[0]), int(signature[1])]
        )
        return self._transact("fulfillRandomness", fn, fee_overrides)

    def request_randomness(
        self,
        deadline: int,
        salt: bytes,
        consumer: str,
        fee_overrides: Optional[FeeOverrides] = None,
    ) -> Web3PendingTx:
        if len(salt) != 32:
            raise ConfigurationError("salt must be exactly 32 bytes", field="salt")
        if not is_address(consumer):
            raise ConfigurationError("invalid consumer address", field="consumer", value=consumer)
        fn = self.contract.functions.requestRandomness(
            int(deadline), bytes(salt), Web3.to_checksum_address(consumer)
        )
        return self._transact("requestRandomness", fn, fee_overrides)

    # --- receipts --------------------------------------------------------

    def decode_receipt(self, raw: Any) -> TxReceipt:
        events: List[DecodedEvent] = []
        for name in _DECODED_EVENTS:
            for ev in getattr(self.contract.events, name)().process_receipt(raw, errors=DISCARD):
                args = {k: _jsonable(v) for k, v in dict(ev["args"]).items()}
                events.append(DecodedEvent(name=name, args=args))
        return TxReceipt(
            tx_hash=Web3.to_hex(raw["transactionHash"]),
            status=int(raw.get("status", 1)),
            block_number=raw.get("blockNumber"),
            events=tuple(events),
        )

    # --- internals -------------------------------------------------------

    def _transact(self, operation: str, fn: Any, fee_overrides: Optional[FeeOverrides]) -> Web3PendingTx:
        if self.account is None:
            raise ConfigurationError(f"{operation} needs a signing account", field="account")
        params: Dict[str, Any] = {"from": self.account.address}
        try:
            params["nonce"] = self.w3.eth.get_transaction_count(self.account.address, "pending")
            params["chainId"] = self.chain_id if self.chain_id is not None else self.w3.eth.chain_id
            if fee_overrides is not None:
                params.update(fee_overrides.as_tx_fields())
            tx = fn.build_transaction(params)
            signed = self.account.sign_transaction(tx)
            tx_hash = Web3.to_hex(self.w3.eth.send_raw_transaction(signed.raw_transaction))
        except Exception as e:
            raise TransactionError(
                message="submission failed",
                operation=operation,
                cause=str(e),
            ) from e
        return Web3PendingTx(self, tx_hash, operation)
