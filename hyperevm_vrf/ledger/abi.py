"""
ABI subset of the DrandVRF_Split contract used by the SDK.

Only the entries the SDK calls or decodes are listed: the request read, the
two state-changing calls, `lastId`, the two request-lifecycle events and the
custom errors so web3 can surface revert reasons by name.
"""

from __future__ import annotations

from typing import Any, Dict, List

__all__ = ["VRF_ABI", "EVENT_RANDOMNESS_REQUESTED", "EVENT_RANDOMNESS_FULFILLED"]

EVENT_RANDOMNESS_REQUESTED = "RandomnessRequested"
EVENT_RANDOMNESS_FULFILLED = "RandomnessFulfilled"


def _in(name: str, typ: str, internal: str | None = None, indexed: bool | None = None) -> Dict[str, Any]:
    out: Dict[str, Any] = {"internalType": internal or typ, "name": name, "type": typ}
    if indexed is not None:
        out["indexed"] = indexed
    return out


def _error(name: str, *inputs: Dict[str, Any]) -> Dict[str, Any]:
    return {"inputs": list(inputs), "name": name, "type": "error"}


_REQUEST_COMPONENTS = [
    _in("deadline", "uint64"),
    _in("minRound", "uint64"),
    _in("fulfilled", "bool"),
    _in("requester", "address"),
    _in("callback", "address"),
    _in("salt", "bytes32"),
    _in("randomness", "bytes32"),
]


VRF_ABI: List[Dict[str, Any]] = [
    # errors
    _error("AlreadyFulfilled", _in("id", "uint256")),
    _error("BadRound", _in("provided", "uint64"), _in("expectedMin", "uint64")),
    _error("RequestNotFound", _in("id", "uint256")),
    _error("TooEarly", _in("round", "uint64"), _in("notBefore", "uint256")),
    _error(
        "InvalidSignature",
        _in("pubkey", "uint256[4]"),
        _in("message", "uint256[2]"),
        _in("sig", "uint256[2]"),
    ),
    # events
    {
        "anonymous": False,
        "inputs": [
            _in("id", "uint256", indexed=True),
            _in("round", "uint64", indexed=False),
            _in("randomness", "bytes32", indexed=False),
        ],
        "name": EVENT_RANDOMNESS_FULFILLED,
        "type": "event",
    },
    {
        "anonymous": False,
        "inputs": [
            _in("id", "uint256", indexed=True),
            _in("requester", "address", indexed=True),
            _in("round", "uint64", indexed=False),
            _in("deadline", "uint256", indexed=False),
            _in("salt", "bytes32", indexed=False),
        ],
        "name": EVENT_RANDOMNESS_REQUESTED,
        "type": "event",
    },
    # functions
    {
        "inputs": [
            _in("id", "uint256"),
            _in("round", "uint64"),
            _in("signature", "uint256[2]"),
        ],
        "name": "fulfillRandomness",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [_in("id", "uint256")],
        "name": "getRequest",
        "outputs": [
            {
                "components": _REQUEST_COMPONENTS,
                "internalType": "struct DrandVRF_Split.Request",
                "name": "",
                "type": "tuple",
            }
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "lastId",
        "outputs": [_in("", "uint256")],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            _in("deadline", "uint256"),
            _in("salt", "bytes32"),
            _in("consumer", "address"),
        ],
        "name": "requestRandomness",
        "outputs": [_in("id", "uint256")],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]
