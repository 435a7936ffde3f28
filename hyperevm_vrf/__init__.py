"""
HyperEVM VRF SDK (Python)
Fulfill DrandVRF randomness requests on HyperEVM with drand `evmnet` rounds.
Convenience exports for the most common APIs.
"""

from .version import __version__  # noqa: F401

# Config & errors
from .config import (  # noqa: F401
    DrandConfig,
    GasConfig,
    PolicyConfig,
    VrfConfig,
    resolve_config,
)
from .chains import CHAINS, ChainConfig, resolve_chain  # noqa: F401
from .errors import (  # noqa: F401
    ERROR_CODES,
    AlreadyFulfilledError,
    BeaconError,
    ConfigurationError,
    ContractError,
    HttpError,
    JsonDecodeError,
    NetworkError,
    PolicyViolationError,
    RoundMismatchError,
    RoundNotPublishedError,
    SignatureFormatError,
    TransactionError,
    VrfError,
    VrfRequestError,
    WrongBeaconError,
)

# Rounds & policy
from .rounds import RoundTarget, compute_round_target, round_from_deadline  # noqa: F401
from .policy import DEFAULT_POLICY, Policy, check_policy, evaluate_policy  # noqa: F401

# Beacon
from .drand import BeaconInfo, DrandClient, decode_signature  # noqa: F401

# Ledger
from .ledger import FeeOverrides, LedgerClient, TxReceipt, VrfRequest  # noqa: F401

# Orchestrator
from .fulfiller import FulfillResult, RequestResult, VrfFulfiller  # noqa: F401

__all__ = [
    "__version__",
    # Config
    "VrfConfig", "PolicyConfig", "DrandConfig", "GasConfig", "resolve_config",
    "CHAINS", "ChainConfig", "resolve_chain",
    # Errors
    "ERROR_CODES", "VrfError", "ConfigurationError", "VrfRequestError",
    "AlreadyFulfilledError", "RoundNotPublishedError", "PolicyViolationError",
    "BeaconError", "WrongBeaconError", "RoundMismatchError", "SignatureFormatError",
    "NetworkError", "HttpError", "JsonDecodeError", "ContractError", "TransactionError",
    # Rounds / policy
    "RoundTarget", "compute_round_target", "round_from_deadline",
    "Policy", "DEFAULT_POLICY", "check_policy", "evaluate_policy",
    # Beacon
    "BeaconInfo", "DrandClient", "decode_signature",
    # Ledger
    "FeeOverrides", "LedgerClient", "TxReceipt", "VrfRequest",
    # Orchestrator
    "VrfFulfiller", "FulfillResult", "RequestResult",
]
