from .methods import (
    SigningMethod,
    ChainRegistry,
    VerificationRequest,
    VerificationOutcome,
    format_request,
    build_rpc_request,
    parse_message,
    verify_request,
    verify_sign_message,
)
from .schemas import VerificationStatus
from .utils import setup_logger

__all__ = [
    "SigningMethod",
    "ChainRegistry",
    "VerificationRequest",
    "VerificationOutcome",
    "VerificationStatus",
    "format_request",
    "build_rpc_request",
    "parse_message",
    "verify_request",
    "verify_sign_message",
    "setup_logger",
]
