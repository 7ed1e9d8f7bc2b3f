from .constants import SigningMethod, ChainConfig, DEFAULT_CHAIN_ID
from .formatters import (
    NamedField,
    RequestSpec,
    REQUEST_SPECS,
    format_request,
    build_rpc_request,
    parse_message,
    get_request_spec,
    supported_methods,
)
from .registry import ChainContext, ChainRegistry
from .schemas import VerificationRequest, VerificationOutcome
from .verifies import (
    VERIFIERS,
    verify_request,
    verify_sign_message,
    recover_signer,
    recover_digest_signer,
    is_valid_erc1271_signature,
)

__all__ = [
    "SigningMethod",
    "ChainConfig",
    "DEFAULT_CHAIN_ID",
    "NamedField",
    "RequestSpec",
    "REQUEST_SPECS",
    "format_request",
    "build_rpc_request",
    "parse_message",
    "get_request_spec",
    "supported_methods",
    "ChainContext",
    "ChainRegistry",
    "VerificationRequest",
    "VerificationOutcome",
    "VERIFIERS",
    "verify_request",
    "verify_sign_message",
    "recover_signer",
    "recover_digest_signer",
    "is_valid_erc1271_signature",
]
