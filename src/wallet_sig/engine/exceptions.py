"""
Exception and Error Definitions Module

Defines the exception hierarchy for request formatting and signature
verification. All exceptions inherit from WalletSigError for unified
exception handling.

Exception Hierarchy:
    WalletSigError (root)
    ├── RequestFormatError
    │   ├── UnknownMethodError
    │   ├── MissingFieldError
    │   └── MalformedMessageError
    ├── VerificationError
    │   ├── MalformedSignatureError
    │   └── ChainUnavailableError
    └── ConfigurationError

A signature that simply does not match its claimed signer is not an error:
it is reported as a ``not_verified`` outcome.
"""

from typing import Optional


class WalletSigError(Exception):
    """
    Root exception class for all project-specific exceptions.
    """
    pass


class RequestFormatError(WalletSigError):
    """
    Base exception for failures while building a wallet request.

    Parent class for all errors raised by the request formatter.
    """
    pass


class UnknownMethodError(RequestFormatError):
    """
    Raised when no request spec is registered for a signing method.

    Attributes:
        method: The unrecognised method name
    """

    def __init__(self, method: str):
        self.method = method
        super().__init__(f"Unknown signing method: {method!r}")


class MissingFieldError(RequestFormatError):
    """
    Raised when a required request field is absent.

    Attributes:
        method: Signing method being formatted
        field: Key of the missing field
    """

    def __init__(self, method: str, field: str):
        self.method = method
        self.field = field
        super().__init__(f"Missing required field {field!r} for {method}")


class MalformedMessageError(RequestFormatError):
    """
    Raised when a typed-data message cannot be normalized into the
    structure its signing method expects.

    This includes scenarios such as:
    - Text that is not JSON at any nesting level
    - More levels of JSON string nesting than are tolerated
    - A parsed object missing ``types``, ``primaryType``, ``domain`` or ``message``
    - Array types submitted for ``eth_signTypedData_v3``

    Attributes:
        method: Signing method the message was parsed for (may be None)
        reason: Short description of what was wrong
    """

    def __init__(self, reason: str, method: Optional[str] = None):
        self.method = method
        self.reason = reason
        prefix = f"{method}: " if method else ""
        super().__init__(f"{prefix}malformed typed-data message: {reason}")


class VerificationError(WalletSigError):
    """
    Base exception for verifications that could not be carried out.

    Parent class for errors raised by the verification dispatcher. A
    negative verification result is never raised.
    """
    pass


class MalformedSignatureError(VerificationError):
    """
    Raised when a signature cannot be decoded at all.

    Attributes:
        signature: The offending signature string
    """

    def __init__(self, signature: str, reason: str):
        self.signature = signature
        super().__init__(f"Malformed signature {signature[:12]!r}...: {reason}")


class ChainUnavailableError(VerificationError):
    """
    Raised when an on-chain-aware verification could not reach its chain.

    Distinct from a ``not_verified`` outcome: the signature was not checked.
    Callers needing resilience must retry at their own layer.

    Attributes:
        chain_id: Chain the verification was resolved against
        rpc_url: Endpoint that failed
    """

    def __init__(self, chain_id: int, rpc_url: str, reason: str):
        self.chain_id = chain_id
        self.rpc_url = rpc_url
        super().__init__(f"Chain {chain_id} unavailable via {rpc_url}: {reason}")


class ConfigurationError(WalletSigError):
    """
    Raised when configuration is missing or invalid.

    This includes scenarios such as:
    - A chain registry that does not contain its default chain
    - An invalid RPC timeout in the environment
    """
    pass
