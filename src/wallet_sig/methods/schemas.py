"""
Signing Method Schema Models

Pydantic models for signature verification requests and outcomes. Result
classes inherit from the base schema hierarchy in ``schemas.bases``.

    - VerificationRequest: Claimed signer, signature, message and chain id
      for one verification.
    - VerificationOutcome: Verified / not verified / unsupported, with the
      recovered address when the scheme recovers one.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import Field

from ..schemas.bases import (
    BaseVerificationResult,
    CanonicalModel,
    VerificationStatus,
)


class VerificationRequest(CanonicalModel):
    """
    Inputs for verifying one wallet signature.

    ``method`` is free text rather than a ``SigningMethod`` so that requests
    for unknown methods can still be expressed (they verify as unsupported).

    Attributes:
        method: JSON-RPC signing method name (e.g. ``"personal_sign"``).
        from_address: Claimed signer address (alias ``from``).
        signature: 0x-prefixed hex signature returned by the wallet.
        message: Plain text for ``personal_sign``; typed data (object, list,
                 or its JSON text) for the typed-data methods.
        chain_id: Optional EIP-155 chain id (alias ``chainId``); unknown or
                  absent ids use the default chain.
    """
    method: str = Field(..., description="Signing method name")
    from_address: str = Field(..., alias="from", description="Claimed signer address")
    signature: str = Field(..., description="Hex-encoded signature")
    message: Union[str, Dict[str, Any], List[Any]] = Field(..., description="Signed message")
    chain_id: Optional[int] = Field(None, alias="chainId", description="EIP-155 chain id")


class VerificationOutcome(BaseVerificationResult):
    """
    Outcome of a signature verification.

    ``not_verified`` is a normal result, not an error. For the
    recovery-based schemes (typed data v1/v3) ``expected`` and ``recovered``
    carry the mismatch detail.

    Attributes:
        method: Signing method that was verified.
        signer: Verified signer address (set only when verified).
        expected: Claimed signer address.
        recovered: Address recovered from the signature, when available.
        chain_id: Chain the verification was resolved against.
    """
    method: str = Field(..., description="Signing method name")
    signer: Optional[str] = Field(None, description="Verified signer address")
    expected: Optional[str] = Field(None, description="Claimed signer address")
    recovered: Optional[str] = Field(None, description="Recovered signer address")
    chain_id: Optional[int] = Field(None, description="Resolved chain id")

    @classmethod
    def verified(
        cls,
        *,
        method: str,
        signer: str,
        expected: Optional[str] = None,
        recovered: Optional[str] = None,
        chain_id: Optional[int] = None,
    ) -> "VerificationOutcome":
        return cls(
            status=VerificationStatus.VERIFIED,
            is_valid=True,
            message=f"Successfully verified signer as {signer}",
            method=method,
            signer=signer,
            expected=expected if expected is not None else signer,
            recovered=recovered,
            chain_id=chain_id,
        )

    @classmethod
    def not_verified(
        cls,
        *,
        method: str,
        expected: str,
        recovered: Optional[str] = None,
        chain_id: Optional[int] = None,
        error_details: Optional[Dict[str, Any]] = None,
    ) -> "VerificationOutcome":
        if recovered is not None:
            message = f"Failed to verify signer when comparing {recovered} to {expected}"
        else:
            message = "Failed to verify signer"
        return cls(
            status=VerificationStatus.NOT_VERIFIED,
            is_valid=False,
            message=message,
            error_details=error_details,
            method=method,
            expected=expected,
            recovered=recovered,
            chain_id=chain_id,
        )

    @classmethod
    def unsupported(cls, *, method: str, expected: Optional[str] = None) -> "VerificationOutcome":
        return cls(
            status=VerificationStatus.UNSUPPORTED,
            is_valid=False,
            message=f"No verification rule for method {method!r}",
            method=method,
            expected=expected,
        )
