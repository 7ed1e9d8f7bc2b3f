"""
Base Schema Models for wallet-sig

This module defines the base classes that the signing-method schemas inherit
from. It provides the foundation for validation and consistent serialization
across the package.

Core Classes:
    - CanonicalModel: RFC8785-compliant Pydantic base model
    - VerificationStatus: Outcome categories of a signature verification
    - BaseVerificationResult: Abstract verification result model

Dependencies:
    - pydantic: For data validation and serialization
"""

import json
from abc import ABC
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class CanonicalModel(BaseModel):
    """
    RFC8785-compliant Pydantic base model with canonical JSON serialization.

    Ensures a consistent, deterministic JSON representation: sorted keys and
    no extra whitespace. Field aliases may be used for population as well as
    field names.

    Example:
        class MyModel(CanonicalModel):
            name: str
            value: int

        model = MyModel(name="test", value=123)
        model.to_canonical_json()  # '{"name":"test","value":123}'
    """

    model_config = ConfigDict(populate_by_name=True)

    def to_canonical_json(self) -> str:
        """
        Convert model to RFC8785-compliant canonical JSON string.

        Returns:
            str: JSON string with sorted keys and no extra whitespace.
        """
        data = self.model_dump(mode="json")
        return json.dumps(
            data,
            separators=(",", ":"),
            sort_keys=True,
            ensure_ascii=False
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert model to dictionary representation.

        Returns:
            Dict[str, Any]: Dictionary with all model fields.
        """
        return self.model_dump()


class VerificationStatus(str, Enum):
    """
    Enumeration of possible verification outcomes.

    Attributes:
        VERIFIED: Signature was produced by the claimed signer
        NOT_VERIFIED: Signature was checked and does not belong to the claimed signer
        UNSUPPORTED: The signing method has no verification rule
    """
    VERIFIED = "verified"
    NOT_VERIFIED = "not_verified"
    UNSUPPORTED = "unsupported"


class BaseVerificationResult(CanonicalModel, ABC):
    """
    Abstract base class for signature verification results.

    Provides a standard interface for reporting verification status,
    success/failure details, and diagnostic information.

    Attributes:
        status: Verification result status (VerificationStatus enum)
        is_valid: Boolean indicating if verification was successful
        message: Human-readable status message
        error_details: Detailed error information if verification failed
        verified_at: Timestamp when verification was performed
    """

    status: VerificationStatus = Field(..., description="Verification result status")
    is_valid: bool = Field(..., description="Whether the signature was verified")
    message: str = Field(..., description="Human-readable status message")
    error_details: Optional[Dict[str, Any]] = Field(None, description="Detailed error information")
    verified_at: datetime = Field(default_factory=datetime.now, description="Verification timestamp")

    def is_success(self) -> bool:
        """
        Check if verification was successful.

        Returns:
            bool: True if verification was successful, False otherwise.

        Example:
            outcome = await verify_request(request)
            if outcome.is_success():
                ...
        """
        return self.is_valid and self.status == VerificationStatus.VERIFIED

    def get_error_message(self) -> Optional[str]:
        """
        Get formatted error message from verification result.

        Returns:
            Optional[str]: Error message if verification failed, None if successful.
        """
        if self.is_success():
            return None

        error_msg = f"Verification failed: {self.message}"
        if self.error_details:
            details_str = json.dumps(self.error_details, indent=2)
            error_msg += f"\nDetails: {details_str}"
        return error_msg
