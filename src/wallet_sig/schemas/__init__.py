from .bases import CanonicalModel, VerificationStatus, BaseVerificationResult

__all__ = [
    "CanonicalModel",
    "VerificationStatus",
    "BaseVerificationResult",
]
