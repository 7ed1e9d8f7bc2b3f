import logging
import os
from typing import Optional

from eth_utils import encode_hex


logger = logging.getLogger("wallet_sig")

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logger(level: Optional[str] = None) -> logging.Logger:
    """
    Attach a stream handler to the package logger.

    The level is taken from ``level`` when given, otherwise from the
    ``WALLET_SIG_LOG_LEVEL`` environment variable (default ``INFO``).
    Calling this more than once does not add duplicate handlers.
    """
    resolved = (level or os.getenv("WALLET_SIG_LOG_LEVEL") or "INFO").upper()
    logger.setLevel(resolved)

    if not any(getattr(h, "_wallet_sig", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        handler._wallet_sig = True
        logger.addHandler(handler)

    return logger


def utf8_to_hex(text: str) -> str:
    """Hex-encode the UTF-8 bytes of ``text`` with a ``0x`` prefix."""
    return encode_hex(text.encode("utf-8"))
