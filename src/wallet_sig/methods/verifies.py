"""
Wallet Signature Verification Helpers

Verifies signatures returned by a wallet for each signing method and reports
whether they were produced by the claimed address.

Two strategies are used, per method:

* **Recovery** (``eth_signTypedData_v1``, ``eth_signTypedData_v3``): the
  signer address is recovered from the message hash and the (v, r, s)
  signature and compared with the claimed address. No network access.
* **On-chain-aware** (``personal_sign``, ``eth_signTypedData_v4``): ECDSA
  recovery is tried first; if the recovered address does not match, the
  claimed address is checked on the resolved chain as an ERC-1271 contract
  account (``isValidSignature``). Network failures raise
  ``ChainUnavailableError`` rather than reporting a negative result.

``eth_sign`` signatures are never re-verified: the method reports
``unsupported``, as does any unknown method.

Address comparison is case-insensitive; addresses are reported in EIP-55
checksum form.
"""

from functools import partial
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Union

from eth_abi.exceptions import EncodingError
from eth_account import Account
from eth_account.messages import SignableMessage, encode_defunct, encode_typed_data
from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError as KeyValidationError
from eth_utils import decode_hex, is_hex_address, keccak, to_checksum_address
from eth_utils.exceptions import ValidationError as EthValidationError
from web3.exceptions import BadFunctionCallOutput, ContractLogicError

from ..engine.exceptions import (
    ChainUnavailableError,
    MalformedMessageError,
    MalformedSignatureError,
)
from ..utils import logger
from .constants import ERC1271_MAGIC_VALUE, SigningMethod
from .formatters import parse_message
from .registry import ChainContext, ChainRegistry
from .schemas import VerificationOutcome, VerificationRequest
from .standards import ERC1271ABI, TypedMessage, typed_signature_hash

Verifier = Callable[[VerificationRequest, ChainContext], Awaitable[VerificationOutcome]]

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def signable_hash(signable: SignableMessage) -> bytes:
    """Digest passed to ERC-1271 ``isValidSignature`` for ``signable``."""
    return bytes(keccak(b"\x19" + signable.version + signable.header + signable.body))


def _decode_signature(signature: str) -> bytes:
    try:
        return bytes(decode_hex(signature))
    except (ValueError, TypeError) as exc:
        raise MalformedSignatureError(str(signature), f"not hex ({exc})") from exc


def recover_signer(signable: SignableMessage, signature: bytes) -> Optional[str]:
    """
    Recover the checksum address that signed an EIP-191 / EIP-712 message.

    Accepts 65-byte ``r || s || v`` signatures with ``v`` in {0, 1, 27, 28}.

    Returns:
        The recovered address, or None if the signature does not recover.
    """
    if len(signature) != 65:
        return None
    try:
        return Account.recover_message(signable, signature=signature)
    except (ValueError, BadSignature, KeyValidationError) as exc:
        logger.debug(f"Signature recovery failed: {exc}")
        return None


def recover_digest_signer(digest: bytes, signature: bytes) -> Optional[str]:
    """
    Recover the signer of a raw 32-byte digest (legacy typed data).

    Same signature format and return value as ``recover_signer``.
    """
    if len(signature) != 65:
        return None

    r = int.from_bytes(signature[0:32], "big")
    s = int.from_bytes(signature[32:64], "big")
    v = signature[64]
    if v >= 27:
        v -= 27
    if v not in (0, 1):
        return None

    try:
        public_key = keys.Signature(vrs=(v, r, s)).recover_public_key_from_msg_hash(digest)
    except (BadSignature, KeyValidationError) as exc:
        logger.debug(f"Signature recovery failed: {exc}")
        return None
    return public_key.to_checksum_address()


def _same_address(a: Optional[str], b: Optional[str]) -> bool:
    return a is not None and b is not None and a.lower() == b.lower()


async def is_valid_erc1271_signature(
    context: ChainContext,
    *,
    address: str,
    digest: bytes,
    signature: bytes,
) -> bool:
    """
    Ask the contract at ``address`` whether ``signature`` is valid for
    ``digest`` (ERC-1271 ``isValidSignature``).

    Addresses without code, contracts that revert, and contracts that do not
    implement ERC-1271 all yield False.

    Raises:
        ChainUnavailableError: If the chain endpoint cannot be queried.
    """
    w3 = context.web3()
    checksum = to_checksum_address(address)

    try:
        code = await w3.eth.get_code(checksum)
    except Exception as exc:
        logger.error(f"eth_getCode failed on chain {context.chain_id}: {exc}")
        raise ChainUnavailableError(context.chain_id, context.rpc_url, str(exc)) from exc

    if not code:
        return False

    contract = w3.eth.contract(address=checksum, abi=ERC1271ABI().to_list())
    try:
        result = await contract.functions.isValidSignature(digest, signature).call()
    except (ContractLogicError, BadFunctionCallOutput) as exc:
        logger.debug(f"isValidSignature rejected by {checksum}: {exc}")
        return False
    except Exception as exc:
        logger.error(f"isValidSignature call failed on chain {context.chain_id}: {exc}")
        raise ChainUnavailableError(context.chain_id, context.rpc_url, str(exc)) from exc

    return bytes(result) == ERC1271_MAGIC_VALUE


async def _verify_on_chain_aware(
    method: SigningMethod,
    signable: SignableMessage,
    request: VerificationRequest,
    context: ChainContext,
) -> VerificationOutcome:
    address = request.from_address
    if not is_hex_address(address):
        return VerificationOutcome.not_verified(
            method=method.value,
            expected=address,
            chain_id=context.chain_id,
            error_details={"from": address, "reason": "invalid address format"},
        )

    address = to_checksum_address(address)
    signature = _decode_signature(request.signature)
    recovered = recover_signer(signable, signature)
    if _same_address(recovered, address):
        return VerificationOutcome.verified(
            method=method.value,
            signer=address,
            recovered=recovered,
            chain_id=context.chain_id,
        )

    logger.debug(
        f"{method.value}: recovered {recovered} does not match {address}, "
        f"trying ERC-1271 on chain {context.chain_id}"
    )
    if await is_valid_erc1271_signature(
        context, address=address, digest=signable_hash(signable), signature=signature
    ):
        return VerificationOutcome.verified(
            method=method.value, signer=address, chain_id=context.chain_id
        )

    return VerificationOutcome.not_verified(
        method=method.value, expected=address, chain_id=context.chain_id
    )


def _verify_by_recovery(
    method: SigningMethod,
    recover: Callable[[bytes], Optional[str]],
    request: VerificationRequest,
    context: ChainContext,
) -> VerificationOutcome:
    signature = _decode_signature(request.signature)
    if len(signature) != 65:
        raise MalformedSignatureError(
            request.signature, f"expected 65 bytes, got {len(signature)}"
        )

    recovered = recover(signature)
    if _same_address(recovered, request.from_address):
        return VerificationOutcome.verified(
            method=method.value,
            signer=recovered,
            expected=request.from_address,
            recovered=recovered,
            chain_id=context.chain_id,
        )
    return VerificationOutcome.not_verified(
        method=method.value,
        expected=request.from_address,
        recovered=recovered,
        chain_id=context.chain_id,
    )


def _eip712_signable(
    method: SigningMethod, message: Union[str, Dict[str, Any], List[Any]]
) -> SignableMessage:
    typed = TypedMessage.from_dict(parse_message(message, method)).pruned()
    try:
        return encode_typed_data(full_message=typed.to_dict())
    except (ValueError, TypeError, KeyError, EthValidationError) as exc:
        raise MalformedMessageError(f"cannot encode typed data ({exc})", method.value) from exc


# ---------------------------------------------------------------------------
# Per-method verifiers
# ---------------------------------------------------------------------------

async def verify_personal_sign(
    request: VerificationRequest, context: ChainContext
) -> VerificationOutcome:
    """EIP-191 personal message, EOA or ERC-1271 contract signer."""
    if not isinstance(request.message, str):
        raise MalformedMessageError("personal_sign message must be text", SigningMethod.PERSONAL_SIGN.value)
    signable = encode_defunct(text=request.message)
    return await _verify_on_chain_aware(SigningMethod.PERSONAL_SIGN, signable, request, context)


async def verify_typed_data_v1(
    request: VerificationRequest, context: ChainContext
) -> VerificationOutcome:
    """Legacy typed data, recovery only."""
    method = SigningMethod.SIGN_TYPED_DATA_V1
    data = parse_message(request.message, method)
    try:
        digest = typed_signature_hash(data)
    except (ValueError, TypeError, EncodingError) as exc:
        raise MalformedMessageError(f"cannot encode typed data ({exc})", method.value) from exc
    return _verify_by_recovery(method, partial(recover_digest_signer, digest), request, context)


async def verify_typed_data_v3(
    request: VerificationRequest, context: ChainContext
) -> VerificationOutcome:
    """EIP-712 typed data without array types, recovery only."""
    method = SigningMethod.SIGN_TYPED_DATA_V3
    signable = _eip712_signable(method, request.message)
    return _verify_by_recovery(method, partial(recover_signer, signable), request, context)


async def verify_typed_data_v4(
    request: VerificationRequest, context: ChainContext
) -> VerificationOutcome:
    """EIP-712 typed data with arrays and nested structs, EOA or ERC-1271 signer."""
    method = SigningMethod.SIGN_TYPED_DATA_V4
    signable = _eip712_signable(method, request.message)
    return await _verify_on_chain_aware(method, signable, request, context)


#: Verification rule per signing method. ``eth_sign`` has none.
VERIFIERS: Mapping[SigningMethod, Optional[Verifier]] = MappingProxyType({
    SigningMethod.ETH_SIGN: None,
    SigningMethod.PERSONAL_SIGN: verify_personal_sign,
    SigningMethod.SIGN_TYPED_DATA_V1: verify_typed_data_v1,
    SigningMethod.SIGN_TYPED_DATA_V3: verify_typed_data_v3,
    SigningMethod.SIGN_TYPED_DATA_V4: verify_typed_data_v4,
})


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------

async def verify_request(
    request: VerificationRequest,
    *,
    registry: Optional[ChainRegistry] = None,
) -> VerificationOutcome:
    """
    Verify a wallet signature according to its signing method.

    Args:
        request:  Method, claimed signer, signature, message and chain id.
        registry: Chain registry used to resolve ``request.chain_id``.
                  Defaults to ``ChainRegistry.from_env()``.

    Returns:
        ``VerificationOutcome`` with status ``verified``, ``not_verified``
        or ``unsupported``.

    Raises:
        MalformedMessageError: If a typed-data message cannot be parsed or encoded.
        MalformedSignatureError: If the signature cannot be decoded.
        ChainUnavailableError: If an on-chain check could not reach the chain.
    """
    method = SigningMethod.from_string(request.method)
    verifier = VERIFIERS.get(method) if method is not None else None
    if verifier is None:
        logger.info(f"No verification rule for {request.method}")
        return VerificationOutcome.unsupported(
            method=request.method, expected=request.from_address
        )

    registry = registry or ChainRegistry.from_env()
    context = registry.resolve(request.chain_id)
    logger.debug(f"Verifying {method.value} for {request.from_address} on chain {context.chain_id}")

    outcome = await verifier(request, context)
    logger.info(f"{method.value}: {outcome.message}")
    return outcome


async def verify_sign_message(
    *,
    method: str,
    from_address: str,
    signature: str,
    message: Union[str, Dict[str, Any], List[Any]],
    chain_id: Optional[int] = None,
    registry: Optional[ChainRegistry] = None,
) -> VerificationOutcome:
    """
    Keyword entry point for ``verify_request``.

    Example::

        outcome = await verify_sign_message(
            method="personal_sign",
            from_address="0xYourAddress",
            signature=signature,
            message="hello",
            chain_id=8453,
        )
        assert outcome.is_success()
    """
    request = VerificationRequest(
        method=method,
        from_address=from_address,
        signature=signature,
        message=message,
        chain_id=chain_id,
    )
    return await verify_request(request, registry=registry)
