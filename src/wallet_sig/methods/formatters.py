"""
Wallet Signing Request Formatters

Builds the positional ``params`` list a wallet expects for each signing
method. Nothing here talks to a wallet or a chain: the output is handed
verbatim to the caller's JSON-RPC ``request`` call.

Argument order differs between sibling methods and is part of the wire
protocol:

    +------------------------+---------------------------------+
    | Method                 | params                          |
    +========================+=================================+
    | eth_sign               | [address, 0x<utf8 hex>]         |
    +------------------------+---------------------------------+
    | personal_sign          | [0x<utf8 hex>, address]         |
    +------------------------+---------------------------------+
    | eth_signTypedData_v1   | [typed data, address]           |
    +------------------------+---------------------------------+
    | eth_signTypedData_v3   | [address, typed data]           |
    +------------------------+---------------------------------+
    | eth_signTypedData_v4   | [address, typed data]           |
    +------------------------+---------------------------------+

Exported helpers
----------------
format_request
    Validate fields against the method's ``RequestSpec`` and return the
    ordered params list.

build_rpc_request
    Wrap ``format_request`` output into a ``{"method", "params"}`` envelope.

parse_message
    Normalize a typed-data message submitted as (possibly nested) JSON text.
"""

import json
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from ..engine.exceptions import (
    MalformedMessageError,
    MissingFieldError,
    UnknownMethodError,
)
from ..utils import logger, utf8_to_hex
from .constants import SigningMethod
from .standards import TypedMessage, is_typed_data_v1, is_typed_message

#: Maximum number of JSON decoding passes applied to a typed-data message.
MAX_MESSAGE_PARSE_DEPTH: int = 3


@dataclass(frozen=True)
class NamedField:
    """A request field key and whether it must be supplied."""
    key: str
    required: bool = True


@dataclass(frozen=True)
class RequestSpec:
    """
    Immutable descriptor of one signing method's request.

    Attributes:
        method: Signing method this spec formats.
        params: Named input fields, in display order.
        format: Pure function mapping the field dict to the ordered params list.
    """
    method: SigningMethod
    params: Tuple[NamedField, ...]
    format: Callable[[Mapping[str, Any]], List[Any]]

    def required_keys(self) -> List[str]:
        return [p.key for p in self.params if p.required]


# ---------------------------------------------------------------------------
# Typed-data message normalization
# ---------------------------------------------------------------------------

def parse_message(
    raw: Union[str, Dict[str, Any], List[Any]],
    method: Optional[SigningMethod] = None,
) -> Union[Dict[str, Any], List[Any]]:
    """
    Normalize a typed-data message into its structured form.

    Callers submit typed data either as an object, as JSON text, or as JSON
    text that was itself stringified once or twice more. At most
    ``MAX_MESSAGE_PARSE_DEPTH`` decoding passes are applied; decoding stops
    as soon as the value is no longer a string.

    Args:
        raw: Message as submitted by the caller.
        method: Typed-data method whose shape the result must have. When
                None, either the legacy list shape or the EIP-712 object
                shape is accepted.

    Returns:
        The parsed list (v1) or ``{types, primaryType, domain, message}`` dict.

    Raises:
        MalformedMessageError: If no decoding level yields the expected shape.
    """
    method_name = method.value if method is not None else None
    value: Any = raw

    for _ in range(MAX_MESSAGE_PARSE_DEPTH):
        if not isinstance(value, str):
            break
        try:
            value = json.loads(value)
        except json.JSONDecodeError as exc:
            raise MalformedMessageError(f"not valid JSON ({exc.msg})", method_name) from exc

    if isinstance(value, str):
        raise MalformedMessageError(
            f"still a string after {MAX_MESSAGE_PARSE_DEPTH} JSON decoding passes",
            method_name,
        )

    _validate_typed_data(value, method)
    return value


def _validate_typed_data(value: Any, method: Optional[SigningMethod]) -> None:
    if method is None:
        if not (is_typed_data_v1(value) or is_typed_message(value)):
            raise MalformedMessageError("not a typed-data structure")
        return

    if method == SigningMethod.SIGN_TYPED_DATA_V1:
        if not is_typed_data_v1(value):
            raise MalformedMessageError(
                "expected a non-empty list of {type, name, value} entries", method.value
            )
        return

    if not is_typed_message(value):
        raise MalformedMessageError(
            "expected an object with types, primaryType, domain and message", method.value
        )

    if method == SigningMethod.SIGN_TYPED_DATA_V3:
        arrays = TypedMessage.from_dict(value).pruned().array_types()
        if arrays:
            raise MalformedMessageError(
                f"array types {arrays} are not supported by v3; use eth_signTypedData_v4",
                method.value,
            )


# ---------------------------------------------------------------------------
# Per-method formatters
# ---------------------------------------------------------------------------

def _format_eth_sign(data: Mapping[str, Any]) -> List[Any]:
    return [data["address"], utf8_to_hex(data["message"])]


def _format_personal_sign(data: Mapping[str, Any]) -> List[Any]:
    return [utf8_to_hex(data["message"]), data["address"]]


def _format_typed_data_v1(data: Mapping[str, Any]) -> List[Any]:
    return [parse_message(data["message"], SigningMethod.SIGN_TYPED_DATA_V1), data["address"]]


def _format_typed_data_v3(data: Mapping[str, Any]) -> List[Any]:
    return [data["address"], parse_message(data["message"], SigningMethod.SIGN_TYPED_DATA_V3)]


def _format_typed_data_v4(data: Mapping[str, Any]) -> List[Any]:
    return [data["address"], parse_message(data["message"], SigningMethod.SIGN_TYPED_DATA_V4)]


_MESSAGE_AND_ADDRESS = (NamedField("message"), NamedField("address"))

REQUEST_SPECS: Mapping[SigningMethod, RequestSpec] = MappingProxyType({
    SigningMethod.ETH_SIGN: RequestSpec(
        SigningMethod.ETH_SIGN, _MESSAGE_AND_ADDRESS, _format_eth_sign
    ),
    SigningMethod.PERSONAL_SIGN: RequestSpec(
        SigningMethod.PERSONAL_SIGN, _MESSAGE_AND_ADDRESS, _format_personal_sign
    ),
    SigningMethod.SIGN_TYPED_DATA_V1: RequestSpec(
        SigningMethod.SIGN_TYPED_DATA_V1, _MESSAGE_AND_ADDRESS, _format_typed_data_v1
    ),
    SigningMethod.SIGN_TYPED_DATA_V3: RequestSpec(
        SigningMethod.SIGN_TYPED_DATA_V3, _MESSAGE_AND_ADDRESS, _format_typed_data_v3
    ),
    SigningMethod.SIGN_TYPED_DATA_V4: RequestSpec(
        SigningMethod.SIGN_TYPED_DATA_V4, _MESSAGE_AND_ADDRESS, _format_typed_data_v4
    ),
})


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------

def supported_methods() -> List[str]:
    """Method names that have a registered request spec."""
    return [method.value for method in REQUEST_SPECS]


def get_request_spec(method: Union[str, SigningMethod]) -> RequestSpec:
    """
    Look up the request spec for ``method``.

    Raises:
        UnknownMethodError: If no spec is registered for ``method``.
    """
    resolved = SigningMethod.from_string(method)
    if resolved is None or resolved not in REQUEST_SPECS:
        raise UnknownMethodError(str(method))
    return REQUEST_SPECS[resolved]


def format_request(method: Union[str, SigningMethod], fields: Mapping[str, Any]) -> List[Any]:
    """
    Build the ordered params list for a wallet signing call.

    Args:
        method: Signing method name (e.g. ``"personal_sign"``).
        fields: Field values keyed by field name (``message``, ``address``).
                A key mapped to None counts as absent.

    Returns:
        List of positional params for the JSON-RPC call.

    Raises:
        UnknownMethodError: If ``method`` is not registered.
        MissingFieldError: If a required field is absent.
        MalformedMessageError: If a typed-data message cannot be parsed.

    Example::

        format_request("personal_sign", {"message": "hello", "address": "0xabc..."})
        # ['0x68656c6c6f', '0xabc...']
    """
    spec = get_request_spec(method)

    for param in spec.params:
        if param.required and fields.get(param.key) is None:
            raise MissingFieldError(spec.method.value, param.key)

    data = {key: value for key, value in fields.items() if value is not None}
    params = spec.format(data)
    logger.debug(f"Formatted {spec.method.value} request with {len(params)} params")
    return params


def build_rpc_request(method: Union[str, SigningMethod], fields: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Build the ``{"method", "params"}`` envelope for a wallet provider's
    ``request`` call.
    """
    spec = get_request_spec(method)
    return {"method": spec.method.value, "params": format_request(spec.method, fields)}
