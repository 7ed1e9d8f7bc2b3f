import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence

from eth_abi.grammar import normalize
from eth_utils import is_hex, keccak, to_checksum_address
from web3 import Web3

from ..engine.exceptions import MalformedMessageError


_ARRAY_TYPE = re.compile(r"\[\d*\]$")
_ARRAY_SUFFIXES = re.compile(r"(\[\d*\])+$")


# -----------------------------
# Legacy typed data (eth_signTypedData_v1)
# -----------------------------

@dataclass
class TypedDataV1Entry:
    """
    One ``{type, name, value}`` entry of a legacy typed-data message.

    The legacy format is a flat list of entries rather than an EIP-712
    domain/types/message object.
    """
    type: str
    name: str
    value: Any

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TypedDataV1Entry":
        return cls(type=data["type"], name=data["name"], value=data["value"])

    def packed_type(self) -> str:
        """Declared type with aliases expanded (``uint`` -> ``uint256``)."""
        return normalize(self.type)

    def packed_value(self) -> Any:
        """Value normalized for Solidity tightly-packed encoding."""
        value = self.value
        kind = self.packed_type()
        if kind == "bytes" or re.fullmatch(r"bytes\d+", kind):
            if isinstance(value, (bytes, bytearray)):
                return bytes(value)
            if isinstance(value, str) and is_hex(value) and value.startswith("0x"):
                return bytes.fromhex(value[2:])
            return str(value).encode("utf-8")
        if kind.startswith(("uint", "int")) and isinstance(value, str):
            return int(value, 16) if value.startswith("0x") else int(value)
        if kind == "address" and isinstance(value, str):
            return to_checksum_address(value)
        return value


def is_typed_data_v1(data: Any) -> bool:
    """Shape check for a legacy typed-data list."""
    return (
        isinstance(data, list)
        and len(data) > 0
        and all(
            isinstance(entry, Mapping)
            and isinstance(entry.get("type"), str)
            and isinstance(entry.get("name"), str)
            and entry.get("name")
            and "value" in entry
            for entry in data
        )
    )


def typed_signature_hash(data: Sequence[Mapping[str, Any]]) -> bytes:
    """
    Compute the legacy (v1) typed-data hash.

    ``keccak256(keccak256(packed schema) ++ keccak256(packed values))`` where
    the schema is the list of ``"<type> <name>"`` strings packed as
    ``string`` values and the values are packed with their declared types.
    Type aliases (``uint``, ``int``, ``byte``) are packed as their canonical
    forms but appear unchanged in the schema.

    Raises:
        MalformedMessageError: If ``data`` is not a non-empty list of entries.
    """
    if not is_typed_data_v1(data):
        raise MalformedMessageError(
            "expected a non-empty list of {type, name, value} entries",
            "eth_signTypedData_v1",
        )
    entries = [TypedDataV1Entry.from_dict(e) for e in data]
    schema = [f"{e.type} {e.name}" for e in entries]

    schema_hash = Web3.solidity_keccak(["string"] * len(entries), schema)
    values_hash = Web3.solidity_keccak(
        [e.packed_type() for e in entries], [e.packed_value() for e in entries]
    )
    return bytes(keccak(bytes(schema_hash) + bytes(values_hash)))


# -----------------------------
# EIP-712 typed data (eth_signTypedData_v3 / v4)
# -----------------------------

@dataclass
class TypedMessage:
    """
    Container for an EIP-712 typed-data message.

    ``to_dict()`` yields the ``{types, primaryType, domain, message}`` layout
    consumed by ``eth_account.messages.encode_typed_data`` and by wallets'
    ``eth_signTypedData_v3`` / ``_v4``.
    """
    types: Dict[str, List[Dict[str, str]]]
    primary_type: str
    domain: Dict[str, Any]
    message: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TypedMessage":
        return cls(
            types=data["types"],
            primary_type=data["primaryType"],
            domain=data["domain"],
            message=data["message"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "types": self.types,
            "primaryType": self.primary_type,
            "domain": self.domain,
            "message": self.message,
        }

    def referenced_types(self) -> List[str]:
        """Struct types reachable from ``primary_type``, itself included."""
        found: List[str] = []
        pending = [self.primary_type]
        while pending:
            name = _ARRAY_SUFFIXES.sub("", pending.pop())
            if name in found or name not in self.types:
                continue
            found.append(name)
            pending.extend(f.get("type", "") for f in self.types[name])
        return found

    def pruned(self) -> "TypedMessage":
        """
        Copy without struct types that ``primary_type`` never references.

        Wallets hash from the declared primary type, so unused entries in
        ``types`` do not change the digest but do confuse primary-type
        inference in ``encode_typed_data``.
        """
        keep = set(self.referenced_types())
        keep.add("EIP712Domain")
        return TypedMessage(
            types={name: fields for name, fields in self.types.items() if name in keep},
            primary_type=self.primary_type,
            domain=self.domain,
            message=self.message,
        )

    def array_types(self) -> List[str]:
        """Declared field types that are arrays (e.g. ``address[]``)."""
        return [
            f["type"]
            for fields in self.types.values()
            for f in fields
            if _ARRAY_TYPE.search(f.get("type", ""))
        ]


def is_typed_message(data: Any) -> bool:
    """Shape check for an EIP-712 ``{types, primaryType, domain, message}`` object."""
    return (
        isinstance(data, Mapping)
        and isinstance(data.get("types"), Mapping)
        and isinstance(data.get("primaryType"), str)
        and isinstance(data.get("domain"), Mapping)
        and isinstance(data.get("message"), Mapping)
    )


# -----------------------------
# ERC-1271: Contract-based signature validation
# -----------------------------

@dataclass
class ERC1271ABI:
    """
    ABI definition for the ERC-1271 ``isValidSignature`` function.

    ``isValidSignature(bytes32 _hash, bytes _signature) returns (bytes4)``
    """

    def to_dict(self) -> Dict[str, Any]:
        """Return the ``isValidSignature`` ABI entry as a dict."""
        return {
            "inputs": [
                {"name": "_hash", "type": "bytes32"},
                {"name": "_signature", "type": "bytes"},
            ],
            "name": "isValidSignature",
            "outputs": [{"name": "", "type": "bytes4"}],
            "stateMutability": "view",
            "type": "function",
        }

    def to_list(self) -> List[Dict[str, Any]]:
        """Return the full ABI as a list compatible with ``web3.eth.contract``."""
        return [self.to_dict()]
