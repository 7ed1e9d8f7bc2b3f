"""
Typed-Data Standard Helper Tests

Covers struct reachability and pruning on EIP-712 messages and alias
expansion on legacy typed-data entries.
"""

from wallet_sig.methods.standards import TypedDataV1Entry, TypedMessage

from test_mocks import MOCK_TYPED_DATA_V3, MOCK_TYPED_DATA_V4, typed_data


class TestTypedMessage:

    def test_referenced_types_follow_nested_structs(self):
        typed = TypedMessage.from_dict(MOCK_TYPED_DATA_V3)

        assert sorted(typed.referenced_types()) == ["Mail", "Person"]

    def test_referenced_types_strip_array_suffixes(self):
        typed = TypedMessage.from_dict(MOCK_TYPED_DATA_V4)

        assert "Person" in typed.referenced_types()

    def test_pruned_drops_unreferenced_types(self):
        message = typed_data(MOCK_TYPED_DATA_V3)
        message["types"]["Unused"] = [{"name": "x", "type": "uint256"}]

        pruned = TypedMessage.from_dict(message).pruned()

        assert set(pruned.types) == {"EIP712Domain", "Person", "Mail"}
        assert pruned.to_dict()["primaryType"] == "Mail"
        assert pruned.to_dict()["message"] == MOCK_TYPED_DATA_V3["message"]

    def test_pruned_is_identity_for_complete_messages(self):
        assert TypedMessage.from_dict(MOCK_TYPED_DATA_V4).pruned().to_dict() == MOCK_TYPED_DATA_V4

    def test_self_referencing_struct_terminates(self):
        typed = TypedMessage(
            types={"Node": [{"name": "children", "type": "Node[]"}]},
            primary_type="Node",
            domain={},
            message={"children": []},
        )

        assert typed.referenced_types() == ["Node"]

    def test_array_types_after_pruning(self):
        message = typed_data(MOCK_TYPED_DATA_V3)
        message["types"]["Unused"] = [{"name": "x", "type": "uint256[]"}]
        typed = TypedMessage.from_dict(message)

        assert typed.array_types() == ["uint256[]"]
        assert typed.pruned().array_types() == []


class TestTypedDataV1Entry:

    def test_alias_expansion(self):
        assert TypedDataV1Entry("uint", "value", 1).packed_type() == "uint256"
        assert TypedDataV1Entry("int", "value", 1).packed_type() == "int256"
        assert TypedDataV1Entry("uint32", "value", 1).packed_type() == "uint32"

    def test_string_integer_value(self):
        assert TypedDataV1Entry("uint", "value", "0x2a").packed_value() == 42
        assert TypedDataV1Entry("uint", "value", "42").packed_value() == 42

    def test_hex_bytes_value(self):
        assert TypedDataV1Entry("bytes", "blob", "0xdead").packed_value() == b"\xde\xad"
