"""
Request Formatter Tests

Covers parameter ordering per signing method, UTF-8 hex encoding, required
field validation, typed-data message normalization and the JSON-RPC
envelope helper.
"""

import json

import pytest

from wallet_sig.engine.exceptions import (
    MalformedMessageError,
    MissingFieldError,
    RequestFormatError,
    UnknownMethodError,
)
from wallet_sig.methods import (
    REQUEST_SPECS,
    VERIFIERS,
    SigningMethod,
    build_rpc_request,
    format_request,
    get_request_spec,
    parse_message,
    supported_methods,
)
from wallet_sig.utils import utf8_to_hex

from test_mocks import (
    MOCK_SIGNER_ADDRESS,
    MOCK_TYPED_DATA_V1,
    MOCK_TYPED_DATA_V3,
    MOCK_TYPED_DATA_V4,
    typed_data,
)


ALL_METHODS = [method.value for method in SigningMethod]


class TestTextMethods:
    """eth_sign and personal_sign."""

    def test_eth_sign_puts_address_first(self):
        params = format_request("eth_sign", {"message": "hello", "address": MOCK_SIGNER_ADDRESS})
        assert params == [MOCK_SIGNER_ADDRESS, "0x68656c6c6f"]

    def test_personal_sign_puts_message_first(self):
        params = format_request("personal_sign", {"message": "hello", "address": MOCK_SIGNER_ADDRESS})
        assert params == ["0x68656c6c6f", MOCK_SIGNER_ADDRESS]

    def test_message_hex_is_utf8(self):
        params = format_request("personal_sign", {"message": "héllo", "address": MOCK_SIGNER_ADDRESS})
        assert params[0] == "0x68c3a96c6c6f"

    def test_empty_message_encodes_to_bare_prefix(self):
        params = format_request("eth_sign", {"message": "", "address": MOCK_SIGNER_ADDRESS})
        assert params[1] == "0x"

    def test_accepts_enum_member(self):
        params = format_request(SigningMethod.PERSONAL_SIGN, {"message": "a", "address": MOCK_SIGNER_ADDRESS})
        assert params == [utf8_to_hex("a"), MOCK_SIGNER_ADDRESS]

    def test_extra_fields_are_ignored(self):
        params = format_request(
            "personal_sign",
            {"message": "a", "address": MOCK_SIGNER_ADDRESS, "chainId": 1},
        )
        assert params == ["0x61", MOCK_SIGNER_ADDRESS]


class TestTypedDataMethods:

    def test_v1_puts_data_first(self):
        params = format_request(
            "eth_signTypedData_v1",
            {"message": typed_data(MOCK_TYPED_DATA_V1), "address": MOCK_SIGNER_ADDRESS},
        )
        assert params == [MOCK_TYPED_DATA_V1, MOCK_SIGNER_ADDRESS]

    @pytest.mark.parametrize("method, message", [
        ("eth_signTypedData_v3", MOCK_TYPED_DATA_V3),
        ("eth_signTypedData_v4", MOCK_TYPED_DATA_V4),
    ])
    def test_v3_v4_put_address_first(self, method, message):
        params = format_request(method, {"message": typed_data(message), "address": MOCK_SIGNER_ADDRESS})
        assert params == [MOCK_SIGNER_ADDRESS, message]

    def test_typed_data_submitted_as_json_text(self):
        params = format_request(
            "eth_signTypedData_v4",
            {"message": json.dumps(MOCK_TYPED_DATA_V4), "address": MOCK_SIGNER_ADDRESS},
        )
        assert params[1] == MOCK_TYPED_DATA_V4

    def test_v3_rejects_array_types(self):
        with pytest.raises(MalformedMessageError, match="array types"):
            format_request(
                "eth_signTypedData_v3",
                {"message": typed_data(MOCK_TYPED_DATA_V4), "address": MOCK_SIGNER_ADDRESS},
            )

    def test_v3_ignores_arrays_in_unreferenced_types(self):
        message = typed_data(MOCK_TYPED_DATA_V3)
        message["types"]["Unused"] = [{"name": "x", "type": "uint256[]"}]

        params = format_request("eth_signTypedData_v3", {"message": message, "address": MOCK_SIGNER_ADDRESS})

        assert params == [MOCK_SIGNER_ADDRESS, message]

    def test_v1_rejects_eip712_object(self):
        with pytest.raises(MalformedMessageError):
            format_request(
                "eth_signTypedData_v1",
                {"message": typed_data(MOCK_TYPED_DATA_V3), "address": MOCK_SIGNER_ADDRESS},
            )

    def test_v4_rejects_object_missing_primary_type(self):
        message = typed_data(MOCK_TYPED_DATA_V4)
        del message["primaryType"]

        with pytest.raises(MalformedMessageError, match="primaryType"):
            format_request("eth_signTypedData_v4", {"message": message, "address": MOCK_SIGNER_ADDRESS})


class TestFieldValidation:

    @pytest.mark.parametrize("method", ALL_METHODS)
    @pytest.mark.parametrize("missing", ["message", "address"])
    def test_missing_required_field(self, method, missing):
        fields = {"message": "hello", "address": MOCK_SIGNER_ADDRESS}
        del fields[missing]

        with pytest.raises(MissingFieldError) as exc_info:
            format_request(method, fields)

        assert exc_info.value.field == missing
        assert exc_info.value.method == method

    def test_none_counts_as_absent(self):
        with pytest.raises(MissingFieldError):
            format_request("personal_sign", {"message": None, "address": MOCK_SIGNER_ADDRESS})

    def test_unknown_method(self):
        with pytest.raises(UnknownMethodError) as exc_info:
            format_request("eth_signTransaction", {"message": "x", "address": MOCK_SIGNER_ADDRESS})

        assert exc_info.value.method == "eth_signTransaction"
        assert isinstance(exc_info.value, RequestFormatError)

    def test_method_names_are_case_sensitive(self):
        with pytest.raises(UnknownMethodError):
            get_request_spec("Personal_Sign")


class TestParseMessage:

    @pytest.mark.parametrize("depth", [0, 1, 2, 3])
    def test_nested_json_up_to_three_levels(self, depth):
        raw = typed_data(MOCK_TYPED_DATA_V4)
        for _ in range(depth):
            raw = json.dumps(raw)

        assert parse_message(raw, SigningMethod.SIGN_TYPED_DATA_V4) == MOCK_TYPED_DATA_V4

    def test_fourth_nesting_level_is_rejected(self):
        raw = typed_data(MOCK_TYPED_DATA_V4)
        for _ in range(4):
            raw = json.dumps(raw)

        with pytest.raises(MalformedMessageError, match="still a string"):
            parse_message(raw, SigningMethod.SIGN_TYPED_DATA_V4)

    def test_non_json_text(self):
        with pytest.raises(MalformedMessageError, match="not valid JSON"):
            parse_message("hello world", SigningMethod.SIGN_TYPED_DATA_V4)

    def test_v1_list_shape(self):
        raw = json.dumps(MOCK_TYPED_DATA_V1)
        assert parse_message(raw, SigningMethod.SIGN_TYPED_DATA_V1) == MOCK_TYPED_DATA_V1

    def test_v1_rejects_empty_list(self):
        with pytest.raises(MalformedMessageError):
            parse_message([], SigningMethod.SIGN_TYPED_DATA_V1)

    def test_v4_accepts_arrays(self):
        parsed = parse_message(typed_data(MOCK_TYPED_DATA_V4), SigningMethod.SIGN_TYPED_DATA_V4)
        assert parsed["types"]["Mail"][1]["type"] == "Person[]"

    def test_without_method_accepts_either_shape(self):
        assert parse_message(json.dumps(MOCK_TYPED_DATA_V1)) == MOCK_TYPED_DATA_V1
        assert parse_message(json.dumps(MOCK_TYPED_DATA_V3)) == MOCK_TYPED_DATA_V3

    def test_without_method_rejects_other_json(self):
        with pytest.raises(MalformedMessageError):
            parse_message('{"foo": 1}')


class TestRequestSpecs:

    def test_supported_methods(self):
        assert set(supported_methods()) == {
            "eth_sign",
            "personal_sign",
            "eth_signTypedData_v1",
            "eth_signTypedData_v3",
            "eth_signTypedData_v4",
        }

    def test_format_and_verify_tables_share_keys(self):
        assert set(REQUEST_SPECS) == set(VERIFIERS)

    def test_every_spec_requires_message_and_address(self):
        for spec in REQUEST_SPECS.values():
            assert spec.required_keys() == ["message", "address"]

    def test_specs_are_read_only(self):
        with pytest.raises(TypeError):
            REQUEST_SPECS[SigningMethod.ETH_SIGN] = None

    def test_get_request_spec_by_name(self):
        spec = get_request_spec("eth_signTypedData_v3")
        assert spec.method is SigningMethod.SIGN_TYPED_DATA_V3


class TestBuildRpcRequest:

    def test_envelope(self):
        envelope = build_rpc_request("personal_sign", {"message": "hello", "address": MOCK_SIGNER_ADDRESS})

        assert envelope == {
            "method": "personal_sign",
            "params": ["0x68656c6c6f", MOCK_SIGNER_ADDRESS],
        }

    def test_envelope_with_enum(self):
        envelope = build_rpc_request(
            SigningMethod.SIGN_TYPED_DATA_V4,
            {"message": json.dumps(MOCK_TYPED_DATA_V4), "address": MOCK_SIGNER_ADDRESS},
        )

        assert envelope["method"] == "eth_signTypedData_v4"
        assert envelope["params"] == [MOCK_SIGNER_ADDRESS, MOCK_TYPED_DATA_V4]
