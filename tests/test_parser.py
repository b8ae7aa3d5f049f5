"""Tests for the schema parser and IR models."""

import json

import pytest

from abigen.errors import SchemaSyntaxError
from abigen.ir.models import WarningKind, document_to_dict
from abigen.ir.parser import parse_message_text, parse_schema, parse_schema_file, split_params

TRANSFER = (
    "transfer#5fcc3d14 query_id:uint64 new_owner:MsgAddress response_destination:MsgAddress "
    "custom_payload:(Maybe ^Cell) forward_amount:(VarUInteger 16) "
    "forward_payload:(Either Cell ^Cell) = InternalMsgBody;"
)


# --- Message grammar ---


def test_transfer_declaration():
    syntax = parse_message_text(TRANSFER)
    assert syntax is not None
    assert syntax.definition_name == "transfer"
    assert syntax.opcode == "0x5fcc3d14"
    assert syntax.return_type_name == "InternalMsgBody"
    assert [(p.name, p.raw_type) for p in syntax.params] == [
        ("query_id", "uint64"),
        ("new_owner", "MsgAddress"),
        ("response_destination", "MsgAddress"),
        ("custom_payload", "(Maybe ^Cell)"),
        ("forward_amount", "(VarUInteger 16)"),
        ("forward_payload", "(Either Cell ^Cell)"),
    ]


def test_multiline_declaration_parses_like_single_line():
    multiline = TRANSFER.replace(" new_owner", "\n    new_owner").replace(" forward_amount", "\n\tforward_amount")
    assert parse_message_text(multiline) == parse_message_text(TRANSFER)


def test_zero_parameter_declaration():
    syntax = parse_message_text("excesses#d53276db = InternalMsgBody;")
    assert syntax.definition_name == "excesses"
    assert syntax.opcode == "0xd53276db"
    assert syntax.params == []


def test_non_matching_declaration():
    assert parse_message_text("not a message") is None
    assert parse_message_text("transfer query_id:uint64 = X;") is None


def test_split_params_keeps_nested_types_whole():
    assert split_params("a:(Either Cell ^Cell) b:uint8") == [
        ("a", "(Either Cell ^Cell)"),
        ("b", "uint8"),
    ]


def test_split_params_trailing_type_with_spaces():
    # No ':' follows, so the space belongs to the last type
    assert split_params("x:Foo Bar") == [("x", "Foo Bar")]


# --- Schema documents ---


def test_parse_interfaces(nft_schema):
    document, _ = parse_schema(nft_schema)
    assert document.interface_names == ["nft_item", "nft_item_simple", "sbt_item", "nft_collection"]

    item = document.find_interface("nft_item")
    assert item.parent is None
    assert item.fingerprint == "4c9123828682fa6f43797ab41732bca890cae01766e0674100250516e0bf8d42"
    assert item.get_method_refs == ["get_nft_data"]
    assert item.inbound_message_refs == ["nft_transfer", "get_static_data"]
    assert item.outbound_message_refs == ["excess"]

    assert document.find_interface("sbt_item").parent == "nft_item"
    assert document.find_interface("nft_item_simple").get_method_refs == []


def test_parse_get_method_parameters(nft_schema):
    document, _ = parse_schema(nft_schema)
    method = document.find_get_method("get_nft_data")
    assert method.inputs == []
    assert [p.name for p in method.outputs] == [
        "init",
        "index",
        "collection_address",
        "owner_address",
        "individual_content",
    ]
    assert [p.category for p in method.outputs] == ["int", "int", "slice", "slice", "cell"]
    assert method.outputs[1].raw_type == "uint64"

    by_index = document.find_get_method("get_nft_address_by_index")
    assert [(p.name, p.category, p.raw_type) for p in by_index.inputs] == [("index", "int", "int")]


def test_multiline_internal_message(nft_schema):
    document, _ = parse_schema(nft_schema)
    message = document.find_message("nft_transfer")
    assert message.definition_name == "transfer"
    assert message.opcode_value == 0x5FCC3D14
    assert message.same_opcode("0x5FCC3D14")
    assert len(message.params) == 6


def test_malformed_message_is_flagged_not_fatal(nft_schema):
    document, warnings = parse_schema(nft_schema)
    assert len(warnings) == 1
    assert warnings[0].kind == WarningKind.SCHEMA_PARSE_FAILURE
    assert warnings[0].subject == "broken"
    assert "this is not a message" in warnings[0].raw_text

    broken = [m for m in document.messages if m.name == "broken"]
    assert broken and broken[0].error
    assert document.find_message("broken") is None
    assert "broken" not in [m.name for m in document.valid_messages]


def test_empty_internal_is_a_parse_failure():
    document, warnings = parse_schema('<abi><internal name="empty"/></abi>')
    assert document.messages[0].error
    assert warnings[0].kind == WarningKind.SCHEMA_PARSE_FAILURE


def test_unparsable_container_raises():
    with pytest.raises(SchemaSyntaxError):
        parse_schema("<abi><interface name='x'>")


def test_duplicate_names_first_wins():
    document, _ = parse_schema(
        """<abi>
        <get_method name="dup"><output><int name="first">int</int></output></get_method>
        <get_method name="dup"><output><int name="second">int</int></output></get_method>
        </abi>"""
    )
    assert len(document.get_methods) == 2
    assert document.find_get_method("dup").outputs[0].name == "first"


def test_unknown_elements_ignored():
    document, warnings = parse_schema("<abi><comment>hi</comment><interface name='a'/></abi>")
    assert document.interface_names == ["a"]
    assert warnings == []


def test_parse_schema_file_reads_ir_json(nft_schema, tmp_path):
    document, _ = parse_schema(nft_schema)
    path = tmp_path / "abi.json"
    path.write_text(json.dumps(document_to_dict(document)))

    loaded, warnings = parse_schema_file(path)
    assert warnings == []
    assert loaded == document


def test_parse_schema_file_reads_xml(nft_schema, tmp_path):
    path = tmp_path / "abi.xml"
    path.write_text(nft_schema)
    document, _ = parse_schema_file(path)
    assert document.find_message("excess").definition_name == "excesses"
