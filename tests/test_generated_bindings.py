"""End-to-end tests: generate bindings, import them and run them."""

import asyncio
import importlib

import pytest

from abigen.conformance import ConformanceHistoryStore, ConformanceProber, Verdict
from abigen.runtime import (
    EMPTY_CELL,
    ContractBinding,
    InvocationError,
    InvocationFailureKind,
    StackEntry,
    raw_address,
)
from conftest import COLLECTION, OWNER


def _submodule(package, name):
    return importlib.import_module(f"{package.__name__}.{name}")


def test_package_exports(generated_package):
    assert generated_package.PROBE_ORDER == ("nft_collection", "sbt_item", "nft_item_simple", "nft_item")
    assert issubclass(generated_package.SbtItem, ContractBinding)
    assert generated_package.SbtItem.parent_interface == "nft_item"
    assert generated_package.NftItem.fingerprints == (
        "4c9123828682fa6f43797ab41732bca890cae01766e0674100250516e0bf8d42",
    )

    registry = generated_package.build_registry()
    assert registry.probe_order == list(generated_package.PROBE_ORDER)
    assert sorted(registry.names()) == ["nft_collection", "nft_item", "nft_item_simple", "sbt_item"]


def test_query_reads_record(generated_package, fake_contract, nft_stack):
    contract = fake_contract({"get_nft_data": nft_stack})
    binding = generated_package.NftItem(OWNER, contract)

    data = asyncio.run(binding.get_nft_data())
    assert type(data).__name__ == "GetNftDataResult"
    assert data.init is True
    assert data.index == 7
    assert raw_address(data.collection_address) == raw_address(COLLECTION)
    assert raw_address(data.owner_address) == raw_address(OWNER)
    assert data.individual_content.hash == EMPTY_CELL.hash


def test_query_passes_arguments(generated_package, fake_contract):
    contract = fake_contract({"get_nft_address_by_index": lambda args: [StackEntry.address(OWNER)]})
    binding = generated_package.NftCollection(OWNER, contract)

    assert raw_address(asyncio.run(binding.get_nft_address_by_index(3))) == raw_address(OWNER)
    assert contract.calls == [("get_nft_address_by_index", [StackEntry.integer(3)])]


def test_missing_method_surfaces_category(generated_package, fake_contract):
    binding = generated_package.NftItem(OWNER, fake_contract())
    with pytest.raises(InvocationError) as info:
        asyncio.run(binding.get_nft_data())
    assert info.value.kind == InvocationFailureKind.METHOD_NOT_FOUND
    assert "nft_item" in str(info.value)


def test_send_builds_payload(generated_package, fake_contract):
    contract = fake_contract()
    binding = generated_package.NftItem(OWNER, contract)

    result = asyncio.run(binding.send_nft_transfer(1, OWNER, None, None, 1000, EMPTY_CELL))
    assert result.transactions == contract.sent
    body = contract.sent[0]

    messages = _submodule(generated_package, "messages")
    decoded = messages.NftTransfer.load(body)
    assert decoded.query_id == 1
    assert raw_address(decoded.new_owner) == raw_address(OWNER)
    assert decoded.response_destination is None
    assert decoded.custom_payload is None
    assert decoded.forward_amount == 1000
    assert decoded.forward_payload.hash == EMPTY_CELL.hash
    assert decoded.to_cell().hash == body.hash
    assert body.to_boc()

    reader = body.begin_parse()
    assert reader.load_uint(32) == 0x5FCC3D14
    assert reader.load_uint(64) == 1


def test_message_load_checks_opcode(generated_package):
    messages = _submodule(generated_package, "messages")
    body = messages.Excess(query_id=9).to_cell()
    assert messages.Excess.load(body).query_id == 9
    with pytest.raises(ValueError):
        messages.GetStaticData.load(body)


def test_protocols_follow_inheritance(generated_package):
    interfaces = _submodule(generated_package, "interfaces")
    assert interfaces.NftItemInterface in interfaces.SbtItemInterface.__mro__
    assert interfaces.NftItemInterface in interfaces.NftItemSimpleInterface.__mro__


def test_probe_with_defaults(generated_package, fake_contract):
    contract = fake_contract({"get_nft_address_by_index": lambda args: [StackEntry.null()]})
    binding = generated_package.NftCollection(OWNER, contract)
    asyncio.run(binding.probe("get_nft_address_by_index")())
    assert contract.calls[0][1] == [StackEntry.integer(0)]


# --- Detection across interfaces ---


def test_detect_prefers_most_derived(generated_package, fake_contract, nft_stack):
    contract = fake_contract({"get_nft_data": nft_stack})
    prober = ConformanceProber(generated_package.build_registry(), contract)

    result = asyncio.run(prober.detect(OWNER))
    assert result.matched
    assert result.interface_name == "nft_item_simple"
    assert type(result.binding).__name__ == "NftItemSimple"
    assert [r.interface_name for r in result.reports] == ["nft_collection", "sbt_item", "nft_item_simple"]
    assert [r.verdict for r in result.reports] == [
        Verdict.NOT_IMPLEMENTED,
        Verdict.NOT_IMPLEMENTED,
        Verdict.IMPLEMENTED,
    ]
    # Both default send probes were dispatched
    assert len(contract.sent) == 2


def test_detect_sbt(generated_package, fake_contract, nft_stack):
    contract = fake_contract(
        {
            "get_nft_data": nft_stack,
            "get_authority_address": [StackEntry.null()],
            "get_revoked_time": [StackEntry.integer(0)],
        },
        fail_sends=True,
    )
    prober = ConformanceProber(generated_package.build_registry(), contract)

    sequential = asyncio.run(prober.detect(OWNER))
    concurrent = asyncio.run(prober.detect(OWNER, concurrent=True))
    assert sequential.interface_name == concurrent.interface_name == "sbt_item"
    sbt_report = sequential.reports[-1]
    assert sbt_report.implemented
    assert not sbt_report.sends_passed
    assert len(concurrent.reports) == 4


def test_detect_no_match_records_history(generated_package, fake_contract, tmp_path):
    history = ConformanceHistoryStore(tmp_path)
    prober = ConformanceProber(generated_package.build_registry(), fake_contract(), history=history)

    result = asyncio.run(prober.detect(OWNER.to_str(is_user_friendly=True)))
    assert not result.matched
    assert result.binding is None
    entries = history.get_history(raw_address(OWNER))
    assert len(entries) == 4
    assert history.last_implemented(raw_address(OWNER)) is None
