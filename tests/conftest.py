"""Shared fixtures: a sample NFT schema and an in-memory contract."""

import importlib
import uuid

import pytest

from abigen.codegen import emit
from abigen.generators.writer import write_artifacts
from abigen.ir.parser import parse_schema
from abigen.runtime import Address, QueryOutcome, SendResult, StackEntry

NFT_SCHEMA = """\
<abi>
  <interface name="nft_item">
    <code_hash>4c9123828682fa6f43797ab41732bca890cae01766e0674100250516e0bf8d42</code_hash>
    <get_method name="get_nft_data"/>
    <msg_in>
      <internal name="nft_transfer"/>
      <internal name="get_static_data"/>
    </msg_in>
    <msg_out>
      <internal name="excess"/>
    </msg_out>
  </interface>
  <interface name="nft_item_simple" inherits="nft_item"/>
  <interface name="sbt_item" inherits="nft_item">
    <get_method name="get_authority_address"/>
    <get_method name="get_revoked_time"/>
    <msg_in>
      <internal name="prove_ownership"/>
    </msg_in>
  </interface>
  <interface name="nft_collection">
    <get_method name="get_nft_address_by_index"/>
    <get_method name="get_missing_method"/>
  </interface>

  <get_method name="get_nft_data">
    <output version="1" fixed_length="true">
      <int name="init">bool</int>
      <int name="index">uint64</int>
      <slice name="collection_address">msgaddress</slice>
      <slice name="owner_address">msgaddress</slice>
      <cell name="individual_content">any</cell>
    </output>
  </get_method>
  <get_method name="get_authority_address">
    <output>
      <slice name="address">msgaddress</slice>
    </output>
  </get_method>
  <get_method name="get_revoked_time">
    <output>
      <int name="time">uint64</int>
    </output>
  </get_method>
  <get_method name="get_nft_address_by_index">
    <input>
      <int name="index">int</int>
    </input>
    <output>
      <slice name="address">msgaddress</slice>
    </output>
  </get_method>

  <internal name="nft_transfer">
    transfer#5fcc3d14 query_id:uint64 new_owner:MsgAddress
      response_destination:MsgAddress custom_payload:(Maybe ^Cell)
      forward_amount:(VarUInteger 16) forward_payload:(Either Cell ^Cell) = InternalMsgBody;
  </internal>
  <internal name="get_static_data">get_static_data#2fcb26a2 query_id:uint64 = InternalMsgBody;</internal>
  <internal name="excess">excesses#d53276db query_id:uint64 = InternalMsgBody;</internal>
  <internal name="prove_ownership">
    prove_ownership#04ded148 query_id:uint64 dest:MsgAddress
      forward_payload:^Cell with_content:Bool = InternalMsgBody;
  </internal>
  <internal name="broken">this is not a message</internal>
</abi>
"""

OWNER = Address((0, bytes(range(32))))
COLLECTION = Address((-1, bytes(range(32, 64))))


class FakeContract:
    """In-memory method invoker and message sender.

    ``methods`` maps get-method names to result stacks (or callables taking
    the argument list). Unknown methods fail with exit code 11.
    """

    def __init__(self, methods=None, fail_sends=False):
        self.methods = methods or {}
        self.fail_sends = fail_sends
        self.calls = []
        self.sent = []

    async def invoke_query(self, address, method_name, args):
        self.calls.append((method_name, list(args)))
        if method_name not in self.methods:
            return QueryOutcome(exit_code=11)
        result = self.methods[method_name]
        if callable(result):
            result = result(args)
        return QueryOutcome(stack=list(result))

    async def send_message(self, address, body):
        self.sent.append(body)
        if self.fail_sends:
            raise RuntimeError("message bounced")
        return SendResult(transactions=[body])


def nft_data_stack():
    from abigen.runtime import EMPTY_CELL

    return [
        StackEntry.integer(-1),
        StackEntry.integer(7),
        StackEntry.address(COLLECTION),
        StackEntry.address(OWNER),
        StackEntry.cell(EMPTY_CELL),
    ]


@pytest.fixture
def nft_schema():
    return NFT_SCHEMA


@pytest.fixture
def fake_contract():
    return FakeContract


@pytest.fixture
def nft_stack():
    return nft_data_stack()


@pytest.fixture
def generated_package(tmp_path, monkeypatch):
    """Generate bindings for the sample schema and import them."""
    document, _ = parse_schema(NFT_SCHEMA)
    package_name = f"nft_bindings_{uuid.uuid4().hex[:8]}"
    write_artifacts(emit(document), tmp_path / package_name)
    monkeypatch.syspath_prepend(str(tmp_path))
    importlib.invalidate_caches()
    return importlib.import_module(package_name)
