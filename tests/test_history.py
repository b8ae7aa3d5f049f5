"""Tests for the conformance history store."""

import tempfile

from abigen.conformance import ConformanceHistoryStore, ConformanceReport, ProbeOutcome, ProbePhase, Verdict

ADDRESS = "0:" + "ab" * 32


def _report(interface_name, verdict, failed=""):
    report = ConformanceReport(address=ADDRESS, interface_name=interface_name, verdict=verdict)
    report.query_outcomes = [
        ProbeOutcome(method="get_a", phase=ProbePhase.QUERY, passed=True),
        ProbeOutcome(method="get_b", phase=ProbePhase.QUERY, passed=not failed),
    ]
    report.failed_method = failed
    return report


def test_record_and_read_back():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ConformanceHistoryStore(tmpdir)
        entry = store.record_report(_report("sbt_item", Verdict.NOT_IMPLEMENTED, failed="get_b"))
        assert entry.verdict == "not_implemented"
        assert entry.query_passed == 1
        assert entry.query_total == 2
        assert entry.failed_method == "get_b"

        store.record_report(_report("nft_item", Verdict.IMPLEMENTED))
        history = store.get_history(ADDRESS)
        assert len(history) == 2
        assert {e.interface_name for e in history} == {"sbt_item", "nft_item"}
        assert [e.interface_name for e in store.get_history(ADDRESS, "nft_item")] == ["nft_item"]
        assert store.last_implemented(ADDRESS) == "nft_item"


def test_history_file_name_is_portable():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ConformanceHistoryStore(tmpdir)
        store.record_report(_report("nft_item", Verdict.IMPLEMENTED))
        names = [p.name for p in store.base_dir.iterdir()]
        assert names == [ADDRESS.replace(":", "_") + ".json"]


def test_corrupt_history_is_ignored():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ConformanceHistoryStore(tmpdir)
        (store.base_dir / (ADDRESS.replace(":", "_") + ".json")).write_text("{not json")
        assert store.get_history(ADDRESS) == []
        assert store.last_implemented(ADDRESS) is None


def test_unknown_address_has_no_history():
    with tempfile.TemporaryDirectory() as tmpdir:
        assert ConformanceHistoryStore(tmpdir).get_history("0:" + "00" * 32) == []
