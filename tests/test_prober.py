"""Tests for the conformance prober state machine and registry."""

import asyncio

import pytest

from abigen.conformance import BindingRegistry, ConformanceProber, ProbePhase, Verdict
from abigen.runtime import Address, ContractBinding, InvocationError, InvocationFailureKind, raw_address

ADDRESS = Address((0, bytes(32)))


def _binding_class(name, queries, sends=(), failing=(), delays=None):
    """Build a binding whose probes record their calls in ``calls``."""
    delays = delays or {}

    def make_probe(method):
        async def probe(self, *args):
            self.calls.append((method, args))
            if method in delays:
                await asyncio.sleep(delays[method])
            if method in failing:
                raise InvocationError(InvocationFailureKind.METHOD_NOT_FOUND, method, self.address)

        return probe

    namespace = {
        "interface_name": name,
        "query_methods": tuple(queries),
        "send_methods": tuple(sends),
    }
    for method in list(queries) + list(sends):
        namespace[f"probe_{method}"] = make_probe(method)

    def __init__(self, address, invoker, sender=None):
        ContractBinding.__init__(self, address, invoker, sender)
        self.calls = []

    namespace["__init__"] = __init__
    return type(name.title(), (ContractBinding,), namespace)


def _prober(*bindings, order=None):
    return ConformanceProber(BindingRegistry.from_bindings(bindings, order=order), invoker=object())


def test_query_phase_short_circuits():
    binding_cls = _binding_class("item", ["a", "b", "c"], sends=["s"], failing=["b"])
    prober = _prober(binding_cls)
    binding = binding_cls(ADDRESS, object())

    report = asyncio.run(prober.check(binding))
    assert report.verdict == Verdict.NOT_IMPLEMENTED
    assert report.failed_method == "b"
    assert [c[0] for c in binding.calls] == ["a", "b"]
    assert [o.passed for o in report.query_outcomes] == [True, False]
    assert report.query_outcomes[1].error_type == "InvocationError"
    assert report.send_outcomes == []


def test_first_probe_failure_runs_nothing_else():
    binding_cls = _binding_class("item", ["a", "b"], failing=["a"])
    binding = binding_cls(ADDRESS, object())
    report = asyncio.run(_prober(binding_cls).check(binding))
    assert [c[0] for c in binding.calls] == ["a"]
    assert not report.implemented


def test_send_failures_are_advisory():
    binding_cls = _binding_class("item", ["a"], sends=["s1", "s2"], failing=["s1", "s2"])
    binding = binding_cls(ADDRESS, object())

    report = asyncio.run(_prober(binding_cls).check(binding))
    assert report.verdict == Verdict.IMPLEMENTED
    assert [c[0] for c in binding.calls] == ["a", "s1", "s2"]
    assert [o.phase for o in report.send_outcomes] == [ProbePhase.SEND, ProbePhase.SEND]
    assert not report.sends_passed
    assert "IMPLEMENTED" in report.summary()
    assert "0/2 passed (advisory)" in report.summary()


def test_probe_args_are_passed():
    binding_cls = _binding_class("item", ["a"])
    binding = binding_cls(ADDRESS, object())
    asyncio.run(_prober(binding_cls).check(binding, probe_args={"a": (5, "x")}))
    assert binding.calls == [("a", (5, "x"))]


def test_probe_by_name():
    prober = _prober(_binding_class("item", ["a"]))
    report = asyncio.run(prober.probe(raw_address(ADDRESS), "item"))
    assert report.implemented
    assert report.address == raw_address(ADDRESS)


def test_detect_returns_first_success_in_order():
    base = _binding_class("base", ["a"])
    derived = _binding_class("derived", ["a", "b"], failing=["b"])
    prober = _prober(base, derived)

    result = asyncio.run(prober.detect(ADDRESS))
    assert result.interface_name == "base"
    assert [r.interface_name for r in result.reports] == ["derived", "base"]
    assert result.binding.interface_name == "base"


def test_concurrent_detect_orders_post_hoc():
    # The later candidate finishes first but must not win
    slow = _binding_class("slow", ["a"], delays={"a": 0.05})
    fast = _binding_class("fast", ["a"])
    prober = _prober(fast, slow, order=["slow", "fast"])

    result = asyncio.run(prober.detect(ADDRESS, concurrent=True))
    assert result.interface_name == "slow"
    assert [r.interface_name for r in result.reports] == ["slow", "fast"]


def test_detect_no_match():
    prober = _prober(_binding_class("item", ["a"], failing=["a"]))
    result = asyncio.run(prober.detect(ADDRESS))
    assert not result.matched
    assert result.binding is None
    assert len(result.reports) == 1


def test_detect_unknown_name_in_order():
    prober = _prober(_binding_class("item", ["a"]))
    with pytest.raises(KeyError):
        asyncio.run(prober.detect(ADDRESS, order=["item", "ghost"]))


# --- Registry ---


def test_registry_defaults_to_reverse_order():
    a = _binding_class("a", ["x"])
    b = _binding_class("b", ["x"])
    registry = BindingRegistry.from_bindings([a, b])
    assert registry.probe_order == ["b", "a"]
    assert "a" in registry
    assert len(registry) == 2
    assert registry.get("zzz") is None


def test_registry_register_and_create():
    registry = BindingRegistry()
    item = _binding_class("item", ["x"])
    registry.register("item", item)
    assert registry.probe_order == ["item"]
    created = registry.create("item", raw_address(ADDRESS), invoker=object())
    assert isinstance(created, item)
    assert raw_address(created.address) == raw_address(ADDRESS)
    with pytest.raises(KeyError):
        registry.create("missing", ADDRESS, invoker=object())
    with pytest.raises(KeyError):
        registry.set_probe_order(["missing"])


class _ReadOnlyHistory:
    def __init__(self):
        self.attempts = 0

    def record_report(self, report):
        self.attempts += 1
        raise PermissionError("history directory is read-only")


@pytest.mark.parametrize("concurrent", [False, True])
def test_history_write_failures_do_not_stop_detection(concurrent):
    base = _binding_class("base", ["a"])
    derived = _binding_class("derived", ["a"], failing=["a"])
    history = _ReadOnlyHistory()
    prober = ConformanceProber(
        BindingRegistry.from_bindings([base, derived]), invoker=object(), history=history
    )

    result = asyncio.run(prober.detect(ADDRESS, concurrent=concurrent))
    assert result.interface_name == "base"
    assert [r.interface_name for r in result.reports] == ["derived", "base"]
    assert history.attempts == 2


@pytest.mark.parametrize("concurrent", [False, True])
def test_binding_factory_errors_become_reports(concurrent):
    def broken_factory(address, invoker, sender=None):
        raise RuntimeError("factory exploded")

    registry = BindingRegistry()
    registry.register("item", _binding_class("item", ["a"]))
    registry.register("broken", broken_factory)
    registry.set_probe_order(["broken", "item"])

    prober = ConformanceProber(registry, invoker=object())
    result = asyncio.run(prober.detect(ADDRESS, concurrent=concurrent))
    assert result.interface_name == "item"
    broken = result.reports[0]
    assert broken.interface_name == "broken"
    assert broken.verdict == Verdict.NOT_IMPLEMENTED
    assert broken.error == "RuntimeError: factory exploded"
    assert "Error:     RuntimeError: factory exploded" in broken.summary()
