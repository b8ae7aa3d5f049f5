"""Conformance prober — decides which interface a live contract implements.

Each (address, interface) check is a small state machine:

    START -> QUERY phase -> passed -> SEND phase (advisory) -> IMPLEMENTED
                         -> failed -> NOT_IMPLEMENTED

Query probes are read-only and authoritative: they run strictly in order
and the first failure ends the check. Send probes dispatch real messages
that can fail for reasons unrelated to the interface (balance, bounces),
so their failures are recorded and logged but never change the verdict.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pytoniq_core import Address

from abigen.conformance.registry import BindingRegistry
from abigen.runtime.binding import ContractBinding, MessageSender, MethodInvoker
from abigen.runtime.codec import raw_address, to_address

logger = logging.getLogger(__name__)


class Verdict(Enum):
    IMPLEMENTED = "implemented"
    NOT_IMPLEMENTED = "not_implemented"


class ProbePhase(Enum):
    QUERY = "query"
    SEND = "send"


@dataclass
class ProbeOutcome:
    """Result of running a single probe method."""

    method: str
    phase: ProbePhase
    passed: bool
    error: str = ""
    error_type: str = ""
    duration_ms: int = 0


@dataclass
class ConformanceReport:
    """Full record of one (address, interface) conformance check."""

    address: str
    interface_name: str
    verdict: Verdict = Verdict.NOT_IMPLEMENTED
    query_outcomes: list[ProbeOutcome] = field(default_factory=list)
    send_outcomes: list[ProbeOutcome] = field(default_factory=list)
    failed_method: str = ""
    error: str = ""  # Set when no binding could be created
    total_duration_ms: int = 0

    @property
    def implemented(self) -> bool:
        return self.verdict == Verdict.IMPLEMENTED

    @property
    def sends_passed(self) -> bool:
        return all(o.passed for o in self.send_outcomes)

    def summary(self) -> str:
        lines = [
            f"Address:   {self.address}",
            f"Interface: {self.interface_name}",
        ]
        passed = sum(1 for o in self.query_outcomes if o.passed)
        lines.append(f"Queries:   {passed}/{len(self.query_outcomes)} passed")
        if self.failed_method:
            lines.append(f"Failed at: {self.failed_method}")
        if self.error:
            lines.append(f"Error:     {self.error}")
        if self.send_outcomes:
            sent = sum(1 for o in self.send_outcomes if o.passed)
            lines.append(f"Sends:     {sent}/{len(self.send_outcomes)} passed (advisory)")
        lines.append(f"Verdict:   {self.verdict.value.upper()}")
        lines.append(f"Duration:  {self.total_duration_ms}ms")
        return "\n".join(lines)


@dataclass
class DetectionResult:
    """Outcome of probing an address against several interfaces."""

    address: str
    interface_name: str | None = None
    binding: ContractBinding | None = None
    reports: list[ConformanceReport] = field(default_factory=list)

    @property
    def matched(self) -> bool:
        return self.interface_name is not None


class ConformanceProber:
    """Runs probe methods of registered bindings against an address."""

    def __init__(
        self,
        registry: BindingRegistry,
        invoker: MethodInvoker,
        sender: MessageSender | None = None,
        history=None,
    ):
        self.registry = registry
        self.invoker = invoker
        self.sender = sender
        self.history = history

    async def probe(
        self,
        address: Address | str,
        interface_name: str,
        probe_args: dict[str, tuple] | None = None,
    ) -> ConformanceReport:
        """Check one interface. ``probe_args`` maps method names to call arguments."""
        address = to_address(address)
        _, report = await self._attempt(address, interface_name, probe_args)
        return report

    async def check(
        self, binding: ContractBinding, probe_args: dict[str, tuple] | None = None
    ) -> ConformanceReport:
        """Run the query then send phase against an existing binding."""
        probe_args = probe_args or {}
        start = time.monotonic()
        report = ConformanceReport(
            address=raw_address(binding.address), interface_name=binding.interface_name
        )

        # Query phase: first failure decides
        for method in binding.query_methods:
            outcome = await self._run_probe(binding, method, ProbePhase.QUERY, probe_args)
            report.query_outcomes.append(outcome)
            if not outcome.passed:
                logger.debug(
                    "%s does not implement %s: %s failed (%s)",
                    report.address,
                    report.interface_name,
                    method,
                    outcome.error,
                )
                report.failed_method = method
                report.total_duration_ms = _elapsed_ms(start)
                return report

        # Send phase: advisory only
        for method in binding.send_methods:
            outcome = await self._run_probe(binding, method, ProbePhase.SEND, probe_args)
            report.send_outcomes.append(outcome)
            if not outcome.passed:
                logger.info(
                    "Send probe %s on %s failed: %s", method, report.address, outcome.error
                )

        report.verdict = Verdict.IMPLEMENTED
        report.total_duration_ms = _elapsed_ms(start)
        logger.info("%s implements %s", report.address, report.interface_name)
        return report

    async def detect(
        self,
        address: Address | str,
        order: Iterable[str] | None = None,
        concurrent: bool = False,
        probe_args: dict[str, tuple] | None = None,
    ) -> DetectionResult:
        """Find the first interface in probe order that ``address`` implements.

        With ``concurrent=True`` all candidates are probed at once and the
        winner is still chosen by position in ``order``, not by completion.
        """
        names = list(order) if order is not None else self.registry.probe_order
        missing = [n for n in names if n not in self.registry]
        if missing:
            raise KeyError(f"No binding registered for: {', '.join(missing)}")

        address = to_address(address)
        result = DetectionResult(address=raw_address(address))

        if concurrent:
            attempts = await asyncio.gather(
                *(self._attempt(address, name, probe_args) for name in names)
            )
            result.reports = [report for _, report in attempts]
            for binding, report in attempts:
                if report.implemented:
                    result.interface_name = report.interface_name
                    result.binding = binding
                    break
            return result

        for name in names:
            binding, report = await self._attempt(address, name, probe_args)
            result.reports.append(report)
            if report.implemented:
                result.interface_name = name
                result.binding = binding
                break
        return result

    async def _attempt(
        self, address: Address, name: str, probe_args: dict[str, tuple] | None
    ) -> tuple[ContractBinding | None, ConformanceReport]:
        binding = None
        try:
            binding = self.registry.create(name, address, self.invoker, self.sender)
        except Exception as exc:
            logger.warning("Cannot create %s binding for %s: %s", name, raw_address(address), exc)
            report = ConformanceReport(
                address=raw_address(address),
                interface_name=name,
                error=f"{type(exc).__name__}: {exc}",
            )
        else:
            report = await self.check(binding, probe_args)
        await self._record(report)
        return binding, report

    async def _record(self, report: ConformanceReport) -> None:
        if self.history is None:
            return
        try:
            # History stores write files; keep them off the event loop
            await asyncio.to_thread(self.history.record_report, report)
        except Exception as exc:
            logger.warning(
                "Could not record conformance history for %s: %s", report.address, exc
            )

    async def _run_probe(
        self,
        binding: ContractBinding,
        method: str,
        phase: ProbePhase,
        probe_args: dict[str, tuple],
    ) -> ProbeOutcome:
        start = time.monotonic()
        args: Any = probe_args.get(method, ())
        try:
            await binding.probe(method)(*args)
        except Exception as exc:
            return ProbeOutcome(
                method=method,
                phase=phase,
                passed=False,
                error=str(exc),
                error_type=type(exc).__name__,
                duration_ms=_elapsed_ms(start),
            )
        return ProbeOutcome(method=method, phase=phase, passed=True, duration_ms=_elapsed_ms(start))


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
