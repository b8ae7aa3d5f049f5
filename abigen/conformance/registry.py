"""Binding registry — interface name to binding factory.

Generated packages populate one registry at import time (see their
``registry.py``); the prober only ever looks bindings up here.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from pytoniq_core import Address

from abigen.runtime.binding import ContractBinding, MessageSender, MethodInvoker

BindingFactory = Callable[..., ContractBinding]


class BindingRegistry:
    """Explicit name -> factory mapping with a conformance probe order."""

    def __init__(self):
        self._factories: dict[str, BindingFactory] = {}
        self._probe_order: list[str] = []

    @classmethod
    def from_bindings(
        cls,
        bindings: Iterable[type[ContractBinding]],
        order: Iterable[str] | None = None,
    ) -> BindingRegistry:
        """Register binding classes under their ``interface_name``.

        ``order`` is the probe order; by default it is the reverse of the
        given sequence (bindings are emitted parents first).
        """
        registry = cls()
        bindings = list(bindings)
        for binding in bindings:
            registry.register(binding.interface_name, binding, probe=False)
        names = list(order) if order is not None else [b.interface_name for b in reversed(bindings)]
        registry.set_probe_order(names)
        return registry

    def register(self, name: str, factory: BindingFactory, probe: bool = True) -> None:
        """Add a factory. ``probe`` appends ``name`` to the probe order."""
        self._factories[name] = factory
        if probe and name not in self._probe_order:
            self._probe_order.append(name)

    def set_probe_order(self, names: Iterable[str]) -> None:
        names = list(names)
        unknown = [n for n in names if n not in self._factories]
        if unknown:
            raise KeyError(f"Probe order names unregistered interfaces: {', '.join(unknown)}")
        self._probe_order = names

    @property
    def probe_order(self) -> list[str]:
        return list(self._probe_order)

    def names(self) -> list[str]:
        return list(self._factories)

    def get(self, name: str) -> BindingFactory | None:
        return self._factories.get(name)

    def create(
        self,
        name: str,
        address: Address | str,
        invoker: MethodInvoker,
        sender: MessageSender | None = None,
    ) -> ContractBinding:
        factory = self._factories.get(name)
        if factory is None:
            raise KeyError(f"No binding registered for interface '{name}'")
        return factory(address, invoker, sender)

    def __contains__(self, name: object) -> bool:
        return name in self._factories

    def __len__(self) -> int:
        return len(self._factories)
