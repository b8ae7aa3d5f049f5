"""abigen — contract interface bindings generator and conformance prober."""

__version__ = "0.1.0"
