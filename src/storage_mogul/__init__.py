"""Storage Mogul: deterministic self-storage tycoon simulation."""

__version__ = "0.1.0"
