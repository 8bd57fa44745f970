"""Compile, test, watch and track progress through small Rust exercises."""

__version__ = "5.5.1"