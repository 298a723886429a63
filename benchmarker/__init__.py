"""Benchmarker - build and deploy orchestration for the web framework benchmark matrix."""

__version__ = "0.1.0"
