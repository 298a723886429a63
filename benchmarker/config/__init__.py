"""Layered configuration management."""
from benchmarker.config.loader import ConfigResolver, recursive_merge

__all__ = ['ConfigResolver', 'recursive_merge']
