"""Dump a source tree as a structured, size-bounded report for language models."""

__version__ = "1.0.0"
