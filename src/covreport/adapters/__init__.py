"""Adapters for coverage report formats and artifact storage."""
