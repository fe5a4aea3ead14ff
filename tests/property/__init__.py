# tests/property/__init__.py
"""Property-based tests for engine invariants.

These tests use Hypothesis to check invariants that must hold for ALL
inputs: merge never publishes duplicate ids, cursors merge by maximum,
filters project metadata, and runs are deterministic.
"""
