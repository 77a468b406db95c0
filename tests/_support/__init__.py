"""
Test support utilities for casebook tests.

Helpers that don't fit as pytest fixtures but are shared across test files.
"""
