"""
Test support utilities for parafetch tests.

Helpers that don't fit as pytest fixtures but are shared across test files.
"""
