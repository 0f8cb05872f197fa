"""Shared utilities for report parsing."""
