"""Shared utilities for stashling."""
