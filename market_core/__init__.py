"""Marketplace order lifecycle and settlement engine."""
