"""Adapters for external systems (payment gateway, notifications)."""
