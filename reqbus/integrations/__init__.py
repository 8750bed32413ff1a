"""Adapters providing ambient cancellation tokens from host frameworks."""
