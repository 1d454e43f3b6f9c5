"""Payload source adapters."""
