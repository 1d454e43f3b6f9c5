"""Schema source adapters."""
