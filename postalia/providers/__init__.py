"""Concrete cache and postal provider implementations."""
