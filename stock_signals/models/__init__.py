"""Pydantic domain models (all frozen)."""
