"""Adapters — concrete backends for the store ports."""
