"""Configuration — settings dataclasses, loaders and config errors."""
