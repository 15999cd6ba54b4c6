"""Kernel — errors, value types and messaging primitives shared by every layer."""
