"""Kernel value types — public re-export surface.

Modules:
  option.py — Some, Nothing, Option
"""

from msgstore.kernel.types.option import Nothing, Option, Some

__all__ = ["Nothing", "Option", "Some"]
