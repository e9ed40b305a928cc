"""
FirePM Utilities Package.
Internal utilities - not part of public API.
"""

from . import tables

__all__ = ["tables"]
