"""
Externally supplied education and game content.
"""

from .catalog import DEFAULT_CATALOG, ContentCatalog

__all__ = ["DEFAULT_CATALOG", "ContentCatalog"]
