"""
DocVault - Filesystem document repository backend.

Stores documents, their check-in versions and lock sidecars, plus document
templates and their language variants, under one configured root directory.
The host talks to it through ``docvault.plugin.DocumentPlugin``.
"""

__version__ = "1.0.0"
__all__ = ["engine", "documents", "plugin"]
