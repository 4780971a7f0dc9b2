"""
DocVault Documents - Storage core.

Physical storage: <root>/Documents/ and <root>/Templates/
"""

from docvault.documents.capabilities import CapabilityReporter
from docvault.documents.commands import CommandDispatcher
from docvault.documents.locks import LockStore
from docvault.documents.paths import PathResolver
from docvault.documents.repository import DocumentRepository
from docvault.documents.templates import TemplateRepository
from docvault.documents.versions import VersionStore

__all__ = [
    "CapabilityReporter",
    "CommandDispatcher",
    "DocumentRepository",
    "LockStore",
    "PathResolver",
    "TemplateRepository",
    "VersionStore",
]
