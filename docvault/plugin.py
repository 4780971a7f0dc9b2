"""
DocVault Document Plugin - The contract a document-management host calls.

Every host operation is a method here. The plugin resolves the acting
identity from the execution context, maps the host's DocumentInfo and
TemplateInfo records onto storage references, and delegates to the
document and template repositories.

Usage:
    from docvault.engine.config import RepositoryConfig
    from docvault.engine.context import ExecutionContext, set_execution_context
    from docvault.plugin import DocumentPlugin

    plugin = DocumentPlugin(RepositoryConfig(root_path="/srv/docvault", can_lock=True))
    set_execution_context(ExecutionContext(associate="alice"))
    plugin.checkout_document(DocumentInfo(external_reference="a.txt"))
"""

from __future__ import annotations

import logging
from typing import BinaryIO, Dict, Iterable, List, Optional, Tuple

from docvault.documents.capabilities import CapabilityReporter
from docvault.documents.commands import CommandDispatcher
from docvault.documents.models import (
    CheckoutInfo,
    CommandInfo,
    DocumentInfo,
    ReturnInfo,
    TemplateInfo,
    VersionInfo,
)
from docvault.documents.paths import PathResolver
from docvault.documents.repository import DocumentRepository
from docvault.documents.templates import TemplateRepository
from docvault.engine.config import CommandsConfig, PlatformConfig, RepositoryConfig, get_config
from docvault.engine.context import require_execution_context

logger = logging.getLogger("docvault.plugin")


class DocumentPlugin:
    """
    Host-facing facade over the document and template repositories.

    Configuration is passed in explicitly; when omitted the repository
    section of the loaded docvault.yaml is used.
    """

    def __init__(
        self,
        config: Optional[RepositoryConfig] = None,
        commands: Optional[CommandsConfig] = None,
    ):
        if config is None:
            platform_config: PlatformConfig = get_config()
            config = platform_config.repository
            commands = commands or platform_config.commands

        self._config = config
        self._paths = PathResolver(config.root)
        self._paths.ensure_directories()
        self.documents = DocumentRepository(config, resolver=self._paths)
        self.templates = TemplateRepository(config, resolver=self._paths)
        self.capabilities = CapabilityReporter(config)
        self.commands = CommandDispatcher(config, commands)
        logger.info(f"DocumentPlugin ready at {self._paths.root}")

    @property
    def config(self) -> RepositoryConfig:
        return self._config

    @staticmethod
    def _actor(actor: Optional[str]) -> str:
        if actor:
            return actor
        return require_execution_context().associate

    # -------------------------------------------------------------------
    # Documents
    # -------------------------------------------------------------------

    def exists(self, document: DocumentInfo) -> bool:
        return self.documents.exists(document.external_reference)

    def get_length(self, document: DocumentInfo, version_id: Optional[str] = None) -> int:
        return self.documents.get_length(document.external_reference, version_id)

    def load_document_stream(
        self, document: DocumentInfo, version_id: Optional[str] = None
    ) -> BinaryIO:
        return self.documents.open_read(document.external_reference, version_id)

    def save_document_from_stream(
        self, document: DocumentInfo, content: BinaryIO, actor: Optional[str] = None
    ) -> ReturnInfo:
        return self.documents.save(document.external_reference, content, self._actor(actor))

    def create_document(self, document: DocumentInfo, file_name: str) -> Tuple[str, str]:
        return self.documents.create_document(document, file_name)

    def delete_document(self, document: DocumentInfo, actor: Optional[str] = None) -> ReturnInfo:
        return self.documents.delete(document.external_reference, self._actor(actor))

    def rename_document(self, document: DocumentInfo, suggested_new_name: str) -> str:
        return self.documents.rename(document.external_reference, suggested_new_name)

    def get_document_properties(
        self, document: DocumentInfo, requested_properties: Iterable[str] = ()
    ) -> Dict[str, str]:
        return self.documents.properties(document.external_reference, requested_properties)

    def get_document_url(
        self,
        document: DocumentInfo,
        version_id: Optional[str] = None,
        writeable: bool = False,
    ) -> str:
        return self.documents.document_url(document.external_reference, version_id)

    def get_document_id_from_path(self, path: str) -> int:
        # document ids live in the host's database, not on disk
        return 0

    def load_metadata(self, document: DocumentInfo) -> Optional[Dict[str, str]]:
        return None

    def save_metadata(self, document: DocumentInfo, plugin_data: Dict[str, str]) -> None:
        return None

    # -------------------------------------------------------------------
    # Locking
    # -------------------------------------------------------------------

    def checkout_document(self, document: DocumentInfo, actor: Optional[str] = None) -> ReturnInfo:
        return self.documents.checkout(document.external_reference, self._actor(actor))

    def checkin_document(
        self,
        document: DocumentInfo,
        version_description: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> ReturnInfo:
        return self.documents.checkin(
            document.external_reference, self._actor(actor), version_description
        )

    def undo_checkout_document(
        self, document: DocumentInfo, actor: Optional[str] = None
    ) -> ReturnInfo:
        return self.documents.undo_checkout(document.external_reference, self._actor(actor))

    def get_checkout_state(self, document: DocumentInfo, actor: Optional[str] = None) -> CheckoutInfo:
        if not self.documents.locking_enabled:
            return self.documents.checkout_state(document.external_reference, actor or "")
        return self.documents.checkout_state(document.external_reference, self._actor(actor))

    # -------------------------------------------------------------------
    # Versions
    # -------------------------------------------------------------------

    def get_version_list(self, document: DocumentInfo) -> List[VersionInfo]:
        return self.documents.version_list(document.external_reference, document.document_id)

    def load_version_info(self, document: DocumentInfo, version_id: str) -> Optional[VersionInfo]:
        return self.documents.load_version_info(
            document.external_reference, version_id, document.document_id
        )

    def save_version_info(self, document: DocumentInfo, version: VersionInfo) -> None:
        # version files carry no metadata of their own
        return None

    # -------------------------------------------------------------------
    # Templates
    # -------------------------------------------------------------------

    def create_default_document_template(
        self, document_type_key: int, template: TemplateInfo
    ) -> Optional[TemplateInfo]:
        return self.templates.create_default(document_type_key, template)

    def save_document_template_stream(
        self, template: TemplateInfo, content: BinaryIO, language_code: str = ""
    ) -> TemplateInfo:
        return self.templates.save_info(template, content, language_code)

    def load_document_template_stream(
        self, template: TemplateInfo, language_code: str = ""
    ) -> BinaryIO:
        return self.templates.open_read(template.external_reference, language_code)

    def delete_document_template(self, template: TemplateInfo) -> ReturnInfo:
        if self.templates.delete(template.external_reference):
            return ReturnInfo.ok()
        return ReturnInfo.failure()

    def delete_document_template_language(
        self, template: TemplateInfo, language_code: str
    ) -> ReturnInfo:
        if self.templates.delete_language(template.external_reference, language_code):
            return ReturnInfo.ok()
        return ReturnInfo.failure()

    def get_document_template_languages(self, template: TemplateInfo) -> List[str]:
        return self.templates.languages(template.external_reference)

    def get_document_template_properties(
        self, template: TemplateInfo, requested_properties: Iterable[str] = ()
    ) -> Dict[str, str]:
        return self.templates.properties(template.external_reference, requested_properties)

    def get_document_template_url(
        self, template: TemplateInfo, writeable: bool = False, language_code: str = ""
    ) -> str:
        return self.templates.template_url(template.external_reference, language_code)

    def get_template_extension(self, template: TemplateInfo) -> str:
        return self.templates.extension(template.external_reference)

    # -------------------------------------------------------------------
    # Capabilities and commands
    # -------------------------------------------------------------------

    def get_plugin_capabilities(self) -> Dict[str, str]:
        return self.capabilities.capabilities()

    def get_supported_document_types_for_document_templates(self) -> Dict[int, str]:
        return self.capabilities.supported_template_types()

    def get_document_commands(self, document: DocumentInfo) -> List[CommandInfo]:
        return self.commands.list_commands(document)

    def execute_document_command(
        self, document: DocumentInfo, command: str, actor: Optional[str] = None
    ) -> ReturnInfo:
        return self.commands.execute(document, command, actor)
