"""
DocVault Document Commands - Named custom actions offered to the host.

Commands:
    P  Picture!  image search for the document header      -> URL
    T  Text!     plain confirmation message                 -> MESSAGE
    S  Show!     deep link to the document's contact        -> DEEP_LINK
"""

from __future__ import annotations

import logging
from typing import List, Optional
from urllib.parse import quote_plus

from docvault.documents.models import CommandInfo, DocumentInfo, ReturnInfo, ReturnType
from docvault.engine.config import CommandsConfig, RepositoryConfig
from docvault.engine.context import get_execution_id
from docvault.engine.logging import log, log_command_event

logger = logging.getLogger("docvault.documents.commands")

COMMANDS: List[CommandInfo] = [
    CommandInfo(
        name="P", display_name="Picture!", tooltip="Convert into picture",
        icon_hint="hint", return_type=ReturnType.URL,
    ),
    CommandInfo(
        name="T", display_name="Text!", tooltip="Convert into text",
        icon_hint="", return_type=ReturnType.MESSAGE,
    ),
    CommandInfo(
        name="S", display_name="Show!", tooltip="Show Contact",
        icon_hint=None, return_type=ReturnType.DEEP_LINK,
    ),
]


class CommandDispatcher:
    """Maps command names to typed ReturnInfo results."""

    def __init__(self, config: RepositoryConfig, commands: Optional[CommandsConfig] = None):
        self._config = config
        self._commands = commands or CommandsConfig()

    @property
    def enabled(self) -> bool:
        return self._config.commands_enabled

    def list_commands(self, info: Optional[DocumentInfo] = None) -> List[CommandInfo]:
        if not self.enabled:
            return []
        return [c.model_copy() for c in COMMANDS]

    def execute(
        self,
        info: DocumentInfo,
        command: str,
        actor: Optional[str] = None,
    ) -> ReturnInfo:
        if not self.enabled:
            return ReturnInfo.failure("Commands not supported")

        if command == "P":
            url = self._commands.picture_search_url.format(query=quote_plus(info.header))
            result = ReturnInfo(success=True, type=ReturnType.URL, value=url)
        elif command == "T":
            result = ReturnInfo(
                success=True,
                type=ReturnType.MESSAGE,
                value=f"You ran Text! command on '{info.header}'.",
            )
        elif command == "S":
            link = f"{self._commands.deep_link_scheme}:contact.main?contact_id={info.contact_id}"
            result = ReturnInfo(success=True, type=ReturnType.DEEP_LINK, value=link)
        else:
            logger.warning(f"Unknown document command '{command}'")
            result = ReturnInfo.failure()

        log(log_command_event(
            command, info.external_reference, actor, result.success,
            return_type=result.type.value, execution_id=get_execution_id(),
        ))
        return result
