"""
DocVault CLI - Operate a document repository from the shell.

Commands:
- docvault init          - Create the Documents/ and Templates/ directories
- docvault save          - Save a file as a document's current content
- docvault load          - Write a document (or one version) to stdout/file
- docvault checkout      - Check a document out to the current user
- docvault checkin       - Check in: snapshot a new version, release the lock
- docvault undo          - Discard edits and release the lock
- docvault state         - Show checkout state
- docvault versions      - List checked-in versions
- docvault delete        - Delete a document with all its versions
- docvault capabilities  - Show the capability map
- docvault languages     - List a template's language variants
- docvault audit         - Show recent audit log entries
"""

from __future__ import annotations

import argparse
import getpass
import logging
import shutil
import sys
from typing import Optional

from docvault.documents.models import DocumentInfo, ReturnInfo, TemplateInfo
from docvault.engine.config import load_config
from docvault.engine.context import ExecutionContext, set_execution_context
from docvault.engine.errors import DocVaultError
from docvault.engine.logging import OBJECT_TYPE_CATEGORIES, get_file_logger, init_logging

logger = logging.getLogger("docvault.cli")


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="docvault",
        description="DocVault: filesystem document repository",
    )
    parser.add_argument(
        "--config", default=None, help="Path to docvault.yaml (default: auto-discover)"
    )
    parser.add_argument(
        "--user", default=None, help="Acting identity for locks (default: login name)"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("init", help="Create repository directories")

    save_parser = subparsers.add_parser("save", help="Save content into a document")
    save_parser.add_argument("ref", help="Document external reference (e.g., report.docx)")
    save_parser.add_argument("source", help="File to read, or '-' for stdin")

    load_parser = subparsers.add_parser("load", help="Read a document's content")
    load_parser.add_argument("ref", help="Document external reference")
    load_parser.add_argument("--version", dest="version_id", help="Version number to read")
    load_parser.add_argument("--output", "-o", help="Write to this file instead of stdout")

    for name, help_text in (
        ("checkout", "Check a document out"),
        ("undo", "Undo a checkout"),
        ("state", "Show checkout state"),
        ("versions", "List versions"),
        ("delete", "Delete a document"),
    ):
        p = subparsers.add_parser(name, help=help_text)
        p.add_argument("ref", help="Document external reference")

    checkin_parser = subparsers.add_parser("checkin", help="Check a document in")
    checkin_parser.add_argument("ref", help="Document external reference")
    checkin_parser.add_argument("--message", "-m", help="Version description")

    subparsers.add_parser("capabilities", help="Show capability map")

    lang_parser = subparsers.add_parser("languages", help="List template languages")
    lang_parser.add_argument("ref", help="Template external reference")

    audit_parser = subparsers.add_parser("audit", help="Show recent audit log entries")
    audit_parser.add_argument("object_type", choices=sorted(OBJECT_TYPE_CATEGORIES))
    audit_parser.add_argument("--category", default="execution", help="execution or security")
    audit_parser.add_argument("--ref", help="Only entries for this external reference")
    audit_parser.add_argument("--days", type=int, default=7, help="Daily files to read")
    audit_parser.add_argument("--limit", type=int, default=50, help="Newest entries to show")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        plugin = _build_plugin(args)
        handler = COMMANDS[args.command]
        return handler(plugin, args)
    except DocVaultError as e:
        print(f"[ERROR] {e.message}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1


def _build_plugin(args: argparse.Namespace):
    from docvault.plugin import DocumentPlugin

    config = load_config(args.config)
    logger.debug(f"Loaded {config.name} configuration ({config.environment})")
    if config.logging.enabled:
        init_logging(config.logging.directory, config.logging.level)
    else:
        logging.getLogger("docvault").setLevel(config.logging.level)

    user = args.user or getpass.getuser()
    set_execution_context(ExecutionContext(associate=user))
    return DocumentPlugin(config.repository, config.commands)


def _report(result: ReturnInfo, success_text: str) -> int:
    if result.success:
        print(f"[OK] {success_text}")
        return 0
    print(f"[FAILED] {result.value or 'operation refused'}")
    return 1


def cmd_init(plugin, args: argparse.Namespace) -> int:
    print(f"[OK] Repository ready at {plugin.config.root_path}")
    return 0


def cmd_save(plugin, args: argparse.Namespace) -> int:
    doc = DocumentInfo(external_reference=args.ref)
    if args.source == "-":
        result = plugin.save_document_from_stream(doc, sys.stdin.buffer)
    else:
        with open(args.source, "rb") as f:
            result = plugin.save_document_from_stream(doc, f)
    return _report(result, f"Saved {args.ref}")


def cmd_load(plugin, args: argparse.Namespace) -> int:
    doc = DocumentInfo(external_reference=args.ref)
    with plugin.load_document_stream(doc, args.version_id) as src:
        if args.output:
            with open(args.output, "wb") as dst:
                shutil.copyfileobj(src, dst)
        else:
            shutil.copyfileobj(src, sys.stdout.buffer)
            sys.stdout.flush()
    return 0


def cmd_checkout(plugin, args: argparse.Namespace) -> int:
    result = plugin.checkout_document(DocumentInfo(external_reference=args.ref))
    return _report(result, f"Checked out {args.ref}")


def cmd_checkin(plugin, args: argparse.Namespace) -> int:
    result = plugin.checkin_document(DocumentInfo(external_reference=args.ref), args.message)
    return _report(result, f"Checked in {args.ref}")


def cmd_undo(plugin, args: argparse.Namespace) -> int:
    result = plugin.undo_checkout_document(DocumentInfo(external_reference=args.ref))
    return _report(result, f"Reverted {args.ref}")


def cmd_state(plugin, args: argparse.Namespace) -> int:
    info = plugin.get_checkout_state(DocumentInfo(external_reference=args.ref))
    suffix = f" ({info.name})" if info.name else ""
    print(f"{args.ref}: {info.state.value}{suffix}")
    return 0


def cmd_versions(plugin, args: argparse.Namespace) -> int:
    versions = plugin.get_version_list(DocumentInfo(external_reference=args.ref))
    if not versions:
        print(f"No versions for {args.ref}")
        return 0
    for v in sorted(versions, key=lambda v: int(v.version_id)):
        print(f"  v{v.version_id:<4} {v.checked_in_date.isoformat()}")
    return 0


def cmd_delete(plugin, args: argparse.Namespace) -> int:
    result = plugin.delete_document(DocumentInfo(external_reference=args.ref))
    return _report(result, f"Deleted {args.ref}")


def cmd_capabilities(plugin, args: argparse.Namespace) -> int:
    for key, value in plugin.get_plugin_capabilities().items():
        print(f"  {key:<28} {value}")
    return 0


def cmd_languages(plugin, args: argparse.Namespace) -> int:
    languages = plugin.get_document_template_languages(TemplateInfo(external_reference=args.ref))
    for code in languages:
        print(code)
    return 0


def cmd_audit(plugin, args: argparse.Namespace) -> int:
    file_logger = get_file_logger()
    if file_logger is None:
        print("[FAILED] Audit log is disabled (set logging.enabled in docvault.yaml)")
        return 1
    if args.category not in OBJECT_TYPE_CATEGORIES[args.object_type]:
        print(f"[FAILED] No '{args.category}' log for {args.object_type}")
        return 1

    filters = {"object_ref": args.ref} if args.ref else None
    entries = file_logger.query(
        args.object_type, args.category, days=args.days, filters=filters, limit=args.limit
    )
    if not entries:
        print(f"No {args.object_type}/{args.category} entries")
        return 0
    for entry in entries:
        print(
            f"  {entry.get('timestamp', '')}  {entry.get('event', ''):<28} "
            f"{entry.get('object_ref', '')}  {entry.get('actor', '')}"
        )
    return 0


COMMANDS = {
    "init": cmd_init,
    "save": cmd_save,
    "load": cmd_load,
    "checkout": cmd_checkout,
    "checkin": cmd_checkin,
    "undo": cmd_undo,
    "state": cmd_state,
    "versions": cmd_versions,
    "delete": cmd_delete,
    "capabilities": cmd_capabilities,
    "languages": cmd_languages,
    "audit": cmd_audit,
}


if __name__ == "__main__":
    sys.exit(main())
