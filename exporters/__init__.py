"""Export package writing converted Notion documents into an Obsidian vault.

Package Structure:
- vault: LocalVault, vault-relative file access
- attachment_manager: Downloads, deduplicates, and saves attachments
- markdown_exporter: Unique note naming and note persistence

Configuration Referenced:
- export.vault_path: Root of the vault
- export.destination_directory: Directory for top-level notes
- export.attachment_directory: Directory for downloaded files
- export.title_policy: append_id or deduplicate
"""

from .attachment_manager import AttachmentManager
from .markdown_exporter import MarkdownExporter, TitleDeduplicator
from .vault import LocalVault

__all__ = [
    'AttachmentManager',
    'LocalVault',
    'MarkdownExporter',
    'TitleDeduplicator',
]
