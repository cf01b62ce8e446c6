"""Markdown exporter: unique note titles and note persistence into the vault."""

import logging
import threading
from typing import Any, Dict, Iterable, Optional, Set

from models import ConversionContext, Document, PendingWrite, TitlePolicy, WriteOutcome


class TitleDeduplicator:
    """
    Assigns on-disk note names under one of two policies.

    `append_id` suffixes the document id and needs no lookup. `deduplicate`
    tries `A`, `A_1`, `A_2`, ... until neither the vault nor an earlier
    reservation of this run holds the name.
    """

    def __init__(self, vault, policy: TitlePolicy = TitlePolicy.APPEND_ID, logger: Optional[logging.Logger] = None):
        self.vault = vault
        self.policy = policy
        self.logger = logger or logging.getLogger('notion_obsidian_migrator.exporters.titles')
        self._reserved: Set[str] = set()
        self._lock = threading.Lock()

    def reserve(self, directory: str, title: str, document_id: str) -> str:
        """
        Reserve a unique note name in a directory.

        Args:
            directory: Vault-relative directory of the note
            title: Sanitized proposed title
            document_id: Id of the document the note belongs to

        Returns:
            Note name without the .md extension
        """
        directory = directory.strip('/')

        if self.policy == TitlePolicy.APPEND_ID:
            stem = f"{title}_{document_id}"
            with self._lock:
                self._reserved.add(self._note_path(directory, stem))
            return stem

        with self._lock:
            stem = title
            counter = 1
            while self._taken(directory, stem):
                stem = f"{title}_{counter}"
                counter += 1
            self._reserved.add(self._note_path(directory, stem))

        if stem != title:
            self.logger.debug(f"Title '{title}' already taken in '{directory}' - using '{stem}'")
        return stem

    def _taken(self, directory: str, stem: str) -> bool:
        path = self._note_path(directory, stem)
        return path in self._reserved or self.vault.exists(path)

    @staticmethod
    def _note_path(directory: str, stem: str) -> str:
        return f"{directory}/{stem}.md" if directory else f"{stem}.md"


class MarkdownExporter:
    """
    Writes converted documents into the destination directory.

    This exporter:
    1. Writes the child-page notes a conversion queued, in order
    2. Picks a unique note name through the TitleDeduplicator
    3. Overwrites or creates the note file

    A failed child write is logged; the parent is still written.
    """

    def __init__(
        self,
        vault,
        destination_directory: str,
        title_deduplicator: TitleDeduplicator,
        converter=None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the markdown exporter.

        Args:
            vault: Vault store
            destination_directory: Vault-relative directory for top-level notes
            title_deduplicator: Unique-name allocator
            converter: DocumentConverter used by export_document()
            logger: Logger instance
        """
        self.vault = vault
        self.destination_directory = destination_directory.strip('/')
        self.title_deduplicator = title_deduplicator
        self.converter = converter
        self.logger = logger or logging.getLogger('notion_obsidian_migrator.exporters.markdown_exporter')

        self.stats = {
            'notes_written': 0,
            'child_notes_written': 0,
            'child_notes_failed': 0,
        }
        self._stats_lock = threading.Lock()

    def export_document(self, document: Document, context: ConversionContext) -> WriteOutcome:
        """
        Convert a document and persist it with its child pages.

        The caller checks the cancellation flag before calling this; once
        started, the document runs to completion.

        Raises:
            RelationResolutionError: If the header cannot be built
            requests.RequestException: If fetching body content fails
        """
        if self.converter is None:
            raise ValueError("MarkdownExporter needs a converter to export documents")

        converted = self.converter.convert(document, context)
        return self.finalize(document, converted.title, converted.content, converted.pending_writes)

    def finalize(
        self,
        document: Document,
        proposed_title: str,
        content: str,
        pending_writes: Iterable[PendingWrite] = ()
    ) -> WriteOutcome:
        """
        Write pending child notes, then the document's own note.

        Args:
            document: Document being written
            proposed_title: Sanitized title before deduplication
            content: Full note text (header and body)
            pending_writes: Child notes queued during conversion

        Returns:
            WriteOutcome for the document's note
        """
        child_paths = []
        for pending in pending_writes:
            if self._write_child(pending):
                child_paths.append(pending.relative_path)

        stem = self.title_deduplicator.reserve(self.destination_directory, proposed_title, document.id)
        relative_path = f"{self.destination_directory}/{stem}.md" if self.destination_directory else f"{stem}.md"

        self.vault.write_text(relative_path, content)
        with self._stats_lock:
            self.stats['notes_written'] += 1
        self.logger.info(f"Wrote note {relative_path}")

        return WriteOutcome(
            document_id=document.id,
            title=stem,
            relative_path=relative_path,
            child_paths=child_paths,
        )

    def _write_child(self, pending: PendingWrite) -> bool:
        try:
            self.vault.write_text(pending.relative_path, pending.content)
        except OSError as e:
            self.logger.error(f"Failed to write child note {pending.relative_path}: {e}")
            with self._stats_lock:
                self.stats['child_notes_failed'] += 1
            return False

        with self._stats_lock:
            self.stats['child_notes_written'] += 1
        self.logger.debug(f"Wrote child note {pending.relative_path}")
        return True

    def get_stats(self) -> Dict[str, Any]:
        with self._stats_lock:
            return self.stats.copy()


__all__ = ['MarkdownExporter', 'TitleDeduplicator']
