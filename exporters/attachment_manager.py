"""Attachment manager for downloading, deduplicating, and saving attachments."""

import hashlib
import logging
import mimetypes
import threading
from pathlib import PurePosixPath
from typing import Any, Dict, Optional, Set
from urllib.parse import unquote, urlparse

from models import AttachmentReference, ConversionContext
from converters.rich_text import sanitize_title


class AttachmentManager:
    """
    Materializes remote files as local attachments inside the vault.

    This manager:
    1. Derives a collision-resistant filename from the owning document
    2. Sniffs the extension from the URL path (default image extension otherwise)
    3. Downloads the file through the downloader
    4. Deduplicates by content hash
    5. Returns an embed token naming only the basename

    A failed download is logged and yields None; it is never retried here.
    """

    def __init__(
        self,
        vault,
        downloader,
        attachment_directory: str = 'attachments',
        default_extension: str = 'png',
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the attachment manager.

        Args:
            vault: Vault store receiving the attachment files
            downloader: Object providing download_file(url) -> bytes
            attachment_directory: Vault-relative attachment directory
            default_extension: Extension used when the URL has no known one
            logger: Logger instance
        """
        self.vault = vault
        self.downloader = downloader
        self.attachment_directory = attachment_directory.strip('/')
        self.default_extension = default_extension.lstrip('.') or 'png'
        self.logger = logger or logging.getLogger('notion_obsidian_migrator.exporters.attachment_manager')

        # Initialize cache for deduplication
        self.file_hash_cache: Dict[str, str] = {}  # {hash: relative path}
        self._reserved_paths: Set[str] = set()
        self._anonymous_counter = 0
        self._lock = threading.Lock()

        # Initialize statistics
        self.stats = {
            'total_attachments': 0,
            'downloaded': 0,
            'failed': 0,
            'deduplicated': 0,
            'total_size_bytes': 0
        }

    @classmethod
    def from_config(cls, config: Dict[str, Any], vault, downloader, logger=None) -> 'AttachmentManager':
        export_config = config.get('export', {})
        return cls(
            vault,
            downloader,
            attachment_directory=export_config.get('attachment_directory', 'attachments'),
            default_extension=export_config.get('default_attachment_extension', 'png'),
            logger=logger,
        )

    def materialize(
        self,
        source_url: str,
        destination_dir: Optional[str] = None,
        context: Optional[ConversionContext] = None
    ) -> Optional[str]:
        """
        Download a file into the vault and return its embed token.

        Args:
            source_url: Remote file URL
            destination_dir: Vault-relative directory (attachment directory by default)
            context: Conversion context of the owning document (naming sequence)

        Returns:
            `![[basename]]`, or None if the download failed
        """
        directory = (destination_dir or self.attachment_directory).strip('/')
        reference = self._plan(source_url, directory, context)

        with self._lock:
            self.stats['total_attachments'] += 1

        try:
            content = self.downloader.download_file(source_url)
        except Exception as e:
            self.logger.warning(f"Failed to download attachment {source_url}: {e}")
            with self._lock:
                self.stats['failed'] += 1
                self._reserved_paths.discard(reference.destination_path)
            return None

        saved_path = self._deduplicate_and_save(reference, content)
        self.logger.debug(f"Saved attachment {source_url} -> {saved_path}")
        return f"![[{PurePosixPath(saved_path).name}]]"

    def sniff_extension(self, source_url: str) -> str:
        """Return the URL path's extension if it is a known file type, else the default."""
        suffix = PurePosixPath(unquote(urlparse(source_url).path)).suffix.lower()
        if suffix and mimetypes.guess_type(f"file{suffix}")[0] is not None:
            return suffix.lstrip('.')
        return self.default_extension

    def _plan(self, source_url: str, directory: str, context: Optional[ConversionContext]) -> AttachmentReference:
        """Pick a destination path that no other attachment of this run uses."""
        extension = self.sniff_extension(source_url)

        with self._lock:
            if context is not None:
                sequence = context.next_attachment_number()
                short_id = context.document_id.replace('-', '')[:8]
                stem = f"{sanitize_title(context.document_title)}_{short_id}_{sequence}"
            else:
                self._anonymous_counter += 1
                stem = f"attachment_{self._anonymous_counter}"

            destination_path = f"{directory}/{stem}.{extension}"
            counter = 1
            while destination_path in self._reserved_paths:
                destination_path = f"{directory}/{stem}_{counter}.{extension}"
                counter += 1
            self._reserved_paths.add(destination_path)

        return AttachmentReference(
            source_url=source_url,
            extension=extension,
            destination_path=destination_path,
        )

    def _deduplicate_and_save(self, reference: AttachmentReference, content: bytes) -> str:
        """
        Save attachment with deduplication based on content hash.

        Args:
            reference: Planned attachment
            content: Binary content

        Returns:
            Vault-relative path of the saved (or reused) file
        """
        content_hash = hashlib.sha256(content).hexdigest()

        with self._lock:
            existing = self.file_hash_cache.get(content_hash)
            if existing is not None:
                self.stats['deduplicated'] += 1
                self._reserved_paths.discard(reference.destination_path)
                self.logger.debug(f"Duplicate attachment {reference.source_url} -> {existing}")
                return existing

            self.vault.write_bytes(reference.destination_path, content)
            self.file_hash_cache[content_hash] = reference.destination_path
            self.stats['downloaded'] += 1
            self.stats['total_size_bytes'] += len(content)

        return reference.destination_path

    def get_stats(self) -> Dict[str, int]:
        """Get attachment processing statistics."""
        with self._lock:
            return self.stats.copy()


__all__ = ['AttachmentManager']
