"""Local vault store: vault-relative file access for notes and attachments."""

import logging
from pathlib import Path
from typing import Union

logger = logging.getLogger('notion_obsidian_migrator.exporters.vault')


class LocalVault:
    """Reads and writes files under a vault root directory.

    All paths are vault-relative with '/' separators. Writes create missing
    parent directories and overwrite existing files.
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).expanduser()

    def path(self, relative_path: str) -> Path:
        return self.root / relative_path.strip('/')

    def exists(self, relative_path: str) -> bool:
        return self.path(relative_path).exists()

    def is_dir(self, relative_path: str) -> bool:
        return self.path(relative_path).is_dir()

    def write_bytes(self, relative_path: str, content: bytes) -> Path:
        target = self.path(relative_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        logger.debug(f"Wrote {len(content)} bytes to {target}")
        return target

    def write_text(self, relative_path: str, content: str) -> Path:
        target = self.path(relative_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding='utf-8')
        logger.debug(f"Wrote {target}")
        return target

    def __repr__(self) -> str:
        return f"LocalVault({str(self.root)!r})"


__all__ = ['LocalVault']
