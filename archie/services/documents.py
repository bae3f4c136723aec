"""
Document source for the retrieval node.

Reads the plain-text design documents in one directory (non-recursive) and
keys them by file name. A missing directory or an unreadable file is logged
and skipped; retrieval never aborts a thread.
"""
import logging
from pathlib import Path
from typing import Dict, Iterable

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = (".txt", ".md")


def read_documents(
    directory: str | Path,
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
) -> Dict[str, str]:
    """
    Read matching files from ``directory``.

    Args:
        directory: Folder containing the input documents
        extensions: File suffixes to include (case-sensitive, with dot)

    Returns:
        {file name: UTF-8 text}, in sorted file-name order
    """
    root = Path(directory)
    suffixes = tuple(extensions)
    documents: Dict[str, str] = {}

    try:
        entries = sorted(p for p in root.iterdir() if p.is_file() and p.name.endswith(suffixes))
    except OSError as e:
        logger.warning(f"Cannot read input directory {root}: {e}. Returning no documents.")
        return documents

    if not entries:
        logger.warning(f"No {'/'.join(suffixes)} files found in {root}")

    for path in entries:
        try:
            documents[path.name] = path.read_text(encoding="utf-8")
            logger.debug(f"Read {path.name} ({len(documents[path.name])} chars)")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Error reading {path}: {e}. Skipping file.")

    return documents


class DocumentSource:
    """Injectable wrapper so nodes can be tested without touching the filesystem."""

    def __init__(self, extensions: Iterable[str] = DEFAULT_EXTENSIONS):
        self.extensions = tuple(extensions)

    def read(self, directory: str | Path) -> Dict[str, str]:
        return read_documents(directory, self.extensions)
