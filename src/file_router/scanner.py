"""
Source folder scanner.

Lists the files directly inside the source folder. Subfolders are not
descended into.
"""

import logging
import os
from pathlib import Path
from typing import List, Union

logger = logging.getLogger(__name__)


def scan_files(source_root: Union[str, Path]) -> List[str]:
    """
    List regular files directly under source_root.

    Symlinks to files are listed; broken links and links to folders are not.

    Uses os.scandir for efficient directory listing. Entries that cannot be
    inspected are logged and skipped.

    Args:
        source_root: The folder to list

    Returns:
        Full paths of the files, sorted by name

    Raises:
        FileNotFoundError: If source_root doesn't exist
        NotADirectoryError: If source_root is not a directory
    """
    root_path = Path(source_root)

    if not root_path.exists():
        raise FileNotFoundError(f"Source folder not found: {root_path}")

    if not root_path.is_dir():
        raise NotADirectoryError(f"Source folder is not a directory: {root_path}")

    files: List[str] = []
    with os.scandir(root_path) as entries:
        for entry in entries:
            try:
                if entry.is_file():
                    files.append(entry.path)
            except OSError as e:
                logger.warning(f"Cannot inspect {entry.path}: {e}")

    files.sort(key=lambda p: os.path.basename(p).lower())
    logger.info(f"Found {len(files)} files in {root_path}")
    return files
