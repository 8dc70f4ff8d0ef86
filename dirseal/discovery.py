"""
File Discovery Module

Finds the candidate files under a root directory for an encrypt or
decrypt run.
"""

import logging
import os
import stat
import sys
from typing import Iterable, Iterator, List, Set

from .pipeline import Mode

logger = logging.getLogger(__name__)


def self_paths() -> Set[str]:
    """
    Resolved paths of the running program.

    Covers the script or console-script wrapper in ``sys.argv[0]`` and,
    for frozen builds, the executable itself.
    """
    paths = set()
    if sys.argv and sys.argv[0]:
        candidate = os.path.abspath(sys.argv[0])
        if os.path.isfile(candidate):
            paths.add(os.path.realpath(candidate))
    if getattr(sys, 'frozen', False):
        paths.add(os.path.realpath(sys.executable))
    return paths


def is_candidate(path: str, mode: Mode, marker_extension: str) -> bool:
    """Apply the suffix rule for the given mode to a file name."""
    has_marker = os.path.basename(path).endswith(marker_extension)
    if mode is Mode.ENCRYPT:
        return not has_marker
    return has_marker


def find_candidates(
    root: str,
    mode: Mode,
    marker_extension: str = ".enc",
    exclude_paths: Iterable[str] = ()
) -> Iterator[str]:
    """
    Walk ``root`` and yield the regular files the run should process.

    Directories and files are visited in lexical order. Symbolic links
    are neither followed nor yielded.

    Args:
        root: Directory to scan
        mode: Encrypt or decrypt
        marker_extension: Suffix that marks encrypted files
        exclude_paths: Paths never to yield (compared after resolving)

    Yields:
        Candidate file paths
    """
    excluded = {os.path.realpath(p) for p in exclude_paths}

    def on_error(error: OSError) -> None:
        logger.warning("Error accessing path %s: %s", error.filename, error.strerror)

    for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
        dirnames.sort()
        for filename in sorted(filenames):
            path = os.path.join(dirpath, filename)
            try:
                st = os.lstat(path)
            except OSError as e:
                logger.warning("Error accessing path %s: %s", path, e)
                continue

            if not stat.S_ISREG(st.st_mode):
                logger.debug("Skipping non-regular file %s", path)
                continue
            if os.path.realpath(path) in excluded:
                logger.debug("Skipping excluded path %s", path)
                continue
            if is_candidate(path, mode, marker_extension):
                yield path


def list_candidates(
    root: str,
    mode: Mode,
    marker_extension: str = ".enc",
    exclude_paths: Iterable[str] = ()
) -> List[str]:
    """Collect :func:`find_candidates` into a list before any file changes."""
    return list(find_candidates(root, mode, marker_extension, exclude_paths))
