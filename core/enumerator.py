import fnmatch
import logging
import os
from typing import Iterable, Iterator

from core.models import CancelToken

log = logging.getLogger(__name__)

# Used when the caller gives no filter patterns
DEFAULT_FILTER = "*"

def normalize_filters(filters: Iterable[str] | None) -> list[str]:
    cleaned = [f.strip() for f in (filters or []) if f and f.strip()]
    if not cleaned:
        return [DEFAULT_FILTER]

    return [f.casefold() for f in cleaned]

def name_matches(filename: str, filters: list[str]) -> bool:
    name = filename.casefold()
    return any(fnmatch.fnmatchcase(name, pattern) for pattern in filters)

def _list_directory(directory: str) -> tuple[list[str], list[str]]:
    files: list[str] = []
    subdirs: list[str] = []

    with os.scandir(directory) as entries:
        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    subdirs.append(entry.path)
                elif entry.is_file():
                    files.append(entry.path)
            except OSError as e:
                log.debug("Skipping %s: %s", entry.path, e)

    files.sort()
    subdirs.sort()
    return files, subdirs

def iter_files(
    roots: Iterable[str],
    filters: Iterable[str] | None = None,
    *,
    recursive: bool = False,
    cancel_token: CancelToken | None = None
) -> Iterator[str]:
    """
    Yield absolute paths of files under `roots` whose names match any of
    `filters`, without duplicates.

    Missing roots and directories that cannot be listed are skipped.
    Directories are visited with an explicit stack; symlinked directories
    are not descended into.
    """
    patterns = normalize_filters(filters)
    seen: set[str] = set()

    for root in roots:
        if not root or not os.path.isdir(root):
            log.debug("Skipping missing root: %r", root)
            continue

        stack = [os.path.abspath(root)]
        while stack:
            if cancel_token is not None and cancel_token.canceled:
                return

            directory = stack.pop()
            try:
                files, subdirs = _list_directory(directory)
            except OSError as e:
                # PermissionError and friends: keep going with siblings
                log.debug("Cannot list %s: %s", directory, e)
                continue

            for path in files:
                if path in seen or not name_matches(os.path.basename(path), patterns):
                    continue
                seen.add(path)
                yield path

            if recursive:
                # Reversed so that subdirectories pop in name order
                stack.extend(reversed(subdirs))

def enumerate_files(
    roots: Iterable[str],
    filters: Iterable[str] | None = None,
    *,
    recursive: bool = False,
    cancel_token: CancelToken | None = None
) -> list[str]:
    return list(iter_files(roots, filters, recursive=recursive, cancel_token=cancel_token))
