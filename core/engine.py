import codecs
import logging
import os
import re
import shutil
import tempfile
from typing import Callable, Iterable

from core.models import (CancelToken, MatchRecord, ProgressEvent, SearchMode, SearchOptions,
                         SearchResult, SearchStatus)
from core import enumerator, matcher, scanner

log = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressEvent], None]

PREPARING_SEARCH = "Preparing search..."
SEARCHING_IN = "Searching in: {name}"
SEARCH_COMPLETED = "Search completed. Found {matches} matches in {files} files."
SEARCH_CANCELED = "Search canceled. Found {matches} matches in {files} of {total} files."
PREPARING_REPLACE = "Preparing replacement..."
REPLACING_IN = "Replacing in: {name}"
REPLACE_COMPLETED = "Replacement completed. Modified {files} files."
REPLACE_CANCELED = "Replacement canceled. Modified {files} files."


class InvalidSearchError(ValueError):
    """Raised before any work starts when a search or replace request is unusable."""


# Split a comma-separated UI field ("C:\\src, D:\\docs") into its non-empty entries
def split_list_field(text: str) -> list[str]:
    return [part.strip() for part in text.split(",") if part.strip()]

def validate_search_request(query: str, roots: Iterable[str]) -> list[str]:
    if not query:
        raise InvalidSearchError("Search text is empty")
    if isinstance(roots, str):
        raise InvalidSearchError("Roots must be a sequence of directories; split a text field with split_list_field()")

    cleaned_roots = [root.strip() for root in roots if root and root.strip()]
    if not cleaned_roots:
        raise InvalidSearchError("No directories to search")

    return cleaned_roots

def validate_replace_request(query: str, replacement: str | None) -> None:
    if not query:
        raise InvalidSearchError("Search text is empty")
    if replacement is None:
        raise InvalidSearchError("Replacement text is missing")

def _report(on_progress: ProgressCallback | None, event: ProgressEvent) -> None:
    if on_progress is not None:
        on_progress(event)

def _is_canceled(cancel_token: CancelToken | None) -> bool:
    return cancel_token is not None and cancel_token.canceled

# ------------------------------------------------------------
# Search
# ------------------------------------------------------------
def search_files(
    query: str,
    *,
    roots: Iterable[str],
    filters: Iterable[str] | None = None,
    recursive: bool = False,
    options: SearchOptions = SearchOptions(),
    on_progress: ProgressCallback | None = None,
    cancel_token: CancelToken | None = None
) -> SearchResult:
    """
    Search every file under `roots` matching `filters` for `query`.

    Progress is reported once before scanning, after every file, and once
    at the end. `cancel_token` is checked between files; a canceled search
    returns the matches collected so far with status CANCELED.

    Raises:
        InvalidSearchError if the query is empty or no roots are given
    """
    roots = validate_search_request(query, roots)

    candidates = enumerator.enumerate_files(roots, filters, recursive=recursive,
                                            cancel_token=cancel_token)
    total = len(candidates)
    result = SearchResult(files_total=total)
    log.debug("Search %r over %d candidate files", query, total)

    if _is_canceled(cancel_token):
        return _finish_canceled_search(result, on_progress)

    _report(on_progress, ProgressEvent(PREPARING_SEARCH, 0, total, PREPARING_SEARCH))

    line_matcher = matcher.compile_query(query, options)

    for index, path in enumerate(candidates, start=1):
        if _is_canceled(cancel_token):
            return _finish_canceled_search(result, on_progress)

        result.matches.extend(scanner.scan_file(path, query, options, line_matcher=line_matcher))
        result.files_scanned = index

        name = os.path.basename(path)
        _report(on_progress, ProgressEvent(name, index, total, SEARCHING_IN.format(name=name)))

    message = SEARCH_COMPLETED.format(matches=len(result.matches), files=result.files_scanned)
    log.info(message)
    _report(on_progress, ProgressEvent("Search completed", total, total, message))

    return result

def _finish_canceled_search(result: SearchResult, on_progress: ProgressCallback | None) -> SearchResult:
    result.status = SearchStatus.CANCELED
    message = SEARCH_CANCELED.format(matches=len(result.matches), files=result.files_scanned,
                                     total=result.files_total)
    log.info(message)
    _report(on_progress, ProgressEvent("Search canceled", result.files_scanned, result.files_total, message))

    return result

# ------------------------------------------------------------
# Replace
# ------------------------------------------------------------
def group_by_path(matches: Iterable[MatchRecord]) -> dict[str, list[MatchRecord]]:
    groups: dict[str, list[MatchRecord]] = {}

    for record in matches:
        groups.setdefault(record.path, []).append(record)

    return groups

def build_substitution(
    query: str,
    replacement: str,
    options: SearchOptions
) -> tuple[re.Pattern, str | Callable[[re.Match], str]]:
    """
    Return (pattern, repl) for re.sub that applies `options` to whole-file content.

    REGEX mode uses `replacement` as an `re` template (\\1, \\g<name>).
    Other modes, and REGEX mode with an invalid pattern, replace literally;
    EXTENDED mode expands escapes in both strings first.
    """
    if options.mode is SearchMode.REGEX:
        # Search tests one line at a time, so ^ and $ must anchor at every line here too
        compiled_re = matcher.compile_regex(query, case_sensitive=options.case_sensitive,
                                            flags=re.MULTILINE)
        if compiled_re is not None:
            return compiled_re, replacement

    pattern = matcher.build_pattern(query, options)
    if pattern is None:
        flags = 0 if options.case_sensitive else re.IGNORECASE
        pattern = re.compile(re.escape(matcher.literal_text(query, options)), flags)

    literal_replacement = replacement
    if options.mode is SearchMode.EXTENDED:
        literal_replacement = matcher.expand_escapes(replacement)

    return pattern, lambda m: literal_replacement

def _read_text(path: str) -> tuple[str, bool]:
    with open(path, "rb") as file:
        data = file.read()

    has_bom = data.startswith(codecs.BOM_UTF8)
    if has_bom:
        data = data[len(codecs.BOM_UTF8):]

    return data.decode("utf-8"), has_bom

def _write_text_atomic(path: str, content: str, *, has_bom: bool) -> None:
    data = content.encode("utf-8")
    if has_bom:
        data = codecs.BOM_UTF8 + data

    # Rewrite the link target, not the link
    path = os.path.realpath(path)
    directory = os.path.dirname(path)
    fd, temp_path = tempfile.mkstemp(prefix=".findgrep-", dir=directory)
    try:
        with os.fdopen(fd, "wb") as file:
            file.write(data)
        shutil.copymode(path, temp_path)
        os.replace(temp_path, path)
    except BaseException:
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise

def _replace_in_file(path: str, records: list[MatchRecord],
                     pattern: re.Pattern, repl) -> bool:
    try:
        current_mtime = os.path.getmtime(path)
        if any(r.mtime != current_mtime for r in records):
            log.info("%s changed since it was searched; replacing in its current content", path)

        content, has_bom = _read_text(path)
        new_content, occurrences = pattern.subn(repl, content)

        if occurrences == 0 or new_content == content:
            log.debug("Nothing to replace in %s", path)
            return False

        _write_text_atomic(path, new_content, has_bom=has_bom)
    except (OSError, UnicodeDecodeError, re.error) as e:
        log.warning("Skipping %s: %s", path, e)
        return False

    log.debug("Replaced %d occurrences in %s", occurrences, path)
    return True

def replace_in_files(
    query: str,
    replacement: str,
    *,
    matches: Iterable[MatchRecord],
    options: SearchOptions = SearchOptions(),
    on_progress: ProgressCallback | None = None,
    cancel_token: CancelToken | None = None
) -> int:
    """
    Rewrite each file referenced by `matches` once, replacing `query` with
    `replacement` in its full current content.

    Returns the number of files that were modified. Files that cannot be
    read or written, or whose content would not change, are skipped.

    Raises:
        InvalidSearchError if the query is empty or the replacement is None
    """
    validate_replace_request(query, replacement)

    groups = group_by_path(matches)
    total = len(groups)
    _report(on_progress, ProgressEvent(PREPARING_REPLACE, 0, total, PREPARING_REPLACE))

    pattern, repl = build_substitution(query, replacement, options)
    modified = 0

    for index, (path, records) in enumerate(groups.items(), start=1):
        if _is_canceled(cancel_token):
            message = REPLACE_CANCELED.format(files=modified)
            log.info(message)
            _report(on_progress, ProgressEvent("Replacement canceled", index - 1, total, message))
            return modified

        if _replace_in_file(path, records, pattern, repl):
            modified += 1

        name = os.path.basename(path)
        _report(on_progress, ProgressEvent(name, index, total, REPLACING_IN.format(name=name)))

    message = REPLACE_COMPLETED.format(files=modified)
    log.info(message)
    _report(on_progress, ProgressEvent("Replacement completed", total, total, message))

    return modified
