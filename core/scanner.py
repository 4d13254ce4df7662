import logging
import os
from typing import Callable

from core.models import MatchRecord, SearchOptions
from core import matcher

log = logging.getLogger(__name__)

# Files are read as UTF-8; a leading BOM is dropped and undecodable bytes become U+FFFD.
TEXT_ENCODING = "utf-8-sig"

def _strip_line_terminator(line: str) -> str:
    # Universal newlines already turned \r\n and \r into \n
    return line[:-1] if line.endswith("\n") else line

def scan_file(
    path: str,
    query: str,
    options: SearchOptions,
    *,
    line_matcher: Callable[[str], bool] | None = None
) -> list[MatchRecord]:
    """
    Return one MatchRecord per matching line of `path`.

    `line_matcher` lets a caller scanning many files compile the query once;
    when omitted it is built here. Any read error (missing file, permission
    denied, file removed mid-scan) stops the scan and returns the matches
    found so far.
    """
    if line_matcher is None:
        line_matcher = matcher.compile_query(query, options)

    records: list[MatchRecord] = []

    try:
        mtime = os.path.getmtime(path)
        with open(path, "r", encoding=TEXT_ENCODING, errors="replace") as file:
            for line_no, raw_line in enumerate(file, start=1):
                line = _strip_line_terminator(raw_line)
                if line_matcher(line):
                    records.append(MatchRecord(path=path, line_no=line_no, line=line, mtime=mtime))
    except (OSError, UnicodeDecodeError) as e:
        log.debug("Stopped reading %s after %d matches: %s", path, len(records), e)

    return records
