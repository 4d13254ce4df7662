import logging
import re
from typing import Callable

from core.models import SearchMode, SearchOptions

log = logging.getLogger(__name__)

# Two-character escape sequence -> control character, used by EXTENDED mode.
ESCAPE_SEQUENCES = {
    "\\n": "\n",
    "\\r": "\r",
    "\\t": "\t",
    "\\0": "\0",
}

_ESCAPE_RE = re.compile("|".join(re.escape(seq) for seq in ESCAPE_SEQUENCES))

# Turn the literal sequences \n, \r, \t, \0 into their control characters
def expand_escapes(text: str) -> str:
    return _ESCAPE_RE.sub(lambda m: ESCAPE_SEQUENCES[m.group(0)], text)

def _flags(case_sensitive: bool) -> int:
    return 0 if case_sensitive else re.IGNORECASE

# Whole-word: not preceded or followed by a word character
def whole_word_pattern(literal: str, *, case_sensitive: bool) -> re.Pattern:
    return re.compile(rf"(?<!\w){re.escape(literal)}(?!\w)", _flags(case_sensitive))

def literal_text(query: str, options: SearchOptions) -> str:
    if options.mode is SearchMode.EXTENDED:
        return expand_escapes(query)
    return query

def compile_regex(query: str, *, case_sensitive: bool, flags: int = 0) -> re.Pattern | None:
    """
    Compile a REGEX-mode query. Returns None when the pattern does not
    compile; callers then treat the raw query as a literal NORMAL search.
    """
    try:
        return re.compile(query, _flags(case_sensitive) | flags)
    except re.error as e:
        log.debug("Invalid regex %r (%s), falling back to literal match", query, e)
        return None

def build_pattern(query: str, options: SearchOptions) -> re.Pattern | None:
    """
    Return the compiled pattern that implements `options` for `query`, or
    None when a plain substring test is enough (no whole-word, no regex).
    """
    if options.mode is SearchMode.REGEX:
        compiled_re = compile_regex(query, case_sensitive=options.case_sensitive)
        if compiled_re is not None:
            return compiled_re
        # Fall back to NORMAL on the original query
        options = SearchOptions(case_sensitive=options.case_sensitive,
                                whole_word=options.whole_word,
                                mode=SearchMode.NORMAL)

    if options.whole_word:
        return whole_word_pattern(literal_text(query, options),
                                  case_sensitive=options.case_sensitive)

    return None

# Prepare a line predicate once (per file) so lines are only tested, never recompiled
def compile_query(query: str, options: SearchOptions) -> Callable[[str], bool]:
    compiled_re = build_pattern(query, options)

    if compiled_re is not None:
        return lambda line: compiled_re.search(line) is not None

    if options.mode is SearchMode.REGEX:
        # Invalid regex without whole-word: raw query, no escape expansion
        needle = query
    else:
        needle = literal_text(query, options)

    if options.case_sensitive:
        return lambda line: needle in line

    needle = needle.lower()
    return lambda line: needle in line.lower()

def matches(line: str, query: str, options: SearchOptions) -> bool:
    return compile_query(query, options)(line)
