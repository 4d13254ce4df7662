import threading
from enum import Enum
from typing import NamedTuple
from dataclasses import dataclass, field

class SearchMode(Enum):
    # How the query string is interpreted
    NORMAL = 1    # Plain substring
    EXTENDED = 2  # Substring after expanding \n, \r, \t, \0
    REGEX = 3     # Regular expression

class SearchStatus(Enum):
    COMPLETED = 1
    CANCELED = 2

@dataclass(frozen=True)
class SearchOptions:
    # Match semantics for one search or replace invocation
    case_sensitive: bool = False
    whole_word: bool = False
    mode: SearchMode = SearchMode.NORMAL

class MatchRecord(NamedTuple):
    # A single matching line inside a file
    path: str
    line_no: int          # 1-based
    line: str             # Original line text without the line terminator
    mtime: float          # Last modification time of the file at scan time

class ProgressEvent(NamedTuple):
    label: str    # File name being processed, or the phase name
    current: int
    total: int
    message: str = ""

    @property
    def percent(self) -> int:
        if self.total <= 0:
            return 100
        return int(self.current * 100 / self.total)

@dataclass
class SearchResult:
    # Outcome of one search invocation
    matches: list[MatchRecord] = field(default_factory=list)
    status: SearchStatus = SearchStatus.COMPLETED
    files_scanned: int = 0
    files_total: int = 0

    @property
    def canceled(self) -> bool:
        return self.status is SearchStatus.CANCELED


class CancelToken:
    """
    One-shot cancellation flag shared between the caller and a running
    search or replace. Setting it more than once has no further effect.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def canceled(self) -> bool:
        return self._event.is_set()
