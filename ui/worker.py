from PyQt6.QtCore import pyqtSignal, QObject

from core import engine
from core.models import CancelToken, MatchRecord, ProgressEvent, SearchOptions, SearchResult

# Background worker for one search. Move it to a QThread and connect
# thread.started -> worker.run; it talks to the UI exclusively via signals.
class SearchWorker(QObject):
    # Emitted before scanning, after every file and once at the end.
    progress = pyqtSignal(object)  # ProgressEvent

    # Human-readable phase text ("Searching in: notes.txt").
    status = pyqtSignal(str)

    # Emitted when an unexpected error stops the search.
    error = pyqtSignal(str)

    # Exactly one of these is emitted when the search ends normally.
    finished = pyqtSignal(object)  # SearchResult, status COMPLETED
    canceled = pyqtSignal(object)  # SearchResult with partial matches

    def __init__(self,
                 query: str,
                 roots: list[str],
                 filters: list[str] | None = None,
                 *,
                 recursive: bool = False,
                 options: SearchOptions = SearchOptions()) -> None:
        super().__init__()
        # Rejected here, on the caller's thread, so no thread is started for a bad request.
        self.roots = engine.validate_search_request(query, roots)
        self.query = query
        self.filters = list(filters or [])
        self.recursive = recursive
        self.options = options
        self.cancel_token = CancelToken()

    # Safe to call from any thread; takes effect at the next file boundary.
    def cancel(self) -> None:
        self.cancel_token.cancel()

    def _on_progress(self, event: ProgressEvent) -> None:
        self.progress.emit(event)
        self.status.emit(event.message or event.label)

    def run(self) -> None:
        try:
            result: SearchResult = engine.search_files(self.query,
                                                       roots=self.roots,
                                                       filters=self.filters,
                                                       recursive=self.recursive,
                                                       options=self.options,
                                                       on_progress=self._on_progress,
                                                       cancel_token=self.cancel_token)
        except Exception as e:
            self.error.emit(f"Search Error: {e}")
            return
        else:
            if result.canceled:
                self.canceled.emit(result)
            else:
                self.finished.emit(result)


class ReplaceWorker(QObject):
    progress = pyqtSignal(object)

    status = pyqtSignal(str)

    error = pyqtSignal(str)

    finished = pyqtSignal(int)  # number of modified files

    def __init__(self,
                 query: str,
                 replacement: str,
                 matches: list[MatchRecord],
                 *,
                 options: SearchOptions = SearchOptions()) -> None:
        super().__init__()
        engine.validate_replace_request(query, replacement)
        self.query = query
        self.replacement = replacement
        # Snapshot: later searches do not change what this worker rewrites.
        self.matches = list(matches)
        self.options = options
        self.cancel_token = CancelToken()

    def cancel(self) -> None:
        self.cancel_token.cancel()

    def _on_progress(self, event: ProgressEvent) -> None:
        self.progress.emit(event)
        self.status.emit(event.message or event.label)

    def run(self) -> None:
        try:
            modified = engine.replace_in_files(self.query,
                                               self.replacement,
                                               matches=self.matches,
                                               options=self.options,
                                               on_progress=self._on_progress,
                                               cancel_token=self.cancel_token)
        except Exception as e:
            self.error.emit(f"Replace Error: {e}")
            return
        else:
            self.finished.emit(modified)
