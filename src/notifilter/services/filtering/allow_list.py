"""
Allow-List Store.

Durable set of sender identifiers that may alert normally. The persisted
document is a single JSON record:

    {"allowed_contacts": ["老婆", "妈妈"]}

The file is the single source of truth. Every read goes to disk so edits made
by another process (or another store instance) are visible immediately, and
every mutation is a read-modify-write against the latest persisted state.
Saves are atomic: the document is written to a temporary file in the same
directory and moved over the target with os.replace. Stores opened on the
same file within one process share a lock, so their read-modify-write cycles
never interleave. Writers in other processes are not serialized; the last
replace wins.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

from ...core.config import get_settings
from ...core.constants import ALLOW_LIST_KEY
from ...core.logging import get_logger
from .models import AllowedSenderSet, LoadResult, SaveResult

logger = get_logger(__name__)

# Called with the newly persisted allow-list after every successful save
ChangeListener = Callable[[AllowedSenderSet], None]

# One lock per resolved file path, shared by every store in this process
_path_locks: dict[Path, threading.Lock] = {}
_path_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    key = path.resolve()
    with _path_locks_guard:
        return _path_locks.setdefault(key, threading.Lock())


def _without_blanks(contacts: Iterable[str]) -> AllowedSenderSet:
    """Drop empty and whitespace-only identifiers, which no title can produce."""
    snapshot = frozenset(contacts)
    kept = frozenset(c for c in snapshot if c.strip())
    if len(kept) != len(snapshot):
        logger.warning(
            "Dropping %d blank identifier(s) from allow-list", len(snapshot) - len(kept)
        )
    return kept


@dataclass
class AllowListStore:
    """
    JSON-file backed allow-list.

    Usage:
        store = AllowListStore()
        store.add("老婆")
        if "老婆" in store.load():
            ...
    """

    path: Path | None = None

    _lock: threading.Lock = field(init=False, repr=False)
    _listeners: list[ChangeListener] = field(default_factory=list, repr=False)

    def __post_init__(self) -> None:
        if self.path is None:
            self.path = get_settings().allow_list_file
        self.path = Path(self.path)
        self._lock = _lock_for(self.path)

    @property
    def file_path(self) -> Path:
        """Resolved path of the backing file."""
        assert self.path is not None
        return self.path

    # =========================================================================
    # Subscribers
    # =========================================================================

    def subscribe(self, listener: ChangeListener) -> None:
        """Register a callback invoked after every successful save."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: ChangeListener) -> None:
        """Remove a previously registered callback."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, contacts: AllowedSenderSet) -> None:
        for listener in list(self._listeners):
            try:
                listener(contacts)
            except Exception as e:
                logger.error("Allow-list change listener failed: %s", e, exc_info=True)

    # =========================================================================
    # Read
    # =========================================================================

    def read(self) -> LoadResult:
        """
        Read the persisted allow-list.

        A missing file or missing key is a successful read of the empty set.
        Unreadable or malformed documents are reported as failures.

        Returns:
            LoadResult with the persisted identifiers
        """
        path = self.file_path

        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return LoadResult(success=True)
        except OSError as e:
            return LoadResult(success=False, error=f"Cannot read {path}: {e}")

        try:
            document = json.loads(raw)
        except json.JSONDecodeError as e:
            return LoadResult(success=False, error=f"Corrupt allow-list {path}: {e}")

        if not isinstance(document, dict):
            return LoadResult(success=False, error=f"Corrupt allow-list {path}: not an object")

        entries = document.get(ALLOW_LIST_KEY, [])
        if not isinstance(entries, list) or not all(isinstance(e, str) for e in entries):
            return LoadResult(
                success=False,
                error=f"Corrupt allow-list {path}: '{ALLOW_LIST_KEY}' is not a list of strings",
            )

        return LoadResult(success=True, contacts=frozenset(entries))

    def load(self) -> AllowedSenderSet:
        """
        Load the allow-list, failing soft.

        Storage errors yield the empty set, which suppresses everything.
        """
        result = self.read()
        if not result.success:
            logger.warning("Allow-list unavailable, treating as empty: %s", result.error)
            return frozenset()

        logger.debug("Loaded %d allowed contact(s)", len(result.contacts))
        return result.contacts

    def list_allowed(self) -> AllowedSenderSet:
        """Administrative view of the current allow-list."""
        return self.load()

    # =========================================================================
    # Write
    # =========================================================================

    def save(self, contacts: Iterable[str]) -> SaveResult:
        """
        Persist the allow-list atomically and notify subscribers.

        Args:
            contacts: Identifiers to store verbatim; blank ones are dropped

        Returns:
            SaveResult with the persisted set, or the failure reason
        """
        snapshot = _without_blanks(contacts)
        with self._lock:
            result = self._write(snapshot)

        return self._finish(result)

    def add(self, identity: str) -> SaveResult:
        """
        Add an identifier to the persisted allow-list.

        Adding an existing identifier rewrites the same set.

        Args:
            identity: Sender identifier, stored verbatim

        Returns:
            SaveResult from the save, or a failure for blank identifiers
        """
        if not identity or not identity.strip():
            return SaveResult(success=False, error="Identifier must not be empty")

        if any(ch.isspace() for ch in identity):
            logger.warning(
                "Identifier '%s' contains whitespace and will never match a title",
                identity,
            )

        return self._update(lambda current: current | {identity})

    def remove(self, identity: str) -> SaveResult:
        """
        Remove an identifier from the persisted allow-list.

        Removing an absent identifier rewrites the same set.
        """
        return self._update(lambda current: current - {identity})

    def _update(self, mutate: Callable[[AllowedSenderSet], AllowedSenderSet]) -> SaveResult:
        """Read-modify-write against the latest persisted state."""
        with self._lock:
            current = self.read()
            if not current.success:
                # Never overwrite a document we could not parse
                logger.error("Refusing to modify unreadable allow-list: %s", current.error)
                return SaveResult(success=False, error=current.error)

            result = self._write(_without_blanks(mutate(current.contacts)))

        return self._finish(result)

    def _finish(self, result: SaveResult) -> SaveResult:
        """Log the save and notify subscribers outside the lock."""
        if result.success:
            logger.info("Saved allow-list with %d contact(s)", len(result.contacts))
            self._notify(result.contacts)
        else:
            logger.error("Failed to save allow-list: %s", result.error)
        return result

    def _write(self, contacts: AllowedSenderSet) -> SaveResult:
        """Write the document via a temporary file and os.replace."""
        path = self.file_path
        document = {ALLOW_LIST_KEY: sorted(contacts)}
        tmp_name: str | None = None

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(document, fh, ensure_ascii=False, indent=2)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
            return SaveResult(success=False, error=f"Cannot write {path}: {e}")

        return SaveResult(success=True, contacts=contacts)
