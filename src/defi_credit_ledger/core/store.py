"""Keyed storage for per-user ledger state."""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Protocol

from defi_credit_ledger.core.models import UserLedger

logger = logging.getLogger(__name__)


class LedgerStore(Protocol):
    """
    Durable map from user address to that user's ledger state.

    ``load`` returns an independent copy; changes become visible only
    through ``save``.

    """

    def load(self, user: str) -> UserLedger: ...

    def save(self, ledger: UserLedger) -> None: ...

    def users(self) -> list[str]: ...


class MemoryStore:
    """In-process store. State lives as long as the object."""

    def __init__(self) -> None:
        self._ledgers: dict[str, UserLedger] = {}
        self._lock = threading.Lock()

    def load(self, user: str) -> UserLedger:
        user = user.lower()
        with self._lock:
            ledger = self._ledgers.get(user)
            if ledger is None:
                return UserLedger(user=user)
            return ledger.model_copy(deep=True)

    def save(self, ledger: UserLedger) -> None:
        with self._lock:
            self._ledgers[ledger.user] = ledger.model_copy(deep=True)

    def users(self) -> list[str]:
        with self._lock:
            return list(self._ledgers)


class JsonFileStore(MemoryStore):
    """
    Store persisted to a single JSON document.

    The whole document is rewritten on every save through a temporary file
    and an atomic rename, so a crash leaves either the old or the new state.

    Parameters
    ----------
    path : str | Path
        JSON file location, created on first save

    """

    def __init__(self, path: str | Path) -> None:
        super().__init__()
        self.path = Path(path)
        if self.path.exists():
            with open(self.path, encoding="utf-8") as f:
                raw = json.load(f)
            self._ledgers = {user: UserLedger.model_validate(data) for user, data in raw.items()}
            logger.debug("Loaded %d user ledgers from %s", len(self._ledgers), self.path)

    def save(self, ledger: UserLedger) -> None:
        snapshot = ledger.model_copy(deep=True)
        with self._lock:
            ledgers = {**self._ledgers, snapshot.user: snapshot}
            document = {user: data.model_dump(mode="json") for user, data in ledgers.items()}
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(document, f, indent=2, sort_keys=True)
                os.replace(tmp_path, self.path)
            except BaseException:
                os.unlink(tmp_path)
                raise
            self._ledgers = ledgers
