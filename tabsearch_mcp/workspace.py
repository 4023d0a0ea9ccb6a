"""Workspace context for the tabsearch MCP server."""

import os
from pathlib import Path
from typing import Any, Optional

from .search import Document, MatchCoordinates, SearchSession
from .search.engine import coerce_documents

HOME_ENV_VAR = "TABSEARCH_HOME"


def default_root() -> Path:
    """Directory holding .tabsearch/ (TABSEARCH_HOME or the user's home)."""
    return Path(os.environ.get(HOME_ENV_VAR, "~")).expanduser().resolve()


class WorkspaceContext:
    """Holds the open-document snapshot and the search session.

    The search package never reaches into this object; handlers pass the
    snapshot and session into it explicitly.
    """

    def __init__(self, root: Path | None = None):
        self._root = Path(root) if root is not None else None
        self._documents: dict[str, Document] = {}
        self._session: SearchSession | None = None
        self.last_selection: Optional[MatchCoordinates] = None

    @property
    def root(self) -> Path:
        if self._root is None:
            self._root = default_root()
        return self._root

    @property
    def session(self) -> SearchSession:
        """Search session, built from the root's config on first use."""
        if self._session is None:
            self._session = SearchSession.from_config(
                self.root, on_match_selected=self._on_match_selected
            )
        return self._session

    def _on_match_selected(self, coords: MatchCoordinates) -> None:
        self.last_selection = coords

    @property
    def documents(self) -> list[Document]:
        """Snapshot of the open documents in insertion order."""
        return list(self._documents.values())

    @property
    def has_documents(self) -> bool:
        return bool(self._documents)

    def set_documents(self, documents: Any, replace: bool = True) -> list[Document]:
        """Replace (or upsert into) the open-document snapshot.

        Raises:
            TypeError: If documents is not a list
            ValueError: If an item is not a {filename, content} mapping
        """
        docs = coerce_documents(documents)
        if replace:
            self._documents = {}
        for doc in docs:
            self._documents[doc.filename] = doc
        return self.documents

    def clear(self):
        """Forget documents and results (history stays persisted)."""
        self._documents = {}
        self.last_selection = None
        if self._session is not None:
            self._session.navigator.clear()
