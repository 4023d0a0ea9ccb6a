"""Grouping and next/previous navigation over search results."""

from typing import Callable, Literal, Optional

from .models import MatchCoordinates, SearchMatch


Direction = Literal["next", "prev"]

MatchSelectedCallback = Callable[[MatchCoordinates], None]


class ResultNavigator:
    """Holds the current result list, per-file group state and the active match.

    Attributes:
        on_match_selected: Called with the coordinates of every match that
            becomes active, so the host can jump its editor there
    """

    def __init__(self, on_match_selected: MatchSelectedCallback | None = None):
        self.on_match_selected = on_match_selected
        self._matches: list[SearchMatch] = []
        self._groups: dict[str, list[SearchMatch]] = {}
        self._expanded: dict[str, bool] = {}
        self._active_index = -1

    def load(self, matches: list[SearchMatch]) -> None:
        """Replace the results. Only the first file's group starts expanded."""
        self._matches = list(matches)
        self._active_index = -1
        self._groups = {}
        for match in self._matches:
            self._groups.setdefault(match.filename, []).append(match)
        self._expanded = {filename: False for filename in self._groups}
        if self._matches:
            self._expanded[self._matches[0].filename] = True

    def clear(self) -> None:
        self.load([])

    @property
    def matches(self) -> list[SearchMatch]:
        return list(self._matches)

    @property
    def groups(self) -> dict[str, list[SearchMatch]]:
        """Matches per filename, in result order."""
        return {filename: list(group) for filename, group in self._groups.items()}

    @property
    def active_index(self) -> int:
        """Index of the active match, -1 when nothing is selected."""
        return self._active_index

    @property
    def active_match(self) -> Optional[SearchMatch]:
        if 0 <= self._active_index < len(self._matches):
            return self._matches[self._active_index]
        return None

    def is_expanded(self, filename: str) -> bool:
        return self._expanded.get(filename, False)

    def toggle_group(self, filename: str) -> bool:
        """Flip a group's expanded state.

        Returns:
            The new state
        """
        state = not self._expanded.get(filename, False)
        self._expanded[filename] = state
        return state

    @property
    def all_expanded(self) -> bool:
        return bool(self._groups) and all(self.is_expanded(f) for f in self._groups)

    def expand_all(self) -> None:
        self._expanded = {filename: True for filename in self._groups}

    def collapse_all(self) -> None:
        self._expanded = {filename: False for filename in self._groups}

    def toggle_all(self) -> bool:
        """Collapse everything if all groups are expanded, otherwise expand all.

        Returns:
            True if groups ended up expanded
        """
        if self.all_expanded:
            self.collapse_all()
            return False
        self.expand_all()
        return True

    def navigate(self, direction: Direction) -> Optional[MatchCoordinates]:
        """Move the active match forwards or backwards with wraparound.

        Args:
            direction: 'next' or 'prev'

        Returns:
            Coordinates of the new active match, or None with no results

        Raises:
            ValueError: If direction is not 'next' or 'prev'
        """
        if direction not in ("next", "prev"):
            raise ValueError(f"Invalid direction: {direction}")
        if not self._matches:
            return None

        last = len(self._matches) - 1
        if direction == "next":
            self._active_index = self._active_index + 1 if self._active_index < last else 0
        else:
            self._active_index = self._active_index - 1 if self._active_index > 0 else last

        return self._notify(self._matches[self._active_index])

    def select(self, match: SearchMatch) -> Optional[MatchCoordinates]:
        """Make a match active by its (filename, line, column) identity."""
        return self.select_at(match.filename, match.line, match.column)

    def select_at(self, filename: str, line: int, column: int) -> Optional[MatchCoordinates]:
        """Make the match at the given position active.

        Returns:
            Coordinates of the selected match, or None if no such match exists
        """
        key = (filename, line, column)
        for i, candidate in enumerate(self._matches):
            if candidate.key == key:
                self._active_index = i
                return self._notify(candidate)
        return None

    def _notify(self, match: SearchMatch) -> MatchCoordinates:
        coords = match.coordinates()
        if self.on_match_selected is not None:
            self.on_match_selected(coords)
        return coords
