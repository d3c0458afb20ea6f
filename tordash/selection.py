class SelectionController:
    """Cursor over the current filtered view.

    The cursor is positional: after ``reclamp`` it keeps the same index when
    that index is still in range, even if a different torrent now sits there.
    """

    def __init__(self) -> None:
        self._cursor: int | None = None
        self._length = 0

    def __len__(self) -> int:
        return self._length

    def current(self) -> int | None:
        return self._cursor

    def next(self) -> int | None:
        if self._cursor is not None:
            self._cursor = min(self._cursor + 1, self._length - 1)
        return self._cursor

    def previous(self) -> int | None:
        if self._cursor is not None:
            self._cursor = max(self._cursor - 1, 0)
        return self._cursor

    def reclamp(self, new_len: int) -> int | None:
        """Re-fit the cursor to a view of ``new_len`` items."""
        self._length = max(0, new_len)
        if self._length == 0:
            self._cursor = None
        elif self._cursor is None:
            self._cursor = 0
        elif self._cursor >= self._length:
            self._cursor = self._length - 1
        return self._cursor
