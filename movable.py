from __future__ import annotations


class Movable:
    """Всё, что можно сдвинуть на (dx, dy) по карте."""

    def translate(self, dx: float, dy: float, visited: set[int] | None = None) -> None:
        raise NotImplementedError

    def _enter(self, visited: set[int] | None) -> set[int] | None:
        """
        Register this object in the current translate cascade.

        Returns the cascade's visited set, or None when the object was already
        moved in this cascade and must be skipped.
        """
        if visited is None:
            visited = set()
        my_id = id(self)
        # если этот объект уже участвовал в цепочке – выходим
        if my_id in visited:
            return None
        visited.add(my_id)
        return visited


class Lockable(Movable):
    """Movable that drags its locked movables along whenever it moves."""

    def __init__(self):
        # dict как упорядоченное множество: без дублей, порядок добавления сохраняется
        self._locks: dict[Movable, None] = {}

    def get_locks(self) -> tuple[Movable, ...]:
        return tuple(self._locks)

    def add_lock(self, movable: Movable) -> None:
        if movable is self:
            raise ValueError("An object cannot lock itself")
        if not isinstance(movable, Movable):
            raise TypeError(f"{movable!r} is not Movable")
        self._locks[movable] = None

    def remove_lock(self, movable: Movable) -> None:
        self._locks.pop(movable, None)

    def clear_locks(self) -> None:
        self._locks.clear()

    def translate_locks(self, dx: float, dy: float, visited: set[int]) -> None:
        for m in list(self._locks):
            m.translate(dx, dy, visited)
