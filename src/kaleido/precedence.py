"""Binary operator precedence table."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType


class PrecedenceTable(Mapping[str, int]):
    """Immutable mapping of single-character operators to precedences.

    Higher binds tighter. Characters not in the table are not binary
    operators and report a precedence of -1.
    """

    def __init__(self, entries: Mapping[str, int]) -> None:
        table: dict[str, int] = {}
        for op, prec in entries.items():
            if not isinstance(op, str) or len(op) != 1:
                raise ValueError(f"operator must be a single character, got {op!r}")
            if op.isspace() or op.isalnum() or op in "_(),.;":
                raise ValueError(f"{op!r} cannot be used as a binary operator")
            if isinstance(prec, bool) or not isinstance(prec, int) or prec < 0:
                raise ValueError(
                    f"precedence for {op!r} must be a non-negative integer, got {prec!r}"
                )
            table[op] = prec
        self._table = MappingProxyType(table)

    def __getitem__(self, op: str) -> int:
        return self._table[op]

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    def __repr__(self) -> str:
        return f"PrecedenceTable({dict(self._table)!r})"

    def precedence(self, op: str | None) -> int:
        if op is None:
            return -1
        return self._table.get(op, -1)

    def with_operator(self, op: str, prec: int) -> PrecedenceTable:
        """Return a new table with *op* added or replaced."""
        return PrecedenceTable({**self._table, op: prec})


DEFAULT_PRECEDENCE = PrecedenceTable({
    "<": 10,
    "+": 20,
    "-": 20,
    "*": 40,
})
