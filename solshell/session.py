from typing import Iterable, Iterator, Optional

from solshell.rpc import json
from solshell.statement import Scope, Statement, classify


class Session:
    """
    The accepted statements of a shell session, in input order.
    Statements are only added at the end and removed from the end (undo).
    Not safe to share between threads.
    """

    def __init__(self, statements: Optional[Iterable[Statement]] = None):
        self._statements: list[Statement] = list(statements or [])

    def append(self, stmt: Statement) -> None:
        self._statements.append(stmt)

    def undo(self) -> Optional[Statement]:
        """Remove and return the most recent statement, if any."""
        if not self._statements:
            return None
        return self._statements.pop()

    def reset(self) -> None:
        self._statements = []

    @property
    def statements(self) -> tuple[Statement, ...]:
        return tuple(self._statements)

    @property
    def last(self) -> Optional[Statement]:
        if not self._statements:
            return None
        return self._statements[-1]

    def by_scope(self, scope: Scope) -> list[Statement]:
        return [s for s in self._statements if s.scope is scope]

    def __len__(self):
        return len(self._statements)

    def __iter__(self) -> Iterator[Statement]:
        return iter(self._statements)

    def __repr__(self):
        return f"Session({self._statements!r})"

    def dump(self) -> list[tuple[str, str]]:
        return [(s.raw_text, s.scope.value) for s in self._statements]

    def load(self, pairs: Iterable[tuple[str, str]]) -> None:
        """
        Replace the contents of the session. Each statement is re-classified
        with its saved scope, so inferred return types start over from the
        scope defaults.
        """
        self._statements = [classify(text, scope) for (text, scope) in pairs]

    # flat textual record: `[[raw_text, scope_code], ...]`
    def dumps(self) -> str:
        return json.dumps([list(pair) for pair in self.dump()])

    def loads(self, record: str) -> None:
        self.load((text, scope) for (text, scope) in json.loads(record))

    @classmethod
    def from_record(cls, record: str) -> "Session":
        ret = cls()
        ret.loads(record)
        return ret
