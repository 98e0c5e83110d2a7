"""
Mutation batch: pending writes submitted atomically.

A MutationBatch accumulates the inserts and deletes produced by the entry
codec and submits them to a session as one logged batch. It is created by
the caller and passed explicitly to the table operations that fill it.

Invariants:
    - Statements keep the order in which they were added
    - A successful commit empties the batch
    - A failed commit leaves the batch exactly as it was
    - Committing an empty batch never touches the session

How to change safely:
    - The batch is single-writer; do not share one across threads
    - Keep commit() all-or-nothing; partial clears break retries
"""

from __future__ import annotations

import logging
from typing import Iterable

from .cql import Batch, Statement
from .errors import ExecutionError, PreconditionError
from .store.base import QueryRejectedError, Session

logger = logging.getLogger(__name__)


class MutationBatch:
    """Ordered, pending mutations for one commit.

    Example:
        >>> batch = MutationBatch()
        >>> batch.extend(codec.encode_insert(row))
        >>> batch.has_changed()
        True
        >>> batch.commit(session)
        >>> batch.has_changed()
        False
    """

    def __init__(self) -> None:
        self._statements: list[Statement] = []

    def add(self, statement: Statement) -> None:
        self._statements.append(statement)

    def extend(self, statements: Iterable[Statement]) -> None:
        self._statements.extend(statements)

    def has_changed(self) -> bool:
        """Whether any statement is waiting to be committed."""
        return bool(self._statements)

    @property
    def statements(self) -> tuple[Statement, ...]:
        return tuple(self._statements)

    def __len__(self) -> int:
        return len(self._statements)

    def clear(self) -> None:
        self._statements.clear()

    def commit(self, session: Session) -> None:
        """Submit all pending statements as one atomic batch.

        Args:
            session: Open store session

        Raises:
            PreconditionError: If the session has been closed
            ExecutionError: If the store rejects the batch (the batch is kept)
        """
        if session.is_closed:
            raise PreconditionError("Session has been closed")

        if not self._statements:
            return

        statements = tuple(self._statements)
        logger.debug("Committing batch of %d statement(s)", len(statements))
        try:
            session.execute(Batch(statements))
        except QueryRejectedError as e:
            logger.error(
                "Batch rejected by store",
                extra={"statements": len(statements), "error": str(e)},
            )
            raise ExecutionError(f"Failed to commit batch: {e}", statements) from e

        self._statements.clear()
