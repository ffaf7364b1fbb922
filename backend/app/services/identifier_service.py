# Overview: Application-side primary key allocation (max + 1) with atomic reservation.

"""
Identifier Allocator

Tables in this schema carry application-assigned integer keys. The next
id is the current maximum key plus one (1 for an empty table).

Reading the maximum alone is racy: two requests can read the same value
and both try to insert it. Each allocation is therefore also reserved on
the table's IdSequence row with a compare-and-swap. The loser of a race
gets ConflictError; there is no retry.

The reservation joins the caller's transaction, so a rolled-back insert
releases it along with everything else.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import func, insert, update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import IdSequence
from ..validation import ConflictError
from app.time_utils import utcnow


@dataclass(frozen=True)
class AllocationState:
    max_pk: int
    last_reserved: int | None


def read_allocation_state(model) -> AllocationState:
    """Current max primary key of the table and its last reserved id."""
    pk_col = model.__mapper__.primary_key[0]
    max_pk = db.session.query(func.max(pk_col)).scalar() or 0
    last_reserved = (
        db.session.query(IdSequence.last_value)
        .filter(IdSequence.entity == model.__tablename__)
        .scalar()
    )
    return AllocationState(max_pk=max_pk, last_reserved=last_reserved)


def next_id(model) -> int:
    """
    Allocate the next integer id for model's table.

    Raises ConflictError if the id was reserved concurrently.
    """
    entity = model.__tablename__
    state = read_allocation_state(model)
    candidate = max(state.max_pk, state.last_reserved or 0) + 1

    if state.last_reserved is None:
        try:
            db.session.execute(
                insert(IdSequence).values(entity=entity, last_value=candidate, updated_at=utcnow())
            )
        except IntegrityError as exc:
            raise ConflictError(
                f"Identifier {candidate} for {entity} was allocated concurrently",
                details={"entity": entity, "id": candidate},
            ) from exc
        return candidate

    result = db.session.execute(
        update(IdSequence)
        .where(
            IdSequence.entity == entity,
            IdSequence.last_value == state.last_reserved,
        )
        .values(last_value=candidate, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise ConflictError(
            f"Identifier {candidate} for {entity} was allocated concurrently",
            details={"entity": entity, "id": candidate},
        )
    return candidate
