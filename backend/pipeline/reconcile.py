"""Position-based reconciliation of re-scraped paragraphs.

Paragraphs are matched by ``index_in_article``, never by content: the new
paragraph at index *i* takes over the id of the old paragraph at index *i*
so downstream references (games, completions) keep pointing at the same
row.  Old indexes the new parse no longer produces are deleted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence

from backend.db.models import ParagraphData


@dataclass(frozen=True)
class Upsert:
    """Write *data*; replace row *existing_id* in place, or insert when ``None``."""

    data: ParagraphData
    existing_id: Optional[int] = None


@dataclass
class ReconcilePlan:
    to_upsert: list[Upsert] = field(default_factory=list)
    to_delete: list[int] = field(default_factory=list)

    @property
    def replaced(self) -> int:
        return sum(1 for u in self.to_upsert if u.existing_id is not None)

    @property
    def inserted(self) -> int:
        return sum(1 for u in self.to_upsert if u.existing_id is None)


def reconcile(
    old_by_index: Mapping[int, int],
    new_paragraphs: Sequence[ParagraphData],
) -> ReconcilePlan:
    """Plan the writes that turn the stored article into *new_paragraphs*.

    Args:
        old_by_index: ``index_in_article → paragraph id`` of the stored rows.
        new_paragraphs: Freshly parsed paragraphs, each carrying its
            ``index_in_article``.

    Returns:
        A :class:`ReconcilePlan`; ``to_delete`` is sorted by index.
    """
    plan = ReconcilePlan()
    produced: set[int] = set()

    for data in new_paragraphs:
        produced.add(data.index_in_article)
        plan.to_upsert.append(Upsert(data=data, existing_id=old_by_index.get(data.index_in_article)))

    plan.to_delete = [
        old_by_index[index] for index in sorted(old_by_index) if index not in produced
    ]
    return plan
