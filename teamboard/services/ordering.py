"""
Dense per-column card ordering

Positions inside a column are always 0..n-1. Every mutating operation
recomputes the full sequence of the columns it touches instead of patching
the moved card alone.
"""
from dataclasses import dataclass, field
from typing import List, Sequence


@dataclass(frozen=True)
class PositionAssignment:
    card_id: object
    column_id: object
    position: int


@dataclass
class Reordering:
    source: List[PositionAssignment] = field(default_factory=list)
    target: List[PositionAssignment] = field(default_factory=list)
    same_column: bool = False

    def all_assignments(self) -> List[PositionAssignment]:
        return self.source + self.target

    def position_of(self, card_id) -> int:
        for assignment in self.target:
            if assignment.card_id == card_id:
                return assignment.position
        raise KeyError(card_id)


def clamp_index(index: int, length: int) -> int:
    """Clamp an insertion index into [0, length]"""
    if index is None or index > length:
        return length
    return max(index, 0)


def sort_by_position(cards: Sequence) -> list:
    return sorted(cards, key=lambda c: c.position)


def renumber(cards: Sequence, column_id) -> List[PositionAssignment]:
    """Assign position = index to every card, in the given order"""
    return [
        PositionAssignment(card_id=card.id, column_id=column_id, position=index)
        for index, card in enumerate(cards)
    ]


def reorder(
    source_cards: Sequence,
    target_cards: Sequence,
    card_id,
    source_column_id,
    target_column_id,
    target_index: int,
) -> Reordering:
    """Compute new positions for moving ``card_id`` to ``target_index``.

    ``source_cards`` and ``target_cards`` are the current contents of the two
    columns (same list twice for a reorder inside one column). Cards are
    sorted by their stored position first so callers may pass them in any
    order.
    """
    source = sort_by_position(source_cards)
    moved = next((c for c in source if c.id == card_id), None)
    if moved is None:
        raise ValueError(f"Card {card_id} is not in column {source_column_id}")

    if source_column_id == target_column_id:
        remaining = [c for c in source if c.id != card_id]
        remaining.insert(clamp_index(target_index, len(remaining)), moved)
        return Reordering(target=renumber(remaining, target_column_id), same_column=True)

    remaining_source = [c for c in source if c.id != card_id]
    target = [c for c in sort_by_position(target_cards) if c.id != card_id]
    target.insert(clamp_index(target_index, len(target)), moved)

    return Reordering(
        source=renumber(remaining_source, source_column_id),
        target=renumber(target, target_column_id),
    )


def append_position(cards: Sequence) -> int:
    """Position for a card appended to the end of a column"""
    if not cards:
        return 0
    return max(c.position for c in cards) + 1
