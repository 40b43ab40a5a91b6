"""
WIP limit checks
"""
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CapacityDecision:
    admitted: bool
    reason: Optional[str] = None


def check_capacity(column, occupancy: int, is_cross_column: bool) -> CapacityDecision:
    """Check whether ``column`` can take one more card.

    Reordering inside a column never changes its card count, so only
    cross-column arrivals (moves, claims, new cards) are counted.
    """
    if not is_cross_column or column.wip_limit is None:
        return CapacityDecision(admitted=True)

    if occupancy >= column.wip_limit:
        return CapacityDecision(
            admitted=False,
            reason=f'WIP limit of {column.wip_limit} reached for column "{column.name}"'
        )
    return CapacityDecision(admitted=True)
