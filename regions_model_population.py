"""
Population ledger: sparse counts of people by segment and age range.

A ledger stores cells of (segment, [start_age, end_age), count). Cells are
not merged or normalized, so cells of one segment may overlap. Counts over an
arbitrary age window are computed by prorating each cell by the share of its
span that falls in the window.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, Generic, Hashable, Iterator, List, Optional, Tuple, TypeVar

from regions_model_attributes import HasAttributes
from regions_model_errors import InvalidPopulationError

logger = logging.getLogger(__name__)

S = TypeVar('S', bound=Hashable)


@dataclass(frozen=True)
class PopulationCell(Generic[S]):
    """One stored (segment, [start_age, end_age), count) entry."""
    segment: S
    start_age: int
    end_age: int
    count: int

    @property
    def span(self) -> int:
        return self.end_age - self.start_age


def check_age_range(start_age: int, end_age: int):
    if start_age < 0:
        raise InvalidPopulationError(f"Start age must be non-negative (got {start_age}).")
    if start_age > end_age:
        raise InvalidPopulationError(f"Start age must be <= end age (got {start_age}-{end_age}).")


def _is_connected(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open ranges are connected if they overlap or are adjacent."""
    return max(start_a, start_b) <= min(end_a, end_b)


def _contribution(cell: PopulationCell, start_age: int, end_age: int) -> float:
    """
    Share of a cell's count falling in the query window.

    Cases:
        0. Not connected: nothing
        1. Cell inside (or equal to) the window: the full count
        2. Window strictly inside the cell: prorated by window span
        3. Partial overlap: prorated by intersection span
    """
    if not _is_connected(cell.start_age, cell.end_age, start_age, end_age):
        return 0.0

    lower = max(cell.start_age, start_age)
    upper = min(cell.end_age, end_age)
    if lower == cell.start_age and upper == cell.end_age:
        return float(cell.count)
    if cell.start_age <= start_age and end_age <= cell.end_age:
        fraction = (end_age - start_age) / cell.span
        return fraction * cell.count

    fraction = (upper - lower) / cell.span
    return fraction * cell.count


class PopulationLedger(HasAttributes, Generic[S]):
    """
    A population of people broken down by segment and age range.

    Segments may be any hashable key (e.g. 'Male', ('Female', 'Urban')).
    Age ranges are half-open: [start_age, end_age).
    """

    def __init__(self, attributes: Optional[Dict[str, str]] = None):
        super().__init__(attributes)
        self._cells: Dict[Tuple[S, int, int], int] = {}

    @classmethod
    def empty(cls) -> 'PopulationLedger':
        """A ledger with no cells."""
        return cls()

    def __repr__(self) -> str:
        return f"PopulationLedger(cells={len(self._cells)}, size={self.size()})"

    def __len__(self) -> int:
        return len(self._cells)

    def __eq__(self, other) -> bool:
        if not isinstance(other, PopulationLedger):
            return NotImplemented
        return self._cells == other._cells

    # ------------------------------------------------------------------ #
    # Mutation
    # ------------------------------------------------------------------ #

    def put(self, segment: S, start_age: int, end_age: int, count: int):
        """
        Set the number of people in a segment and age range.

        Overwrites only a cell with exactly the same segment and range.

        Args:
            segment: Segment key
            start_age: Inclusive lower age, >= 0
            end_age: Exclusive upper age, >= start_age
            count: Number of people, >= 0

        Raises:
            InvalidPopulationError: Malformed range or negative count
            GraphFrozenError: Ledger belongs to a built graph
        """
        self._assert_mutable()
        check_age_range(start_age, end_age)
        if count < 0:
            raise InvalidPopulationError(f"Count must be non-negative (got {count}).")

        self._cells[(segment, int(start_age), int(end_age))] = int(count)

    def copy(self) -> 'PopulationLedger[S]':
        """Independent, mutable copy of the cells and attributes."""
        result = PopulationLedger(self._attributes)
        result._cells = dict(self._cells)
        return result

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def cells(self) -> Iterator[PopulationCell]:
        """Iterate the stored cells in insertion order."""
        for (segment, start_age, end_age), count in self._cells.items():
            yield PopulationCell(segment, start_age, end_age, count)

    def segments(self) -> List[S]:
        """Distinct segments in first-seen order."""
        return list(dict.fromkeys(segment for segment, _, _ in self._cells))

    def size(self) -> int:
        """Total number of people, without any proration."""
        return sum(self._cells.values())

    def is_empty(self) -> bool:
        """True if no people are recorded, even when zero-count cells exist."""
        return self.size() == 0

    def get_count(self, start_age: int, end_age: int) -> int:
        """
        Number of people in the age range across all segments, rounded down.

        Args:
            start_age: Inclusive lower age
            end_age: Exclusive upper age

        Returns:
            Floor of the summed (possibly fractional) cell contributions
        """
        check_age_range(start_age, end_age)

        total = 0.0
        for cell in self.cells():
            total += _contribution(cell, start_age, end_age)
        return math.floor(total)

    def get_segment_count(self, segment: S, start_age: int, end_age: int) -> int:
        """Number of people of one segment in the age range, rounded down."""
        check_age_range(start_age, end_age)

        total = 0.0
        for cell in self.cells():
            if cell.segment != segment:
                continue
            total += _contribution(cell, start_age, end_age)
        return math.floor(total)

    def has_intersecting_population(self, segment: S, start_age: int, end_age: int) -> bool:
        """
        True if a cell of the segment shares any age with the range.

        Useful for spotting duplicate entries while encoding a population.
        """
        check_age_range(start_age, end_age)

        return any(
            seg == segment and max(start, start_age) < min(end, end_age)
            for seg, start, end in self._cells
        )

    # ------------------------------------------------------------------ #
    # Set operations
    # ------------------------------------------------------------------ #

    def excluding(self, other: 'PopulationLedger[S]') -> 'PopulationLedger[S]':
        """
        A new population with another population removed.

        The result keeps exactly this population's cells. Each cell loses
        whatever the other population holds over that cell's age range, and
        is floored at zero. If the other population is finer grained, its
        amounts are removed from this population's cruder bands.

        Args:
            other: Population to remove

        Returns:
            New ledger; neither operand is modified
        """
        result = PopulationLedger(self._attributes)
        for (segment, start_age, end_age), count in self._cells.items():
            reduction = other.get_segment_count(segment, start_age, end_age)
            result._cells[(segment, start_age, end_age)] = max(0, count - reduction)
        return result

    def entirely_contains(self, other: 'PopulationLedger[S]') -> bool:
        """
        True if this population could hold everyone in the other population.

        Every cell of the other population must overlap a cell of the same
        segment here, and removing the other population from a working copy
        of this one must never leave a negative count.
        """
        for segment, start_age, end_age in other._cells:
            if not self.has_intersecting_population(segment, start_age, end_age):
                logger.debug(
                    f"No population for segment {segment} overlapping ages {start_age}-{end_age}"
                )
                return False

        remaining = self.copy()
        for segment, start_age, end_age in self._cells:
            number = remaining.get_segment_count(segment, start_age, end_age)
            reduction = other.get_segment_count(segment, start_age, end_age)
            if number - reduction < 0:
                logger.debug(
                    f"Segment {segment} ages {start_age}-{end_age}: "
                    f"{reduction} needed but only {number} available"
                )
                return False
            remaining.put(segment, start_age, end_age, number - reduction)
        return True
