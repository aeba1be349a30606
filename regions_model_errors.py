"""
Exception hierarchy for the region population model.

Contract violations signal a caller bug or malformed input and are always
fatal to the operation that raised them. Dataset errors are raised by the
loader when a whole dataset cannot be accepted.
"""

from typing import List, Tuple


class RegionModelError(Exception):
    """Base class for all region model errors."""


class ContractViolationError(RegionModelError, ValueError):
    """A precondition or postcondition of an operation was not met."""


class InvalidPopulationError(ContractViolationError):
    """Malformed age range or negative count."""


class ValidityError(ContractViolationError):
    """A geometric area is not a valid point or region."""


class UnknownLocationError(ContractViolationError, KeyError):
    """No location with the given id is registered."""

    def __init__(self, location_id: str):
        super().__init__(f"Location {location_id} must be in the dataset.")
        self.location_id = location_id

    def __str__(self) -> str:
        # KeyError would otherwise quote the message
        return self.args[0]


class DuplicateLocationError(ContractViolationError):
    """A location id was registered more than once."""


class SelfReferenceError(ContractViolationError):
    """A location was made its own child."""


class DuplicateEdgeError(ContractViolationError):
    """The direct parent/child edge already exists."""


class CycleError(ContractViolationError):
    """Adding the edge would make the hierarchy cyclic."""


class DuplicateAreaError(ContractViolationError):
    """A location was given more than one geometric area."""


class MissingAreaError(ContractViolationError):
    """The location has no geometric area."""


class MissingPopulationError(ContractViolationError):
    """The location has no population ledger."""


class DuplicatePopulationError(ContractViolationError):
    """A population row overlaps an existing cell of the same segment."""


class GraphFrozenError(ContractViolationError):
    """Mutation attempted after the graph was built."""


class DatasetFormatError(RegionModelError):
    """A dataset file is missing or lacks required columns."""


class DatasetConsistencyError(RegionModelError):
    """A parent population does not entirely contain its children's populations."""

    def __init__(self, message: str, violations: List[Tuple[str, str]]):
        super().__init__(message)
        self.violations = list(violations)
