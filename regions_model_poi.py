"""
Points of interest attached to locations.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class POIType(Enum):
    PRIMARY_SCHOOL = 'PrimarySchool'
    SECONDARY_SCHOOL = 'SecondarySchool'
    TERTIARY_SCHOOL = 'TertiarySchool'
    WORKPLACE = 'Workplace'
    ASSISTED_LIVING = 'AssistedLiving'
    HOSPITAL = 'Hospital'


@dataclass(frozen=True)
class POIGroup:
    """
    A group of (or single) point of interest.

    Attributes:
        location_id: Location in/at which these POIs appear
        group_type: Kind of POI
        min_employees: Minimum staff per POI, if it has employees
        max_employees: Maximum staff per POI
        min_attendees: Minimum attendees per POI (students, residents, ...)
        max_attendees: Maximum attendees per POI
        number: Number of POIs in the group
        label: Free-text label, not unique and not an ID
        citation: Source of the figures
    """
    location_id: str
    group_type: POIType
    min_employees: int = 0
    max_employees: int = 0
    min_attendees: int = 0
    max_attendees: int = 0
    number: int = 1
    label: Optional[str] = None
    citation: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.group_type, POIType):
            # Accept the raw value as written in data files
            object.__setattr__(self, 'group_type', POIType(self.group_type))
        if self.min_employees > self.max_employees:
            raise ValueError(f"POI group at {self.location_id}: min_employees exceeds max_employees")
        if self.min_attendees > self.max_attendees:
            raise ValueError(f"POI group at {self.location_id}: min_attendees exceeds max_attendees")
        if self.number < 0:
            raise ValueError(f"POI group at {self.location_id}: number must be non-negative")
