"""
Hierarchical region graph.

Locations form a directed acyclic containment hierarchy (parent -> child).
Each location may own one geometric area and one population ledger. A
location's ledger is expected to already hold its inclusive total; the
exclusive view subtracts the ledgers of its direct children.

The graph has two phases. A RegionGraphBuilder accepts mutations; build()
hands the data to a read-only RegionGraph and freezes the builder along with
the locations, areas and populations it holds.
"""

import logging
from typing import Dict, Hashable, Iterable, List, Optional, Set, Tuple

from regions_model_attributes import HasAttributes
from regions_model_errors import (
    CycleError,
    DuplicateAreaError,
    DuplicateEdgeError,
    DuplicateLocationError,
    GraphFrozenError,
    MissingAreaError,
    MissingPopulationError,
    SelfReferenceError,
    UnknownLocationError,
)
from regions_model_geometry import GeometricArea
from regions_model_poi import POIGroup
from regions_model_population import PopulationLedger, check_age_range

logger = logging.getLogger(__name__)


class Location(HasAttributes):
    """A location; identity is (id, name)."""

    def __init__(self, location_id: str, name: str, attributes: Optional[Dict[str, str]] = None):
        super().__init__(attributes)
        self._id = str(location_id)
        self._name = str(name)

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f"Location(id={self._id!r}, name={self._name!r})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, Location):
            return NotImplemented
        return (self._id, self._name) == (other._id, other._name)

    def __hash__(self) -> int:
        return hash((self._id, self._name))


class _RegionData:
    """Storage and read-only lookups shared by both phases."""

    def __init__(self):
        self._locations: Dict[str, Location] = {}
        self._children: Dict[str, Set[str]] = {}
        self._parents: Dict[str, Set[str]] = {}
        self._areas: Dict[str, GeometricArea] = {}
        self._populations: Dict[str, PopulationLedger] = {}
        self._poi_groups: Dict[str, List[POIGroup]] = {}

    def _assert_location_exists(self, location_id: str):
        if location_id not in self._locations:
            raise UnknownLocationError(location_id)

    def has_location(self, location_id: str) -> bool:
        """True if a location with this ID is registered."""
        return location_id in self._locations

    def get_location(self, location_id: str) -> Location:
        """
        Look up a registered location.

        Raises:
            UnknownLocationError: Location not registered
        """
        self._assert_location_exists(location_id)
        return self._locations[location_id]

    @property
    def locations(self) -> List[Location]:
        """Locations in registration order."""
        return list(self._locations.values())

    def has_area(self, location_id: str) -> bool:
        """True if the location has a geometric area."""
        return location_id in self._areas

    def has_population(self, location_id: str) -> bool:
        """True if the location has a population ledger."""
        return location_id in self._populations

    def get_population(self, location_id: str) -> PopulationLedger:
        """
        The population recorded for a location, including sub-populations.

        Raises:
            UnknownLocationError: Location not registered
            MissingPopulationError: Location has no population set
        """
        self._assert_location_exists(location_id)
        if location_id not in self._populations:
            raise MissingPopulationError(f"{location_id} does not have a population set to it.")
        return self._populations[location_id]

    def edges(self) -> Set[Tuple[str, str]]:
        """Snapshot of all (parent_id, child_id) edges."""
        return {(parent, child) for parent, children in self._children.items() for child in children}


class RegionGraphBuilder(_RegionData):
    """
    Mutable builder for a region graph.

    All preconditions are checked before any state changes, so a failed call
    leaves the builder as it was.
    """

    def __init__(self):
        super().__init__()
        self._built = False

    def _assert_building(self):
        if self._built:
            raise GraphFrozenError("The region graph has already been built and can no longer change.")

    def add_location(self, location: Location):
        """
        Register a location.

        Raises:
            DuplicateLocationError: ID already registered
        """
        self._assert_building()
        if location.id in self._locations:
            raise DuplicateLocationError(
                f"Location must be unique in the dataset but ID {location.id} was found multiple times."
            )

        self._locations[location.id] = location
        self._children[location.id] = set()
        self._parents[location.id] = set()

    def add_child(self, parent_id: str, child_id: str):
        """
        Link two locations as parent and child.

        Raises:
            UnknownLocationError: Either location not registered
            SelfReferenceError: Parent and child are the same
            DuplicateEdgeError: Child already directly under parent
            CycleError: The parent is already below the child
        """
        self._assert_building()
        self._assert_location_exists(parent_id)
        self._assert_location_exists(child_id)
        if parent_id == child_id:
            raise SelfReferenceError(f"Child location {child_id} and parent {parent_id} are the same.")
        if child_id in self._children[parent_id]:
            raise DuplicateEdgeError(f"Child location {child_id} already belongs to parent {parent_id}.")
        if self._reaches(child_id, parent_id):
            raise CycleError(
                f"Adding {child_id} under {parent_id} would create a cycle; "
                f"{parent_id} is already a sub-location of {child_id}."
            )

        self._children[parent_id].add(child_id)
        self._parents[child_id].add(parent_id)

    def _reaches(self, start_id: str, target_id: str) -> bool:
        """Depth-first search along child edges."""
        stack = [start_id]
        seen = {start_id}
        while stack:
            current = stack.pop()
            if current == target_id:
                return True
            for child in self._children[current]:
                if child not in seen:
                    seen.add(child)
                    stack.append(child)
        return False

    def set_area(self, area: GeometricArea):
        """
        Attach a geometric area to its location.

        Raises:
            UnknownLocationError: Owning location not registered
            DuplicateAreaError: Location already has an area
        """
        self._assert_building()
        self._assert_location_exists(area.location_id)
        if area.location_id in self._areas:
            raise DuplicateAreaError(f"Location {area.location_id} was given more than one area.")

        self._areas[area.location_id] = area

    def set_population(self, location_id: str, segment: Hashable, start_age: int, end_age: int, count: int):
        """
        Set the number of people for a segment and age range at a location.

        The location's ledger is created on first use.
        """
        self._assert_building()
        self._assert_location_exists(location_id)

        ledger = self._populations.get(location_id)
        if ledger is None:
            ledger = PopulationLedger()
            ledger.put(segment, start_age, end_age, count)
            self._populations[location_id] = ledger
        else:
            ledger.put(segment, start_age, end_age, count)

    def set_location_attribute(self, location_id: str, name: str, value: str):
        """Set a string attribute on a location."""
        self._assert_building()
        self.get_location(location_id).set_attribute(name, value)

    def set_population_attribute(self, location_id: str, name: str, value: str):
        """
        Set a string attribute on a location's population.

        Raises:
            MissingPopulationError: No population set for the location yet
        """
        self._assert_building()
        self.get_population(location_id).set_attribute(name, value)

    def add_poi_group(self, group: POIGroup):
        """Attach a group of points of interest to its location."""
        self._assert_building()
        self._assert_location_exists(group.location_id)
        self._poi_groups.setdefault(group.location_id, []).append(group)

    def build(self) -> 'RegionGraph':
        """
        Freeze the builder and return the queryable graph.

        The graph takes over the builder's data; the builder rejects any
        further mutation, and so do the locations, areas and populations it
        holds.
        """
        self._assert_building()
        self._built = True
        for item in (*self._locations.values(), *self._areas.values(), *self._populations.values()):
            item.freeze()

        graph = RegionGraph(self)
        logger.info(
            f"Built region graph: {len(self._locations)} locations, "
            f"{sum(len(c) for c in self._children.values())} edges, "
            f"{len(self._areas)} areas, {len(self._populations)} populations"
        )
        return graph


class RegionGraph(_RegionData):
    """
    Read-only region graph.

    Safe for concurrent readers since nothing mutates it after construction.
    """

    def __init__(self, builder: RegionGraphBuilder):
        super().__init__()
        self._locations = builder._locations
        self._children = builder._children
        self._parents = builder._parents
        self._areas = builder._areas
        self._populations = builder._populations
        self._poi_groups = builder._poi_groups

    # ------------------------------------------------------------------ #
    # Hierarchy
    # ------------------------------------------------------------------ #

    def get_direct_sub_locations(self, location_id: str) -> Set[Location]:
        """Immediate children only."""
        self._assert_location_exists(location_id)
        return {self._locations[child] for child in self._children[location_id]}

    def get_all_sub_locations(self, location_id: str) -> Set[Location]:
        """All direct and indirect sub-locations."""
        self._assert_location_exists(location_id)

        found: Set[str] = set()
        stack = list(self._children[location_id])
        while stack:
            current = stack.pop()
            if current in found:
                continue
            found.add(current)
            stack.extend(self._children[current])
        return {self._locations[i] for i in found}

    def get_parents(self, location_id: str) -> Set[Location]:
        """Locations that directly contain this one."""
        self._assert_location_exists(location_id)
        return {self._locations[parent] for parent in self._parents[location_id]}

    # ------------------------------------------------------------------ #
    # Areas
    # ------------------------------------------------------------------ #

    def get_area(self, location_id: str) -> GeometricArea:
        """
        The location's geometric area.

        Raises:
            UnknownLocationError: Location not registered
            MissingAreaError: Location has no area
        """
        self._assert_location_exists(location_id)
        if location_id not in self._areas:
            raise MissingAreaError(f"Location must have an associated area: {location_id}")
        return self._areas[location_id]

    def areas(self) -> List[GeometricArea]:
        """All areas, in the order they were set."""
        return list(self._areas.values())

    def locations_without_areas(self) -> List[Location]:
        """Locations with no area, in registration order."""
        return [loc for loc in self._locations.values() if loc.id not in self._areas]

    # ------------------------------------------------------------------ #
    # Populations
    # ------------------------------------------------------------------ #

    def get_total_population_size(self, location_id: str, start_age: int, end_age: int) -> int:
        """
        People in the location in the age range, rounded down.

        This number INCLUDES people in lower levels of the hierarchy, as
        recorded in the location's own population. Zero if none is set.
        """
        self._assert_location_exists(location_id)
        check_age_range(start_age, end_age)

        if location_id in self._populations:
            return self._populations[location_id].get_count(start_age, end_age)
        return 0

    def _children_with_populations(self, location_id: str) -> List[str]:
        return sorted(child for child in self._children[location_id] if child in self._populations)

    def get_exclusive_population(self, location_id: str) -> PopulationLedger:
        """
        The location's population EXCLUDING its direct children's populations.

        Children are removed in ascending ID order. Since max(0, max(0, x - a) - b)
        == max(0, x - a - b), any order gives the same result.

        Raises:
            UnknownLocationError: Location not registered
            MissingPopulationError: Location has no population set
        """
        own = self.get_population(location_id)

        children = self._children_with_populations(location_id)
        if not children:
            return own.copy()

        result = own
        for child in children:
            result = result.excluding(self._populations[child])
        return result

    def get_exclusive_population_size(self, location_id: str, start_age: int, end_age: int) -> int:
        """People in the location in the age range, excluding sub-locations, rounded down."""
        return self.get_exclusive_population(location_id).get_count(start_age, end_age)

    def containment_violations(self) -> List[Tuple[str, str]]:
        """
        Find children whose population does not fit in their parent's.

        Each parent's population is consumed child by child (ascending ID), so
        siblings that only fit individually are also reported.

        Returns:
            (parent_id, child_id) pairs, in parent registration order
        """
        violations = []
        for parent_id in self._locations:
            if parent_id not in self._populations:
                continue

            remaining = self._populations[parent_id]
            for child_id in self._children_with_populations(parent_id):
                child = self._populations[child_id]
                logger.debug(f"Remaining in {parent_id}: {remaining}")
                logger.debug(f"Removing {child_id}: {child}")
                if not remaining.entirely_contains(child):
                    violations.append((parent_id, child_id))
                remaining = remaining.excluding(child)
        return violations

    # ------------------------------------------------------------------ #
    # Points of interest
    # ------------------------------------------------------------------ #

    def get_poi_groups(self, location_id: str) -> List[POIGroup]:
        """POI groups of one location, in the order they were added."""
        self._assert_location_exists(location_id)
        return list(self._poi_groups.get(location_id, []))

    def iter_poi_groups(self) -> Iterable[POIGroup]:
        """Every POI group in the graph, grouped by location."""
        for groups in self._poi_groups.values():
            yield from groups
