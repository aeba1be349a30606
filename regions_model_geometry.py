"""
Geometric footprints of locations.

A footprint is either a single point (one latitude/longitude pair) or a
fenced region (at least three pairs forming a simple polygon). Polygon
operations are delegated to shapely.
"""

import logging
from typing import Iterator, List, Tuple

import numpy as np
from shapely.geometry import Point, Polygon
from shapely.validation import make_valid

from regions_model_errors import GraphFrozenError, ValidityError

logger = logging.getLogger(__name__)


class GeometricArea:
    """
    The area a location occupies.

    Vertices are appended in path order; the first point starts the path and
    every later point extends it. The area never shrinks.
    """

    def __init__(self, location_id: str):
        """
        Initialize an empty area.

        Args:
            location_id: ID of the location that owns this area
        """
        self.location_id = location_id
        self._latitudes: List[float] = []
        self._longitudes: List[float] = []
        self._polygon = None
        self._frozen = False

    def __repr__(self) -> str:
        return f"GeometricArea(location_id={self.location_id!r}, vertices={len(self._latitudes)})"

    def __len__(self) -> int:
        return len(self._latitudes)

    def __iter__(self) -> Iterator[Tuple[float, float]]:
        """Iterate (lat, lon) pairs in path order."""
        if not self.is_valid():
            raise ValidityError(f"{self!r} is not a valid area. Does it have any points?")
        return iter(list(zip(self._latitudes, self._longitudes)))

    # ------------------------------------------------------------------ #
    # Construction and shape checks
    # ------------------------------------------------------------------ #

    def add_point(self, latitude: float, longitude: float):
        """
        Append a vertex to the path.

        Raises:
            GraphFrozenError: The area belongs to a built graph
        """
        if self._frozen:
            raise GraphFrozenError(f"{self!r} belongs to a built region graph and can no longer change.")
        self._latitudes.append(float(latitude))
        self._longitudes.append(float(longitude))
        self._polygon = None

    def freeze(self):
        """Reject any further vertices."""
        self._frozen = True

    def _assert_validity(self):
        if len(self._latitudes) != len(self._longitudes):
            raise ValidityError(
                f"{self!r} needs an equal number of latitude and longitude points."
            )

    def is_point(self) -> bool:
        """True for a single latitude/longitude pair."""
        self._assert_validity()
        return len(self._latitudes) == 1

    def is_region(self) -> bool:
        """True for a path of three or more vertices."""
        self._assert_validity()
        return len(self._latitudes) >= 3

    def is_valid(self) -> bool:
        """True if the area has enough points to be a point or a region."""
        return self.is_point() or self.is_region()

    @property
    def latitudes(self) -> Tuple[float, ...]:
        """Latitudes in path order."""
        return tuple(self._latitudes)

    @property
    def longitudes(self) -> Tuple[float, ...]:
        """Longitudes in path order."""
        return tuple(self._longitudes)

    def lat_lon_pairs(self) -> List[float]:
        """Flat list [lat1, lon1, lat2, lon2, ...]."""
        pairs = []
        for lat, lon in zip(self._latitudes, self._longitudes):
            pairs.extend((lat, lon))
        return pairs

    # ------------------------------------------------------------------ #
    # Geometry
    # ------------------------------------------------------------------ #

    def area(self) -> float:
        """
        Area of the polygon using the shoelace formula.

        Vertices are taken in insertion order; the result is orientation
        independent.

        Returns:
            Absolute enclosed area in squared coordinate units
        """
        if not self.is_region():
            raise ValidityError(f"{self!r} must have at least three points to have an area.")

        x = np.asarray(self._latitudes)
        y = np.asarray(self._longitudes)
        return 0.5 * abs(float(np.dot(x, np.roll(y, -1)) - np.dot(np.roll(x, -1), y)))

    def to_shapely(self):
        """
        The area as a shapely geometry.

        A self-intersecting path keeps every lobe it encloses, so a bowtie
        becomes a MultiPolygon of its two triangles.
        """
        if self.is_point():
            return Point(self._longitudes[0], self._latitudes[0])
        if not self.is_region():
            raise ValidityError(f"{self!r} is neither a point nor a region.")

        if self._polygon is None:
            polygon = Polygon(list(zip(self._longitudes, self._latitudes)))
            if not polygon.is_valid:
                logger.debug(f"Repairing invalid polygon for {self.location_id}")
                polygon = make_valid(polygon)
            self._polygon = polygon
        return self._polygon

    def contains(self, latitude: float, longitude: float) -> bool:
        """
        Point-in-polygon test.

        Always False for point areas; points on the boundary are not contained.
        """
        if not self.is_region():
            return False
        return self.to_shapely().contains(Point(float(longitude), float(latitude)))

    def intersects(self, other: 'GeometricArea') -> bool:
        """
        Check whether two areas share any location.

        Points intersect points only when their coordinates are identical.
        Regions intersect when their interiors overlap; regions that only
        touch along an edge or corner do not intersect.
        """
        if self.is_point() and other.is_point():
            return (self._latitudes == other._latitudes
                    and self._longitudes == other._longitudes)
        elif self.is_point() and other.is_region():
            return other.contains(self._latitudes[0], self._longitudes[0])
        elif self.is_region() and other.is_point():
            return self.contains(other._latitudes[0], other._longitudes[0])
        elif self.is_region() and other.is_region():
            us = self.to_shapely()
            them = other.to_shapely()
            return us.intersects(them) and not us.touches(them)

        raise ValidityError(f"Cannot intersect {self!r} with {other!r}.")
