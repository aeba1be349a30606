"""
String attribute bags shared by locations and populations.
"""

from typing import Callable, Dict, Optional, TypeVar

from regions_model_errors import GraphFrozenError

T = TypeVar('T')


class HasAttributes:
    """
    Something with an arbitrary number of string attributes.

    Values are always stored as strings; the typed getters parse them on read.
    """

    def __init__(self, attributes: Optional[Dict[str, str]] = None):
        self._attributes: Dict[str, str] = dict(attributes or {})
        self._frozen = False

    def freeze(self):
        """Reject any further changes; copies made later are not frozen."""
        self._frozen = True

    def _assert_mutable(self):
        if self._frozen:
            raise GraphFrozenError(f"{self!r} belongs to a built region graph and can no longer change.")

    @property
    def attributes(self) -> Dict[str, str]:
        """Copy of the attribute bag."""
        return dict(self._attributes)

    def get_attribute(self, name: str, transform: Callable[[Optional[str]], T]) -> T:
        """
        Get an attribute passed through a transform.

        Args:
            name: Attribute name
            transform: Called with the raw value, or None when absent

        Returns:
            The transformed value
        """
        return transform(self._attributes.get(name))

    def has_attribute(self, name: str) -> bool:
        """True if the attribute is set, whatever its value."""
        return name in self._attributes

    def set_attribute(self, name: str, value: str):
        """
        Set an attribute, stored as a string.

        Raises:
            ValueError: Name or value is None
            GraphFrozenError: Owner belongs to a built graph
        """
        self._assert_mutable()
        if name is None or value is None:
            raise ValueError("Attribute name and value must not be None")
        self._attributes[name] = str(value)

    def get_string(self, name: str) -> Optional[str]:
        """Raw value, None if absent."""
        return self._attributes.get(name)

    def get_boolean(self, name: str) -> bool:
        """True only if the attribute is present and equals 'true' (any case)."""
        return self.get_attribute(name, lambda s: s is not None and s.strip().lower() == 'true')

    def get_number(self, name: str) -> float:
        """Numeric value of the attribute, 0.0 if absent."""
        return self.get_attribute(name, lambda s: float(s) if s is not None else 0.0)

    def get_integer(self, name: str) -> int:
        """Numeric value truncated to an integer, 0 if absent."""
        return int(self.get_number(name))
