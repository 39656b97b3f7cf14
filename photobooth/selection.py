"""
Selection Module - Choosing Photos for the Strip
================================================
Ordered pick of captured photos. The order of selection is the order of the
slots on the strip.
"""

from typing import List, Tuple


class PhotoSelection:
    """
    Toggle-based ordered selection capped at the layout's photo count.

    Args:
        count: Number of slots to fill
        available: Number of captured photos to choose from
    """

    def __init__(self, count: int, available: int):
        self.count = count
        self.available = available
        self._indices: List[int] = []

    @property
    def indices(self) -> Tuple[int, ...]:
        """Selected photo indices in slot order."""
        return tuple(self._indices)

    def __len__(self) -> int:
        return len(self._indices)

    @property
    def is_full(self) -> bool:
        return len(self._indices) >= self.count

    @property
    def is_complete(self) -> bool:
        """True when every slot has a photo."""
        return len(self._indices) == self.count

    def is_selected(self, index: int) -> bool:
        return index in self._indices

    def is_dimmed(self, index: int) -> bool:
        """Unselected photos are dimmed while the selection is full."""
        return self.is_full and index not in self._indices

    def slot_of(self, index: int) -> int:
        """Slot position of a selected photo, or -1."""
        try:
            return self._indices.index(index)
        except ValueError:
            return -1

    def toggle(self, index: int) -> bool:
        """
        Select or deselect a photo.

        Deselecting always succeeds and closes the gap in the slot order.
        Selecting a new photo is ignored once ``count`` photos are chosen.

        Args:
            index: Captured photo index

        Returns:
            True if the selection changed

        Raises:
            IndexError: If the index does not refer to a captured photo
        """
        if not 0 <= index < self.available:
            raise IndexError(f"photo index {index} out of range (0-{self.available - 1})")

        if index in self._indices:
            self._indices.remove(index)
            return True

        if self.is_full:
            return False

        self._indices.append(index)
        return True

    def clear(self):
        self._indices.clear()
