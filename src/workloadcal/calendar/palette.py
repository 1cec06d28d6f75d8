"""Stable member colors across re-renders."""

from typing import Iterable, Optional

# Member colors (RGB tuples, 0-1 scale)
MEMBER_PALETTE = [
    (0.26, 0.52, 0.96),  # Blue
    (0.20, 0.66, 0.33),  # Green
    (0.98, 0.74, 0.02),  # Amber
    (0.92, 0.26, 0.21),  # Red
    (0.61, 0.15, 0.69),  # Purple
    (0.00, 0.59, 0.65),  # Teal
    (1.00, 0.44, 0.00),  # Orange
    (0.47, 0.33, 0.28),  # Brown
    (0.91, 0.12, 0.39),  # Pink
    (0.38, 0.49, 0.55),  # Slate
]


class MemberColorArena:
    """memberId -> palette index map that is only ever extended.

    Indices are assigned in registration order and never reassigned, so a
    member keeps the same color when the roster is filtered or reordered.
    """

    def __init__(self, palette: Optional[list[tuple[float, float, float]]] = None, size: int = 10):
        self.palette = palette or MEMBER_PALETTE[:size]
        self._indices: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._indices)

    def __contains__(self, member_id: str) -> bool:
        return member_id in self._indices

    def register(self, member_ids: Iterable[str]) -> None:
        for member_id in member_ids:
            if member_id not in self._indices:
                self._indices[member_id] = len(self._indices)

    def index_of(self, member_id: str) -> int:
        """Palette index of a member, registering unseen members on the fly."""
        if member_id not in self._indices:
            self.register([member_id])
        return self._indices[member_id] % len(self.palette)

    def color_of(self, member_id: str) -> tuple[float, float, float]:
        return self.palette[self.index_of(member_id)]
