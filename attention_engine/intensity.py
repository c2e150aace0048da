"""
Attention Intensity Query

Answers "how strongly does the token under inspection attend to token j?"
for the presentation layer.

The token under inspection is the hovered one if any, otherwise the pinned
(active) one. Hover always wins, so a user can pin one token and still
preview others by moving the pointer over them.
"""

from typing import Dict, Iterable, List, Optional, Tuple

from .types import RENDER_THRESHOLD, AttentionWeight


class AttentionFocus:
    """
    Hover / pin state over a fixed list of attention edges.

    Example:
        >>> focus = AttentionFocus([AttentionWeight(2, 0, 0.5)])
        >>> focus.hover(2)
        >>> focus.intensity_for(0)
        0.5
    """

    def __init__(
        self,
        weights: Iterable[AttentionWeight] = (),
        render_threshold: float = RENDER_THRESHOLD,
    ):
        self.render_threshold = render_threshold
        self.hovered: Optional[int] = None
        self.active: Optional[int] = None
        self.set_weights(weights)

    def set_weights(self, weights: Iterable[AttentionWeight]):
        """Replace the edge list and clear hover and pin."""
        self.weights: List[AttentionWeight] = list(weights)
        self._edges: Dict[Tuple[int, int], float] = {}
        for w in self.weights:
            self._edges.setdefault((w.source_index, w.target_index), w.weight)
        self.hovered = None
        self.active = None

    def hover(self, index: Optional[int]):
        """Set the hovered position; None when the pointer leaves."""
        self.hovered = index

    def select(self, index: Optional[int]):
        """Pin a position, or unpin when it is already pinned."""
        self.active = None if index == self.active else index

    @property
    def reference(self) -> Optional[int]:
        return self.hovered if self.hovered is not None else self.active

    def intensity_for(self, candidate: int) -> float:
        reference = self.reference
        if reference is None:
            return 0.0
        return self._edges.get((reference, candidate), 0.0)

    def intensities(self, n: int) -> List[float]:
        return [self.intensity_for(i) for i in range(n)]

    def highlighted_edges(self) -> List[AttentionWeight]:
        """Edges leaving the reference position that are strong enough to draw."""
        reference = self.reference
        if reference is None:
            return []
        return [
            w for w in self.weights
            if w.source_index == reference and w.weight >= self.render_threshold
        ]
