"""XY curve storage with colinear simplification and area under curve."""

import logging
import math
from typing import Iterator, List, TextIO, Tuple

import numpy as np
from sklearn.metrics import auc

logger = logging.getLogger(__name__)

# Tolerance on the sine of the angle between consecutive segments
THRESHOLD = 1e-13


class XYCurve:
    """
    An ordered sequence of (x, y) points with axis labels.

    Points are kept in a pre-sized numpy buffer that grows when the size
    estimate is exceeded.
    """

    def __init__(self, label_x: str = "X", label_y: str = "Y", size: int = 10):
        """
        Initialize the curve.

        Args:
            label_x: Label of the x axis
            label_y: Label of the y axis
            size: Expected number of points
        """
        self.label_x = label_x
        self.label_y = label_y
        self._data = np.empty((max(int(size), 2), 2), dtype=np.float64)
        self._len = 0

    @property
    def long_name(self) -> str:
        return "XYCurve"

    @property
    def short_name(self) -> str:
        return "xy-curve"

    def __len__(self) -> int:
        return self._len

    def __iter__(self) -> Iterator[Tuple[float, float]]:
        for i in range(self._len):
            yield float(self._data[i, 0]), float(self._data[i, 1])

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.label_x}/{self.label_y}, points={self._len})"

    @property
    def x_values(self) -> np.ndarray:
        """Read-only view of the x coordinates."""
        view = self._data[: self._len, 0]
        view.flags.writeable = False
        return view

    @property
    def y_values(self) -> np.ndarray:
        """Read-only view of the y coordinates."""
        view = self._data[: self._len, 1]
        view.flags.writeable = False
        return view

    def get_x(self, i: int) -> float:
        return float(self._data[self._index(i), 0])

    def get_y(self, i: int) -> float:
        return float(self._data[self._index(i), 1])

    def points(self) -> List[Tuple[float, float]]:
        return list(self)

    def _index(self, i: int) -> int:
        if i < 0:
            i += self._len
        if not 0 <= i < self._len:
            raise IndexError(f"Point index {i} out of range for {self._len} points")
        return i

    def _ensure_capacity(self):
        if self._len < self._data.shape[0]:
            return
        grown = np.empty((self._data.shape[0] * 2, 2), dtype=np.float64)
        grown[: self._len] = self._data[: self._len]
        self._data = grown

    def add(self, x: float, y: float):
        """
        Append a point without simplification.

        Args:
            x: X coordinate
            y: Y coordinate
        """
        self._ensure_capacity()
        self._data[self._len, 0] = x
        self._data[self._len, 1] = y
        self._len += 1

    def add_and_simplify(self, x: float, y: float):
        """
        Append a point, merging it with the previous one when colinear.

        If the new point lies on the forward extension of the segment formed
        by the last two stored points, the last stored point is replaced
        instead of appending a new one. This keeps the polyline shape while
        bounding the number of stored points.

        Args:
            x: X coordinate
            y: Y coordinate
        """
        if self._len >= 2:
            l1x, l1y = self._data[self._len - 2]
            l2x, l2y = self._data[self._len - 1]
            ldx, ldy = l2x - l1x, l2y - l1y
            cdx, cdy = x - l2x, y - l2y
            cross = ldx * cdy - ldy * cdx
            scale = math.hypot(ldx, ldy) * math.hypot(cdx, cdy)
            # Forward direction only: a point doubling back is a corner
            if abs(cross) <= THRESHOLD * scale and ldx * cdx + ldy * cdy >= 0:
                self._data[self._len - 1, 0] = x
                self._data[self._len - 1, 1] = y
                return
        self.add(x, y)

    def to_text_lines(self) -> List[str]:
        """Format one ``"<x> <y>"`` line per point, in insertion order."""
        return [f"{x!r} {y!r}" for x, y in self]

    def write_to_text(self, out: TextIO):
        """
        Write the curve points as text.

        Args:
            out: Writable text stream
        """
        for line in self.to_text_lines():
            out.write(line + "\n")
        out.flush()


def area_under_curve(curve: XYCurve) -> float:
    """
    Compute the area under a curve with the trapezoidal rule.

    The curve must be non-decreasing in x.

    Args:
        curve: Curve to integrate

    Returns:
        Area under the curve, 0.0 for curves with fewer than two points
    """
    if len(curve) < 2:
        return 0.0
    return float(auc(curve.x_values, curve.y_values))


class PRCurve(XYCurve):
    """Precision-Recall curve with a lazily computed, memoized AUC."""

    PRAUC_LABEL = "PR-AUC"

    def __init__(self, size: int):
        """
        Initialize the curve.

        Args:
            size: Size estimation, usually the number of positives plus two
        """
        super().__init__("Recall", "Precision", size)
        self._auc = math.nan

    @property
    def long_name(self) -> str:
        return "Precision-Recall-Curve"

    @property
    def short_name(self) -> str:
        return "pr-curve"

    def get_auc(self) -> float:
        """
        Get the area under the precision-recall curve.

        Computed on the first call and cached afterwards.

        Returns:
            PR-AUC value
        """
        if math.isnan(self._auc):
            self._auc = area_under_curve(self)
            logger.debug(f"Computed {self.PRAUC_LABEL} over {len(self)} points")
        return self._auc

    def to_text_lines(self) -> List[str]:
        return [f"# {self.PRAUC_LABEL}: {self.get_auc()!r}"] + super().to_text_lines()
