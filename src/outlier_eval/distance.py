"""Minimal distance-function interface shared with the rest of the toolkit."""

import math
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Type

import numpy as np


class _UndefinedDistance:
    """Sentinel for a distance that cannot be computed."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED_DISTANCE"


UNDEFINED_DISTANCE = _UndefinedDistance()


class DistanceFunction(ABC):
    """
    Capability interface of a distance function.

    The special values are recognized by equality with the sentinels returned
    by ``infinite_distance``, ``null_distance`` and ``undefined_distance``,
    never by numeric comparison.
    """

    name = "distance"

    @abstractmethod
    def distance(self, a: Any, b: Any) -> Any:
        """
        Compute the distance between two objects.

        Args:
            a: First object
            b: Second object

        Returns:
            Distance value
        """
        pass

    def infinite_distance(self) -> Any:
        return math.inf

    def null_distance(self) -> Any:
        return 0.0

    def undefined_distance(self) -> Any:
        return UNDEFINED_DISTANCE

    def is_infinite_distance(self, d: Any) -> bool:
        return bool(d == self.infinite_distance())

    def is_null_distance(self, d: Any) -> bool:
        return bool(d == self.null_distance())

    def is_undefined_distance(self, d: Any) -> bool:
        return bool(d == self.undefined_distance())

    def distance_by_id(self, database: Mapping[Any, Any], id1: Any, id2: Any) -> Any:
        """Compute the distance between two objects looked up by identifier."""
        return self.distance(database[id1], database[id2])


class EuclideanDistance(DistanceFunction):
    """Euclidean (L2) distance between numeric vectors."""

    name = "euclidean"

    def distance(self, a, b) -> float:
        a, b = np.asarray(a, dtype=np.float64), np.asarray(b, dtype=np.float64)
        if a.shape != b.shape:
            return self.undefined_distance()
        return float(np.linalg.norm(a - b))


class ManhattanDistance(DistanceFunction):
    """Manhattan (L1) distance between numeric vectors."""

    name = "manhattan"

    def distance(self, a, b) -> float:
        a, b = np.asarray(a, dtype=np.float64), np.asarray(b, dtype=np.float64)
        if a.shape != b.shape:
            return self.undefined_distance()
        return float(np.abs(a - b).sum())


DISTANCE_FUNCTIONS: Dict[str, Type[DistanceFunction]] = {
    EuclideanDistance.name: EuclideanDistance,
    ManhattanDistance.name: ManhattanDistance,
}


def get_distance_function(tag: str) -> DistanceFunction:
    """
    Create the distance function named by a tag.

    Args:
        tag: Metric name ('euclidean' or 'manhattan')

    Returns:
        Distance function instance
    """
    try:
        return DISTANCE_FUNCTIONS[tag.lower()]()
    except KeyError:
        raise ValueError(f"Unknown distance function: {tag}") from None
