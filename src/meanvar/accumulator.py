from __future__ import annotations

import math
from dataclasses import dataclass
from itertools import zip_longest
from typing import Iterable

import numpy as np

from .error import new_error

_MISSING = object()


def _divide(numerator: float, denominator: float) -> float:
    if denominator == 0.0:
        with np.errstate(divide="ignore", invalid="ignore"):
            return float(np.true_divide(numerator, denominator))
    return numerator / denominator


def _sqrt(value: float) -> float:
    if value >= 0.0:
        return math.sqrt(value)
    with np.errstate(invalid="ignore"):
        return float(np.sqrt(value))


@dataclass(frozen=True)
class MeanVarianceAccumulator:
    weight_sum: float = 0.0
    mean: float = 0.0
    sum_sq_dev: float = 0.0

    @classmethod
    def empty(cls) -> "MeanVarianceAccumulator":
        return EMPTY

    @classmethod
    def init(cls, first_value: float, first_weight: float = 1.0) -> "MeanVarianceAccumulator":
        if first_weight == 0.0:
            return EMPTY
        return cls(weight_sum=first_weight, mean=first_value, sum_sq_dev=0.0)

    @classmethod
    def from_sequence(cls, values: Iterable[float]) -> "MeanVarianceAccumulator":
        acc = EMPTY
        for value in values:
            acc = acc.add(value)
        return acc

    @classmethod
    def from_weighted(
        cls, values: Iterable[float], weights: Iterable[float]
    ) -> "MeanVarianceAccumulator":
        acc = EMPTY
        for value, weight in zip_longest(values, weights, fillvalue=_MISSING):
            if value is _MISSING or weight is _MISSING:
                raise new_error("Values and weights differ in length.")
            acc = acc.add(value, weight)
        return acc

    @classmethod
    def from_array(cls, values, weights=None) -> "MeanVarianceAccumulator":
        xs = np.asarray(values, dtype=float).ravel()
        if weights is None:
            ws = np.ones_like(xs)
        else:
            ws = np.asarray(weights, dtype=float).ravel()
            if ws.shape != xs.shape:
                raise new_error(
                    f"Got {xs.size} values, but {ws.size} weights."
                )
        keep = ws != 0.0
        xs = xs[keep]
        ws = ws[keep]
        if xs.size == 0:
            return EMPTY
        if not (np.all(np.isfinite(xs)) and np.all(np.isfinite(ws))):
            return cls.from_weighted(xs.tolist(), ws.tolist())
        weight_sum = float(np.sum(ws))
        with np.errstate(divide="ignore", invalid="ignore"):
            mean = float(np.sum(ws * xs) / weight_sum)
            deviations = xs - mean
            sum_sq_dev = float(np.sum(ws * deviations * deviations))
        return cls(weight_sum=weight_sum, mean=mean, sum_sq_dev=sum_sq_dev)

    def add(self, value: float, weight: float = 1.0) -> "MeanVarianceAccumulator":
        if weight == 0.0:
            return self
        new_weight_sum = self.weight_sum + weight
        delta = value - self.mean
        mean_scale = _divide(weight, new_weight_sum)
        dev_scale = _divide(self.weight_sum * weight, new_weight_sum)
        return MeanVarianceAccumulator(
            weight_sum=new_weight_sum,
            mean=self.mean + delta * mean_scale,
            sum_sq_dev=self.sum_sq_dev + delta * delta * dev_scale,
        )

    def merge(self, other: "MeanVarianceAccumulator") -> "MeanVarianceAccumulator":
        # an empty side contributes nothing, also when the other mean is infinite
        if other._is_empty():
            return self
        if self._is_empty():
            return other
        new_weight_sum = self.weight_sum + other.weight_sum
        delta = other.mean - self.mean
        mean_scale = _divide(other.weight_sum, new_weight_sum)
        dev_scale = _divide(self.weight_sum * other.weight_sum, new_weight_sum)
        return MeanVarianceAccumulator(
            weight_sum=new_weight_sum,
            mean=self.mean + delta * mean_scale,
            sum_sq_dev=self.sum_sq_dev + other.sum_sq_dev + delta * delta * dev_scale,
        )

    def __add__(self, other):
        if not isinstance(other, MeanVarianceAccumulator):
            return NotImplemented
        return self.merge(other)

    def __radd__(self, other):
        # sum() starts from 0
        if isinstance(other, int) and other == 0:
            return self
        return NotImplemented

    def _is_empty(self) -> bool:
        return self.weight_sum == 0.0 and self.sum_sq_dev == 0.0

    @property
    def variance(self) -> float:
        return _divide(self.sum_sq_dev, self.weight_sum)

    @property
    def standard_deviation(self) -> float:
        return _sqrt(self.variance)

    @property
    def sample_variance(self) -> float:
        """Unbiased variance, dividing by ``weight_sum - 1``.

        Only meaningful when every weight is 1. With other weights, or with a
        weight sum of at most 1, the result is a well-defined but meaningless
        float (huge, negative, infinite or NaN). No check is made.
        """
        return _divide(self.sum_sq_dev, self.weight_sum - 1.0)

    @property
    def sample_standard_deviation(self) -> float:
        return _sqrt(self.sample_variance)

    def __str__(self) -> str:
        return f"{float(self.mean)!r} +/- {float(self.standard_deviation)!r}"


EMPTY = MeanVarianceAccumulator()
