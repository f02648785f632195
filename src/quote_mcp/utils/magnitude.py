"""Market-cap magnitude reconciliation.

Providers report market capitalization with an inconsistent unit scale: some
payloads carry raw dollars, others are pre-scaled to millions or billions,
and the field itself never says which. This module infers the real magnitude.

The resolution contract:
1. A reference (shares outstanding x price) anchors the scale when present.
   Every scale candidate is scored by its distance in decades from the
   reference; the closest one wins if it is within the match threshold.
2. A reference that no candidate can match replaces the reported figure.
3. Without a reference, heuristic buckets on the raw number guess the unit.
   These guesses are never marked confident.
4. Missing, zero, negative, NaN and non-numeric inputs count as absent.
   Nothing here raises for bad values.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any

from quote_mcp.utils.normalize import to_finite_float


class ScaleCandidate(IntEnum):
    """Multiplier that maps a reported figure back to raw units."""

    UNITS = 1
    THOUSANDS = 10**3
    MILLIONS = 10**6
    BILLIONS = 10**9
    TRILLIONS = 10**12


# Fixed evaluation order; the first candidate wins a score tie
SCALE_CANDIDATES: tuple[ScaleCandidate, ...] = tuple(ScaleCandidate)


class ResolutionMethod(str, Enum):
    """How a canonical market cap was obtained."""

    MATCHED_TO_REFERENCE = "matched-to-reference"
    REFERENCE_FALLBACK = "reference-fallback"
    HEURISTIC_BUCKET = "heuristic-bucket"
    REFERENCE_ONLY = "reference-only"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class ResolverConfig:
    """Thresholds for magnitude resolution.

    The defaults are empirical, tuned to the conventions of the providers
    seen so far, and should be treated as tunable.
    """

    # Max distance in decades between scaled reported value and reference
    match_threshold: float = 0.5
    # Above this the reported figure is already raw dollars
    raw_floor: float = 1_000_000
    # [billions_floor, raw_floor] is read as billions
    billions_floor: float = 1_000
    # (unit_ceiling, billions_floor) is billions too, <= unit_ceiling is millions
    unit_ceiling: float = 1

    def __post_init__(self) -> None:
        if not self.match_threshold > 0:
            raise ValueError(f"match_threshold must be > 0, got {self.match_threshold}")
        if not 0 < self.unit_ceiling < self.billions_floor <= self.raw_floor:
            raise ValueError(
                "Bucket boundaries must satisfy 0 < unit_ceiling < billions_floor <= raw_floor, "
                f"got {self.unit_ceiling}, {self.billions_floor}, {self.raw_floor}"
            )

    @classmethod
    def from_env(cls) -> ResolverConfig:
        """Build config from MCAP_* environment variables."""
        defaults = cls()
        return cls(
            match_threshold=float(
                os.environ.get("MCAP_MATCH_THRESHOLD", str(defaults.match_threshold))
            ),
            raw_floor=float(os.environ.get("MCAP_RAW_FLOOR", str(defaults.raw_floor))),
            billions_floor=float(
                os.environ.get("MCAP_BILLIONS_FLOOR", str(defaults.billions_floor))
            ),
            unit_ceiling=float(os.environ.get("MCAP_UNIT_CEILING", str(defaults.unit_ceiling))),
        )


DEFAULT_CONFIG = ResolverConfig()


@dataclass(frozen=True)
class ResolutionResult:
    """Outcome of resolving a reported market cap."""

    canonical_value: float | None
    chosen_scale: ScaleCandidate | None
    method: ResolutionMethod
    # Winning log-ratio distance (decades), only when a reference comparison ran
    score: float | None = None

    @property
    def confident(self) -> bool:
        """Only a reference match is high-confidence."""
        return self.method is ResolutionMethod.MATCHED_TO_REFERENCE

    def to_dict(self) -> dict[str, Any]:
        """Provenance view for JSON responses."""
        return {
            "canonical_value": self.canonical_value,
            "chosen_scale": int(self.chosen_scale) if self.chosen_scale is not None else None,
            "method": self.method.value,
            "confident": self.confident,
            "score": round(self.score, 6) if self.score is not None else None,
        }


def estimate_reference(count: Any, unit_price: Any) -> float | None:
    """
    Estimate market cap independently as count x unit price.

    A zero price gives 0.0, which is a real (halted) figure but cannot
    disambiguate a scale; the resolver ignores it for matching.

    Args:
        count: Shares outstanding, raw units
        unit_price: Current price per share

    Returns:
        Product in raw units, or None unless count > 0 and price >= 0
    """
    shares = to_finite_float(count)
    price = to_finite_float(unit_price)
    if shares is None or price is None:
        return None
    if shares <= 0 or price < 0:
        return None
    product = shares * price
    if not math.isfinite(product):
        return None
    return product


def _match_to_reference(reported: float, reference: float) -> tuple[ScaleCandidate, float, float]:
    """Return (candidate, scaled value, score) of the closest scale candidate."""
    # Difference of logs instead of log of the ratio, which can underflow to 0
    log_reference = math.log10(reference)
    # reported is finite and > 0, so UNITS always survives the filter
    best = (ScaleCandidate.UNITS, reported, abs(log_reference - math.log10(reported)))
    for candidate in SCALE_CANDIDATES[1:]:
        scaled = reported * candidate
        if not math.isfinite(scaled) or scaled <= 0:
            continue
        score = abs(log_reference - math.log10(scaled))
        if score < best[2]:
            best = (candidate, scaled, score)
    return best


def bucket_scale(reported: float, config: ResolverConfig = DEFAULT_CONFIG) -> ScaleCandidate:
    """
    Guess the unit of a reported figure from its raw magnitude.

    Buckets on |reported| (non-zero):
        > raw_floor                          -> raw dollars
        billions_floor <= x <= raw_floor      -> billions
        unit_ceiling < x < billions_floor     -> billions
        <= unit_ceiling                       -> millions
    """
    magnitude = abs(reported)
    if magnitude > config.raw_floor:
        return ScaleCandidate.UNITS
    if magnitude >= config.billions_floor:
        return ScaleCandidate.BILLIONS
    if magnitude > config.unit_ceiling:
        return ScaleCandidate.BILLIONS
    return ScaleCandidate.MILLIONS


def resolve_magnitude(
    reported: Any,
    reference: Any,
    config: ResolverConfig = DEFAULT_CONFIG,
) -> ResolutionResult:
    """
    Resolve the real-world magnitude of a reported market cap.

    Args:
        reported: Provider market-cap figure of unknown scale (may be None)
        reference: Independent raw-unit estimate, e.g. from estimate_reference()
        config: Thresholds and bucket boundaries

    Returns:
        ResolutionResult with canonical value in raw units
    """
    reported_value = to_finite_float(reported)
    if reported_value is not None and reported_value <= 0:
        reported_value = None

    reference_value = to_finite_float(reference)
    if reference_value is not None and reference_value < 0:
        reference_value = None
    # Exactly 0 is a real figure but carries no scale information
    usable_reference = reference_value if reference_value else None

    if reported_value is not None and usable_reference is not None:
        candidate, scaled, score = _match_to_reference(reported_value, usable_reference)
        if score < config.match_threshold:
            return ResolutionResult(
                canonical_value=scaled,
                chosen_scale=candidate,
                method=ResolutionMethod.MATCHED_TO_REFERENCE,
                score=score,
            )
        return ResolutionResult(
            canonical_value=usable_reference,
            chosen_scale=None,
            method=ResolutionMethod.REFERENCE_FALLBACK,
            score=score,
        )

    if reported_value is not None:
        scale = bucket_scale(reported_value, config)
        return ResolutionResult(
            canonical_value=reported_value * scale,
            chosen_scale=scale,
            method=ResolutionMethod.HEURISTIC_BUCKET,
        )

    if reference_value is not None:
        return ResolutionResult(
            canonical_value=reference_value,
            chosen_scale=None,
            method=ResolutionMethod.REFERENCE_ONLY,
        )

    return ResolutionResult(
        canonical_value=None,
        chosen_scale=None,
        method=ResolutionMethod.UNAVAILABLE,
    )
