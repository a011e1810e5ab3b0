"""Distance-tiered order pricing."""

from typing import Sequence, Tuple

# (lower bound in km, rate per km per unit of weight); lower bounds inclusive
DEFAULT_TIERS: Tuple[Tuple[float, float], ...] = (
    (0.0, 30.0),
    (10.0, 25.0),
    (50.0, 20.0),
)


class PricingPolicy:
    """
    Maps a distance and a weight to an amount: ``distance * rate * weight``.

    The rate is taken from the highest tier whose lower bound is <= distance,
    so each breakpoint belongs to the tier it opens. Inputs are not validated;
    the order service rejects non-positive weights before calling in.
    """

    def __init__(self, tiers: Sequence[Tuple[float, float]] = DEFAULT_TIERS):
        if not tiers:
            raise ValueError("at least one pricing tier is required")
        self.tiers = tuple(sorted(tiers))

    def rate_for(self, distance_km: float) -> float:
        rate = self.tiers[0][1]
        for lower_bound, tier_rate in self.tiers:
            if distance_km < lower_bound:
                break
            rate = tier_rate
        return rate

    def price(self, distance_km: float, weight: float) -> float:
        return distance_km * self.rate_for(distance_km) * weight


_default_policy = PricingPolicy()


def price(distance_km: float, weight: float) -> float:
    return _default_policy.price(distance_km, weight)
