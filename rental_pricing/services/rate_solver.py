"""Minimum-cost coverage of a rental duration by rate periods.

Any non-negative integer combination of rate periods may be bought, and
the combination may run past the requested duration when that is
cheaper (one week can undercut eight single days). This is unbounded
knapsack for minimum cost, solved with a dynamic program over a time axis
discretized by the GCD of the rate periods.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from functools import reduce

from rental_pricing.services.money import PricingResult, to_money
from rental_pricing.services.pricing_errors import (
    InvalidDurationError,
    PricingConfigurationError,
    RateScheduleTooLargeError,
)
from rental_pricing.services.rate_schedule import RateOption

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 500_000


@dataclass(frozen=True, slots=True)
class RatePlanLine:
    """How many times a rate is bought in the chosen combination."""

    rate: RateOption
    quantity: int


@dataclass(frozen=True, slots=True)
class RateSolution:
    """Cheapest way found to cover a duration."""

    total_cost: Decimal
    covered_minutes: int
    plan: tuple[RatePlanLine, ...]

    @property
    def periods_used(self) -> int:
        return sum(line.quantity for line in self.plan)

    @property
    def dominant_rate(self) -> RateOption | None:
        """Rate bought most often; the longer period wins a tie."""
        if not self.plan:
            return None
        return max(
            self.plan, key=lambda line: (line.quantity, line.rate.period_minutes)
        ).rate


def _is_finite(value: int | float | Decimal) -> bool:
    if isinstance(value, Decimal):
        return value.is_finite()
    return math.isfinite(value)


def _target_minutes(duration_minutes: int | float | Decimal) -> int:
    if (
        isinstance(duration_minutes, bool)
        or not _is_finite(duration_minutes)
        or duration_minutes <= 0
    ):
        raise InvalidDurationError(
            f"Duration must be a positive number, got {duration_minutes!r} minutes"
        )
    return math.ceil(duration_minutes)


def _validated_rates(rates: Sequence[RateOption]) -> list[RateOption]:
    if not rates:
        raise PricingConfigurationError("At least one rate option is required")
    for rate in rates:
        if rate.period_minutes <= 0 or rate.price < 0:
            raise PricingConfigurationError(f"Invalid rate option: {rate!r}")
    return sorted(rates, key=lambda rate: rate.period_minutes)


def solve_min_cost(
    duration_minutes: int | float | Decimal,
    rates: Sequence[RateOption],
    *,
    max_steps: int = DEFAULT_MAX_STEPS,
) -> RateSolution:
    """Return the cheapest combination of ``rates`` covering the duration.

    The duration is rounded up to whole minutes and then up to whole steps,
    so the result never covers less than requested. Between equally cheap
    combinations the one with fewer periods is preferred.

    Raises:
        PricingConfigurationError: ``rates`` is empty or holds an invalid rate.
        InvalidDurationError: the duration is zero or negative.
        RateScheduleTooLargeError: the DP table would exceed ``max_steps``.
    """
    ordered = _validated_rates(rates)
    target_minutes = _target_minutes(duration_minutes)

    scale = reduce(math.gcd, (rate.period_minutes for rate in ordered))
    rate_steps = [rate.period_minutes // scale for rate in ordered]
    target_steps = -(-target_minutes // scale)
    # Some optimal cover always ends before target + longest period: dropping
    # any one period from a longer cover still covers the target for no more.
    last_step = target_steps + rate_steps[-1]
    if last_step > max_steps:
        logger.warning(
            "Rate schedule too large: %s steps (scale=%s min, target=%s min)",
            last_step,
            scale,
            target_minutes,
        )
        raise RateScheduleTooLargeError(last_step, max_steps)

    cost: list[Decimal | None] = [None] * (last_step + 1)
    segments = [0] * (last_step + 1)
    chosen_rate = [-1] * (last_step + 1)
    cost[0] = Decimal(0)

    for step in range(1, last_step + 1):
        for index, rate_step in enumerate(rate_steps):
            if rate_step > step:
                break
            source_cost = cost[step - rate_step]
            if source_cost is None:
                continue
            candidate = source_cost + ordered[index].price
            candidate_segments = segments[step - rate_step] + 1
            current = cost[step]
            if (
                current is None
                or candidate < current
                or (candidate == current and candidate_segments < segments[step])
            ):
                cost[step] = candidate
                segments[step] = candidate_segments
                chosen_rate[step] = index

    best_step = -1
    for step in range(target_steps, last_step + 1):
        step_cost = cost[step]
        if step_cost is None:
            continue
        if best_step == -1:
            best_step = step
            continue
        best_cost = cost[best_step]
        if step_cost < best_cost or (
            step_cost == best_cost and segments[step] < segments[best_step]
        ):
            best_step = step

    if best_step == -1:
        return _fallback(target_minutes, ordered)

    quantities = [0] * len(ordered)
    cursor = best_step
    while cursor > 0:
        index = chosen_rate[cursor]
        quantities[index] += 1
        cursor -= rate_steps[index]

    plan = tuple(
        RatePlanLine(rate=rate, quantity=quantity)
        for rate, quantity in zip(ordered, quantities)
        if quantity > 0
    )
    return RateSolution(
        total_cost=to_money(cost[best_step]),
        covered_minutes=best_step * scale,
        plan=plan,
    )


def _fallback(target_minutes: int, ordered: list[RateOption]) -> RateSolution:
    longest = ordered[-1]
    count = math.ceil(target_minutes / longest.period_minutes)
    logger.warning(
        "No DP solution for %s minutes; pricing %s x %s-minute periods",
        target_minutes,
        count,
        longest.period_minutes,
    )
    return RateSolution(
        total_cost=to_money(longest.price * count),
        covered_minutes=count * longest.period_minutes,
        plan=(RatePlanLine(rate=longest, quantity=count),),
    )


def best_rate_cost(
    duration_minutes: int | float | Decimal,
    rates: Sequence[RateOption],
    *,
    max_steps: int = DEFAULT_MAX_STEPS,
) -> PricingResult:
    """Cheapest subtotal covering ``duration_minutes``."""
    solution = solve_min_cost(duration_minutes, rates, max_steps=max_steps)
    return PricingResult(subtotal=solution.total_cost)
