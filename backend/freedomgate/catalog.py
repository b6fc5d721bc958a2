"""Static subscription plan catalog.

Plans are configuration, not database rows: subscriptions reference them by
``plan_id`` only, so a plan removed from this list leaves its subscriptions
intact and they render as "Unknown Plan".
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from dateutil.relativedelta import relativedelta


@dataclass(frozen=True)
class Plan:
    id: str
    name: str
    duration: str
    price: float
    duration_in_days: int
    step: relativedelta = field(repr=False, compare=False)
    features: tuple = ()
    popular: bool = False

    def extend(self, start: datetime) -> datetime:
        """Add one billing period. Calendar months clamp to the last valid day."""
        return start + self.step

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "duration": self.duration,
            "price": self.price,
            "durationInDays": self.duration_in_days,
            "features": list(self.features),
            "popular": self.popular,
        }


_BASE_FEATURES = ("highSpeedVPN", "unlimitedBandwidth", "multipleLocations")

SUBSCRIPTION_PLANS = [
    Plan("weekly", "weekly", "weekly", 4.99, 7, relativedelta(days=7),
         _BASE_FEATURES + ("basicSupport",)),
    Plan("monthly", "monthly", "monthly", 15.99, 30, relativedelta(months=1),
         _BASE_FEATURES + ("prioritySupport", "advancedSecurity"), popular=True),
    Plan("quarterly", "quarterly", "quarterly", 39.99, 90, relativedelta(months=3),
         _BASE_FEATURES + ("prioritySupport", "advancedSecurity", "adBlocker")),
    Plan("biannual", "biannual", "biannual", 69.99, 180, relativedelta(months=6),
         _BASE_FEATURES + ("prioritySupport", "advancedSecurity", "adBlocker", "dedicatedIP")),
    Plan("annual", "annual", "annual", 119.99, 365, relativedelta(years=1),
         _BASE_FEATURES + ("prioritySupport", "advancedSecurity", "adBlocker", "dedicatedIP", "bestValue")),
]

_PLANS_BY_ID = {p.id: p for p in SUBSCRIPTION_PLANS}

PAYMENT_METHODS = [
    {"id": "usdt-trc20", "name": "USDT (TRC-20)", "network": "TRON"},
    {"id": "usdt-erc20", "name": "USDT (ERC-20)", "network": "Ethereum"},
]

DEFAULT_CURRENCY = "USDT"


def get_plan(plan_id: str) -> Optional[Plan]:
    return _PLANS_BY_ID.get(plan_id)


def add_plan_duration(start: datetime, plan_id: str) -> datetime:
    """End of one billing period of ``plan_id`` from ``start``; unknown ids get one month."""
    plan = get_plan(plan_id)
    if plan is None:
        return start + relativedelta(months=1)
    return plan.extend(start)


def plan_summary(plan_id: str) -> dict:
    plan = get_plan(plan_id)
    if plan is None:
        return {"id": plan_id, "name": "Unknown Plan", "price": 0, "duration": "1 month"}
    return plan.to_dict()
