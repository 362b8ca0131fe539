"""Hosted checkout links for the premium upgrade.

Payment confirmation happens outside this codebase: the checkout provider
notifies a separate webhook keyed by the ``client_reference_id`` we append.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional
from urllib.parse import urlencode

FREE_ITEM_LIMIT = 5


@dataclass(frozen=True)
class CheckoutPlan:
    plan_id: str
    label: str
    price: str
    url: str


PLANS: List[CheckoutPlan] = [
    CheckoutPlan("monthly", "Monthly", "$4.50/month", "https://buy.stripe.com/bJe28q1H5e63d1vdVp5AR0k"),
    CheckoutPlan("annual", "Annual", "$43/year", "https://buy.stripe.com/6oUbJ0bhF7HF1iNbNh5AR0l"),
    CheckoutPlan("early_adopter", "Early adopter", "$20/year", "https://buy.stripe.com/9B68wO1H5aTR1iNcRl5AR0W"),
]


def checkout_link(plan: CheckoutPlan, reference_id: Optional[str] = None) -> str:
    if not reference_id:
        return plan.url
    return f"{plan.url}?{urlencode({'client_reference_id': reference_id})}"


def checkout_links(reference_id: Optional[str] = None) -> Dict[str, str]:
    """Map plan ids to links tagged with the signed-in user's id."""

    return {plan.plan_id: checkout_link(plan, reference_id) for plan in PLANS}


def requires_upgrade(item_count: int, is_premium: bool = False) -> bool:
    """Free accounts may store up to ``FREE_ITEM_LIMIT`` closet items."""

    return not is_premium and item_count >= FREE_ITEM_LIMIT


__all__ = ["CheckoutPlan", "FREE_ITEM_LIMIT", "PLANS", "checkout_link", "checkout_links", "requires_upgrade"]
