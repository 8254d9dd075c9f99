"""
Plan comparison matrix and plan-to-plan differences
"""

from typing import Any, Dict, List, Union

from sqlmodel import Session

from salonbook.models.entitlements import Feature
from salonbook.models.plan import Plan, UNLIMITED
from salonbook.repositories.plan_repository import PlanRepository
from salonbook.services.subscription.subscription_service import feature_enabled


def _display_limit(value: int) -> Union[int, str]:
    return "unlimited" if value == UNLIMITED else value


def _limit_rank(value: int) -> float:
    return float("inf") if value == UNLIMITED else value


class PlanComparisonService:
    def __init__(self, session: Session):
        self.plans = PlanRepository(session)

    def get_comparison_matrix(self) -> Dict[str, Any]:
        plans = self.plans.list_public()

        features: Dict[str, List[Dict[str, Any]]] = {}
        for category, members in Feature.by_category().items():
            features[category.value] = [
                {
                    "key": feature.value,
                    "label": feature.label,
                    "minimum_plan": feature.minimum_plan.value,
                    "plans": {plan.slug: (plan.features or {}).get(feature.value, False) for plan in plans},
                }
                for feature in members
            ]

        limit_keys = sorted({key for plan in plans for key in (plan.limits or {})})
        limits = {
            key: {plan.slug: _display_limit(plan.limits[key]) for plan in plans if key in plan.limits}
            for key in limit_keys
        }

        return {
            "plans": [
                {
                    "id": str(plan.id),
                    "slug": plan.slug,
                    "name": plan.name,
                    "monthly_price": str(plan.monthly_price),
                    "yearly_price": str(plan.yearly_price),
                }
                for plan in plans
            ],
            "features": features,
            "limits": limits,
        }

    def get_plan_difference(self, from_plan: Plan, to_plan: Plan) -> Dict[str, Any]:
        from_features = from_plan.features or {}
        to_features = to_plan.features or {}

        added, removed, changed = [], [], []
        for key in sorted(set(from_features) | set(to_features)):
            before, after = from_features.get(key), to_features.get(key)
            if feature_enabled(after) and not feature_enabled(before):
                added.append(key)
            elif feature_enabled(before) and not feature_enabled(after):
                removed.append(key)
            elif before != after:
                changed.append({"feature": key, "from": before, "to": after})

        from_limits = from_plan.limits or {}
        to_limits = to_plan.limits or {}
        improved, reduced = [], []
        for key in sorted(set(from_limits) & set(to_limits)):
            before, after = from_limits[key], to_limits[key]
            entry = {"resource": key, "from": _display_limit(before), "to": _display_limit(after)}
            if _limit_rank(after) > _limit_rank(before):
                improved.append(entry)
            elif _limit_rank(after) < _limit_rank(before):
                reduced.append(entry)

        return {
            "from": from_plan.slug,
            "to": to_plan.slug,
            "is_upgrade": to_plan.sort_order > from_plan.sort_order,
            "features_added": added,
            "features_removed": removed,
            "features_changed": changed,
            "limits_improved": improved,
            "limits_reduced": reduced,
        }
