"""
Tests for feature gating and the plan comparison matrix
"""

from conftest import make_subscription
from salonbook.models import Feature, Plan
from salonbook.services.subscription import FeatureGateService, PlanComparisonService


class TestFeatureGate:
    def test_free_plan_denied_paid_feature(self, db, plans, tenant):
        gate = FeatureGateService(db)

        assert gate.can_access(tenant, Feature.CUSTOM_LOGO) is False
        assert Feature.CUSTOM_LOGO not in gate.get_available_features(tenant)

    def test_explicit_plan_entry_wins_over_tier(self, db, plans, tenant):
        """Free grants email reminders even though the feature's tier is easy"""
        assert FeatureGateService(db).can_access(tenant, Feature.EMAIL_REMINDERS) is True

    def test_explicit_false_on_higher_tier(self, db, plans, tenant):
        plan = plans["premium"]
        plan.features = {**plan.features, "api_access": False}
        db.add(plan)
        db.commit()
        make_subscription(db, tenant, plan)

        assert FeatureGateService(db).can_access(tenant, Feature.API_ACCESS) is False

    def test_tier_rank_when_feature_not_listed(self, db, plans):
        gate = FeatureGateService(db)
        plan = Plan(slug="partner", name="Partner", sort_order=2, features={})

        assert gate.plan_allows(plan, Feature.API_ACCESS) is True
        assert gate.plan_allows(plan, Feature.WHITE_LABEL) is False

    def test_available_features(self, db, plans, tenant):
        gate = FeatureGateService(db)
        assert gate.get_available_features(tenant) == [Feature.EMAIL_REMINDERS]

        make_subscription(db, tenant, plans["premium"])
        assert set(gate.get_available_features(tenant)) == set(Feature)

    def test_smart_plan_features(self, db, plans, tenant):
        make_subscription(db, tenant, plans["smart"])
        gate = FeatureGateService(db)

        assert gate.can_access(tenant, Feature.SMS_REMINDERS) is True
        assert gate.can_access(tenant, Feature.WHITE_LABEL) is False
        assert gate.can_access(tenant, Feature.API_ACCESS) is True

    def test_upgrade_message(self, db, plans, tenant):
        message = FeatureGateService(db).build_upgrade_message(tenant, Feature.WHITE_LABEL)

        assert message["required_plan"] == "premium"
        assert message["current_plan"] == "free"
        assert message["feature_label"] == "White label"
        assert message["message"] == "This feature requires PREMIUM plan or higher."


class TestPlanComparison:
    def test_matrix(self, db, plans):
        matrix = PlanComparisonService(db).get_comparison_matrix()

        assert [plan["slug"] for plan in matrix["plans"]] == ["free", "easy", "smart", "standard", "premium"]
        assert matrix["plans"][1]["monthly_price"] == "6.00"
        assert set(matrix["features"]) == {"customization", "integrations", "advanced_features", "notifications"}

        white_label = next(row for row in matrix["features"]["customization"] if row["key"] == "white_label")
        assert white_label["plans"]["premium"] is True
        assert white_label["plans"]["standard"] is False
        assert white_label["minimum_plan"] == "premium"

        assert matrix["limits"]["staff"] == {
            "free": 1, "easy": 2, "smart": 5, "standard": 15, "premium": "unlimited",
        }

    def test_inactive_plans_excluded(self, db, plans):
        plans["standard"].is_active = False
        db.add(plans["standard"])
        db.commit()

        matrix = PlanComparisonService(db).get_comparison_matrix()

        assert "standard" not in [plan["slug"] for plan in matrix["plans"]]

    def test_difference_upgrade(self, db, plans):
        difference = PlanComparisonService(db).get_plan_difference(plans["easy"], plans["smart"])

        assert difference["is_upgrade"] is True
        assert "api_access" in difference["features_added"]
        assert "sms_reminders" in difference["features_added"]
        assert difference["features_removed"] == []
        assert {"feature": "client_database", "from": "basic", "to": "advanced"} in difference["features_changed"]
        assert {"resource": "staff", "from": 2, "to": 5} in difference["limits_improved"]
        assert difference["limits_reduced"] == []

    def test_difference_downgrade(self, db, plans):
        difference = PlanComparisonService(db).get_plan_difference(plans["premium"], plans["smart"])

        assert difference["is_upgrade"] is False
        assert difference["features_removed"] == ["white_label"]
        assert {"resource": "users", "from": "unlimited", "to": 3} in difference["limits_reduced"]
