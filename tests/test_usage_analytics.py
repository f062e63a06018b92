"""Tests for usage recording and analytics aggregates."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from template_studio.errors import NotFoundError, ValidationError
from template_studio.services.analytics import (
    analytics_trends,
    compare_templates,
    conversion_funnel,
    engagement_metrics,
    lifecycle_analytics,
    performance_metrics,
    quality_metrics,
    recent_activity,
    refresh_template_metrics,
    system_stats,
    template_usage_breakdown,
)
from template_studio.services.customization import save_customization
from template_studio.services.template_store import (
    create_template,
    delete_template,
    get_template,
    update_template,
)
from template_studio.services.usage import (
    rate_template,
    recompute_rating_stats,
    record_event,
    use_template,
)


@pytest.fixture
def template(template_payload) -> dict:
    return create_template(template_payload)


def _event(user: dict, template: dict, action: str, **fields) -> dict:
    return record_event(
        {"user_id": user["id"], "template_id": template["id"], "action_type": action, **fields}
    )


class TestRecordEvent:
    """Tests for record_event."""

    def test_defaults_come_from_template(self, template, regular_user):
        event = _event(regular_user, template, "preview")

        assert event["document_type"] == "resume"
        assert event["template_version"] == "1.0.0"
        assert event["converted_to_document"] is False

    def test_unknown_action(self, template, regular_user):
        with pytest.raises(ValidationError):
            _event(regular_user, template, "print")

    def test_rating_out_of_range(self, template, regular_user):
        with pytest.raises(ValidationError):
            _event(regular_user, template, "preview", user_rating=6)

    def test_missing_required_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            record_event({"action_type": "preview"})

        assert "user_id is required" in exc_info.value.issues

    def test_unknown_template(self, regular_user):
        with pytest.raises(NotFoundError):
            record_event(
                {"user_id": regular_user["id"], "template_id": "missing", "action_type": "preview"}
            )


class TestUseTemplate:
    """Tests for use_template."""

    def test_use_increments_usage_and_logs_conversion(self, template, regular_user):
        first = use_template(regular_user["id"], template["id"])
        use_template(regular_user["id"], template["id"])

        assert first["event_id"]
        assert first["document"]["id"] == template["id"]
        assert get_template(template["id"])["usage_count"] == 2
        funnel = conversion_funnel(template["id"])
        assert funnel[0]["selections"] == 2
        assert funnel[0]["conversions"] == 2

    def test_use_with_customization(self, template, regular_user):
        saved = save_customization(
            regular_user["id"], template["id"], {"colorChanges": {"primary": "#0000FF"}}
        )

        result = use_template(regular_user["id"], template["id"], saved["id"])

        assert result["document"]["design_config"]["colors"]["primary"] == "#0000FF"

    def test_inactive_template(self, template, regular_user):
        delete_template(template["id"])

        with pytest.raises(NotFoundError):
            use_template(regular_user["id"], template["id"])

    def test_private_template(self, template, regular_user):
        update_template(template["id"], {"is_public": False})

        with pytest.raises(NotFoundError):
            use_template(regular_user["id"], template["id"])
        assert get_template(template["id"])["usage_count"] == 0


class TestRatings:
    """Tests for the running-mean rating."""

    def test_running_mean(self, template, regular_user, other_user):
        rate_template(regular_user["id"], template["id"], 5)
        rate_template(other_user["id"], template["id"], 4)
        result = rate_template(regular_user["id"], template["id"], 3, feedback="Fine")

        assert result == {"template_id": template["id"], "avg_rating": 4.0, "total_ratings": 3}

    def test_rating_out_of_range(self, template, regular_user):
        with pytest.raises(ValidationError):
            rate_template(regular_user["id"], template["id"], 0)

    def test_recompute_from_event_log(self, template, regular_user):
        _event(regular_user, template, "preview", user_rating=2)
        _event(regular_user, template, "export", user_rating=5)
        _event(regular_user, template, "preview")

        result = recompute_rating_stats(template["id"])

        assert result["avg_rating"] == 3.5
        assert result["total_ratings"] == 2

    def test_recompute_matches_running_mean(self, template, regular_user, other_user):
        rate_template(regular_user["id"], template["id"], 5)
        rate_template(other_user["id"], template["id"], 4)
        running = rate_template(regular_user["id"], template["id"], 4)

        recomputed = recompute_rating_stats(template["id"])

        assert running["avg_rating"] == pytest.approx(13 / 3)
        assert recomputed["avg_rating"] == pytest.approx(running["avg_rating"])
        assert recomputed["total_ratings"] == running["total_ratings"] == 3

    def test_recompute_unknown_template(self):
        with pytest.raises(NotFoundError):
            recompute_rating_stats("missing")


class TestConversionFunnel:
    """Tests for conversion_funnel."""

    def test_previews_selections_conversions(self, template, regular_user):
        for _ in range(3):
            _event(regular_user, template, "preview")
        _event(regular_user, template, "select", converted_to_document=True)

        (row,) = conversion_funnel(template["id"])

        assert row["template_name"] == "Base Resume"
        assert row["previews"] == 3
        assert row["selections"] == 1
        assert row["conversions"] == 1
        assert row["conversion_rate"] == 0.3333
        # No customize events: the selection rate has no denominator
        assert row["customization_rate"] == 0.0
        assert row["selection_rate"] is None

    def test_unconverted_selections_are_not_conversions(self, template, regular_user):
        _event(regular_user, template, "preview")
        _event(regular_user, template, "select")

        (row,) = conversion_funnel(template["id"])

        assert row["selections"] == 1
        assert row["conversions"] == 0

    def test_per_template_rows(self, template, template_payload, regular_user):
        other = create_template({**template_payload, "name": "Other"})
        _event(regular_user, template, "preview")
        _event(regular_user, template, "preview")
        _event(regular_user, other, "preview")

        rows = conversion_funnel()

        assert [(r["template_id"], r["previews"]) for r in rows] == [
            (template["id"], 2),
            (other["id"], 1),
        ]

    def test_unknown_time_range(self):
        with pytest.raises(ValidationError):
            conversion_funnel(time_range="2w")


class TestOtherAggregates:
    def test_engagement_metrics(self, template, regular_user, other_user):
        _event(regular_user, template, "preview", time_on_page_seconds=30, scroll_depth_percent=50)
        _event(other_user, template, "preview", time_on_page_seconds=10, scroll_depth_percent=100)
        _event(other_user, template, "customize")

        (row,) = engagement_metrics(template["id"], "7d")

        assert row["views"] == 2
        assert row["customizations"] == 1
        assert row["unique_users"] == 2
        assert row["avg_time_on_page"] == 20.0
        assert row["avg_scroll_depth"] == 75.0

    def test_performance_metrics_by_device(self, template, regular_user):
        _event(regular_user, template, "preview", device_type="mobile", load_time_ms=300)
        _event(regular_user, template, "preview", device_type="mobile", load_time_ms=500)
        _event(regular_user, template, "preview", device_type="desktop", load_time_ms=100)

        rows = performance_metrics(template["id"])

        by_device = {r["device_type"]: r for r in rows}
        assert by_device["mobile"]["events"] == 2
        assert by_device["mobile"]["avg_load_time_ms"] == 400.0
        assert by_device["desktop"]["avg_load_time_ms"] == 100.0

    def test_usage_breakdown(self, template, regular_user):
        _event(regular_user, template, "preview", country="CA")
        _event(regular_user, template, "preview", country="CA")
        _event(regular_user, template, "select", country="US", converted_to_document=True)

        breakdown = template_usage_breakdown(template["id"])

        actions = {row["action_type"]: row for row in breakdown["by_action"]}
        assert actions["preview"]["events"] == 2
        assert actions["select"]["conversion_percent"] == 100.0
        assert breakdown["top_countries"] == [
            {"country": "CA", "events": 2},
            {"country": "US", "events": 1},
        ]

    def test_system_stats(self, template, template_payload, regular_user):
        create_template({**template_payload, "name": "Draft", "is_draft": True})
        save_customization(regular_user["id"], template["id"], {})
        _event(regular_user, template, "preview")

        stats = system_stats()

        assert stats["templates"]["total"] == 2
        assert stats["templates"]["active"] == 2
        assert stats["templates"]["draft"] == 1
        assert stats["customizations"] == 1
        assert stats["usage_events"] == 1
        assert stats["published_versions"] == 0

    def test_refresh_template_metrics(self, template, regular_user):
        _event(regular_user, template, "preview")
        _event(regular_user, template, "preview")
        _event(regular_user, template, "select", converted_to_document=True)
        _event(regular_user, template, "export")

        result = refresh_template_metrics(template["id"])

        assert result["conversion_rate"] == 0.5
        assert result["completion_rate"] == 1.0
        assert result["export_rate"] == 0.5
        assert get_template(template["id"])["conversion_rate"] == 0.5

    def test_refresh_without_events_stores_zero(self, template):
        result = refresh_template_metrics(template["id"])

        assert result["conversion_rate"] == 0.0
        assert get_template(template["id"])["export_rate"] == 0.0


class TestQualityMetrics:
    """Tests for quality_metrics."""

    def test_grades_distribution_and_threshold(self, template_payload):
        strong = create_template({**template_payload, "name": "Strong", "quality_score": 92})
        fair = create_template({**template_payload, "name": "Fair", "quality_score": 74})
        unscored = create_template({**template_payload, "name": "Unscored"})

        result = quality_metrics(quality_threshold=80)

        assert [t["template_id"] for t in result["templates"]] == [
            strong["id"],
            fair["id"],
            unscored["id"],
        ]
        assert [t["quality_grade"] for t in result["templates"]] == ["A", "C", "F"]
        counts = {row["range"]: row["count"] for row in result["quality_distribution"]}
        assert counts == {"90-100": 1, "80-89": 0, "70-79": 1, "60-69": 0, "0-59": 1}
        assert {t["template_id"] for t in result["below_threshold"]} == {
            fair["id"],
            unscored["id"],
        }

    def test_review_notes_only_with_details(self, template_payload):
        template = create_template(
            {**template_payload, "quality_score": 65, "review_notes": "Tighten spacing"}
        )

        (plain,) = quality_metrics([template["id"]])["templates"]
        (detailed,) = quality_metrics([template["id"]], include_details=True)["templates"]

        assert plain["review_notes"] is None
        assert detailed["review_notes"] == "Tighten spacing"

    def test_popularity_score(self, template, regular_user):
        use_template(regular_user["id"], template["id"])
        rate_template(regular_user["id"], template["id"], 5)

        (row,) = quality_metrics([template["id"]])["templates"]

        # 1 use * 0.4 + 5.0 avg * 1 rating * 0.3
        assert row["popularity_score"] == 1.9


class TestCompareTemplates:
    """Tests for compare_templates."""

    def test_insights_and_recent_counts(self, template, template_payload, regular_user):
        other = create_template({**template_payload, "name": "Other"})
        use_template(regular_user["id"], other["id"])
        use_template(regular_user["id"], other["id"])
        rate_template(regular_user["id"], template["id"], 5)

        result = compare_templates([template["id"], other["id"]], "7d")

        rows = {row["template_id"]: row for row in result["comparison"]}
        assert rows[other["id"]]["usage_count"] == 2
        assert rows[other["id"]]["recent_events"] == 2
        assert rows[other["id"]]["recent_conversions"] == 2
        # The rating is logged as a preview
        assert rows[template["id"]]["recent_events"] == 1
        assert rows[template["id"]]["recent_conversions"] == 0
        assert result["insights"]["most_used"] == other["id"]
        assert result["insights"]["highest_rated"] == template["id"]
        assert result["time_range"] == "7d"

    def test_needs_two_distinct_templates(self, template):
        with pytest.raises(ValidationError):
            compare_templates([template["id"], template["id"]])

    def test_unknown_template(self, template):
        with pytest.raises(NotFoundError):
            compare_templates([template["id"], "missing"])


class TestTrends:
    """Tests for analytics_trends."""

    def test_usage_by_day_and_week(self, template, regular_user):
        _event(regular_user, template, "preview")
        _event(regular_user, template, "select", converted_to_document=True)
        today = datetime.now(UTC).date()
        monday = today - timedelta(days=today.weekday())

        daily = analytics_trends("usage", "7d", "day")
        weekly = analytics_trends("usage", "7d", "week")

        assert daily["points"] == [{"period": today.isoformat(), "value": 2}]
        assert weekly["points"] == [{"period": monday.isoformat(), "value": 2}]
        assert weekly["group_by"] == "week"

    def test_conversions_and_signups(self, template, regular_user, other_user):
        _event(regular_user, template, "preview")
        _event(regular_user, template, "select", converted_to_document=True)
        month = datetime.now(UTC).date().replace(day=1).isoformat()

        conversions = analytics_trends("conversions", "30d", "month")
        signups = analytics_trends("user_signups", "30d", "month")

        assert conversions["points"] == [{"period": month, "value": 1}]
        assert signups["points"] == [{"period": month, "value": 2}]

    def test_no_data_has_no_points(self):
        assert analytics_trends("new_templates")["points"] == []

    @pytest.mark.parametrize(("metric", "group_by"), [("revenue", "week"), ("usage", "quarter")])
    def test_unknown_metric_or_grouping(self, metric, group_by):
        with pytest.raises(ValidationError):
            analytics_trends(metric, "30d", group_by)


class TestLifecycleAndActivity:
    def test_lifecycle_of_new_template(self, template):
        update_template(template["id"], {"version": "1.1.0"})

        (row,) = lifecycle_analytics()

        assert row["template_id"] == template["id"]
        assert row["total_versions"] == 2
        assert row["days_since_creation"] == 0
        assert row["usage_velocity"] is None
        assert row["maturity_stage"] == "new"

    def test_lifecycle_skips_inactive_unless_asked(self, template):
        delete_template(template["id"])

        assert lifecycle_analytics() == []
        assert len(lifecycle_analytics(include_inactive=True)) == 1

    def test_activity_filtered_by_type(self, template, regular_user, other_user):
        _event(regular_user, template, "preview")

        signups = recent_activity(types=["user_signup"])
        usage = recent_activity(types=["template_usage"])

        assert {entry["id"] for entry in signups} == {regular_user["id"], other_user["id"]}
        assert usage[0]["metadata"]["action_type"] == "preview"
        assert usage[0]["description"] == "preview of Base Resume"

    def test_activity_is_newest_first_and_limited(self, template, regular_user):
        entries = recent_activity()

        assert {entry["type"] for entry in entries} == {"template_created", "user_signup"}
        stamps = [entry["created_at"] for entry in entries]
        assert stamps == sorted(stamps, reverse=True)
        assert len(recent_activity(limit=1)) == 1

    def test_unknown_activity_type(self):
        with pytest.raises(ValidationError):
            recent_activity(types=["login"])
