"""
Tests for the team performance aggregator.

Covers:
- Rolling window membership
- Improvement trend from the two latest sessions (with tie-break)
- Teams without completed sessions omitted
- Unassigned bucket and display names
"""

from datetime import date, datetime
from decimal import Decimal

from inventory_engines.enrichment import enrich_count_items
from inventory_engines.parameters import EngineParameters
from inventory_engines.team_performance import (
    ImprovementTrend,
    aggregate_team_performance,
    improvement_trend,
    latest_two_sessions,
    sessions_in_window,
)
from inventory_kernel.domain.records import (
    CountStatus,
    InventoryCount,
    Team,
)

AS_OF = date(2024, 3, 31)


def _session(
    count_id,
    day,
    team_id="team-a",
    total=10,
    variances=0,
    status=CountStatus.COMPLETED,
    created_hour=8,
    is_voided=False,
):
    return InventoryCount(
        id=count_id,
        count_date=day,
        created_at=datetime(day.year, day.month, day.day, created_hour),
        updated_at=datetime(day.year, day.month, day.day, created_hour + 1),
        team_id=team_id,
        status=status,
        total_items_count=total,
        variance_count=variances,
        is_voided=is_voided,
    )


class TestImprovementTrend:
    def test_up_down_stable(self):
        threshold = Decimal("2")
        assert improvement_trend(Decimal("95"), Decimal("90"), threshold) is ImprovementTrend.UP
        assert improvement_trend(Decimal("85"), Decimal("90"), threshold) is ImprovementTrend.DOWN
        assert improvement_trend(Decimal("92"), Decimal("90"), threshold) is ImprovementTrend.STABLE


class TestWindow:
    def test_window_bounds_inclusive(self):
        sessions = [
            _session("edge", date(2024, 3, 1)),
            _session("old", date(2024, 2, 29)),
            _session("future", date(2024, 4, 1)),
            _session("open", date(2024, 3, 20), status=CountStatus.IN_PROGRESS),
            _session("void", date(2024, 3, 20), is_voided=True),
        ]

        selected = sessions_in_window(sessions, AS_OF)

        assert [s.id for s in selected] == ["edge"]

    def test_voided_included_when_configured(self):
        sessions = [_session("void", date(2024, 3, 20), is_voided=True)]
        parameters = EngineParameters(include_voided_in_team_window=True)

        assert len(sessions_in_window(sessions, AS_OF, parameters)) == 1


class TestLatestTwoSessions:
    def test_later_date_wins(self):
        older = _session("older", date(2024, 3, 10))
        newer = _session("newer", date(2024, 3, 11))
        assert [s.id for s in latest_two_sessions([newer, older])] == ["newer", "older"]

    def test_same_date_breaks_tie_on_created_at(self):
        morning = _session("morning", date(2024, 3, 10), created_hour=8)
        evening = _session("evening", date(2024, 3, 10), created_hour=18)
        earlier = _session("earlier", date(2024, 3, 9))

        latest = latest_two_sessions([morning, earlier, evening])

        assert [s.id for s in latest] == ["evening", "morning"]


class TestAggregateTeamPerformance:
    def test_trend_from_header_accuracy(self):
        """Accuracy 90 then 95 within the window: trend is up."""
        counts = [
            _session("s1", date(2024, 3, 10), total=10, variances=1),
            _session("s2", date(2024, 3, 20), total=20, variances=1),
        ]

        result = aggregate_team_performance(
            counts=counts, enriched_items=[], as_of=AS_OF
        )

        assert len(result) == 1
        team = result[0]
        assert team.improvement_trend is ImprovementTrend.UP
        assert team.accuracy == Decimal("92.5")
        assert team.count_completions == 2
        assert team.completion_time == Decimal("1")

    def test_single_session_is_stable(self):
        counts = [_session("s1", date(2024, 3, 10), variances=5)]

        result = aggregate_team_performance(counts=counts, enriched_items=[], as_of=AS_OF)

        assert result[0].improvement_trend is ImprovementTrend.STABLE

    def test_teams_without_completed_sessions_omitted(self):
        counts = [
            _session("s1", date(2024, 3, 10), team_id="team-a"),
            _session("s2", date(2024, 3, 10), team_id="team-b", status=CountStatus.IN_PROGRESS),
            _session("s3", date(2024, 1, 10), team_id="team-c"),
        ]

        result = aggregate_team_performance(counts=counts, enriched_items=[], as_of=AS_OF)

        assert [t.team_id for t in result] == ["team-a"]

    def test_sorted_by_accuracy_then_id(self):
        counts = [
            _session("s1", date(2024, 3, 10), team_id="team-b", variances=0),
            _session("s2", date(2024, 3, 10), team_id="team-a", variances=0),
            _session("s3", date(2024, 3, 10), team_id="team-c", variances=5),
        ]

        result = aggregate_team_performance(counts=counts, enriched_items=[], as_of=AS_OF)

        assert [t.team_id for t in result] == ["team-a", "team-b", "team-c"]

    def test_names_and_unassigned_bucket(self):
        counts = [
            _session("s1", date(2024, 3, 10), team_id="team-a"),
            _session("s2", date(2024, 3, 10), team_id="team-x"),
            _session("s3", date(2024, 3, 10), team_id=None),
        ]

        result = aggregate_team_performance(
            counts=counts,
            enriched_items=[],
            teams=[Team(id="team-a", name="Alpha")],
            as_of=AS_OF,
        )

        names = {t.team_id: t.team_name for t in result}
        assert names == {
            "team-a": "Alpha",
            "team-x": "Team team-x",
            "unassigned": "Unassigned",
        }

    def test_line_accuracy_and_costs(self, counts, count_items, items):
        enriched = enrich_count_items(count_items=count_items, items=items, counts=counts)

        result = aggregate_team_performance(
            counts=counts, enriched_items=enriched, as_of=date(2024, 3, 4)
        )

        by_id = {t.team_id: t for t in result}
        assert [t.team_id for t in result] == ["team-b", "team-a"]
        assert by_id["team-a"].accuracy == Decimal("0")
        assert by_id["team-a"].variance_cost == Decimal("240")
        assert by_id["team-a"].inventory_value == Decimal("800")
        assert by_id["team-b"].accuracy == Decimal("100")

    def test_datetime_as_of_accepted(self):
        counts = [_session("s1", date(2024, 3, 31))]

        result = aggregate_team_performance(
            counts=counts, enriched_items=[], as_of=datetime(2024, 3, 31, 23, 0)
        )

        assert len(result) == 1
