"""
Tests for the chart projections.

Covers:
- Daily category, variance and team breakdowns
- Insufficient-data marking instead of synthesized values
- Enhanced financial, cost and monthly series
"""

from datetime import date, datetime
from decimal import Decimal

from inventory_engines.charts import (
    month_start,
    movement_value,
    project_daily_charts,
    project_enhanced_charts,
)
from inventory_engines.enrichment import enrich_count_items
from inventory_engines.parameters import EngineParameters
from inventory_kernel.domain.records import (
    CountStatus,
    InventoryCount,
    InventoryItem,
    InventoryTransaction,
)


class TestDailyCharts:
    def test_reference_day(self, counts, count_items, items, teams):
        sessions = counts[:2]
        enriched = enrich_count_items(count_items=count_items, items=items)

        charts = project_daily_charts(
            sessions=sessions, enriched_items=enriched, teams=teams
        )

        assert [(p.category, p.value) for p in charts.category_breakdown] == [
            ("Hardware", Decimal("800")),
            ("Electronics", Decimal("40")),
        ]
        top = charts.variance_breakdown[0]
        assert top.count_id == "count-a"
        assert [d.item_id for d in top.deltas] == ["item-widget"]
        assert top.deltas[0].variance_quantity == Decimal("-20")
        assert top.insufficient_data is False

        team_points = {p.team_id: p for p in charts.team_performance}
        assert team_points["team-a"].team_name == "Alpha"
        assert team_points["team-a"].accuracy == Decimal("0")
        assert team_points["team-a"].total_items == 2
        assert team_points["team-b"].accuracy == Decimal("100")

    def test_session_without_lines_is_insufficient(self):
        session = InventoryCount(
            id="empty",
            count_date=date(2024, 3, 4),
            created_at=datetime(2024, 3, 4, 8),
            variance_count=7,
        )

        charts = project_daily_charts(sessions=[session], enriched_items=[])

        point = charts.variance_breakdown[0]
        assert point.insufficient_data is True
        assert point.deltas == ()
        assert charts.team_performance[0].team_name == "Unassigned"

    def test_top_n_by_variance_count(self):
        sessions = [
            InventoryCount(
                id=f"s{n}",
                count_date=date(2024, 3, 4),
                created_at=datetime(2024, 3, 4, 8),
                variance_count=n,
            )
            for n in range(8)
        ]

        charts = project_daily_charts(
            sessions=sessions,
            enriched_items=[],
            parameters=EngineParameters(variance_breakdown_top_n=3),
        )

        assert [p.count_id for p in charts.variance_breakdown] == ["s7", "s6", "s5"]

    def test_empty_day(self):
        charts = project_daily_charts(sessions=[], enriched_items=[])

        assert charts.category_breakdown == ()
        assert charts.variance_breakdown == ()
        assert charts.team_performance == ()


class TestEnhancedCharts:
    def test_financial_trends_window(self, counts, count_items, items):
        enriched = enrich_count_items(count_items=count_items, items=items)

        charts = project_enhanced_charts(
            sessions=counts[:2],
            enriched_items=enriched,
            as_of=date(2024, 3, 4),
        )

        trends = charts.financial_trends
        assert len(trends) == 14
        assert trends[0].day == date(2024, 2, 20)
        assert trends[-1].day == date(2024, 3, 4)
        assert trends[-1].label == "Mar 04"
        assert trends[-1].has_data is True
        assert trends[-1].inventory_value == Decimal("840")
        assert trends[-1].cost_savings == Decimal("200")
        assert trends[-2].has_data is False
        assert trends[-2].inventory_value == Decimal("0")

    def test_transactions_mark_days(self):
        items = {"bolt": InventoryItem(id="bolt", name="Bolt", purchase_price=Decimal("3"))}
        transactions = [
            InventoryTransaction(
                id="t1",
                item_id="bolt",
                transaction_type="outgoing",
                quantity=Decimal("-4"),
                created_at=datetime(2024, 3, 3, 12),
            )
        ]

        charts = project_enhanced_charts(
            sessions=[],
            enriched_items=[],
            transactions=transactions,
            items_by_id=items,
            as_of=date(2024, 3, 4),
        )

        day = next(p for p in charts.financial_trends if p.day == date(2024, 3, 3))
        assert day.has_data is True
        assert day.movement_value == Decimal("12")

    def test_movement_value_prefers_transaction_cost(self):
        transaction = InventoryTransaction(
            id="t1",
            item_id="unknown",
            transaction_type="receipt",
            quantity=Decimal("2"),
            created_at=datetime(2024, 3, 3),
            unit_cost=Decimal("7"),
        )
        assert movement_value(transaction, {}) == Decimal("14")

    def test_cost_analysis_per_category(self, counts, count_items, items):
        enriched = enrich_count_items(count_items=count_items, items=items)

        charts = project_enhanced_charts(
            sessions=counts[:2], enriched_items=enriched, as_of=date(2024, 3, 4)
        )

        analysis = {p.category: p for p in charts.cost_analysis}
        assert [p.category for p in charts.cost_analysis] == ["Hardware", "Electronics"]
        assert analysis["Hardware"].variance_cost == Decimal("200")
        assert analysis["Hardware"].accuracy == Decimal("0")
        assert analysis["Electronics"].total_value == Decimal("40")
        assert analysis["Electronics"].accuracy == Decimal("100")

    def test_monthly_performance(self):
        sessions = [
            InventoryCount(
                id="jan",
                count_date=date(2024, 1, 15),
                created_at=datetime(2024, 1, 15, 8),
                team_id="team-a",
                status=CountStatus.COMPLETED,
            ),
            InventoryCount(
                id="mar",
                count_date=date(2024, 3, 2),
                created_at=datetime(2024, 3, 2, 8),
                team_id="team-b",
                status=CountStatus.COMPLETED,
            ),
        ]

        charts = project_enhanced_charts(
            sessions=sessions, enriched_items=[], as_of=date(2024, 3, 4)
        )

        months = charts.monthly_performance
        assert [m.month for m in months] == [
            "Oct 2023", "Nov 2023", "Dec 2023", "Jan 2024", "Feb 2024", "Mar 2024",
        ]
        assert [m.has_data for m in months] == [False, False, False, True, False, True]
        assert months[-1].team_count == 1
        assert months[-2].accuracy == Decimal("0")


class TestMonthStart:
    def test_crosses_year_boundary(self):
        assert month_start(date(2024, 2, 29), 2) == date(2023, 12, 1)

    def test_same_month(self):
        assert month_start(date(2024, 2, 29)) == date(2024, 2, 1)
