"""Tests for support-cycle reconciliation."""

from datetime import date, timedelta

import pytest

from release_metadata._lifecycle.models import (
    MajorReleaseOverview,
    PatchRelease,
    SupportCycle,
    SupportDistribution,
    SupportedOSMatrix,
)
from release_metadata._lifecycle.reconciler import (
    DEFAULT_VERSION,
    ProductWindow,
    add_months,
    classify_distribution,
)

TODAY = date(2025, 6, 1)
WINDOW = ProductWindow(version="9.0", initial_release_date=date(2024, 11, 12), eol_date=date(2026, 11, 10))


def _ubuntu(supported=(), unsupported=()):
    return SupportDistribution(
        id="ubuntu",
        name="Ubuntu",
        supported_versions=tuple(supported),
        unsupported_versions=tuple(unsupported),
    )


class TestAddMonths:
    @pytest.mark.parametrize(
        "start,months,expected",
        [
            (date(2025, 6, 1), 3, date(2025, 9, 1)),
            (date(2025, 11, 15), 3, date(2026, 2, 15)),
            (date(2025, 11, 30), 3, date(2026, 2, 28)),
            (date(2023, 11, 30), 3, date(2024, 2, 29)),
            (date(2025, 1, 31), 0, date(2025, 1, 31)),
        ],
    )
    def test_add_months(self, start, months, expected):
        assert add_months(start, months) == expected


class TestProductWindow:
    def test_from_documents(self):
        matrix = SupportedOSMatrix(channel_version="9.0", families=())
        major = MajorReleaseOverview(
            channel_version="9.0",
            eol_date=date(2026, 5, 12),
            releases=(
                PatchRelease("9.0.1", release_date=date(2025, 1, 14)),
                PatchRelease("9.0.0", release_date=date(2024, 11, 12)),
            ),
        )
        window = ProductWindow.from_documents(matrix, major)
        assert window == ProductWindow("9.0", date(2024, 11, 12), date(2026, 5, 12))

    def test_version_from_release_overview(self):
        major = MajorReleaseOverview(channel_version="8.0")
        window = ProductWindow.from_documents(None, major)
        assert window.version == "8.0"
        assert window.initial_release_date == date.max
        assert window.eol_date == date.max

    def test_defaults_without_documents(self):
        window = ProductWindow.from_documents(None, None)
        assert window.version == DEFAULT_VERSION

    def test_overlap(self):
        cycle = SupportCycle(cycle="18.04", release_date=date(2018, 4, 26))
        assert WINDOW.overlaps(cycle, date(2028, 4, 1))
        assert not WINDOW.overlaps(cycle, date(2023, 5, 31))

    def test_cycle_released_after_product_eol(self):
        cycle = SupportCycle(cycle="28.04", release_date=date(2028, 4, 20))
        assert not WINDOW.overlaps(cycle, date(2033, 4, 1))

    def test_unknown_release_date_counts_as_earliest(self):
        assert WINDOW.overlaps(SupportCycle(cycle="x"), date(2025, 1, 1))

    def test_unknown_initial_release_never_overlaps(self):
        window = ProductWindow(version="10.0")
        assert not window.overlaps(SupportCycle(cycle="x", release_date=date(2020, 1, 1)), date(2030, 1, 1))


class TestClassifyDistribution:
    def test_supported_cycle_past_eol(self):
        cycles = [SupportCycle(cycle="20.04", release_date=date(2020, 4, 23), eol="2025-04-01")]
        result = classify_distribution(_ubuntu(supported=["20.04"]), cycles, WINDOW, TODAY)

        assert result.releases_supported_not_active == ("20.04",)
        assert result.active_releases == ()
        assert result.releases_missing == ()
        assert result.unsupported_active_releases == ()

    def test_supported_cycle_ending_soon(self):
        eol = (TODAY + timedelta(weeks=3)).isoformat()
        cycles = [SupportCycle(cycle="22.04", release_date=date(2022, 4, 21), eol=eol)]
        result = classify_distribution(_ubuntu(supported=["22.04"]), cycles, WINDOW, TODAY)

        assert result.active_releases == ("22.04",)
        assert result.releases_eol_soon == ("22.04",)
        assert result.unsupported_active_releases == ()
        assert result.releases_missing == ()
        assert result.releases_supported_not_active == ()

    def test_active_cycle_missing_from_matrix(self):
        cycles = [SupportCycle(cycle="18.04", release_date=date(2018, 4, 26), eol="2028-04-01")]
        result = classify_distribution(_ubuntu(supported=["24.04"]), cycles, WINDOW, TODAY)

        assert result.releases_missing == ("18.04",)
        assert result.unsupported_active_releases == ()
        assert result.releases_supported_not_active == ()
        assert result.releases_eol_soon == ()
        # Active cycles are always listed
        assert result.active_releases == ("18.04",)

    def test_active_cycle_declared_unsupported(self):
        cycles = [SupportCycle(cycle="23.10", release_date=date(2023, 10, 12), eol="2025-07-11")]
        result = classify_distribution(_ubuntu(unsupported=["23.10"]), cycles, WINDOW, TODAY)

        assert result.unsupported_active_releases == ("23.10",)
        assert result.releases_eol_soon == ("23.10",)
        assert result.releases_missing == ()

    def test_ended_cycle_declared_unsupported_has_no_finding(self):
        cycles = [SupportCycle(cycle="23.04", release_date=date(2023, 4, 20), eol="2024-01-25")]
        result = classify_distribution(_ubuntu(unsupported=["23.04"]), cycles, WINDOW, TODAY)
        assert not result.has_findings
        assert result.active_releases == ()

    def test_ended_cycle_before_product_release_is_ignored(self):
        cycles = [SupportCycle(cycle="16.04", release_date=date(2016, 4, 21), eol="2021-04-30")]
        result = classify_distribution(_ubuntu(), cycles, WINDOW, TODAY)
        assert not result.has_findings

    def test_ended_cycle_overlapping_product_is_missing(self):
        cycles = [SupportCycle(cycle="23.10", release_date=date(2023, 10, 12), eol="2025-01-11")]
        result = classify_distribution(_ubuntu(), cycles, WINDOW, TODAY)
        assert result.releases_missing == ("23.10",)
        assert result.active_releases == ()

    def test_cycle_without_end_date(self):
        cycles = [SupportCycle(cycle="2025", release_date=date(2024, 11, 1), eol=False)]
        distribution = SupportDistribution(id="windows-server", name="Windows Server", supported_versions=("2025",))
        result = classify_distribution(distribution, cycles, WINDOW, TODAY)

        assert result.active_releases == ("2025",)
        assert not result.has_findings

    def test_feed_order_preserved(self):
        cycles = [
            SupportCycle(cycle="25.04", release_date=date(2025, 4, 17), eol="2026-01-15"),
            SupportCycle(cycle="24.10", release_date=date(2024, 10, 10), eol="2025-07-10"),
            SupportCycle(cycle="24.04", release_date=date(2024, 4, 25), eol="2029-04-25"),
        ]
        result = classify_distribution(_ubuntu(supported=["24.04"]), cycles, WINDOW, TODAY)

        assert result.active_releases == ("25.04", "24.10", "24.04")
        assert result.releases_missing == ("25.04", "24.10")
        assert result.releases_eol_soon == ("24.10",)
