"""Tests for the CVE transformer: summaries, id extraction, release filtering and cross-validation."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from release_metadata._cves.models import CveRecords, PackageImpact, ProductImpact
from release_metadata._cves.transformer import (
    extract_cve_ids,
    filter_by_release,
    to_summaries,
    validate_cve_data,
)

TEST_DATA_DIR = Path(__file__).parent / "test-data"


@pytest.fixture
def records() -> CveRecords:
    with open(TEST_DATA_DIR / "cve.json") as f:
        return CveRecords.from_dict(json.load(f))


# =============================================================================
# extract_cve_ids
# =============================================================================


class TestExtractCveIds:
    def test_preserves_disclosure_order(self, records):
        assert extract_cve_ids(records) == ["CVE-2025-21171", "CVE-2025-21172", "CVE-2025-21173"]

    def test_does_not_deduplicate(self, records):
        doubled = records.evolve(disclosures=records.disclosures + records.disclosures[:1])
        ids = extract_cve_ids(doubled)
        assert len(ids) == 4
        assert ids.count("CVE-2025-21171") == 2

    def test_none_input(self):
        assert extract_cve_ids(None) == []

    def test_empty_disclosures(self, records):
        assert extract_cve_ids(records.evolve(disclosures=())) == []


# =============================================================================
# filter_by_release
# =============================================================================


class TestFilterByRelease:
    def test_keeps_only_release_disclosures(self, records):
        filtered = filter_by_release(records, "8.0")

        assert filtered is not None
        assert [d.id for d in filtered.disclosures] == ["CVE-2025-21172", "CVE-2025-21173"]
        assert filtered.title == "CVEs affecting 8.0"

    def test_products_require_exact_release_match(self, records):
        filtered = filter_by_release(records, "8.0")

        assert {(p.cve_id, p.name, p.release) for p in filtered.products} == {
            ("CVE-2025-21172", "dotnet-runtime", "8.0"),
            ("CVE-2025-21172", "dotnet-sdk", "8.0"),
        }
        assert [p.name for p in filtered.packages] == ["Microsoft.Extensions.Caching.Memory"]

    def test_commits_restricted_to_surviving_entries(self, records):
        filtered = filter_by_release(records, "8.0")
        assert set(filtered.commits) == {"b2c3d4e5f6a1", "d4e5f6a1b2c3"}

    def test_rebuilds_name_indexes(self, records):
        filtered = filter_by_release(records, "8.0")

        assert filtered.product_cves == {
            "dotnet-runtime": ("CVE-2025-21172",),
            "dotnet-sdk": ("CVE-2025-21172",),
        }
        assert filtered.package_cves == {"Microsoft.Extensions.Caching.Memory": ("CVE-2025-21173",)}

    def test_release_cves_narrowed_but_cve_releases_unchanged(self, records):
        filtered = filter_by_release(records, "8.0")

        assert filtered.release_cves == {"8.0": ("CVE-2025-21172", "CVE-2025-21173")}
        # Each CVE keeps its full list of affected releases
        assert filtered.cve_releases == {
            "CVE-2025-21172": ("8.0", "9.0"),
            "CVE-2025-21173": ("8.0",),
        }

    def test_cve_commits_filtered_by_id(self, records):
        filtered = filter_by_release(records, "9.0")

        assert set(filtered.cve_commits) == {"CVE-2025-21171", "CVE-2025-21172"}
        assert filtered.cve_commits["CVE-2025-21172"] == ("b2c3d4e5f6a1", "c3d4e5f6a1b2")

    def test_release_cves_sorted(self, records):
        shuffled = records.evolve(release_cves={"9.0": ("CVE-2025-21172", "CVE-2025-21171")})
        filtered = filter_by_release(shuffled, "9.0")
        assert filtered.release_cves == {"9.0": ("CVE-2025-21171", "CVE-2025-21172")}

    def test_patch_version_does_not_match_family(self, records):
        assert filter_by_release(records, "8.0.12") is None

    def test_unknown_release_is_absent(self, records):
        assert filter_by_release(records, "6.0") is None

    def test_empty_release_entry_is_absent(self, records):
        emptied = records.evolve(release_cves={"8.0": ()})
        assert filter_by_release(emptied, "8.0") is None

    def test_missing_release_index_is_absent(self, records):
        assert filter_by_release(records.evolve(release_cves=None), "8.0") is None

    def test_none_input(self):
        assert filter_by_release(None, "8.0") is None

    def test_idempotent(self, records):
        once = filter_by_release(records, "8.0")
        twice = filter_by_release(once, "8.0")
        assert twice == once

    def test_source_records_untouched(self, records):
        before = records.to_dict()
        filter_by_release(records, "9.0")
        assert records.to_dict() == before


# =============================================================================
# to_summaries
# =============================================================================


class TestToSummaries:
    def test_one_summary_per_disclosure_in_order(self, records):
        summaries = to_summaries(records)
        assert [s.id for s in summaries] == ["CVE-2025-21171", "CVE-2025-21172", "CVE-2025-21173"]

    def test_affected_products_and_packages(self, records):
        summaries = {s.id: s for s in to_summaries(records)}

        assert summaries["CVE-2025-21172"].affected_products == ("dotnet-runtime", "dotnet-sdk")
        assert summaries["CVE-2025-21172"].affected_packages is None
        assert summaries["CVE-2025-21173"].affected_products == ("Microsoft.Extensions.Caching.Memory",)
        assert summaries["CVE-2025-21173"].affected_packages == ("Microsoft.Extensions.Caching.Memory",)

    def test_fix_links_resolve_release(self, records):
        summary = {s.id: s for s in to_summaries(records)}["CVE-2025-21172"]

        assert [(f.repo, f.branch, f.release) for f in summary.fixes] == [
            ("dotnet/runtime", "release/8.0", "8.0"),
            ("dotnet/runtime", "release/9.0", "9.0"),
        ]
        assert summary.fixes[0].title == "Fix commit in runtime (release/8.0)"
        assert summary.fixes[0].href == "https://github.com/dotnet/runtime/commit/b2c3d4e5f6a1.diff"

    def test_fix_release_from_package(self, records):
        summary = {s.id: s for s in to_summaries(records)}["CVE-2025-21173"]
        assert summary.fixes[0].release == "8.0"
        assert summary.fixes[0].repo == "dotnet/extensions"

    def test_first_product_match_decides_fix_release(self, records):
        # Both entries carry the same fix; the first has no release
        first = ProductImpact("CVE-2025-21171", "dotnet-runtime", "9.0.0", "9.0.0", "9.0.1", "", ("a1b2c3d4e5f6",))
        second = ProductImpact(
            "CVE-2025-21171", "dotnet-sdk", "9.0.100", "9.0.101", "9.0.102", "9.0", ("a1b2c3d4e5f6",)
        )
        changed = records.evolve(products=(first, second) + records.products[1:])

        summary = to_summaries(changed)[0]
        assert summary.fixes[0].release is None

    def test_package_release_used_when_product_has_none(self, records):
        product = ProductImpact("CVE-2025-21171", "dotnet-runtime", "9.0.0", "9.0.0", "9.0.1", "", ("a1b2c3d4e5f6",))
        package = PackageImpact(
            "CVE-2025-21171", "System.Text.Json", "9.0.0", "9.0.0", "9.0.1", "9.0", ("a1b2c3d4e5f6",)
        )
        changed = records.evolve(products=(product,) + records.products[1:], packages=records.packages + (package,))

        summary = to_summaries(changed)[0]
        assert summary.fixes[0].release == "9.0"

    def test_unresolvable_commit_is_skipped(self, records):
        # Filtering to 8.0 drops commit c3d4e5f6a1b2 but cve_commits still lists it
        filtered = filter_by_release(records, "8.0")
        summary = {s.id: s for s in to_summaries(filtered)}["CVE-2025-21172"]

        assert [f.href for f in summary.fixes] == ["https://github.com/dotnet/runtime/commit/b2c3d4e5f6a1.diff"]

    def test_announcement_link_from_first_reference(self, records):
        summary = to_summaries(records)[0]
        assert summary.links["announcement"].href == "https://github.com/dotnet/announcements/issues/340"
        assert summary.links["announcement"].title == "Announcement for CVE-2025-21171"

    def test_cvss_and_dates(self, records):
        summaries = to_summaries(records)
        assert summaries[0].cvss_score == 7.5
        assert summaries[0].cvss_severity == "high"
        assert summaries[0].disclosure_date == "2025-01-14"
        assert summaries[2].cvss_score is None
        assert summaries[2].cvss_severity is None

    def test_absent_fields_never_empty(self, records):
        bare = records.evolve(commits=None, cve_commits=None, product_cves={}, package_cves={})
        for summary in to_summaries(bare):
            for value in (summary.affected_products, summary.affected_packages, summary.fixes, summary.links):
                assert value is None or len(value) > 0

        data = to_summaries(bare)[2].to_dict()
        assert "_links" not in data
        assert "fixes" not in data
        assert "affected-products" not in data
        assert "affected-packages" not in data

    def test_summary_wire_format(self, records):
        data = to_summaries(records)[0].to_dict()

        assert data["_links"]["announcement"]["href"] == "https://github.com/dotnet/announcements/issues/340"
        assert data["cvss-score"] == 7.5
        assert data["affected-releases"] == ["9.0"]
        assert data["fixes"][0]["repo"] == "dotnet/runtime"

    def test_none_input(self):
        assert to_summaries(None) == []


# =============================================================================
# validate_cve_data
# =============================================================================


class TestValidateCveData:
    def test_identical_sets_produce_no_diagnostics(self):
        assert validate_cve_data("9.0.1", ["CVE-1", "CVE-2"], ["CVE-2", "CVE-1", "CVE-1"]) == []

    def test_both_empty(self):
        assert validate_cve_data("9.0.0", [], None) == []

    def test_reports_both_directions(self):
        lines = validate_cve_data("8.0.12", ["CVE-2025-21172", "CVE-2025-21176"], ["CVE-2025-21172", "CVE-2025-21173"])

        assert lines == [
            "8.0.12 - CVE IDs in release metadata but not in CVE document: CVE-2025-21176",
            "8.0.12 - CVE IDs in CVE document but not in release metadata: CVE-2025-21173",
        ]

    def test_one_direction_only(self):
        lines = validate_cve_data("8.0.11", ["CVE-2024-43498"], [])
        assert len(lines) == 1
        assert lines[0].startswith("8.0.11 - ")

    def test_diagnostics_logged_as_warnings(self):
        with patch("release_metadata._cves.transformer.logger") as mock_logger:
            validate_cve_data("8.0.11", [], ["CVE-2024-43498"])
        mock_logger.warning.assert_called_once()
