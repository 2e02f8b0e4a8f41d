"""Lookup index generation and consistency checks for CVE documents.

The lookup mappings in a cve.json document (product_cves, release_cves,
cve_releases, ...) are all derivable from the primary ``products`` and
``packages`` lists. This module is the single place that derives them, so
generated, filtered and validated views never disagree on how an index is
built.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from ..logging_config import logger
from .models import AffectedEntry, CveIdIndex, CveRecords, PackageImpact

INDEX_NAMES = ("product_name", "product_cves", "package_cves", "release_cves", "cve_releases", "cve_commits")

PRODUCT_DISPLAY_NAMES: Dict[str, str] = {
    "dotnet-runtime-libraries": ".NET Runtime Libraries",
    "dotnet-runtime-aspnetcore": "ASP.NET Core Runtime",
    "dotnet-runtime": ".NET Runtime Libraries",
    "dotnet-aspnetcore": "ASP.NET Core Runtime",
    "dotnet-sdk": ".NET SDK",
    "aspnetcore-runtime": "ASP.NET Core Runtime",
}


def get_product_display_name(name: str) -> str:
    """Map a product or package name to its display name; unknown names map to themselves."""
    return PRODUCT_DISPLAY_NAMES.get(name, name)


def _append_unique(index: Dict[str, List[str]], key: str, value: str) -> None:
    values = index.setdefault(key, [])
    if value not in values:
        values.append(value)


def _sorted_index(index: Dict[str, List[str]]) -> CveIdIndex:
    return {key: tuple(sorted(index[key])) for key in sorted(index)}


def group_cve_ids_by_name(entries: Iterable[AffectedEntry]) -> CveIdIndex:
    """
    Group impact entries by component name.

    Names keep first-seen order and each name's CVE ids are de-duplicated in
    first-seen order.
    """
    grouped: Dict[str, List[str]] = {}
    for entry in entries:
        _append_unique(grouped, entry.name, entry.cve_id)
    return {name: tuple(ids) for name, ids in grouped.items()}


@dataclass(frozen=True)
class CveIndexes:
    """Lookup mappings derived from the primary impact lists."""

    product_name: Dict[str, str]
    product_cves: CveIdIndex
    package_cves: CveIdIndex
    release_cves: CveIdIndex
    cve_releases: CveIdIndex
    cve_commits: CveIdIndex


def build_indexes(records: CveRecords) -> CveIndexes:
    """
    Derive every lookup mapping from ``records.products`` and ``records.packages``.

    Every entry, product or package, is listed in ``product_cves``; packages
    are also listed in ``package_cves``. Entries with an empty release do not
    contribute to the release mappings.
    All keys and all value lists are sorted.

    Args:
        records: Source records; only the primary lists are read

    Returns:
        CveIndexes with freshly built mappings
    """
    product_name: Dict[str, str] = {}
    product_cves: Dict[str, List[str]] = {}
    package_cves: Dict[str, List[str]] = {}
    release_cves: Dict[str, List[str]] = {}
    cve_releases: Dict[str, List[str]] = {}
    cve_commits: Dict[str, List[str]] = {}

    for entries in (records.products, records.packages):
        for entry in entries:
            product_name.setdefault(entry.name, get_product_display_name(entry.name))
            _append_unique(product_cves, entry.name, entry.cve_id)

            if isinstance(entry, PackageImpact):
                _append_unique(package_cves, entry.name, entry.cve_id)

            if entry.release:
                _append_unique(cve_releases, entry.cve_id, entry.release)
                _append_unique(release_cves, entry.release, entry.cve_id)

            for commit_hash in entry.commits:
                _append_unique(cve_commits, entry.cve_id, commit_hash)

    return CveIndexes(
        product_name={key: product_name[key] for key in sorted(product_name)},
        product_cves=_sorted_index(product_cves),
        package_cves=_sorted_index(package_cves),
        release_cves=_sorted_index(release_cves),
        cve_releases=_sorted_index(cve_releases),
        cve_commits=_sorted_index(cve_commits),
    )


def with_generated_indexes(records: CveRecords) -> CveRecords:
    """Return new records whose lookup mappings are all regenerated from the primary lists."""
    indexes = build_indexes(records)
    return records.evolve(
        product_name=indexes.product_name,
        product_cves=indexes.product_cves,
        package_cves=indexes.package_cves,
        release_cves=indexes.release_cves,
        cve_releases=indexes.cve_releases,
        cve_commits=indexes.cve_commits,
    )


def fill_missing_indexes(records: CveRecords) -> CveRecords:
    """Return new records where only the absent lookup mappings are generated."""
    indexes = build_indexes(records)
    changes = {}
    for name in INDEX_NAMES:
        if getattr(records, name) is None:
            changes[name] = getattr(indexes, name)

    if not changes:
        return records

    logger.debug(f"Generated missing CVE indexes: {', '.join(changes)}")
    return records.evolve(**changes)


# --------------------------------------------------------------------------
# Validation
# --------------------------------------------------------------------------


@dataclass(frozen=True)
class IndexIssue:
    """A single inconsistency between a stored mapping and the primary lists."""

    index: str
    message: str
    key: Optional[str] = None

    def __str__(self) -> str:
        if self.key is not None:
            return f"{self.index}['{self.key}']: {self.message}"
        return f"{self.index}: {self.message}"


def _compare_index(name: str, actual: Optional[dict], expected: dict) -> List[IndexIssue]:
    if actual is None:
        if expected:
            return [IndexIssue(name, "Dictionary is missing")]
        return []

    issues: List[IndexIssue] = []
    for key in expected:
        if key not in actual:
            issues.append(IndexIssue(name, f"Missing key '{key}'"))
    for key in actual:
        if key not in expected:
            issues.append(IndexIssue(name, f"Unexpected key '{key}'"))

    for key in expected:
        if key not in actual:
            continue
        expected_value = expected[key]
        actual_value = actual[key]
        if isinstance(expected_value, tuple):
            expected_value = sorted(expected_value)
            actual_value = sorted(actual_value)
        if expected_value != actual_value:
            issues.append(
                IndexIssue(name, f"Value mismatch (expected {expected_value}, actual {actual_value})", key=key)
            )
    return issues


def _check_commit_consistency(records: CveRecords) -> List[IndexIssue]:
    if not records.commits:
        return []

    issues: List[IndexIssue] = []
    referenced = set()
    for label, entries in (("products", records.products), ("packages", records.packages)):
        for i, entry in enumerate(entries):
            if not entry.commits:
                issues.append(
                    IndexIssue("commits", f"{label}[{i}] ('{entry.name}' for {entry.cve_id}) has no commits")
                )
            for commit_hash in entry.commits:
                referenced.add(commit_hash)
                if commit_hash not in records.commits:
                    issues.append(
                        IndexIssue("commits", f"{label}[{i}] references unknown commit {commit_hash}")
                    )

    for commit_hash in records.commits:
        if commit_hash not in referenced:
            issues.append(IndexIssue("commits", f"Commit {commit_hash} is not referenced by any product or package"))

    return issues


def validate_indexes(records: CveRecords) -> List[IndexIssue]:
    """
    Compare the stored lookup mappings against ones generated from the primary lists.

    Args:
        records: Records loaded from a cve.json document

    Returns:
        List of issues; empty when every mapping is consistent
    """
    expected = build_indexes(records)
    issues: List[IndexIssue] = []

    for name in ("cve_releases", "product_cves", "package_cves", "product_name", "release_cves"):
        issues.extend(_compare_index(name, getattr(records, name), getattr(expected, name)))

    if records.commits is not None:
        issues.extend(_compare_index("cve_commits", records.cve_commits, expected.cve_commits))

    issues.extend(_check_commit_consistency(records))
    return issues
