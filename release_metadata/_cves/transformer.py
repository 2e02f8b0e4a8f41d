"""Transforms CVE records: summaries, id extraction, per-release filtering, cross-validation.

Every function here is pure apart from logging. A missing or empty input
is a valid degenerate case and produces an empty or absent result instead
of an exception, so one gap in upstream data never halts a batch.
"""

from typing import Dict, Iterable, List, Optional, Tuple

from ..logging_config import logger
from .indexes import group_cve_ids_by_name
from .models import CommitLink, Cve, CveIdIndex, CveRecords, CveRecordSummary, HalLink


def _names_containing(index: Optional[CveIdIndex], cve_id: str) -> Optional[Tuple[str, ...]]:
    """Reverse-scan a name -> ids mapping for every name whose set contains ``cve_id``."""
    if index is None:
        return None
    names = tuple(name for name, ids in index.items() if cve_id in ids)
    return names or None


def _first_release(entries, cve_id: str, commit_hash: str) -> Optional[str]:
    for entry in entries:
        if entry.cve_id == cve_id and commit_hash in entry.commits:
            return entry.release or None
    return None


def _fix_release(records: CveRecords, cve_id: str, commit_hash: str) -> Optional[str]:
    """Find the release family a fix commit applies to.

    The first matching product decides; packages are consulted only when it
    has no release.
    """
    release = _first_release(records.products, cve_id, commit_hash)
    return release or _first_release(records.packages, cve_id, commit_hash)


def _fix_links(records: CveRecords, cve_id: str) -> Optional[Tuple[CommitLink, ...]]:
    if not records.cve_commits or not records.commits:
        return None

    fixes: List[CommitLink] = []
    for commit_hash in records.cve_commits.get(cve_id, ()):
        commit = records.commits.get(commit_hash)
        if commit is None:
            # Unresolvable hashes are left out of the summary
            logger.debug(f"No commit entry for {commit_hash} ({cve_id})")
            continue
        fixes.append(
            CommitLink(
                href=commit.url,
                repo=commit.full_name,
                branch=commit.branch,
                title=f"Fix commit in {commit.repo} ({commit.branch})",
                release=_fix_release(records, cve_id, commit_hash),
            )
        )
    return tuple(fixes) or None


def _summarize(records: CveRecords, disclosure: Cve) -> CveRecordSummary:
    links: Dict[str, HalLink] = {}
    if disclosure.references:
        links["announcement"] = HalLink(disclosure.references[0], title=f"Announcement for {disclosure.id}")

    affected_releases = None
    if records.cve_releases is not None:
        affected_releases = tuple(records.cve_releases.get(disclosure.id, ())) or None

    return CveRecordSummary(
        id=disclosure.id,
        title=disclosure.problem,
        links=links or None,
        fixes=_fix_links(records, disclosure.id),
        cvss_score=disclosure.cvss.score or None,
        cvss_severity=disclosure.cvss.severity or None,
        disclosure_date=disclosure.timeline.disclosure.date,
        affected_releases=affected_releases,
        affected_products=_names_containing(records.product_cves, disclosure.id),
        affected_packages=_names_containing(records.package_cves, disclosure.id),
        platforms=disclosure.platforms or None,
    )


def to_summaries(records: Optional[CveRecords]) -> List[CveRecordSummary]:
    """
    Convert full disclosure records to summaries for embedding in indexes.

    Args:
        records: Disclosure set, may be None

    Returns:
        One summary per disclosure, in disclosure order
    """
    if records is None or not records.disclosures:
        return []

    return [_summarize(records, disclosure) for disclosure in records.disclosures]


def extract_cve_ids(records: Optional[CveRecords]) -> List[str]:
    """Return the id of every disclosure in order, without de-duplication."""
    if records is None or not records.disclosures:
        return []

    return [disclosure.id for disclosure in records.disclosures]


def filter_by_release(records: Optional[CveRecords], release_version: str) -> Optional[CveRecords]:
    """
    Restrict records to the CVEs that ``release_cves`` lists for one release.

    Products and packages are kept only when their release equals
    ``release_version`` exactly. ``release_cves`` is narrowed to the single
    queried release; ``cve_releases`` keeps each surviving CVE's full list of
    affected releases.

    Args:
        records: Disclosure set, may be None
        release_version: Release key, e.g. "8.0"

    Returns:
        New filtered records, or None when the release has no CVEs
    """
    if records is None or not records.disclosures:
        return None

    cve_ids = set((records.release_cves or {}).get(release_version, ()))
    if not cve_ids:
        logger.debug(f"No CVEs recorded for release {release_version}")
        return None

    disclosures = tuple(d for d in records.disclosures if d.id in cve_ids)
    if not disclosures:
        logger.warning(f"release_cves lists CVEs for {release_version} but none are disclosed")
        return None

    products = tuple(p for p in records.products if p.cve_id in cve_ids and p.release == release_version)
    packages = tuple(p for p in records.packages if p.cve_id in cve_ids and p.release == release_version)

    needed_commits = {h for entry in products + packages for h in entry.commits}

    commits = None
    if records.commits is not None:
        commits = {h: c for h, c in records.commits.items() if h in needed_commits}

    return records.evolve(
        title=f"CVEs affecting {release_version}",
        disclosures=disclosures,
        products=products,
        packages=packages,
        commits=commits,
        product_cves=group_cve_ids_by_name(products),
        package_cves=group_cve_ids_by_name(packages),
        release_cves={release_version: tuple(sorted(cve_ids))},
        cve_releases=_restrict(records.cve_releases, cve_ids),
        cve_commits=_restrict(records.cve_commits, cve_ids),
    )


def _restrict(index: Optional[CveIdIndex], keys: Iterable[str]) -> Optional[CveIdIndex]:
    if index is None:
        return None
    keep = set(keys)
    return {key: values for key, values in index.items() if key in keep}


def validate_cve_data(
    release_version: str,
    ids_from_release: Optional[Iterable[str]],
    ids_from_cve_doc: Optional[Iterable[str]],
) -> List[str]:
    """
    Cross-check the CVE ids a release declares against the ids in the CVE document.

    Both inputs are treated as sets. Each non-empty direction of the
    difference produces one warning line prefixed with the release version.

    Args:
        release_version: Version being validated, e.g. "9.0.3"
        ids_from_release: CVE ids from the release metadata (releases.json)
        ids_from_cve_doc: CVE ids from the (filtered) CVE document

    Returns:
        The diagnostic lines that were logged; empty when both sets agree
    """
    release_ids = set(ids_from_release or ())
    document_ids = set(ids_from_cve_doc or ())

    if not release_ids and not document_ids:
        return []

    diagnostics: List[str] = []

    in_release_only = sorted(release_ids - document_ids)
    if in_release_only:
        diagnostics.append(
            f"{release_version} - CVE IDs in release metadata but not in CVE document: {', '.join(in_release_only)}"
        )

    in_document_only = sorted(document_ids - release_ids)
    if in_document_only:
        diagnostics.append(
            f"{release_version} - CVE IDs in CVE document but not in release metadata: {', '.join(in_document_only)}"
        )

    for line in diagnostics:
        logger.warning(line)

    return diagnostics
