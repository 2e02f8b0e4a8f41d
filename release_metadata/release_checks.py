"""Consistency checks across a release-notes tree.

Two independently maintained sources describe security fixes: each patch
release's ``security`` flag and ``cve-list`` (releases.json, release.json),
and the monthly CVE documents (timeline/YYYY/MM/cve.json). These checks
report where they disagree. Findings are returned as data and logged; they
never stop the walk.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

import requests
from semantic_version import Version

from ._cves.loader import load_cve_records_for_release_date
from ._cves.transformer import extract_cve_ids, filter_by_release, validate_cve_data
from ._lifecycle.documents import (
    PATCH_RELEASE_FILE,
    RELEASES_FILE,
    get_uri,
    load_major_release,
    load_patch_release,
)
from ._lifecycle.models import PatchRelease
from .exceptions import ReleaseMetadataError
from .http_client import DEFAULT_TIMEOUT
from .logging_config import logger


@dataclass(frozen=True)
class SecurityFlagIssue:
    """A patch release whose security flag disagrees with its CVE list."""

    release_version: str
    source: str
    security: bool
    cve_count: int

    def __str__(self) -> str:
        if self.security:
            return f"Patch release {self.release_version} in {self.source} reports security = True with no CVEs."
        return (
            f"Patch release {self.release_version} in {self.source} reports security = False "
            f"with `cve-list` containing {self.cve_count} CVEs."
        )


def _sorted_version_dirs(root: Path) -> List[Path]:
    """Subdirectories ordered newest version first; non-version names follow."""
    versioned = []
    others = []
    for path in root.iterdir():
        if not path.is_dir():
            continue
        try:
            versioned.append((Version.coerce(path.name), path))
        except ValueError:
            others.append(path)
    versioned.sort(key=lambda item: item[0], reverse=True)
    return [path for _, path in versioned] + sorted(others, key=lambda p: p.name, reverse=True)


def _check_patch(patch: PatchRelease, source: str) -> Optional[SecurityFlagIssue]:
    cve_count = len(patch.cve_list)
    if patch.security and cve_count == 0:
        return SecurityFlagIssue(patch.release_version, source, True, 0)
    if not patch.security and cve_count > 0:
        return SecurityFlagIssue(patch.release_version, source, False, cve_count)
    return None


def check_security_flags(release_notes_root: Union[str, Path]) -> List[SecurityFlagIssue]:
    """
    Check the security flag of every patch release under a release-notes tree.

    Walks ``{root}/{version}/releases.json`` and
    ``{root}/{version}/{patch}/release.json``, newest version first.

    Args:
        release_notes_root: Local release-notes directory

    Returns:
        Every disagreement found, in walk order
    """
    root = Path(release_notes_root)
    issues: List[SecurityFlagIssue] = []

    for version_dir in _sorted_version_dirs(root):
        releases_json = version_dir / RELEASES_FILE
        if not releases_json.is_file():
            continue

        logger.info(f"Processing release: {version_dir}")
        try:
            major_release = load_major_release(releases_json)
        except ReleaseMetadataError as e:
            logger.warning(f"Failed to read release from {releases_json}: {e}")
            continue

        for patch in major_release.releases:
            issue = _check_patch(patch, str(releases_json))
            if issue is not None:
                issues.append(issue)

        for patch_dir in _sorted_version_dirs(version_dir):
            patch_json = patch_dir / PATCH_RELEASE_FILE
            if not patch_json.is_file():
                continue

            try:
                overview = load_patch_release(patch_json)
            except ReleaseMetadataError as e:
                logger.warning(f"Failed to read patch release from {patch_json}: {e}")
                continue

            if overview.release is None:
                logger.warning(f"No release information found in {patch_json}")
                continue

            issue = _check_patch(overview.release, str(patch_json))
            if issue is not None:
                issues.append(issue)

    for issue in issues:
        logger.warning(str(issue))

    return issues


def cross_check_release_cves(
    release_notes_root: Union[str, Path],
    channel_version: str,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> List[str]:
    """
    Compare each patch release's CVE list with the monthly CVE document.

    For every patch of the channel, the CVE document for the month the patch
    shipped in is filtered down to the channel and its ids compared with the
    patch's ``cve-list``.

    Args:
        release_notes_root: Release-notes root, path or URL
        channel_version: Major version, e.g. "8.0"
        session: Optional requests session for remote trees
        timeout: HTTP timeout in seconds

    Returns:
        Diagnostic lines, each prefixed with the patch version
    """
    root = str(release_notes_root)
    major_release = load_major_release(get_uri(RELEASES_FILE, channel_version, root), session=session, timeout=timeout)

    diagnostics: List[str] = []
    for patch in major_release.releases:
        if patch.release_date is None:
            logger.debug(f"Skipping {patch.release_version}: no release date")
            continue

        records = load_cve_records_for_release_date(root, patch.release_date, session=session, timeout=timeout)
        filtered = filter_by_release(records, channel_version)
        diagnostics.extend(validate_cve_data(patch.release_version, patch.cve_ids, extract_cve_ids(filtered)))

    return diagnostics
