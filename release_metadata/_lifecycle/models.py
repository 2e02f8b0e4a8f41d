"""Data models for support lifecycle documents.

Covers the endoflife.date feed (one ``SupportCycle`` per distribution
version line), the per-version OS support matrix (supported-os.json), the
major release overview (releases.json) and the per-patch release document
(release.json). Wire keys are kebab-case in the release-notes documents and
camelCase in the lifecycle feed; both spellings are accepted everywhere and
unknown keys are ignored.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from ..exceptions import DocumentValidationError
from ..serialization import normalize_keys


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def parse_date(value: Any) -> Optional[date]:
    """
    Parse an ISO date, ignoring any time component.

    Returns:
        The date, or None for missing or unparseable values
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or len(value) < 10:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def _require(data: Dict[str, Any], key: str, document: str) -> Any:
    try:
        return data[key]
    except KeyError:
        raise DocumentValidationError(f"Missing required field '{key}' in {document}")


def _strings(values: Any) -> Tuple[str, ...]:
    if not values:
        return ()
    return tuple(str(v) for v in values)


class SupportPhase(Enum):
    """Support phases of a product release through its lifecycle."""

    PREVIEW = "preview"
    GO_LIVE = "go-live"
    ACTIVE = "active"
    MAINTENANCE = "maintenance"
    EOL = "eol"


class ReleaseType(Enum):
    LTS = "lts"
    STS = "sts"


def _enum(enum_cls, value: Any, document: str):
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        raise DocumentValidationError(f"Invalid {enum_cls.__name__} '{value}' in {document}")


# =============================================================================
# endoflife.date feed
# =============================================================================


@dataclass(frozen=True)
class SupportInfo:
    """Whether a cycle is active and its effective end-of-life date."""

    is_active: bool
    eol_date: date


@dataclass(frozen=True)
class SupportCycle:
    """
    One version line of a distribution as tracked by endoflife.date.

    ``eol`` keeps the feed's raw value: ``False`` means never, ``True`` means
    ended without a published date, a string is an ISO date.
    """

    cycle: str
    release_date: Optional[date] = None
    eol: Union[bool, str, None] = None
    codename: Optional[str] = None
    lts: Union[bool, str, None] = None
    latest: Optional[str] = None
    latest_release_date: Optional[date] = None
    link: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SupportCycle":
        data = normalize_keys(data)
        eol = data.get("eol")
        if not isinstance(eol, (bool, str)):
            eol = None
        lts = data.get("lts")
        if not isinstance(lts, (bool, str)):
            lts = None
        latest = data.get("latest")
        return cls(
            cycle=str(_require(data, "cycle", "lifecycle cycle")),
            release_date=parse_date(data.get("release_date")),
            eol=eol,
            codename=data.get("codename"),
            lts=lts,
            latest=str(latest) if latest is not None else None,
            latest_release_date=parse_date(data.get("latest_release_date")),
            link=data.get("link"),
        )

    def support_info(self, today: Optional[date] = None) -> SupportInfo:
        """
        Resolve the cycle's status relative to ``today``.

        A cycle that never ends is active with ``date.max``. A cycle with a
        parseable EOL date is active while that date is after today. Any
        other value (``True``, missing, garbage) is treated as ended with
        ``date.min``.
        """
        if self.eol is False:
            return SupportInfo(is_active=True, eol_date=date.max)

        eol_date = parse_date(self.eol) if isinstance(self.eol, str) else None
        if eol_date is not None:
            today = today or utc_today()
            return SupportInfo(is_active=eol_date > today, eol_date=eol_date)

        return SupportInfo(is_active=False, eol_date=date.min)


# =============================================================================
# supported-os.json
# =============================================================================


@dataclass(frozen=True)
class SupportDistribution:
    """
    An operating system distribution in the support matrix.

    ``id`` matches the product id used by endoflife.date.
    """

    id: str
    name: str
    link: Optional[str] = None
    architectures: Tuple[str, ...] = ()
    supported_versions: Tuple[str, ...] = ()
    unsupported_versions: Tuple[str, ...] = ()
    lifecycle: Optional[str] = None
    notes: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SupportDistribution":
        data = normalize_keys(data)
        return cls(
            id=_require(data, "id", "support distribution"),
            name=_require(data, "name", "support distribution"),
            link=data.get("link"),
            architectures=_strings(data.get("architectures")),
            supported_versions=_strings(data.get("supported_versions")),
            unsupported_versions=_strings(data.get("unsupported_versions")),
            lifecycle=data.get("lifecycle"),
            notes=_strings(data.get("notes")),
        )


@dataclass(frozen=True)
class SupportFamily:
    name: str
    distributions: Tuple[SupportDistribution, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SupportFamily":
        return cls(
            name=_require(data, "name", "support family"),
            distributions=tuple(SupportDistribution.from_dict(d) for d in data.get("distributions") or ()),
        )


@dataclass(frozen=True)
class SupportLibc:
    """Minimum supported libc version for a set of architectures."""

    name: str
    version: str
    architectures: Tuple[str, ...] = ()
    source: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SupportLibc":
        return cls(
            name=_require(data, "name", "libc entry"),
            version=str(_require(data, "version", "libc entry")),
            architectures=_strings(data.get("architectures")),
            source=data.get("source"),
        )


@dataclass(frozen=True)
class SupportedOSMatrix:
    """Operating system support matrix for one major product version."""

    channel_version: str
    families: Tuple[SupportFamily, ...]
    last_updated: Optional[date] = None
    libc: Tuple[SupportLibc, ...] = ()
    notes: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SupportedOSMatrix":
        data = normalize_keys(data)
        return cls(
            channel_version=str(_require(data, "channel_version", "supported-os.json")),
            families=tuple(SupportFamily.from_dict(f) for f in _require(data, "families", "supported-os.json")),
            last_updated=parse_date(data.get("last_updated")),
            libc=tuple(SupportLibc.from_dict(entry) for entry in data.get("libc") or ()),
            notes=_strings(data.get("notes")),
        )


# =============================================================================
# releases.json / release.json
# =============================================================================


@dataclass(frozen=True)
class PatchCve:
    """A CVE reference inside release metadata."""

    cve_id: str
    cve_url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PatchCve":
        data = normalize_keys(data)
        return cls(cve_id=_require(data, "cve_id", "cve-list entry"), cve_url=data.get("cve_url"))


@dataclass(frozen=True)
class PatchRelease:
    release_version: str
    release_date: Optional[date] = None
    security: bool = False
    cve_list: Tuple[PatchCve, ...] = ()
    release_notes: Optional[str] = None

    @property
    def cve_ids(self) -> Tuple[str, ...]:
        return tuple(cve.cve_id for cve in self.cve_list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PatchRelease":
        data = normalize_keys(data)
        return cls(
            release_version=str(_require(data, "release_version", "patch release")),
            release_date=parse_date(data.get("release_date")),
            security=bool(data.get("security", False)),
            cve_list=tuple(PatchCve.from_dict(c) for c in data.get("cve_list") or ()),
            release_notes=data.get("release_notes"),
        )


@dataclass(frozen=True)
class MajorReleaseOverview:
    """A major product release (releases.json) with its patch releases."""

    channel_version: str
    support_phase: Optional[SupportPhase] = None
    release_type: Optional[ReleaseType] = None
    eol_date: Optional[date] = None
    latest_release: Optional[str] = None
    latest_release_date: Optional[date] = None
    lifecycle_policy: Optional[str] = None
    releases: Tuple[PatchRelease, ...] = field(default_factory=tuple)

    def find_release(self, release_version: str) -> Optional[PatchRelease]:
        for release in self.releases:
            if release.release_version == release_version:
                return release
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MajorReleaseOverview":
        data = normalize_keys(data)
        phase = data.get("support_phase")
        release_type = data.get("release_type")
        return cls(
            channel_version=str(_require(data, "channel_version", "releases.json")),
            support_phase=_enum(SupportPhase, phase, "releases.json") if phase is not None else None,
            release_type=_enum(ReleaseType, release_type, "releases.json") if release_type is not None else None,
            eol_date=parse_date(data.get("eol_date")),
            latest_release=data.get("latest_release"),
            latest_release_date=parse_date(data.get("latest_release_date")),
            lifecycle_policy=data.get("lifecycle_policy"),
            releases=tuple(PatchRelease.from_dict(r) for r in data.get("releases") or ()),
        )


@dataclass(frozen=True)
class PatchReleaseOverview:
    """A single patch release document (release.json)."""

    channel_version: str
    release_version: Optional[str] = None
    release_date: Optional[date] = None
    security: bool = False
    release: Optional[PatchRelease] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PatchReleaseOverview":
        data = normalize_keys(data)
        release = data.get("release")
        return cls(
            channel_version=str(_require(data, "channel_version", "release.json")),
            release_version=data.get("release_version"),
            release_date=parse_date(data.get("release_date")),
            security=bool(data.get("security", False)),
            release=PatchRelease.from_dict(release) if release is not None else None,
        )


# =============================================================================
# Reconciliation output
# =============================================================================


@dataclass(frozen=True)
class ReportDistribution:
    """
    Classification of one distribution's lifecycle cycles.

    Categories are not mutually exclusive; ``active_releases`` lists every
    currently active cycle whatever its other findings.
    """

    name: str
    active_releases: Tuple[str, ...] = ()
    releases_missing: Tuple[str, ...] = ()
    unsupported_active_releases: Tuple[str, ...] = ()
    releases_supported_not_active: Tuple[str, ...] = ()
    releases_eol_soon: Tuple[str, ...] = ()

    @property
    def has_findings(self) -> bool:
        return bool(
            self.releases_missing
            or self.unsupported_active_releases
            or self.releases_supported_not_active
            or self.releases_eol_soon
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "activeReleases": list(self.active_releases),
            "releasesMissing": list(self.releases_missing),
            "unsupportedActiveReleases": list(self.unsupported_active_releases),
            "releasesSupportedNotActive": list(self.releases_supported_not_active),
            "releasesEolSoon": list(self.releases_eol_soon),
        }
