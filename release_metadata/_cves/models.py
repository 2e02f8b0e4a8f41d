"""Data models for CVE disclosure documents (cve.json).

All records are immutable. Sequences are stored as tuples and lookup
mappings as dicts whose values are tuples, so a record can be rebuilt with
``evolve()`` without the new instance sharing mutable state with the old one.

Wire format is snake_case. Unknown top-level keys are rejected; unknown keys
inside a single disclosure are ignored so that CNA-specific additions do not
break loading.
"""

from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Iterable, Optional, Tuple

from ..exceptions import DocumentValidationError

# Mapping of name -> ordered, de-duplicated CVE ids (or release versions, or commit hashes)
CveIdIndex = Dict[str, Tuple[str, ...]]


def _tuple(values: Optional[Iterable[str]]) -> Optional[Tuple[str, ...]]:
    if values is None:
        return None
    return tuple(values)


def _list(values: Optional[Tuple[Any, ...]]) -> Optional[list]:
    if values is None:
        return None
    return list(values)


def _index_from_dict(data: Optional[Dict[str, Iterable[str]]]) -> Optional[CveIdIndex]:
    if data is None:
        return None
    return {key: tuple(values) for key, values in data.items()}


def _index_to_dict(index: Optional[CveIdIndex]) -> Optional[Dict[str, list]]:
    if index is None:
        return None
    return {key: list(values) for key, values in index.items()}


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


@dataclass(frozen=True)
class Event:
    """A dated event in the CVE lifecycle."""

    date: str
    description: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Event":
        return cls(date=data["date"], description=data["description"])

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date, "description": self.description}


@dataclass(frozen=True)
class Timeline:
    """Disclosure, fix and other dated events for a CVE."""

    disclosure: Event
    fixed: Optional[Event] = None
    other: Optional[Tuple[Event, ...]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Timeline":
        fixed = data.get("fixed")
        other = data.get("other")
        return cls(
            disclosure=Event.from_dict(data["disclosure"]),
            fixed=Event.from_dict(fixed) if fixed is not None else None,
            other=tuple(Event.from_dict(e) for e in other) if other is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none(
            {
                "disclosure": self.disclosure.to_dict(),
                "fixed": self.fixed.to_dict() if self.fixed else None,
                "other": [e.to_dict() for e in self.other] if self.other is not None else None,
            }
        )


@dataclass(frozen=True)
class Cvss:
    """CVSS scoring information. A zero score and empty severity are omitted on output."""

    version: str
    vector: str
    score: float = 0.0
    severity: str = ""
    source: Optional[str] = None
    temporal_score: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Cvss":
        return cls(
            version=data["version"],
            vector=data["vector"],
            score=data.get("score", 0.0),
            severity=data.get("severity", ""),
            source=data.get("source"),
            temporal_score=data.get("temporal_score"),
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"version": self.version, "vector": self.vector}
        if self.score:
            result["score"] = self.score
        if self.severity:
            result["severity"] = self.severity
        if self.source is not None:
            result["source"] = self.source
        if self.temporal_score is not None:
            result["temporal_score"] = self.temporal_score
        return result


@dataclass(frozen=True)
class CnaFaq:
    question: str
    answer: str


@dataclass(frozen=True)
class Cna:
    """CVE Numbering Authority information."""

    name: str
    severity: Optional[str] = None
    impact: Optional[str] = None
    acknowledgments: Optional[Tuple[str, ...]] = None
    faq: Optional[Tuple[CnaFaq, ...]] = None

    @classmethod
    def from_value(cls, value: Any) -> "Cna":
        """Build from either the legacy bare-string form or the object form."""
        if isinstance(value, str):
            return cls(name=value)
        if isinstance(value, dict):
            faq = value.get("faq")
            return cls(
                name=value.get("name") or "",
                severity=value.get("severity"),
                impact=value.get("impact"),
                acknowledgments=_tuple(value.get("acknowledgments")),
                faq=tuple(CnaFaq(f["question"], f["answer"]) for f in faq) if faq is not None else None,
            )
        raise DocumentValidationError(f"Invalid CNA format: {value!r}")

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"name": self.name}
        if self.severity is not None:
            result["severity"] = self.severity
        if self.impact is not None:
            result["impact"] = self.impact
        if self.acknowledgments:
            result["acknowledgments"] = list(self.acknowledgments)
        if self.faq:
            result["faq"] = [{"question": f.question, "answer": f.answer} for f in self.faq]
        return result


@dataclass(frozen=True)
class Cve:
    """
    A single disclosed vulnerability.

    Attributes:
        id: CVE identifier, e.g. "CVE-2025-21172"
        problem: Short description of the vulnerability type
        cvss: CVSS score, vector and severity
        timeline: Disclosure and fix dates
        description: Detailed description, one entry per line
        platforms: Affected platforms; None means all platforms
        architectures: Affected architectures
        references: Reference URLs; the first one is the announcement
        mitigation: Optional mitigation notes
        weakness: Optional CWE identifier
        cna: Optional numbering authority details
    """

    id: str
    problem: str
    cvss: Cvss
    timeline: Timeline
    description: Optional[Tuple[str, ...]] = None
    platforms: Optional[Tuple[str, ...]] = None
    architectures: Optional[Tuple[str, ...]] = None
    references: Optional[Tuple[str, ...]] = None
    mitigation: Optional[Tuple[str, ...]] = None
    weakness: Optional[str] = None
    cna: Optional[Cna] = None

    @property
    def severity(self) -> Optional[str]:
        """CVSS severity rating (critical/high/medium/low), if scored."""
        return self.cvss.severity or None

    @property
    def disclosure_date(self) -> str:
        return self.timeline.disclosure.date

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Cve":
        cna = data.get("cna")
        return cls(
            id=data["id"],
            problem=data["problem"],
            cvss=Cvss.from_dict(data["cvss"]),
            timeline=Timeline.from_dict(data["timeline"]),
            description=_tuple(data.get("description")),
            platforms=_tuple(data.get("platforms")),
            architectures=_tuple(data.get("architectures")),
            references=_tuple(data.get("references")),
            mitigation=_tuple(data.get("mitigation")),
            weakness=data.get("weakness"),
            cna=Cna.from_value(cna) if cna is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none(
            {
                "id": self.id,
                "problem": self.problem,
                "description": _list(self.description),
                "cvss": self.cvss.to_dict(),
                "timeline": self.timeline.to_dict(),
                "platforms": _list(self.platforms),
                "architectures": _list(self.architectures),
                "references": _list(self.references),
                "mitigation": _list(self.mitigation),
                "weakness": self.weakness,
                "cna": self.cna.to_dict() if self.cna else None,
            }
        )


@dataclass(frozen=True)
class AffectedEntry:
    """
    One (CVE, component, release family) impact row.

    ``release`` is the release family the row belongs to, e.g. "8.0".
    """

    cve_id: str
    name: str
    min_vulnerable: str
    max_vulnerable: str
    fixed: str
    release: str
    commits: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        return cls(
            cve_id=data["cve_id"],
            name=data["name"],
            min_vulnerable=data["min_vulnerable"],
            max_vulnerable=data["max_vulnerable"],
            fixed=data["fixed"],
            release=data["release"],
            commits=tuple(data.get("commits") or ()),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cve_id": self.cve_id,
            "name": self.name,
            "min_vulnerable": self.min_vulnerable,
            "max_vulnerable": self.max_vulnerable,
            "fixed": self.fixed,
            "release": self.release,
            "commits": list(self.commits),
        }


@dataclass(frozen=True)
class ProductImpact(AffectedEntry):
    """A product (runtime, SDK) affected by a CVE."""


@dataclass(frozen=True)
class PackageImpact(AffectedEntry):
    """A package (NuGet library) affected by a CVE."""


@dataclass(frozen=True)
class CommitInfo:
    """A commit that fixes a CVE."""

    repo: str
    branch: str
    hash: str
    org: str
    url: str

    @property
    def full_name(self) -> str:
        return f"{self.org}/{self.repo}"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CommitInfo":
        return cls(
            repo=data["repo"],
            branch=data["branch"],
            hash=data["hash"],
            org=data["org"],
            url=data["url"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"repo": self.repo, "branch": self.branch, "hash": self.hash, "org": self.org, "url": self.url}


@dataclass(frozen=True)
class CveRecords:
    """
    A disclosure set: CVEs, affected products/packages, fix commits and lookup indexes.

    The lookup mappings are denormalized views over ``products`` and
    ``packages``. Any of them may be absent (None).
    """

    last_updated: str
    title: str
    disclosures: Tuple[Cve, ...]
    products: Tuple[ProductImpact, ...] = ()
    packages: Tuple[PackageImpact, ...] = ()
    commits: Optional[Dict[str, CommitInfo]] = None
    product_name: Optional[Dict[str, str]] = None
    product_cves: Optional[CveIdIndex] = None
    package_cves: Optional[CveIdIndex] = None
    release_cves: Optional[CveIdIndex] = None
    cve_releases: Optional[CveIdIndex] = None
    cve_commits: Optional[CveIdIndex] = None

    @property
    def cves(self) -> Tuple[Cve, ...]:
        return self.disclosures

    def evolve(self, **changes: Any) -> "CveRecords":
        """Return a new instance with ``changes`` applied and every mapping copied."""
        for f in fields(self):
            if f.name in changes:
                continue
            value = getattr(self, f.name)
            if isinstance(value, dict):
                changes[f.name] = dict(value)
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CveRecords":
        """
        Build records from a decoded cve.json document.

        Raises:
            DocumentValidationError: If the document has unknown top-level keys
                or is missing a required field
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise DocumentValidationError(f"Unknown top-level field(s) in CVE document: {', '.join(unknown)}")

        try:
            commits = data.get("commits")
            return cls(
                last_updated=data["last_updated"],
                title=data["title"],
                disclosures=tuple(Cve.from_dict(d) for d in data["disclosures"]),
                products=tuple(ProductImpact.from_dict(p) for p in data["products"]),
                packages=tuple(PackageImpact.from_dict(p) for p in data["packages"]),
                commits={h: CommitInfo.from_dict(c) for h, c in commits.items()} if commits is not None else None,
                product_name=dict(data["product_name"]) if data.get("product_name") is not None else None,
                product_cves=_index_from_dict(data.get("product_cves")),
                package_cves=_index_from_dict(data.get("package_cves")),
                release_cves=_index_from_dict(data.get("release_cves")),
                cve_releases=_index_from_dict(data.get("cve_releases")),
                cve_commits=_index_from_dict(data.get("cve_commits")),
            )
        except KeyError as e:
            raise DocumentValidationError(f"Missing required field in CVE document: {e.args[0]}")

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none(
            {
                "last_updated": self.last_updated,
                "title": self.title,
                "disclosures": [d.to_dict() for d in self.disclosures],
                "products": [p.to_dict() for p in self.products],
                "packages": [p.to_dict() for p in self.packages],
                "commits": {h: c.to_dict() for h, c in self.commits.items()} if self.commits is not None else None,
                "product_name": dict(self.product_name) if self.product_name is not None else None,
                "product_cves": _index_to_dict(self.product_cves),
                "package_cves": _index_to_dict(self.package_cves),
                "release_cves": _index_to_dict(self.release_cves),
                "cve_releases": _index_to_dict(self.cve_releases),
                "cve_commits": _index_to_dict(self.cve_commits),
            }
        )


# --------------------------------------------------------------------------
# Derived summary records
# --------------------------------------------------------------------------


@dataclass(frozen=True)
class HalLink:
    href: str
    title: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({"href": self.href, "title": self.title})


@dataclass(frozen=True)
class CommitLink:
    """Link to a fix commit with repository context."""

    href: str
    repo: str
    branch: str
    title: Optional[str] = None
    release: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none(
            {
                "href": self.href,
                "repo": self.repo,
                "branch": self.branch,
                "title": self.title,
                "release": self.release,
            }
        )


@dataclass(frozen=True)
class CveRecordSummary:
    """
    Simplified CVE record for embedding in indexes.

    Optional collections are either non-empty or None, never empty.
    """

    id: str
    title: str
    links: Optional[Dict[str, HalLink]] = None
    fixes: Optional[Tuple[CommitLink, ...]] = None
    cvss_score: Optional[float] = None
    cvss_severity: Optional[str] = None
    disclosure_date: Optional[str] = None
    affected_releases: Optional[Tuple[str, ...]] = None
    affected_products: Optional[Tuple[str, ...]] = None
    affected_packages: Optional[Tuple[str, ...]] = None
    platforms: Optional[Tuple[str, ...]] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none(
            {
                "id": self.id,
                "title": self.title,
                "_links": {name: link.to_dict() for name, link in self.links.items()} if self.links else None,
                "fixes": [f.to_dict() for f in self.fixes] if self.fixes else None,
                "cvss-score": self.cvss_score,
                "cvss-severity": self.cvss_severity,
                "disclosure-date": self.disclosure_date,
                "affected-releases": _list(self.affected_releases) if self.affected_releases else None,
                "affected-products": _list(self.affected_products) if self.affected_products else None,
                "affected-packages": _list(self.affected_packages) if self.affected_packages else None,
                "platforms": _list(self.platforms) if self.platforms else None,
            }
        )
