"""Reconciliation report assembly."""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, Iterable, Optional, Sequence, Tuple

from ..exceptions import APIError
from ..logging_config import logger
from .models import MajorReleaseOverview, ReportDistribution, SupportCycle, SupportedOSMatrix
from .reconciler import ProductWindow, classify_distribution

# Returns the lifecycle cycles for an endoflife.date product id, or None when unknown
CyclesProvider = Callable[[str], Optional[Sequence[SupportCycle]]]


@dataclass(frozen=True)
class ReportFamily:
    name: str
    distributions: Tuple[ReportDistribution, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "distributions": [d.to_dict() for d in self.distributions]}


@dataclass(frozen=True)
class Report:
    """OS support reconciliation report for one major product version."""

    timestamp: datetime
    version: str
    families: Tuple[ReportFamily, ...] = ()

    def iter_distributions(self):
        for family in self.families:
            for distribution in family.distributions:
                yield family, distribution

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "version": self.version,
            "families": [f.to_dict() for f in self.families],
        }


def assemble_report(
    version: str,
    families: Iterable[Tuple[str, Iterable[ReportDistribution]]],
    timestamp: Optional[datetime] = None,
) -> Report:
    """
    Group per-distribution results by family, keeping input order.

    Args:
        version: Major product version the report covers
        families: (family name, distribution results) pairs
        timestamp: Report time, defaults to now (UTC)
    """
    return Report(
        timestamp=timestamp or datetime.now(timezone.utc),
        version=version,
        families=tuple(ReportFamily(name=name, distributions=tuple(results)) for name, results in families),
    )


def generate_report(
    matrix: Optional[SupportedOSMatrix],
    major_release: Optional[MajorReleaseOverview],
    cycles_provider: CyclesProvider,
    today: Optional[date] = None,
    timestamp: Optional[datetime] = None,
) -> Report:
    """
    Reconcile every distribution in the support matrix against its lifecycle feed.

    A distribution whose cycles cannot be fetched is skipped with a warning
    and the remaining distributions are still processed.

    Args:
        matrix: Support matrix (supported-os.json)
        major_release: Release overview (releases.json)
        cycles_provider: Callable returning cycles for an endoflife.date id
        today: Reference date, defaults to today (UTC)
        timestamp: Report time, defaults to now (UTC)

    Returns:
        Report with one family per matrix family
    """
    timestamp = timestamp or datetime.now(timezone.utc)
    today = today or timestamp.date()
    window = ProductWindow.from_documents(matrix, major_release)

    if matrix is None:
        logger.warning(f"No support matrix for {window.version}; report is empty")
        return assemble_report(window.version, [], timestamp=timestamp)

    logger.debug(
        f"Reconciling OS support for {window.version} "
        f"(initial release {window.initial_release_date}, EOL {window.eol_date})"
    )

    families = []
    for family in matrix.families:
        results = []
        for distribution in family.distributions:
            try:
                cycles = cycles_provider(distribution.id)
            except APIError as e:
                logger.warning(f"No lifecycle data found for {distribution.id}: {e}")
                continue
            if cycles is None:
                logger.warning(f"No lifecycle data found for {distribution.id}")
                continue

            result = classify_distribution(distribution, cycles, window, today)
            if result.has_findings:
                logger.debug(f"{family.name}/{distribution.name}: {result.to_dict()}")
            results.append(result)
        families.append((family.name, results))

    return assemble_report(window.version, families, timestamp=timestamp)
