"""Support-cycle reconciliation.

Compares a distribution's declared supported/unsupported versions with the
cycles published by the lifecycle feed, relative to the product's own
support window. Pure logic: no I/O, and "today" is always passed in.
"""

import calendar
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional

from .models import MajorReleaseOverview, ReportDistribution, SupportCycle, SupportDistribution, SupportedOSMatrix

DEFAULT_VERSION = "0.0"
EOL_SOON_MONTHS = 3


def add_months(start: date, months: int) -> date:
    """Add calendar months, clamping the day to the end of the target month."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


@dataclass(frozen=True)
class ProductWindow:
    """
    The product's own support window for one major version.

    Attributes:
        version: Major version, e.g. "9.0"
        initial_release_date: Date of the "{version}.0" release, date.max when unknown
        eol_date: Product end of life, date.max when unknown
    """

    version: str
    initial_release_date: date = date.max
    eol_date: date = date.max

    @classmethod
    def from_documents(
        cls,
        matrix: Optional[SupportedOSMatrix],
        major_release: Optional[MajorReleaseOverview],
    ) -> "ProductWindow":
        version = None
        if matrix is not None:
            version = matrix.channel_version
        if not version and major_release is not None:
            version = major_release.channel_version
        version = version or DEFAULT_VERSION

        initial_release_date = date.max
        eol_date = date.max
        if major_release is not None:
            initial = major_release.find_release(f"{version}.0")
            if initial is not None and initial.release_date is not None:
                initial_release_date = initial.release_date
            if major_release.eol_date is not None:
                eol_date = major_release.eol_date

        return cls(version=version, initial_release_date=initial_release_date, eol_date=eol_date)

    def overlaps(self, cycle: SupportCycle, cycle_eol: date) -> bool:
        """True when the cycle and the product are both in support at some point in time."""
        cycle_release = cycle.release_date or date.min
        return self.initial_release_date <= cycle_eol and cycle_release <= self.eol_date


def classify_distribution(
    distribution: SupportDistribution,
    cycles: Iterable[SupportCycle],
    window: ProductWindow,
    today: date,
) -> ReportDistribution:
    """
    Classify every lifecycle cycle of one distribution.

    Each cycle is checked independently and may land in several categories:

    - active cycles are always listed in ``active_releases``
    - active and declared unsupported: ``unsupported_active_releases``
    - overlapping the product window and declared in neither list: ``releases_missing``
    - not active but declared supported: ``releases_supported_not_active``
    - active with an EOL date less than three months away: ``releases_eol_soon``

    Combinations outside these rules (e.g. ended and declared unsupported)
    produce no finding.

    Args:
        distribution: Distribution entry from the support matrix
        cycles: Cycles from the lifecycle feed, in feed order
        window: Product support window
        today: Reference date for active/EOL-soon decisions

    Returns:
        ReportDistribution with categories in feed order
    """
    supported = set(distribution.supported_versions)
    unsupported = set(distribution.unsupported_versions)
    eol_soon_before = add_months(today, EOL_SOON_MONTHS)

    active: List[str] = []
    missing: List[str] = []
    unsupported_active: List[str] = []
    supported_not_active: List[str] = []
    eol_soon: List[str] = []

    for cycle in cycles:
        support = cycle.support_info(today)
        is_supported = cycle.cycle in supported
        is_unsupported = cycle.cycle in unsupported

        if support.is_active:
            active.append(cycle.cycle)

        if support.is_active and is_supported:
            pass
        elif support.is_active and is_unsupported:
            unsupported_active.append(cycle.cycle)
        elif window.overlaps(cycle, support.eol_date) and not is_supported and not is_unsupported:
            missing.append(cycle.cycle)
        elif not support.is_active and is_supported:
            supported_not_active.append(cycle.cycle)

        if support.is_active and support.eol_date < eol_soon_before:
            eol_soon.append(cycle.cycle)

    return ReportDistribution(
        name=distribution.name,
        active_releases=tuple(active),
        releases_missing=tuple(missing),
        unsupported_active_releases=tuple(unsupported_active),
        releases_supported_not_active=tuple(supported_not_active),
        releases_eol_soon=tuple(eol_soon),
    )
