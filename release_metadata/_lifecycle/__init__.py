"""OS support lifecycle reconciliation against endoflife.date."""

from .documents import get_uri, load_major_release, load_patch_release, load_supported_os_matrix
from .endoflife import EndOfLifeClient, clear_cache
from .exceptions import Finding, find_unexpected, load_known_exceptions
from .models import (
    MajorReleaseOverview,
    PatchRelease,
    PatchReleaseOverview,
    ReportDistribution,
    SupportCycle,
    SupportDistribution,
    SupportedOSMatrix,
    SupportFamily,
    SupportInfo,
)
from .reconciler import ProductWindow, classify_distribution
from .report import Report, ReportFamily, assemble_report, generate_report

__all__ = [
    "EndOfLifeClient",
    "Finding",
    "MajorReleaseOverview",
    "PatchRelease",
    "PatchReleaseOverview",
    "ProductWindow",
    "Report",
    "ReportDistribution",
    "ReportFamily",
    "SupportCycle",
    "SupportDistribution",
    "SupportFamily",
    "SupportInfo",
    "SupportedOSMatrix",
    "assemble_report",
    "classify_distribution",
    "clear_cache",
    "find_unexpected",
    "generate_report",
    "get_uri",
    "load_known_exceptions",
    "load_major_release",
    "load_patch_release",
    "load_supported_os_matrix",
]
