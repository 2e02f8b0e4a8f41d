"""CVE disclosure documents: model, transforms, lookup indexes and loading."""

from .indexes import (
    CveIndexes,
    IndexIssue,
    build_indexes,
    get_product_display_name,
    validate_indexes,
    with_generated_indexes,
)
from .loader import (
    load_cve_records,
    load_cve_records_for_release_date,
    load_cve_records_from_directory,
    write_cve_records,
)
from .models import (
    CommitInfo,
    CommitLink,
    Cve,
    CveRecords,
    CveRecordSummary,
    HalLink,
    PackageImpact,
    ProductImpact,
)
from .transformer import extract_cve_ids, filter_by_release, to_summaries, validate_cve_data

__all__ = [
    "CommitInfo",
    "CommitLink",
    "Cve",
    "CveIndexes",
    "CveRecords",
    "CveRecordSummary",
    "HalLink",
    "IndexIssue",
    "PackageImpact",
    "ProductImpact",
    "build_indexes",
    "extract_cve_ids",
    "filter_by_release",
    "get_product_display_name",
    "load_cve_records",
    "load_cve_records_for_release_date",
    "load_cve_records_from_directory",
    "to_summaries",
    "validate_cve_data",
    "validate_indexes",
    "with_generated_indexes",
    "write_cve_records",
]
