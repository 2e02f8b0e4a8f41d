"""Known exceptions for reconciliation findings.

Some findings are expected, e.g. a Windows Server version that stays
supported past its mainstream end of life. They are listed in a YAML file:

    Linux:
      Alpine:
        "7.0": ["3.14"]

(family -> distribution -> product version -> cycles)
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import yaml

from ..exceptions import ConfigurationError
from .report import Report

DEFAULT_EXCEPTIONS_FILE = Path(__file__).parent / "known_exceptions.yaml"

EOL_SOON = "EOL Soon"
EOL_BUT_SUPPORTED = "EOL but still supported"
CURRENTLY_MISSING = "Currently missing"

# family -> distribution -> product version -> expected cycles
KnownExceptions = Dict[str, Dict[str, Dict[str, Tuple[str, ...]]]]


@dataclass(frozen=True)
class Finding:
    """A reconciliation finding that is not listed as expected."""

    family: str
    distribution: str
    cycle: str
    text: str

    def __str__(self) -> str:
        return f"{self.distribution} {self.cycle}: {self.text}"


def parse_known_exceptions(data: Optional[dict]) -> KnownExceptions:
    """
    Validate and normalize decoded exceptions data.

    Raises:
        ConfigurationError: If the structure is not family -> distribution -> version -> list
    """
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError("Known exceptions must be a mapping of family names")

    exceptions: KnownExceptions = {}
    for family, distributions in data.items():
        if not isinstance(distributions, dict):
            raise ConfigurationError(f"Known exceptions for family '{family}' must be a mapping")
        exceptions[str(family)] = {}
        for distribution, versions in distributions.items():
            if not isinstance(versions, dict):
                raise ConfigurationError(f"Known exceptions for '{family}/{distribution}' must be a mapping")
            per_version = {}
            for version, cycles in versions.items():
                if not isinstance(cycles, list):
                    raise ConfigurationError(
                        f"Known exceptions for '{family}/{distribution}' version {version} must be a list"
                    )
                per_version[str(version)] = tuple(str(c) for c in cycles)
            exceptions[str(family)][str(distribution)] = per_version
    return exceptions


def load_known_exceptions(path: Union[str, Path, None] = None) -> KnownExceptions:
    """
    Load known exceptions from YAML, defaulting to the bundled file.

    Raises:
        ConfigurationError: If the file is missing, is not valid YAML or has the wrong shape
    """
    path = Path(path) if path is not None else DEFAULT_EXCEPTIONS_FILE
    try:
        with path.open("r") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read known exceptions file {path}: {e}")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in known exceptions file {path}: {e}")
    return parse_known_exceptions(data)


def find_unexpected(report: Report, exceptions: KnownExceptions) -> List[Finding]:
    """
    List the report's findings that are not known exceptions.

    Only "EOL Soon", "EOL but still supported" and "Currently missing"
    findings are considered, in report traversal order.
    """
    findings: List[Finding] = []
    for family, distribution in report.iter_distributions():
        expected = exceptions.get(family.name, {}).get(distribution.name, {}).get(report.version, ())

        for text, cycles in (
            (EOL_SOON, distribution.releases_eol_soon),
            (EOL_BUT_SUPPORTED, distribution.releases_supported_not_active),
            (CURRENTLY_MISSING, distribution.releases_missing),
        ):
            for cycle in cycles:
                if cycle not in expected:
                    findings.append(Finding(family.name, distribution.name, cycle, text))
    return findings
