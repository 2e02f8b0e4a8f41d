import functools
import os
import sys
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import List, Optional

import click
import sentry_sdk

from .. import __version__
from .._cves.indexes import validate_indexes, with_generated_indexes
from .._cves.loader import CVE_FILE_NAME, load_cve_records, write_cve_records
from .._cves.models import CveRecords
from .._cves.transformer import extract_cve_ids, filter_by_release, to_summaries, validate_cve_data
from .._lifecycle.documents import (
    RELEASE_NOTES_BASE_URL,
    RELEASES_FILE,
    SUPPORTED_OS_FILE,
    get_uri,
    load_major_release,
    load_supported_os_matrix,
)
from .._lifecycle.endoflife import ENDOFLIFE_API_BASE, EndOfLifeClient
from .._lifecycle.exceptions import find_unexpected, load_known_exceptions
from .._lifecycle.report import Report, generate_report
from ..console import console, gha_error, gha_notice, print_diagnostics, print_report_table, print_summary_table
from ..exceptions import (
    ConfigurationError,
    DocumentNotFoundError,
    DocumentValidationError,
    ReleaseMetadataError,
)
from ..http_client import DEFAULT_TIMEOUT, create_session
from ..logging_config import logger, set_log_level
from ..release_checks import check_security_flags, cross_check_release_cves
from ..serialization import to_json, write_json

RELEASE_METADATA_VERSION = __version__

LOCALHOST_PATTERNS = ["127.0.0.1", "localhost", "0.0.0.0"]

"""
release-metadata

Maintenance tooling for release-notes data:

- `cve`: summarize, filter and cross-check monthly CVE documents, and
  generate or validate their lookup indexes.
- `releases`: check that release metadata and CVE documents agree.
- `distros`: reconcile each major version's OS support matrix against
  the endoflife.date lifecycle feed.

# Configuration
Every option can also be set via environment variables:
- RELEASE_NOTES_BASE_URL: Release-notes root, URL or local directory
- ENDOFLIFE_API_URL: endoflife.date API base URL
- HTTP_TIMEOUT: HTTP timeout in seconds
- TELEMETRY: Send unexpected errors to Sentry (requires SENTRY_DSN)
- LOG_LEVEL: Initial log level (DEBUG, INFO, WARNING, ERROR)
"""


@dataclass
class Config:
    """Configuration settings shared by every command."""

    release_notes_base_url: str = RELEASE_NOTES_BASE_URL
    endoflife_api_url: str = ENDOFLIFE_API_BASE
    http_timeout: float = DEFAULT_TIMEOUT
    telemetry: bool = False

    def validate(self) -> None:
        """
        Validate configuration settings.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if self.http_timeout <= 0:
            raise ConfigurationError("HTTP timeout must be a positive number of seconds")

        self.endoflife_api_url = self._validate_url(self.endoflife_api_url, "endoflife.date API URL")

        # A local release-notes checkout is as valid as the published copy
        if self.release_notes_base_url.startswith(("http://", "https://")):
            self.release_notes_base_url = self._validate_url(self.release_notes_base_url, "Release notes base URL")

    @staticmethod
    def _validate_url(url: str, label: str) -> str:
        """
        Validate and normalize a base URL.

        Raises:
            ConfigurationError: If URL format is invalid
        """
        from urllib.parse import urlparse

        try:
            parsed = urlparse(url)
        except Exception as e:
            raise ConfigurationError(f"Invalid {label} format: {e}")

        if not parsed.scheme or parsed.scheme not in ("http", "https"):
            raise ConfigurationError(f"{label} must start with http:// or https://")

        if not parsed.netloc:
            raise ConfigurationError(f"{label} must include a valid hostname")

        if parsed.scheme == "http" and not any(localhost in parsed.netloc for localhost in LOCALHOST_PATTERNS):
            logger.warning(f"Using HTTP (not HTTPS) for {label} - consider using HTTPS")

        return url.rstrip("/")


def evaluate_boolean(value: str) -> bool:
    """
    Evaluate string values as boolean.

    Args:
        value: String value to evaluate

    Returns:
        Boolean result
    """
    return value.lower() in ["true", "yes", "yeah", "1"]


def build_config(
    release_notes_base_url: Optional[str] = None,
    endoflife_api_url: Optional[str] = None,
    http_timeout: Optional[float] = None,
    telemetry: Optional[bool] = None,
) -> Config:
    """
    Build configuration from explicit values with environment variable fallbacks.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    if http_timeout is None:
        raw_timeout = os.getenv("HTTP_TIMEOUT")
        try:
            http_timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT
        except ValueError:
            raise ConfigurationError(f"Invalid HTTP_TIMEOUT value: {raw_timeout}")

    if telemetry is None:
        telemetry = evaluate_boolean(os.getenv("TELEMETRY", "false"))

    config = Config(
        release_notes_base_url=release_notes_base_url or os.getenv("RELEASE_NOTES_BASE_URL") or RELEASE_NOTES_BASE_URL,
        endoflife_api_url=endoflife_api_url or os.getenv("ENDOFLIFE_API_URL") or ENDOFLIFE_API_BASE,
        http_timeout=http_timeout,
        telemetry=telemetry,
    )
    config.validate()
    return config


def initialize_sentry() -> bool:
    """
    Initialize Sentry for error tracking when a DSN is configured.

    Returns:
        True if Sentry was initialized
    """
    sentry_dsn = os.getenv("SENTRY_DSN")
    if not sentry_dsn:
        logger.debug("SENTRY_DSN not set, telemetry disabled")
        return False

    def before_send(event, hint):
        """
        Filter events before sending to Sentry.
        Don't send document or configuration errors - these are data problems, not tool bugs.
        """
        if "exc_info" in hint:
            exc_type, exc_value, tb = hint["exc_info"]
            if isinstance(exc_value, (DocumentValidationError, DocumentNotFoundError, ConfigurationError)):
                return None
        return event

    sentry_sdk.init(
        dsn=sentry_dsn,
        release=f"release-metadata@{RELEASE_METADATA_VERSION}",
        traces_sample_rate=0.0,
        before_send=before_send,
    )
    return True


def handle_errors(func):
    """Turn ReleaseMetadataError into an error annotation and exit code 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ReleaseMetadataError as e:
            logger.debug(f"{type(e).__name__}: {e}")
            gha_error(str(e), title=type(e).__name__)
            sys.exit(1)

    return wrapper


def _require_records(path: str, config: Config) -> CveRecords:
    records = load_cve_records(path, timeout=config.http_timeout)
    if records is None:
        raise DocumentNotFoundError(f"CVE document not found: {path}")
    return records


def _emit_json(data, output: Optional[str]) -> None:
    if output:
        write_json(data, output)
        console.print(f"[success]Wrote {output}[/success]")
    else:
        click.echo(to_json(data), nl=False)


def _channel_of(release_version: str) -> str:
    """Return the major.minor release family of a version ("8.0.12" -> "8.0")."""
    return ".".join(release_version.split(".")[:2])


def _major_version(major: str) -> str:
    """Accept "9" or "9.0" and return "9.0"."""
    return major if "." in major else f"{major}.0"


def _parse_today(value: Optional[str]) -> Optional[date]:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ConfigurationError(f"Invalid --today value '{value}', expected YYYY-MM-DD")


def _cve_files(path: str) -> List[Path]:
    target = Path(path)
    if target.is_file():
        return [target]
    if target.is_dir():
        return sorted(target.rglob(CVE_FILE_NAME))
    raise DocumentNotFoundError(f"Path not found: {path}")


# =============================================================================
# Root group
# =============================================================================


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.option("--quiet", "-q", is_flag=True, help="Only log warnings and errors.")
@click.option(
    "--telemetry/--no-telemetry",
    default=None,
    help="Report unexpected errors to Sentry (requires SENTRY_DSN). [env: TELEMETRY]",
)
@click.option("--base-url", default=None, help="Release-notes root, URL or directory. [env: RELEASE_NOTES_BASE_URL]")
@click.option("--endoflife-url", default=None, help="endoflife.date API base URL. [env: ENDOFLIFE_API_URL]")
@click.option("--timeout", type=float, default=None, help="HTTP timeout in seconds. [env: HTTP_TIMEOUT]")
@click.version_option(RELEASE_METADATA_VERSION, "--version", "-V", prog_name="release-metadata")
@click.pass_context
@handle_errors
def cli(ctx, verbose, quiet, telemetry, base_url, endoflife_url, timeout):
    """Cross-reference CVE documents and reconcile OS support lifecycles."""
    if verbose:
        set_log_level("DEBUG")
    elif quiet:
        set_log_level("WARNING")

    config = build_config(
        release_notes_base_url=base_url,
        endoflife_api_url=endoflife_url,
        http_timeout=timeout,
        telemetry=telemetry,
    )
    if config.telemetry:
        initialize_sentry()

    ctx.obj = config


# =============================================================================
# cve
# =============================================================================


@cli.group()
def cve():
    """Work with monthly CVE documents (cve.json)."""


@cve.command("summarize")
@click.argument("cve_json")
@click.option("--output", "-o", default=None, help="Write to a file instead of stdout.")
@click.pass_obj
@handle_errors
def cve_summarize(config, cve_json, output):
    """Write one summary per disclosure in CVE_JSON."""
    records = _require_records(cve_json, config)
    summaries = to_summaries(records)
    _emit_json([s.to_dict() for s in summaries], output)


@cve.command("ids")
@click.argument("cve_json")
@click.pass_obj
@handle_errors
def cve_ids(config, cve_json):
    """Print the id of every disclosure in CVE_JSON."""
    for cve_id in extract_cve_ids(_require_records(cve_json, config)):
        click.echo(cve_id)


@cve.command("filter")
@click.argument("cve_json")
@click.argument("release")
@click.option("--output", "-o", default=None, help="Write to a file instead of stdout.")
@click.pass_obj
@handle_errors
def cve_filter(config, cve_json, release, output):
    """Restrict CVE_JSON to the CVEs affecting RELEASE (e.g. 8.0)."""
    filtered = filter_by_release(_require_records(cve_json, config), release)
    if filtered is None:
        gha_notice(f"No CVEs affect release {release}")
        return
    _emit_json(filtered.to_dict(), output)


@cve.command("compare")
@click.argument("release")
@click.argument("cve_json")
@click.option("--release-cves", "release_cves", multiple=True, help="CVE id listed by the release (repeatable).")
@click.option("--channel", default=None, help="Release family to filter by (default: major.minor of RELEASE).")
@click.option("--strict", is_flag=True, help="Exit 1 when the sources disagree.")
@click.pass_obj
@handle_errors
def cve_compare(config, release, cve_json, release_cves, channel, strict):
    """Compare the CVE ids a release lists with those in CVE_JSON."""
    records = load_cve_records(cve_json, timeout=config.http_timeout)
    filtered = filter_by_release(records, channel or _channel_of(release))
    diagnostics = validate_cve_data(release, release_cves, extract_cve_ids(filtered))
    print_diagnostics(diagnostics, title="CVE mismatch")
    if diagnostics and strict:
        sys.exit(1)


@cve.group("indexes")
def cve_indexes():
    """Generate or validate the lookup indexes of CVE documents."""


@cve_indexes.command("validate")
@click.argument("path")
@handle_errors
def cve_indexes_validate(path):
    """Validate one cve.json, or every cve.json under a directory."""
    files = _cve_files(path)
    failed = 0
    issue_count = 0

    for file in files:
        try:
            records = load_cve_records(file, fill_indexes=False)
        except ReleaseMetadataError as e:
            gha_error(str(e), title=str(file))
            failed += 1
            continue

        issues = validate_indexes(records)
        if issues:
            failed += 1
            issue_count += len(issues)
            print_diagnostics([str(issue) for issue in issues], title=str(file))
        else:
            logger.info(f"{file}: indexes are consistent")

    print_summary_table(
        "CVE index validation",
        [("Files checked", len(files)), ("Files with problems", failed), ("Issues", issue_count)],
        show_if_empty=True,
    )
    if failed:
        sys.exit(1)


@cve_indexes.command("generate")
@click.argument("path")
@handle_errors
def cve_indexes_generate(path):
    """Regenerate the lookup indexes of one cve.json, or every cve.json under a directory."""
    files = _cve_files(path)
    failed = 0

    for file in files:
        try:
            records = load_cve_records(file, fill_indexes=False)
            write_cve_records(with_generated_indexes(records), file)
        except ReleaseMetadataError as e:
            gha_error(str(e), title=str(file))
            failed += 1

    print_summary_table(
        "CVE index generation",
        [("Files processed", len(files)), ("Failures", failed)],
        show_if_empty=True,
    )
    if failed:
        sys.exit(1)


# =============================================================================
# releases
# =============================================================================


@cli.group()
def releases():
    """Check release metadata against CVE documents."""


@releases.command("check-security")
@click.argument("root", type=click.Path(exists=True, file_okay=False))
@click.option("--strict", is_flag=True, help="Exit 1 when any release is inconsistent.")
@handle_errors
def releases_check_security(root, strict):
    """Check every patch release's security flag against its CVE list."""
    issues = check_security_flags(root)
    print_diagnostics([str(issue) for issue in issues], title="Security flag")
    if issues and strict:
        sys.exit(1)


@releases.command("cross-check")
@click.argument("root")
@click.argument("channel")
@click.option("--strict", is_flag=True, help="Exit 1 when the sources disagree.")
@click.pass_obj
@handle_errors
def releases_cross_check(config, root, channel, strict):
    """Compare CHANNEL's patch CVE lists with the monthly CVE documents under ROOT."""
    diagnostics = cross_check_release_cves(
        root, _major_version(channel), session=create_session(), timeout=config.http_timeout
    )
    print_diagnostics(diagnostics, title="CVE mismatch")
    if diagnostics and strict:
        sys.exit(1)


# =============================================================================
# distros
# =============================================================================


def _build_report(config: Config, major: str, base: Optional[str], today: Optional[str]) -> Report:
    version = _major_version(major)
    base = base or config.release_notes_base_url
    session = create_session()

    timeout = config.http_timeout

    matrix = load_supported_os_matrix(get_uri(SUPPORTED_OS_FILE, version, base), session=session, timeout=timeout)
    major_release = load_major_release(get_uri(RELEASES_FILE, version, base), session=session, timeout=timeout)
    client = EndOfLifeClient(config.endoflife_api_url, session=session, timeout=timeout)

    return generate_report(matrix, major_release, client, today=_parse_today(today))


@cli.group()
def distros():
    """Reconcile OS support matrices against endoflife.date."""


@distros.command("report")
@click.argument("major")
@click.argument("base", required=False)
@click.option("--output", "-o", default=None, help="Write JSON to a file and print a table.")
@click.option("--today", default=None, help="Reference date (YYYY-MM-DD), defaults to today.")
@click.pass_obj
@handle_errors
def distros_report(config, major, base, output, today):
    """Build the OS support report for MAJOR (e.g. 9 or 9.0)."""
    report = _build_report(config, major, base, today)
    _emit_json(report.to_dict(), output)
    if output:
        print_report_table(report)


@distros.command("exceptional")
@click.argument("major")
@click.argument("base", required=False)
@click.option("--exceptions", "exceptions_file", default=None, help="Known exceptions YAML file.")
@click.option("--today", default=None, help="Reference date (YYYY-MM-DD), defaults to today.")
@click.pass_obj
@handle_errors
def distros_exceptional(config, major, base, exceptions_file, today):
    """Print findings for MAJOR that are not listed as known exceptions."""
    exceptions = load_known_exceptions(exceptions_file)
    report = _build_report(config, major, base, today)

    click.echo(f"* .NET {report.version}")
    for finding in find_unexpected(report, exceptions):
        click.echo(f"** {finding}")


def main() -> None:
    """Console script entry point."""
    cli(prog_name="release-metadata")


if __name__ == "__main__":
    main()
