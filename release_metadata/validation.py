"""Document validation using JSON schemas.

This module validates decoded release-notes documents against the JSON
schemas bundled with the package before they are turned into models.

Usage:
    from release_metadata.validation import validate_document

    result = validate_document(data, "cve-records")
    if result.valid is None:
        print(f"Validation skipped: {result.error_message}")
    elif not result.valid:
        print(f"Validation failed at {result.error_path}: {result.error_message}")
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, Optional

import jsonschema

from .logging_config import logger

# Document kinds with a bundled schema
DocumentKind = Literal["cve-records"]

# Path to schemas within the package directory
PACKAGE_DIR = Path(__file__).parent
SCHEMA_DIR = PACKAGE_DIR / "schemas"

SCHEMAS = {
    "cve-records": SCHEMA_DIR / "cve-records.schema.json",
}

# Cache for loaded schemas
_schema_cache: dict[str, dict] = {}


@dataclass
class ValidationResult:
    """Result of document validation.

    The `valid` field has three states:
    - True: Validation passed
    - False: Validation failed
    - None: Validation was skipped (e.g., no schema available)
    """

    valid: Optional[bool]
    kind: str
    error_message: Optional[str] = None
    error_path: Optional[str] = None

    @classmethod
    def success(cls, kind: str) -> "ValidationResult":
        """Create a successful validation result."""
        return cls(valid=True, kind=kind)

    @classmethod
    def failure(cls, kind: str, error_message: str, error_path: Optional[str] = None) -> "ValidationResult":
        """Create a failed validation result."""
        return cls(valid=False, kind=kind, error_message=error_message, error_path=error_path)

    @classmethod
    def skipped(cls, kind: str, reason: str) -> "ValidationResult":
        """Create a result indicating validation was skipped (schema not available)."""
        return cls(valid=None, kind=kind, error_message=reason)

    def describe(self) -> str:
        if self.error_path:
            return f"{self.error_message} (at {self.error_path})"
        return self.error_message or ""


def _load_schema(schema_path: Path) -> Optional[dict]:
    """Load a JSON schema from disk with caching."""
    cache_key = str(schema_path)
    if cache_key in _schema_cache:
        return _schema_cache[cache_key]

    if not schema_path.exists():
        logger.warning(f"Schema file not found: {schema_path}")
        return None

    with open(schema_path) as f:
        schema = json.load(f)
        _schema_cache[cache_key] = schema
        return schema


def get_schema(kind: str) -> Optional[dict]:
    """
    Get the JSON schema for a document kind.

    Args:
        kind: Document kind (e.g., "cve-records")

    Returns:
        The JSON schema dict, or None if not found
    """
    schema_path = SCHEMAS.get(kind)
    if schema_path is None:
        return None
    return _load_schema(schema_path)


def validate_document(data: Any, kind: DocumentKind) -> ValidationResult:
    """
    Validate decoded document data against its JSON schema.

    Args:
        data: The parsed JSON data
        kind: Document kind (e.g., "cve-records")

    Returns:
        ValidationResult with validation status and any errors
    """
    schema = get_schema(kind)

    if schema is None:
        reason = f"No schema available for {kind}"
        logger.warning(f"{reason}, unable to validate document")
        return ValidationResult.skipped(kind, reason)

    try:
        jsonschema.validate(instance=data, schema=schema)
        logger.debug(f"Document validated successfully against {kind} schema")
        return ValidationResult.success(kind)
    except jsonschema.ValidationError as e:
        error_path = ".".join(str(p) for p in e.absolute_path) if e.absolute_path else None
        logger.debug(f"{kind} validation failed: {e.message}")
        return ValidationResult.failure(kind, error_message=e.message, error_path=error_path)
    except jsonschema.SchemaError as e:
        logger.error(f"Invalid schema: {e.message}")
        return ValidationResult.failure(kind, error_message=f"Invalid schema: {e.message}")
