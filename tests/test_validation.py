"""Tests for document validation module."""

import json
import unittest
from pathlib import Path
from unittest.mock import patch

from release_metadata.validation import (
    ValidationResult,
    get_schema,
    validate_document,
)

TEST_DATA_DIR = Path(__file__).parent / "test-data"


def _fixture() -> dict:
    with open(TEST_DATA_DIR / "cve.json") as f:
        return json.load(f)


class TestValidationResult(unittest.TestCase):
    """Tests for ValidationResult dataclass."""

    def test_success_result(self):
        result = ValidationResult.success("cve-records")
        self.assertTrue(result.valid)
        self.assertIsNone(result.error_message)

    def test_failure_result(self):
        result = ValidationResult.failure("cve-records", "Test error", error_path="products.0.name")
        self.assertFalse(result.valid)
        self.assertEqual(result.describe(), "Test error (at products.0.name)")

    def test_skipped_result(self):
        result = ValidationResult.skipped("cve-records", "No schema")
        self.assertIsNone(result.valid)
        self.assertEqual(result.describe(), "No schema")


class TestSchemas(unittest.TestCase):
    def test_bundled_schema(self):
        schema = get_schema("cve-records")
        self.assertIsNotNone(schema)
        self.assertFalse(schema["additionalProperties"])

    def test_unknown_kind(self):
        self.assertIsNone(get_schema("releases-index"))

    def test_unknown_kind_skipped(self):
        result = validate_document({}, "releases-index")
        self.assertIsNone(result.valid)


class TestValidateDocument(unittest.TestCase):
    def test_valid_document(self):
        self.assertTrue(validate_document(_fixture(), "cve-records").valid)

    def test_minimal_document(self):
        data = {"last_updated": "2025-01-14", "title": "CVEs", "disclosures": [], "products": [], "packages": []}
        self.assertTrue(validate_document(data, "cve-records").valid)

    def test_missing_required_field(self):
        data = _fixture()
        del data["packages"]
        result = validate_document(data, "cve-records")
        self.assertFalse(result.valid)
        self.assertIn("packages", result.error_message)

    def test_unknown_disclosure_key_allowed(self):
        data = _fixture()
        data["disclosures"][0]["acknowledgments"] = ["someone"]
        self.assertTrue(validate_document(data, "cve-records").valid)

    def test_strict_nested_objects(self):
        data = _fixture()
        data["disclosures"][0]["cvss"]["temporal"] = 7.1
        result = validate_document(data, "cve-records")
        self.assertFalse(result.valid)
        self.assertEqual(result.error_path, "disclosures.0.cvss")

    def test_cna_forms(self):
        data = _fixture()
        data["disclosures"][0]["cna"] = "microsoft"
        self.assertTrue(validate_document(data, "cve-records").valid)
        data["disclosures"][0]["cna"] = 42
        self.assertFalse(validate_document(data, "cve-records").valid)

    def test_invalid_cve_id(self):
        data = _fixture()
        data["products"] = []
        data["disclosures"][0]["id"] = "CVE-25-1"
        result = validate_document(data, "cve-records")
        self.assertFalse(result.valid)
        self.assertEqual(result.error_path, "disclosures.0.id")

    def test_schema_cached(self):
        get_schema("cve-records")
        with patch("release_metadata.validation.json.load") as mock_load:
            get_schema("cve-records")
        mock_load.assert_not_called()


if __name__ == "__main__":
    unittest.main()
