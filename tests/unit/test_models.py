"""Unit tests for domain models."""

import pytest

from domain.errors import ValidationError
from domain.models import (
    Credentials,
    DepartmentDirectory,
    ForwardOutcome,
    PipelineRequest,
    RunState,
    RunSummary,
    normalize_label,
)


class TestDepartmentDirectory:
    def test_keys_are_normalized(self):
        d = DepartmentDirectory.from_mapping({" Sales ": "sales@co.com", "SUPPORT": " support@co.com "})

        assert d.labels() == frozenset({"sales", "support"})
        assert d.lookup("sales") == "sales@co.com"
        assert d.lookup("Support") == "support@co.com"

    def test_contains_is_case_insensitive(self, directory):
        assert "SALES" in directory
        assert "sales " in directory
        assert "sale" not in directory
        assert 42 not in directory

    def test_no_partial_matching(self, directory):
        assert directory.lookup("sales team") is None
        assert directory.lookup("sal") is None

    def test_directory_is_read_only(self, directory):
        with pytest.raises(TypeError):
            directory.entries["billing"] = "billing@co.com"

    def test_duplicate_after_normalization_rejected(self):
        with pytest.raises(ValidationError, match="Duplicate"):
            DepartmentDirectory.from_mapping({"Sales": "a@co.com", "sales": "b@co.com"})

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            DepartmentDirectory.from_mapping({"  ": "a@co.com"})

    def test_non_string_address_rejected(self):
        with pytest.raises(ValidationError):
            DepartmentDirectory.from_mapping({"sales": None})

    def test_not_a_mapping_rejected(self):
        with pytest.raises(ValidationError):
            DepartmentDirectory.from_mapping(["sales"])

    def test_empty_directory_allowed(self):
        assert len(DepartmentDirectory.from_mapping({})) == 0


class TestPipelineRequest:
    def test_from_payload(self, payload):
        req = PipelineRequest.from_payload(payload)

        assert req.source_address == "triage@co.com"
        assert req.fallback_address == "other@co.com"
        assert req.credentials == Credentials(address="triage@co.com", secret="app-password")
        assert "sales" in req.directory

    @pytest.mark.parametrize("field", ["email", "password", "fallbackEmail", "departmentList"])
    def test_missing_field_is_reported(self, payload, field):
        del payload[field]

        with pytest.raises(ValidationError) as exc_info:
            PipelineRequest.from_payload(payload)

        assert exc_info.value.missing == (field,)
        assert field in str(exc_info.value)

    def test_all_missing_fields_are_listed(self):
        with pytest.raises(ValidationError) as exc_info:
            PipelineRequest.from_payload({"email": ""})

        assert exc_info.value.missing == ("email", "password", "fallbackEmail", "departmentList")

    @pytest.mark.parametrize("field", ["email", "fallbackEmail"])
    @pytest.mark.parametrize("blank", [" ", "   ", "\t\n"])
    def test_whitespace_only_field_is_missing(self, payload, field, blank):
        payload[field] = blank

        with pytest.raises(ValidationError) as exc_info:
            PipelineRequest.from_payload(payload)

        assert exc_info.value.missing == (field,)

    def test_secret_not_in_repr(self, payload):
        req = PipelineRequest.from_payload(payload)

        assert "app-password" not in repr(req)
        assert "app-password" not in repr(req.credentials)


class TestRunSummary:
    def test_as_dict_shape(self):
        summary = RunSummary(
            result_message="All emails processed and forwarded",
            forwarded=(ForwardOutcome(subject="Order issue", to="sales@co.com", department="sales"),),
            retrieved=3,
        )

        assert summary.as_dict() == {
            "message": "All emails processed and forwarded",
            "forwarded": [{"subject": "Order issue", "to": "sales@co.com", "department": "sales"}],
            "retrieved": 3,
            "failed": 2,
            "skipped": 0,
        }

    def test_skipped_not_counted_as_failed(self):
        summary = RunSummary(result_message="x", forwarded=(), retrieved=4, skipped=4)

        assert summary.failed == 0

    def test_state_defaults_to_done_and_stays_out_of_dict(self):
        summary = RunSummary(result_message="x")

        assert summary.state is RunState.DONE
        assert "state" not in summary.as_dict()


def test_normalize_label():
    assert normalize_label("  Sales\n") == "sales"
    assert normalize_label("") == ""
    assert normalize_label(None) == ""
