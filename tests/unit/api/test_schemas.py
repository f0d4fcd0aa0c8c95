"""Tests for request parsing and payload schemas."""

import uuid

import pytest

from api.schemas.common import (
    PageParams,
    clamp_int,
    format_validation_errors,
    normalize_query,
    paginated,
    parse_choice,
    parse_uuid,
    validate_payload,
)
from api.schemas.companies import COMPANY_SORT_FIELDS, CompanyForm
from api.schemas.jobs import JobCreate, JobUpdate
from api.schemas.users import CompanyAccessRequest, CreateUserRequest
from core.exceptions import ValidationError
from database.models.jobs import JobBasis, Seniority

DESCRIPTION = "A" * 20


def _job_payload(**overrides) -> dict:
    payload = {
        "company_id": str(uuid.uuid4()),
        "position_title": "Backend Engineer",
        "job_description": DESCRIPTION,
        "seniority": "MID_LEVEL",
    }
    payload.update(overrides)
    return payload


class TestQueryParsing:
    """Permissive list query parsing."""

    @pytest.mark.parametrize("page,page_size,expected", [
        (None, None, (1, 25)),
        ("0", "1", (1, 5)),
        ("10000", "500", (9999, 100)),
        ("abc", "xyz", (1, 25)),
        ("2.7", "10", (2, 10)),
        ("nan", "inf", (1, 25)),
        (" 3 ", "50", (3, 50)),
    ])
    def test_page_params_clamped(self, page, page_size, expected):
        params = PageParams.from_query(page, page_size)
        assert (params.page, params.page_size) == expected

    def test_offset(self):
        assert PageParams.from_query("3", "10").offset == 20

    def test_clamp_int_default(self):
        assert clamp_int("", 7, 1, 10) == 7

    def test_paginated_shape(self):
        params = PageParams.from_query("2", "5")
        assert paginated([1], 6, params) == {"items": [1], "total": 6, "page": 2, "pageSize": 5}

    def test_parse_choice(self):
        assert parse_choice("ref_id", COMPANY_SORT_FIELDS, "name") == "ref_id"
        assert parse_choice("drop table", COMPANY_SORT_FIELDS, "name") == "name"
        assert parse_choice(None, COMPANY_SORT_FIELDS, "name") == "name"

    def test_parse_uuid(self):
        value = uuid.uuid4()
        assert parse_uuid(str(value)) == value
        assert parse_uuid("not-a-uuid") is None
        assert parse_uuid("  ") is None
        assert parse_uuid(None) is None

    @pytest.mark.parametrize("q,expected", [
        ("K", None),
        (" K ", None),
        ("KM", "KM"),
        ("  Kemp  ", "Kemp"),
        ("", None),
        (None, None),
    ])
    def test_normalize_query(self, q, expected):
        assert normalize_query(q) == expected


class TestCompanyForm:
    """Company form normalization and validation."""

    def test_normalizes_fields(self):
        form = CompanyForm(ref_id=" kmp001 ", name="  Kemp Ltd  ", industry="  ", website="")

        assert form.ref_id == "KMP001"
        assert form.name == "Kemp Ltd"
        assert form.industry is None
        assert form.website is None
        assert form.wants_logo_removed is False

    def test_remove_logo_flag(self):
        assert CompanyForm(ref_id="KMP001", name="Kemp", remove_logo="1").wants_logo_removed is True
        assert CompanyForm(ref_id="KMP001", name="Kemp", remove_logo="").wants_logo_removed is False

    def test_invalid_remove_logo_rejected(self):
        with pytest.raises(ValidationError):
            validate_payload(CompanyForm, {"ref_id": "KMP001", "name": "Kemp", "remove_logo": "yes"})

    def test_bad_ref_id_message(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_payload(CompanyForm, {"ref_id": "KM001", "name": "Kemp"})
        assert exc_info.value.messages == ["Ref ID must be AAA000 (e.g., KMP001)"]

    def test_all_problems_reported(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_payload(CompanyForm, {"ref_id": "bad", "name": "K"})

        messages = exc_info.value.messages
        assert len(messages) == 2
        assert "Ref ID must be AAA000 (e.g., KMP001)" in messages
        assert any(m.startswith("name:") for m in messages)

    def test_column_values(self):
        form = CompanyForm(ref_id="KMP001", name="Kemp", description="Widgets")
        assert form.column_values() == {
            "ref_id": "KMP001",
            "name": "Kemp",
            "industry": None,
            "website": None,
            "description": "Widgets",
        }


class TestJobSchemas:
    """Job payload validation."""

    def test_description_of_twenty_characters_accepted(self):
        job = validate_payload(JobCreate, _job_payload(job_description="x" * 20))
        assert job.job_description == "x" * 20

    def test_description_of_nineteen_characters_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_payload(JobCreate, _job_payload(job_description="x" * 19))
        assert exc_info.value.messages[0].startswith("job_description:")

    def test_company_required_on_create(self):
        payload = _job_payload()
        del payload["company_id"]
        with pytest.raises(ValidationError):
            validate_payload(JobCreate, payload)

    def test_company_optional_on_update(self):
        payload = _job_payload()
        del payload["company_id"]
        assert validate_payload(JobUpdate, payload).company_id is None

    def test_lists_deduplicated_in_order(self):
        job = validate_payload(JobCreate, _job_payload(
            job_basis=["HYBRID", "FULL_TIME", "HYBRID"],
            categories=[" Engineering ", "Data", "Engineering"],
        ))

        assert job.job_basis == [JobBasis.HYBRID, JobBasis.FULL_TIME]
        assert job.categories == ["Engineering", "Data"]

    def test_unknown_enum_rejected(self):
        with pytest.raises(ValidationError):
            validate_payload(JobCreate, _job_payload(seniority="CTO"))

    def test_blank_optionals_become_none(self):
        job = validate_payload(JobCreate, _job_payload(job_ref=" ", location="", inactivated_reason="  "))
        assert job.job_ref is None
        assert job.location is None
        assert job.inactivated_reason is None
        assert job.status is None

    def test_column_values_use_plain_strings(self):
        job = validate_payload(JobCreate, _job_payload(job_basis=["FULL_TIME"], salary_bands=["ANY"]))
        values = job.column_values()
        assert values["job_basis"] == ["FULL_TIME"]
        assert values["salary_bands"] == ["ANY"]
        assert values["seniority"] == Seniority.MID_LEVEL


class TestUserSchemas:
    """Provisioning payloads."""

    def test_short_password_message(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_payload(CreateUserRequest, {
                "email": "new@example.com", "password": "short", "role": "CLIENT",
            })
        assert exc_info.value.messages == ["Password must be at least 8 characters"]

    def test_ref_ids_normalized_and_deduplicated(self):
        request = validate_payload(CreateUserRequest, {
            "email": "new@example.com",
            "password": "password123",
            "role": "CLIENT",
            "company_ref_ids": ["kmp001", "KMP001", "abc123"],
        })
        assert request.company_ref_ids == ["KMP001", "ABC123"]

    def test_access_request_needs_ref_ids(self):
        with pytest.raises(ValidationError):
            validate_payload(CompanyAccessRequest, {"user_id": str(uuid.uuid4()), "company_ref_ids": []})


class TestFormatValidationErrors:
    """Readable messages from pydantic error dicts."""

    def test_path_errors_are_invalid_id(self):
        errors = [{"loc": ("path", "company_id"), "type": "uuid_parsing", "msg": "bad"}]
        assert format_validation_errors(errors) == ["Invalid id"]

    def test_value_error_prefix_removed(self):
        errors = [{"loc": ("body", "ref_id"), "type": "value_error", "msg": "Value error, Nope"}]
        assert format_validation_errors(errors) == ["Nope"]

    def test_invalid_json(self):
        errors = [{"loc": ("body", 1), "type": "json_invalid", "msg": "JSON decode error"}]
        assert format_validation_errors(errors) == ["Invalid JSON body"]

    def test_field_prefix_and_duplicates(self):
        errors = [
            {"loc": ("body", "name"), "type": "string_too_short", "msg": "too short"},
            {"loc": ("body", "name"), "type": "string_too_short", "msg": "too short"},
        ]
        assert format_validation_errors(errors) == ["name: too short"]
