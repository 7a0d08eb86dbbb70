"""Shared fixtures: a fixed reference time and base organization/program records."""

from datetime import date, datetime, timedelta, timezone

import pytest

from fundmatch.models import Organization, Program

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def _base_organization() -> dict:
    return {
        "id": "org-ict",
        "name": "테스트 주식회사",
        "type": "COMPANY",
        "industry_sector": "ICT",
        "technology_readiness_level": 5,
        "key_technologies": ["AI", "데이터분석"],
        "company_scale_type": "SME",
        "employee_count": "FROM_10_TO_50",
        "revenue_range": "FROM_1B_TO_10B",
        "business_established_date": date(2019, 5, 1),
        "regions": ["SEOUL"],
        "rd_experience": True,
        "certifications": ["벤처기업"],
    }


def _base_program() -> dict:
    return {
        "id": "prog-ai",
        "title": "AI 인공지능 기술개발 사업",
        "target_type": ["COMPANY"],
        "min_trl": None,
        "max_trl": None,
        "deadline": NOW + timedelta(days=30),
        "budget_amount": 100_000_000,
    }


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_org():
    """Factory: base ICT company with field overrides."""

    def factory(**overrides) -> Organization:
        data = _base_organization()
        data.update(overrides)
        return Organization(**data)

    return factory


@pytest.fixture
def make_program():
    """Factory: base open AI program with field overrides."""

    def factory(**overrides) -> Program:
        data = _base_program()
        data.update(overrides)
        return Program(**data)

    return factory


@pytest.fixture
def organization(make_org):
    return make_org()


@pytest.fixture
def program(make_program):
    return make_program()
