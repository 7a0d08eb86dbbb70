"""Unit tests for organization profile completeness."""

import pytest

from fundmatch.classification.completeness import PROFILE_FIELDS, calculate_profile_completeness
from fundmatch.models import Organization


class TestProfileCompleteness:
    """Tests for calculate_profile_completeness."""

    def test_partial_profile(self, organization):
        """Test 8 of 15 fields filled."""
        result = calculate_profile_completeness(organization)
        assert result.percent == 53
        assert len(result.filled) == 8
        assert "website" in result.missing

    def test_missing_labels_are_korean(self, organization):
        """Test missing fields map to display labels in field order."""
        result = calculate_profile_completeness(organization)
        assert result.missing_labels[:3] == ["기관 소개", "웹사이트", "담당자명"]

    def test_empty_values_count_as_missing(self, make_org):
        """Test empty strings and lists are not filled."""
        org = make_org(description="   ", website="", certifications=[])
        result = calculate_profile_completeness(org)
        assert "description" in result.missing
        assert "website" in result.missing
        assert "certifications" in result.missing

    def test_complete_profile(self, make_org):
        """Test fully filled profile scores 100."""
        org = make_org(
            description="산업용 AI 솔루션 기업",
            website="https://example.co.kr",
            primary_contact_name="김담당",
            primary_contact_email="contact@example.co.kr",
            address="서울특별시 강남구",
            primary_business_domain="AI 소프트웨어",
            company_profile_description="제조 데이터 분석 플랫폼 개발",
        )
        result = calculate_profile_completeness(org)
        assert result.percent == 100
        assert result.missing == []
        assert len(result.filled) == len(PROFILE_FIELDS)

    def test_minimal_profile(self):
        """Test id-only organization counts only what is present."""
        result = calculate_profile_completeness(Organization(id="org-x", type="COMPANY"))
        assert result.percent == 0
        assert len(result.missing) == len(PROFILE_FIELDS)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
