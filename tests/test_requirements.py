"""Unit tests for hard and soft requirement checks."""

from datetime import date

import pytest

from fundmatch.matching.requirements import check_requirements, holds_certification
from fundmatch.models import EligibilityLevel


class TestHoldsCertification:
    """Tests for lenient certification matching."""

    def test_contained_names(self):
        """Test suffixes and spacing are tolerated."""
        assert holds_certification("벤처기업", ["벤처기업 인증"]) is True
        assert holds_certification("이노비즈 인증", ["이노비즈"]) is True

    def test_missing(self):
        """Test unrelated certifications do not match."""
        assert holds_certification("메인비즈", ["벤처기업"]) is False
        assert holds_certification("", ["벤처기업"]) is False


class TestCheckRequirements:
    """Tests for check_requirements."""

    def test_no_requirements(self, program, organization, now):
        """Test a program without requirements is fully eligible."""
        result = check_requirements(program, organization, now)
        assert result.level is EligibilityLevel.FULLY_ELIGIBLE
        assert result.failed == []

    def test_investment_requirement(self, make_program, make_org, now):
        """Test verified investment minimum."""
        program = make_program(required_investment_amount=1_000_000_000)
        assert check_requirements(program, make_org(investment_total=2_000_000_000), now).failed == []
        short = check_requirements(program, make_org(investment_total=100_000_000), now)
        assert short.level is EligibilityLevel.INELIGIBLE
        assert short.failed == ["투자 유치 10억원 이상 필요"]

    def test_unknown_investment_is_unverified(self, make_program, organization, now):
        """Test missing investment data is not a failure."""
        result = check_requirements(make_program(required_investment_amount=1_000_000_000), organization, now)
        assert result.level is EligibilityLevel.CONDITIONALLY_ELIGIBLE
        assert result.needs_manual_review is True

    def test_revenue_maximum(self, make_program, organization, now):
        """Test revenue bucket midpoint above the maximum fails."""
        result = check_requirements(make_program(required_max_revenue=1_000_000_000), organization, now)
        assert result.level is EligibilityLevel.INELIGIBLE

    def test_operating_years(self, make_program, organization, now):
        """Test business age against the minimum operating years."""
        assert check_requirements(make_program(required_operating_years=3), organization, now).failed == []
        result = check_requirements(make_program(required_operating_years=10), organization, now)
        assert result.failed == ["업력 10년 이상 필요"]

    def test_operating_years_without_now(self, make_program, organization):
        """Test business age cannot be verified without a reference time."""
        result = check_requirements(make_program(required_operating_years=3), organization)
        assert result.needs_manual_review is True

    def test_recent_establishment(self, make_program, make_org, now):
        """Test a company founded last year fails a 3-year minimum."""
        org = make_org(business_established_date=date(2025, 6, 1))
        result = check_requirements(make_program(required_operating_years=3), org, now)
        assert result.level is EligibilityLevel.INELIGIBLE

    def test_missing_preferred_certification(self, make_program, organization, now):
        """Test a missing preferred certification only lowers the level."""
        result = check_requirements(make_program(preferred_certifications=["메인비즈"]), organization, now)
        assert result.level is EligibilityLevel.CONDITIONALLY_ELIGIBLE
        assert result.missing_soft == ["우대 인증 미보유: 메인비즈"]

    def test_track_record_listed(self, program, make_org, now):
        """Test prior grant wins and awards are reported as met preferences."""
        org = make_org(prior_grant_wins=2, industry_awards=["산업통상자원부 장관상"])
        result = check_requirements(program, org, now)
        assert "정부지원 수혜 실적: 2건" in result.met
        assert "수상 경력: 1건" in result.met


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
