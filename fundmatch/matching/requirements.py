"""Hard and soft requirement checks.

Hard requirements (certifications, investment, employees, revenue,
operating years) make a program INELIGIBLE only when the organization's
data is known and violates them. Missing organization data never fails a
requirement; it is reported as unverified so the caller can prompt for a
manual review.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional

from fundmatch.core.dates import business_age_years
from fundmatch.core.formatting import format_krw
from fundmatch.models import (
    EMPLOYEE_MIDPOINTS,
    REVENUE_MIDPOINTS,
    EligibilityLevel,
    Organization,
    Program,
)


@dataclass
class RequirementCheck:
    """Outcome of checking a program's stated requirements."""

    level: EligibilityLevel
    met: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    unverified: List[str] = field(default_factory=list)
    missing_soft: List[str] = field(default_factory=list)

    @property
    def needs_manual_review(self) -> bool:
        return bool(self.unverified)


def _normalize_certification(name: str) -> str:
    return "".join(name.split()).lower()


def holds_certification(required: str, held: Iterable[str]) -> bool:
    """Lenient certification match ("벤처기업" matches "벤처기업인증")."""
    wanted = _normalize_certification(required)
    if not wanted:
        return False
    for certification in held:
        have = _normalize_certification(certification or "")
        if have and (wanted in have or have in wanted):
            return True
    return False


def check_requirements(
    program: Program,
    organization: Organization,
    now: Optional[datetime] = None,
) -> RequirementCheck:
    """Check hard and soft requirements of a program against an organization."""
    met: List[str] = []
    failed: List[str] = []
    unverified: List[str] = []
    missing_soft: List[str] = []

    held = organization.all_certifications

    # Required certifications
    if program.required_certifications:
        if not held:
            unverified.append("보유 인증 정보가 없어 필수 인증을 확인할 수 없습니다")
        else:
            for certification in program.required_certifications:
                if holds_certification(certification, held):
                    met.append(f"필수 인증 보유: {certification}")
                else:
                    failed.append(f"필수 인증 미보유: {certification}")

    # Verified investment
    if program.required_investment_amount:
        required = program.required_investment_amount
        if organization.investment_total is None:
            unverified.append("투자 유치 실적 정보가 없습니다")
        elif organization.investment_total >= required:
            met.append(f"투자 유치 {format_krw(required)} 이상")
        else:
            failed.append(f"투자 유치 {format_krw(required)} 이상 필요")

    # Employees (bucket midpoint)
    if program.required_min_employees is not None or program.required_max_employees is not None:
        if organization.employee_count is None:
            unverified.append("종업원 수 정보가 없습니다")
        else:
            employees = EMPLOYEE_MIDPOINTS[organization.employee_count]
            if program.required_min_employees is not None and employees < program.required_min_employees:
                failed.append(f"종업원 {program.required_min_employees}명 이상 필요")
            elif program.required_max_employees is not None and employees > program.required_max_employees:
                failed.append(f"종업원 {program.required_max_employees}명 이하 기업 대상")
            else:
                met.append("종업원 수 조건 충족")

    # Revenue (bucket midpoint, KRW)
    if program.required_min_revenue is not None or program.required_max_revenue is not None:
        if organization.revenue_range is None:
            unverified.append("매출액 정보가 없습니다")
        else:
            revenue = REVENUE_MIDPOINTS[organization.revenue_range]
            if program.required_min_revenue is not None and revenue < program.required_min_revenue:
                failed.append(f"매출액 {format_krw(program.required_min_revenue)} 이상 필요")
            elif program.required_max_revenue is not None and revenue > program.required_max_revenue:
                failed.append(f"매출액 {format_krw(program.required_max_revenue)} 이하 기업 대상")
            else:
                met.append("매출액 조건 충족")

    # Operating years
    if program.required_operating_years is not None or program.max_operating_years is not None:
        age = business_age_years(organization.business_established_date, now) if now else None
        if age is None:
            unverified.append("업력 정보를 확인할 수 없습니다")
        elif program.required_operating_years is not None and age < program.required_operating_years:
            failed.append(f"업력 {program.required_operating_years}년 이상 필요")
        elif program.max_operating_years is not None and age > program.max_operating_years:
            failed.append(f"업력 {program.max_operating_years}년 이하 기업 대상")
        else:
            met.append("업력 조건 충족")

    # Soft: preferred certifications
    for certification in program.preferred_certifications:
        if holds_certification(certification, held):
            met.append(f"우대 인증 보유: {certification}")
        else:
            missing_soft.append(f"우대 인증 미보유: {certification}")

    # Soft: track record
    if organization.prior_grant_wins:
        met.append(f"정부지원 수혜 실적: {organization.prior_grant_wins}건")
    if organization.industry_awards:
        met.append(f"수상 경력: {len(organization.industry_awards)}건")

    if failed:
        level = EligibilityLevel.INELIGIBLE
    elif unverified or missing_soft:
        level = EligibilityLevel.CONDITIONALLY_ELIGIBLE
    else:
        level = EligibilityLevel.FULLY_ELIGIBLE

    return RequirementCheck(
        level=level,
        met=met,
        failed=failed,
        unverified=unverified,
        missing_soft=missing_soft,
    )
