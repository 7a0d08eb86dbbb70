"""Organization profile completeness."""

from dataclasses import dataclass, field
from typing import Any, List, Tuple

from fundmatch.models import Organization

# (attribute, Korean label)
PROFILE_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("name", "기관명"),
    ("description", "기관 소개"),
    ("website", "웹사이트"),
    ("industry_sector", "산업 분야"),
    ("employee_count", "종업원 수"),
    ("revenue_range", "매출 규모"),
    ("technology_readiness_level", "기술성숙도(TRL)"),
    ("primary_contact_name", "담당자명"),
    ("primary_contact_email", "담당자 이메일"),
    ("address", "주소"),
    ("primary_business_domain", "주요 사업 분야"),
    ("certifications", "보유 인증"),
    ("business_established_date", "설립일"),
    ("company_scale_type", "기업 규모"),
    ("company_profile_description", "회사 상세 소개"),
)


@dataclass
class ProfileCompleteness:
    percent: int  # 0-100
    filled: List[str] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)

    @property
    def missing_labels(self) -> List[str]:
        labels = dict(PROFILE_FIELDS)
        return [labels[name] for name in self.missing]


def _is_filled(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, set)):
        return len(value) > 0
    return True


def calculate_profile_completeness(organization: Organization) -> ProfileCompleteness:
    """Share of the profile fields that are filled in (rounded percent).

    Empty strings and empty lists count as missing.
    """
    filled: List[str] = []
    missing: List[str] = []
    for name, _label in PROFILE_FIELDS:
        if _is_filled(getattr(organization, name)):
            filled.append(name)
        else:
            missing.append(name)

    percent = round(len(filled) / len(PROFILE_FIELDS) * 100)
    return ProfileCompleteness(percent=percent, filled=filled, missing=missing)
