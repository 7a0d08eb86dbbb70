"""Declarative title-pattern rules for Korean announcement markers.

Each rule is one row: the patterns that fire it, the block reason it
produces, which organization types it applies to, and optional override
patterns that suppress it. New administrative-document markers are added
here as rows; the gate's control flow does not change.
"""

import re
from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional, Pattern, Tuple

from fundmatch.core.constants import STRONG_RD_KEYWORDS
from fundmatch.models import ApplicationType, BlockReason, OrganizationType


def _compile(*patterns: str) -> Tuple[Pattern[str], ...]:
    return tuple(re.compile(pattern, re.IGNORECASE) for pattern in patterns)


@dataclass(frozen=True)
class TitleRule:
    """One title marker rule.

    blocked_org_types=None means the rule blocks every organization type
    except those listed in exempt_org_types.
    """

    code: BlockReason
    patterns: Tuple[Pattern[str], ...]
    application_type: Optional[ApplicationType] = None
    blocked_org_types: Optional[FrozenSet[OrganizationType]] = None
    exempt_org_types: FrozenSet[OrganizationType] = field(default_factory=frozenset)
    override_patterns: Tuple[Pattern[str], ...] = ()

    def matches(self, title: str) -> bool:
        """True if a marker occurs in the title and no override does."""
        if not title:
            return False
        if not any(pattern.search(title) for pattern in self.patterns):
            return False
        return not any(pattern.search(title) for pattern in self.override_patterns)

    def blocks(self, org_type: OrganizationType) -> bool:
        if org_type in self.exempt_org_types:
            return False
        if self.blocked_org_types is None:
            return True
        return org_type in self.blocked_org_types


TITLE_RULES: Tuple[TitleRule, ...] = (
    # 지정/위탁과제: pre-assigned performer, not an open call
    TitleRule(
        code=BlockReason.DESIGNATED_PROJECT,
        patterns=_compile(r"지정과제", r"위탁과제"),
        application_type=ApplicationType.DESIGNATED_PROJECT,
    ),
    TitleRule(
        code=BlockReason.DEMAND_SURVEY,
        patterns=_compile(r"수요조사"),
        application_type=ApplicationType.DEMAND_SURVEY,
    ),
    # 출연(연) 전용, 출연연 전용, 출연연전용
    TitleRule(
        code=BlockReason.INSTITUTIONAL_ONLY,
        patterns=_compile(r"출연\s*\(?\s*연\s*\)?\s*전용"),
        application_type=ApplicationType.INSTITUTIONAL_ONLY,
        exempt_org_types=frozenset({OrganizationType.RESEARCH_INSTITUTE}),
    ),
    TitleRule(
        code=BlockReason.HOSPITAL_ONLY,
        patterns=_compile(r"의사과학자", r"상급종합병원", r"M\.D\.-Ph\.D\.", r"의료법"),
        exempt_org_types=frozenset({OrganizationType.RESEARCH_INSTITUTE}),
    ),
    # Many real R&D calls carry "인재성장" in the title, hence the override
    TitleRule(
        code=BlockReason.TRAINING_PROGRAM,
        patterns=_compile(
            r"훈련",
            r"교육훈련",
            r"인재성장",
            r"인력양성",
            r"기술교육",
            r"직업훈련",
            r"교육과정",
            r"이론교육",
        ),
        blocked_org_types=frozenset({OrganizationType.COMPANY}),
        override_patterns=_compile(*(re.escape(keyword) for keyword in STRONG_RD_KEYWORDS)),
    ),
)

# Fixed priority when several markers apply (not title scan order)
APPLICATION_TYPE_PRIORITY: Tuple[ApplicationType, ...] = (
    ApplicationType.DESIGNATED_PROJECT,
    ApplicationType.DEMAND_SURVEY,
    ApplicationType.CONSOLIDATED_ANNOUNCEMENT,
    ApplicationType.INSTITUTIONAL_ONLY,
)


def matching_rules(title: str, rules: Tuple[TitleRule, ...] = TITLE_RULES) -> List[TitleRule]:
    """Rules whose markers occur in the title, in table order."""
    return [rule for rule in rules if rule.matches(title)]


def resolve_application_type(candidates) -> ApplicationType:
    """Highest-priority application type among the candidates, else OPEN_COMPETITION."""
    present = set(candidates)
    for application_type in APPLICATION_TYPE_PRIORITY:
        if application_type in present:
            return application_type
    return ApplicationType.OPEN_COMPETITION
