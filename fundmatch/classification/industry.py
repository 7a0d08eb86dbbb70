"""Keyword- and ministry-based industry classification.

Programs are mapped onto a fixed, versioned industry taxonomy:
- Ministry (부처) signal: +10 per industry the ministry funds
- Keyword signal: +5 per taxonomy keyword found in title/description
- Highest total wins; ties go to the ministry's industries, then taxonomy order
- No signal at all -> GENERAL (confidence 0.5)

Any change to the keyword or ministry tables that alters a previously
correct classification requires bumping TAXONOMY_VERSION.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Pattern, Tuple

from fundmatch.core.logging import get_logger

logger = get_logger("classification.industry")

TAXONOMY_VERSION = "2026.1"

MINISTRY_POINTS = 10
KEYWORD_POINTS = 5
FULL_CONFIDENCE_POINTS = 25  # ministry + 3 keywords
FALLBACK_CONFIDENCE = 0.5


class IndustryCategory(str, Enum):
    """Taxonomy buckets (declaration order is the tie-break order)."""

    BIO_HEALTH = "BIO_HEALTH"
    ICT = "ICT"
    MANUFACTURING = "MANUFACTURING"
    ENERGY = "ENERGY"
    ENVIRONMENT = "ENVIRONMENT"
    CONSTRUCTION = "CONSTRUCTION"
    TRANSPORTATION = "TRANSPORTATION"
    AEROSPACE = "AEROSPACE"
    DEFENSE = "DEFENSE"
    AGRICULTURE = "AGRICULTURE"
    VETERINARY = "VETERINARY"
    FORESTRY = "FORESTRY"
    MARINE_FISHERIES = "MARINE_FISHERIES"
    MARINE_SECURITY = "MARINE_SECURITY"
    CULTURAL = "CULTURAL"
    GENERAL = "GENERAL"


_TAXONOMY_ORDER: Dict[IndustryCategory, int] = {
    category: index for index, category in enumerate(IndustryCategory)
}

INDUSTRY_KOREAN_LABELS: Dict[IndustryCategory, str] = {
    IndustryCategory.BIO_HEALTH: "바이오/헬스케어",
    IndustryCategory.ICT: "ICT/정보통신",
    IndustryCategory.MANUFACTURING: "제조업",
    IndustryCategory.ENERGY: "에너지",
    IndustryCategory.ENVIRONMENT: "환경",
    IndustryCategory.CONSTRUCTION: "건설",
    IndustryCategory.TRANSPORTATION: "교통/물류",
    IndustryCategory.AEROSPACE: "우주항공",
    IndustryCategory.DEFENSE: "국방/방위",
    IndustryCategory.AGRICULTURE: "농업/축산",
    IndustryCategory.VETERINARY: "수의/동물의약",
    IndustryCategory.FORESTRY: "산림/임업",
    IndustryCategory.MARINE_FISHERIES: "해양/수산",
    IndustryCategory.MARINE_SECURITY: "해양안전/경비",
    IndustryCategory.CULTURAL: "문화/콘텐츠",
    IndustryCategory.GENERAL: "일반/범용",
}

_I = IndustryCategory

# Ministry -> funded industries
# 중소벤처기업부 is intentionally absent: most SME programs are cross-industry
# and are classified by keywords (see the SME rules in the eligibility gate).
MINISTRY_INDUSTRY_MAP: Dict[str, Tuple[IndustryCategory, ...]] = {
    # Health
    "보건복지부": (_I.BIO_HEALTH,),
    "식품의약품안전처": (_I.BIO_HEALTH,),
    "질병관리청": (_I.BIO_HEALTH,),
    # Marine
    "해양수산부": (_I.MARINE_FISHERIES,),
    "해양경찰청": (_I.MARINE_SECURITY,),
    # Agriculture / forestry
    "농림축산식품부": (_I.AGRICULTURE, _I.VETERINARY),
    "농촌진흥청": (_I.AGRICULTURE,),
    "산림청": (_I.FORESTRY,),
    # Domain-specific
    "우주항공청": (_I.AEROSPACE,),
    "기후에너지환경부": (_I.ENVIRONMENT, _I.ENERGY),
    "환경부": (_I.ENVIRONMENT,),
    "기상청": (_I.ENVIRONMENT,),
    "원자력안전위원회": (_I.ENERGY,),
    "문화체육관광부": (_I.CULTURAL,),
    "국가유산청": (_I.CULTURAL,),
    "문화재청": (_I.CULTURAL,),
    # Mixed
    "과학기술정보통신부": (_I.BIO_HEALTH, _I.ICT),
    "산업통상자원부": (_I.MANUFACTURING, _I.ENERGY),
    "산업통상부": (_I.MANUFACTURING, _I.ENERGY),
    "국토교통부": (_I.CONSTRUCTION, _I.TRANSPORTATION),
    "교육부": (_I.GENERAL,),
    "기획재정부": (_I.GENERAL,),
    "고용노동부": (_I.GENERAL,),
    # Government / defense
    "국방부": (_I.DEFENSE,),
    "방위사업청": (_I.DEFENSE,),
    "경찰청": (_I.ICT,),
    "소방청": (_I.CONSTRUCTION,),
    "개인정보보호위원회": (_I.ICT,),
    "행정안전부": (_I.ICT,),
}

# Keyword -> industry (Korean keywords match as substrings, ASCII as whole tokens)
KEYWORD_INDUSTRY_MAP: Dict[str, IndustryCategory] = {
    # BIO_HEALTH
    "바이오": _I.BIO_HEALTH,
    "의료": _I.BIO_HEALTH,
    "신약": _I.BIO_HEALTH,
    "치료제": _I.BIO_HEALTH,
    "체외진단": _I.BIO_HEALTH,
    "진단기기": _I.BIO_HEALTH,
    "백신": _I.BIO_HEALTH,
    "줄기세포": _I.BIO_HEALTH,
    "재생의료": _I.BIO_HEALTH,
    "항암": _I.BIO_HEALTH,
    "치매": _I.BIO_HEALTH,
    "헬스케어": _I.BIO_HEALTH,
    "희귀질환": _I.BIO_HEALTH,
    "감염병": _I.BIO_HEALTH,
    "의약품": _I.BIO_HEALTH,
    "임상": _I.BIO_HEALTH,
    "유전체": _I.BIO_HEALTH,
    "뇌연구": _I.BIO_HEALTH,
    "면역": _I.BIO_HEALTH,
    "질병": _I.BIO_HEALTH,
    # ICT
    "ICT": _I.ICT,
    "AI": _I.ICT,
    "인공지능": _I.ICT,
    "디지털": _I.ICT,
    "소프트웨어": _I.ICT,
    "SW": _I.ICT,
    "정보통신": _I.ICT,
    "데이터": _I.ICT,
    "클라우드": _I.ICT,
    "반도체": _I.ICT,
    "양자": _I.ICT,
    "네트워크": _I.ICT,
    "5G": _I.ICT,
    "6G": _I.ICT,
    "사이버보안": _I.ICT,
    "블록체인": _I.ICT,
    "메타버스": _I.ICT,
    "로봇": _I.ICT,
    "자율주행": _I.ICT,
    "IoT": _I.ICT,
    "개인정보": _I.ICT,
    "플랫폼": _I.ICT,
    "XR": _I.ICT,
    # MANUFACTURING
    "제조": _I.MANUFACTURING,
    "신소재": _I.MANUFACTURING,
    "소재부품": _I.MANUFACTURING,
    "부품": _I.MANUFACTURING,
    "장비": _I.MANUFACTURING,
    "기계": _I.MANUFACTURING,
    "금속": _I.MANUFACTURING,
    "섬유": _I.MANUFACTURING,
    "화학": _I.MANUFACTURING,
    "나노": _I.MANUFACTURING,
    "스마트공장": _I.MANUFACTURING,
    "소부장": _I.MANUFACTURING,
    "산재예방": _I.MANUFACTURING,
    # ENERGY
    "에너지": _I.ENERGY,
    "배터리": _I.ENERGY,
    "이차전지": _I.ENERGY,
    "수소": _I.ENERGY,
    "태양광": _I.ENERGY,
    "신재생": _I.ENERGY,
    "원자력": _I.ENERGY,
    "원전": _I.ENERGY,
    "풍력": _I.ENERGY,
    "핵융합": _I.ENERGY,
    # ENVIRONMENT
    "환경": _I.ENVIRONMENT,
    "기후": _I.ENVIRONMENT,
    "대기오염": _I.ENVIRONMENT,
    "폐기물": _I.ENVIRONMENT,
    "오염": _I.ENVIRONMENT,
    "생태": _I.ENVIRONMENT,
    "탄소중립": _I.ENVIRONMENT,
    "탄소감축": _I.ENVIRONMENT,
    "기상": _I.ENVIRONMENT,
    "수질": _I.ENVIRONMENT,
    "미세먼지": _I.ENVIRONMENT,
    # CONSTRUCTION
    "건설": _I.CONSTRUCTION,
    "건축": _I.CONSTRUCTION,
    "주거": _I.CONSTRUCTION,
    "인프라": _I.CONSTRUCTION,
    "터널": _I.CONSTRUCTION,
    "교량": _I.CONSTRUCTION,
    "소방": _I.CONSTRUCTION,
    "방재": _I.CONSTRUCTION,
    "스마트시티": _I.CONSTRUCTION,
    # TRANSPORTATION
    "도로": _I.TRANSPORTATION,
    "철도": _I.TRANSPORTATION,
    "교통": _I.TRANSPORTATION,
    "물류": _I.TRANSPORTATION,
    # AEROSPACE
    "우주": _I.AEROSPACE,
    "항공": _I.AEROSPACE,
    "위성": _I.AEROSPACE,
    "발사체": _I.AEROSPACE,
    "드론": _I.AEROSPACE,
    "UAM": _I.AEROSPACE,
    # DEFENSE
    "국방": _I.DEFENSE,
    "방위": _I.DEFENSE,
    "무기체계": _I.DEFENSE,
    "안보": _I.DEFENSE,
    # AGRICULTURE
    "농업": _I.AGRICULTURE,
    "농촌": _I.AGRICULTURE,
    "축산": _I.AGRICULTURE,
    "식품": _I.AGRICULTURE,
    "종자": _I.AGRICULTURE,
    "농기계": _I.AGRICULTURE,
    "스마트팜": _I.AGRICULTURE,
    "작물": _I.AGRICULTURE,
    "품종": _I.AGRICULTURE,
    "그린바이오": _I.AGRICULTURE,
    # VETERINARY
    "반려동물": _I.VETERINARY,
    "동물의약품": _I.VETERINARY,
    "동물감염병": _I.VETERINARY,
    "수의학": _I.VETERINARY,
    "가축질병": _I.VETERINARY,
    # FORESTRY
    "산림": _I.FORESTRY,
    "임업": _I.FORESTRY,
    "목재": _I.FORESTRY,
    "산불": _I.FORESTRY,
    "산사태": _I.FORESTRY,
    # MARINE_FISHERIES
    "해양": _I.MARINE_FISHERIES,
    "수산": _I.MARINE_FISHERIES,
    "어업": _I.MARINE_FISHERIES,
    "양식": _I.MARINE_FISHERIES,
    "항만": _I.MARINE_FISHERIES,
    "조선": _I.MARINE_FISHERIES,
    "선박": _I.MARINE_FISHERIES,
    "극지": _I.MARINE_FISHERIES,
    # MARINE_SECURITY
    "VTS": _I.MARINE_SECURITY,
    "해양재난": _I.MARINE_SECURITY,
    "해양안전": _I.MARINE_SECURITY,
    "해양경비": _I.MARINE_SECURITY,
    "수색구조": _I.MARINE_SECURITY,
    # CULTURAL
    "문화": _I.CULTURAL,
    "콘텐츠": _I.CULTURAL,
    "관광": _I.CULTURAL,
    "체육": _I.CULTURAL,
    "스포츠": _I.CULTURAL,
    "문화재": _I.CULTURAL,
    "예술": _I.CULTURAL,
    "방송": _I.CULTURAL,
    "게임": _I.CULTURAL,
    "뷰티": _I.CULTURAL,
    # Regional / cross-industry markers
    "로컬벤처": _I.GENERAL,
    "지역특화": _I.GENERAL,
}

# Legacy and free-form sector strings -> taxonomy buckets
INDUSTRY_ALIASES: Dict[str, IndustryCategory] = {
    "BIOHEALTH": _I.BIO_HEALTH,
    "BIO": _I.BIO_HEALTH,
    "HEALTH": _I.BIO_HEALTH,
    "HEALTHCARE": _I.BIO_HEALTH,
    "IT": _I.ICT,
    "SOFTWARE": _I.ICT,
    "MANUFACTURE": _I.MANUFACTURING,
    "ENV": _I.ENVIRONMENT,
    "CONTENT": _I.CULTURAL,
    "MARINE": _I.MARINE_FISHERIES,
    "AGRI": _I.AGRICULTURE,
    "VET": _I.VETERINARY,
    "TRANSPORT": _I.TRANSPORTATION,
    "OTHER": _I.GENERAL,
}


def keyword_pattern(keyword: str) -> Pattern[str]:
    if keyword.isascii():
        # "AI" must not fire inside "FAIR", but may touch Hangul ("AI기반")
        return re.compile(
            rf"(?<![a-zA-Z0-9]){re.escape(keyword)}(?![a-zA-Z0-9])", re.IGNORECASE
        )
    return re.compile(re.escape(keyword))


_KEYWORD_PATTERNS: List[Tuple[str, IndustryCategory, Pattern[str]]] = [
    (keyword, industry, keyword_pattern(keyword))
    for keyword, industry in KEYWORD_INDUSTRY_MAP.items()
]


@dataclass
class IndustryClassification:
    """Result of classifying one program."""

    industry: IndustryCategory
    confidence: float  # 0.0 - 1.0
    matched_keywords: List[str] = field(default_factory=list)
    ministry_based: bool = False
    taxonomy_version: str = TAXONOMY_VERSION

    @property
    def label(self) -> str:
        return INDUSTRY_KOREAN_LABELS[self.industry]


def find_industry_keywords(text: str) -> List[Tuple[str, IndustryCategory]]:
    """Taxonomy keywords found in text, in taxonomy order."""
    if not text:
        return []
    return [
        (keyword, industry)
        for keyword, industry, pattern in _KEYWORD_PATTERNS
        if pattern.search(text)
    ]


def classify_industry(
    title: str,
    description: Optional[str] = None,
    ministry: Optional[str] = None,
) -> IndustryClassification:
    """Classify a program into the industry taxonomy.

    Args:
        title: Program title
        description: Optional free text (description, keywords, category)
        ministry: Announcing ministry (부처명)

    Returns:
        IndustryClassification with industry, confidence, matched keywords
        and whether the ministry decided the outcome
    """
    scores: Dict[IndustryCategory, int] = {}

    ministry_industries = MINISTRY_INDUSTRY_MAP.get((ministry or "").strip(), ())
    for industry in ministry_industries:
        scores[industry] = scores.get(industry, 0) + MINISTRY_POINTS

    text = f"{title or ''} {description or ''}"
    found = find_industry_keywords(text)
    for _keyword, industry in found:
        scores[industry] = scores.get(industry, 0) + KEYWORD_POINTS
    matched_keywords = [keyword for keyword, _industry in found]

    if not scores:
        return IndustryClassification(
            industry=IndustryCategory.GENERAL,
            confidence=FALLBACK_CONFIDENCE,
            matched_keywords=[],
            ministry_based=False,
        )

    top_industry, top_score = min(
        scores.items(),
        key=lambda item: (
            -item[1],
            0 if item[0] in ministry_industries else 1,
            _TAXONOMY_ORDER[item[0]],
        ),
    )

    result = IndustryClassification(
        industry=top_industry,
        confidence=min(top_score / FULL_CONFIDENCE_POINTS, 1.0),
        matched_keywords=matched_keywords,
        ministry_based=top_industry in ministry_industries,
    )
    logger.debug(
        "Industry '%s' -> %s (confidence=%.2f, ministry=%s, keywords=%s)",
        (title or "")[:50],
        result.industry.value,
        result.confidence,
        result.ministry_based,
        ", ".join(matched_keywords),
    )
    return result


def normalize_industry(sector: Optional[str]) -> Optional[IndustryCategory]:
    """Map a free-form sector string onto the taxonomy.

    Returns None for a missing sector and GENERAL for an unrecognised one.
    """
    if sector is None:
        return None
    if isinstance(sector, IndustryCategory):
        return sector
    key = str(sector).strip().upper().replace("-", "_").replace(" ", "_")
    if not key:
        return None
    try:
        return IndustryCategory(key)
    except ValueError:
        return INDUSTRY_ALIASES.get(key, IndustryCategory.GENERAL)


# Cross-industry affinity, viewed from the organization's sector.
# Pairs not listed fall back to the reverse entry, then to UNRELATED_AFFINITY.
DEFAULT_AFFINITY_TABLE: Dict[IndustryCategory, Dict[IndustryCategory, float]] = {
    _I.MARINE_FISHERIES: {_I.MARINE_SECURITY: 0.3},
    _I.MARINE_SECURITY: {_I.MARINE_FISHERIES: 0.3},
    _I.FORESTRY: {_I.AGRICULTURE: 0.4, _I.ENVIRONMENT: 0.5},
    _I.AGRICULTURE: {_I.FORESTRY: 0.4, _I.VETERINARY: 0.7},
    _I.VETERINARY: {_I.AGRICULTURE: 0.7, _I.BIO_HEALTH: 0.5},
    _I.BIO_HEALTH: {_I.VETERINARY: 0.5},
    _I.CONSTRUCTION: {_I.TRANSPORTATION: 0.6},
    _I.TRANSPORTATION: {_I.CONSTRUCTION: 0.6},
    _I.ENERGY: {_I.ENVIRONMENT: 0.6},
    _I.ENVIRONMENT: {_I.ENERGY: 0.6},
    _I.ICT: {
        _I.MANUFACTURING: 0.5,
        _I.BIO_HEALTH: 0.4,
        _I.ENERGY: 0.4,
        _I.CONSTRUCTION: 0.4,
        _I.TRANSPORTATION: 0.5,
        _I.MARINE_FISHERIES: 0.2,
        _I.MARINE_SECURITY: 0.2,
        _I.AGRICULTURE: 0.3,
        _I.VETERINARY: 0.2,
        _I.FORESTRY: 0.2,
        _I.AEROSPACE: 0.4,
        _I.CULTURAL: 0.5,
        _I.ENVIRONMENT: 0.3,
    },
    _I.AEROSPACE: {_I.DEFENSE: 0.4, _I.MANUFACTURING: 0.5, _I.ICT: 0.4},
    _I.DEFENSE: {_I.AEROSPACE: 0.4, _I.MANUFACTURING: 0.4, _I.ICT: 0.3},
    # Cross-industry programs compete fairly with industry-specific ones
    _I.GENERAL: {
        industry: 0.55 for industry in IndustryCategory if industry is not _I.GENERAL
    },
}

UNRELATED_AFFINITY = 0.2
UNKNOWN_SECTOR_AFFINITY = 0.5


@dataclass(frozen=True)
class IndustryAffinity:
    """Configurable affinity lookup between two industry sectors."""

    table: Mapping[IndustryCategory, Mapping[IndustryCategory, float]] = field(
        default_factory=lambda: DEFAULT_AFFINITY_TABLE
    )
    unrelated: float = UNRELATED_AFFINITY
    unknown: float = UNKNOWN_SECTOR_AFFINITY

    def score(self, org_sector: Optional[str], program_sector: Optional[str]) -> float:
        """Affinity in [0, 1] of a program sector as seen from an organization sector."""
        org = normalize_industry(org_sector)
        program = normalize_industry(program_sector)
        if org is None or program is None:
            return self.unknown
        if org is program:
            return 1.0
        forward = self.table.get(org, {}).get(program)
        if forward is not None:
            return forward
        reverse = self.table.get(program, {}).get(org)
        if reverse is not None:
            return reverse
        return self.unrelated


DEFAULT_AFFINITY = IndustryAffinity()


def keyword_overlap(left: Iterable[str], right: Iterable[str]) -> List[str]:
    """Case-insensitive literal overlap, in the order of the left-hand side."""
    right_set = {item.strip().lower() for item in right if item and item.strip()}
    overlap = []
    for item in left:
        if not item or not item.strip():
            continue
        key = item.strip().lower()
        if key in right_set and key not in overlap:
            overlap.append(key)
    return overlap
