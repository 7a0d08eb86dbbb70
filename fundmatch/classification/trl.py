"""TRL (Technology Readiness Level) stage classification.

Stages:
- BASIC_RESEARCH (TRL 1-3): 기초연구
- APPLIED_RESEARCH (TRL 4-6): 응용연구
- COMMERCIALIZATION (TRL 7-9): 실용화/사업화
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from fundmatch.core.exceptions import InvalidTRLRangeError

TRL_MIN = 1
TRL_MAX = 9


class TRLStage(str, Enum):
    BASIC_RESEARCH = "BASIC_RESEARCH"
    APPLIED_RESEARCH = "APPLIED_RESEARCH"
    COMMERCIALIZATION = "COMMERCIALIZATION"


STAGE_LABELS: Dict[TRLStage, str] = {
    TRLStage.BASIC_RESEARCH: "기초연구",
    TRLStage.APPLIED_RESEARCH: "응용연구",
    TRLStage.COMMERCIALIZATION: "실용화/사업화",
}

STAGE_DESCRIPTIONS: Dict[TRLStage, str] = {
    TRLStage.BASIC_RESEARCH: "기초 및 원천기술 연구 (이론 정립, 개념 증명)",
    TRLStage.APPLIED_RESEARCH: "응용연구 및 시제품 개발 (실험실 검증, 프로토타입 제작)",
    TRLStage.COMMERCIALIZATION: "실용화 및 사업화 (실증, 양산, 시장 진입)",
}

STAGE_KEYWORDS: Dict[TRLStage, Tuple[str, ...]] = {
    TRLStage.BASIC_RESEARCH: (
        "기초연구",
        "원천기술",
        "이론연구",
        "기본원리",
        "개념정립",
        "아이디어검증",
    ),
    TRLStage.APPLIED_RESEARCH: (
        "응용연구",
        "개발연구",
        "시제품",
        "프로토타입",
        "실험실검증",
        "파일럿테스트",
        "개념실증",
        "POC",
    ),
    TRLStage.COMMERCIALIZATION: (
        "실용화",
        "사업화",
        "상용화",
        "시장진입",
        "양산",
        "제품화",
        "실증",
    ),
}


@dataclass
class TRLClassification:
    """Stage classification of a program's TRL range."""

    min_trl: int
    max_trl: int
    stage: TRLStage
    stage_label: str
    description: str
    keywords: List[str] = field(default_factory=list)


def is_valid_trl(value) -> bool:
    """True for an integer TRL in 1..9 (bool is not a TRL)."""
    return isinstance(value, int) and not isinstance(value, bool) and TRL_MIN <= value <= TRL_MAX


def valid_trl(value) -> Optional[int]:
    """The TRL if valid, otherwise None (treated as unknown)."""
    return value if is_valid_trl(value) else None


def valid_trl_range(min_trl, max_trl) -> Optional[Tuple[int, int]]:
    """A (min, max) pair if both ends are valid and ordered, otherwise None."""
    if is_valid_trl(min_trl) and is_valid_trl(max_trl) and min_trl <= max_trl:
        return min_trl, max_trl
    return None


def get_trl_stage(trl: int) -> TRLStage:
    if trl <= 3:
        return TRLStage.BASIC_RESEARCH
    if trl <= 6:
        return TRLStage.APPLIED_RESEARCH
    return TRLStage.COMMERCIALIZATION


def classify_trl(min_trl: int, max_trl: int) -> TRLClassification:
    """Classify a program TRL range into a research stage.

    The stage is taken at the (floored) midpoint of the range; keywords are
    the union over every stage the range touches.

    Raises:
        InvalidTRLRangeError: if the range is not 1 <= min <= max <= 9
    """
    if valid_trl_range(min_trl, max_trl) is None:
        raise InvalidTRLRangeError(min_trl, max_trl)

    stage = get_trl_stage((min_trl + max_trl) // 2)

    keywords: List[str] = []
    for trl in range(min_trl, max_trl + 1):
        for keyword in STAGE_KEYWORDS[get_trl_stage(trl)]:
            if keyword not in keywords:
                keywords.append(keyword)

    return TRLClassification(
        min_trl=min_trl,
        max_trl=max_trl,
        stage=stage,
        stage_label=STAGE_LABELS[stage],
        description=STAGE_DESCRIPTIONS[stage],
        keywords=keywords,
    )


def format_trl_range(min_trl: int, max_trl: int) -> str:
    if min_trl == max_trl:
        return f"TRL {min_trl}"
    return f"TRL {min_trl}-{max_trl}"
