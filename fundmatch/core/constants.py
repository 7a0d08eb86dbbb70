"""Shared constants."""

# Display formatting
SEPARATOR_LINE = "=" * 60
SEPARATOR_LINE_THIN = "-" * 40

# Block reason descriptions (for display, keyed by BlockReason value)
BLOCK_REASON_DESCRIPTIONS = {
    # Announcement type
    "DESIGNATED_PROJECT": "지정·위탁과제로 공개경쟁 공모가 아닙니다",
    "DEMAND_SURVEY": "수요조사 공고로 과제 공모가 아닙니다",
    "CONSOLIDATED_ANNOUNCEMENT": "통합 공고로 세부 공고 확인이 필요합니다",
    "INSTITUTIONAL_ONLY": "출연연 전용 과제입니다",
    "HOSPITAL_ONLY": "병원·의사과학자 대상 과제입니다",
    "TRAINING_PROGRAM": "교육훈련 사업으로 R&D 과제가 아닙니다",
    # Eligibility
    "ORG_TYPE_MISMATCH": "지원 대상 기관 유형이 아닙니다",
    "BUSINESS_STRUCTURE_MISMATCH": "지원 가능한 사업자 형태가 아닙니다",
    "TRL_OUT_OF_RANGE": "기술성숙도(TRL)가 지원 범위를 벗어납니다",
    "HARD_REQUIREMENT_FAILED": "필수 자격 요건을 충족하지 못합니다",
    # SME programs
    "SME_SCALE_BLOCK": "대기업은 중소기업 지원사업에 지원할 수 없습니다",
    "SME_STARTUP_ONLY": "창업기업 전용 프로그램입니다",
    "SME_REGION_NON_METRO_ONLY": "비수도권 소재 기업 대상 사업입니다",
    "SME_REGION_MISMATCH": "지역 제한을 충족하지 못합니다",
    # Domain
    "EXCLUDED_DOMAIN": "제외 설정한 분야의 사업입니다",
    "INDUSTRY_MISMATCH": "업종 관련성이 낮고 기술 키워드가 일치하지 않습니다",
    # Lifecycle
    "STATUS_INACTIVE": "진행 중인 공고가 아닙니다",
    "DEADLINE_PASSED": "접수 마감된 공고입니다",
}

# SME-focused ministry
SME_MINISTRY = "중소벤처기업부"

# Strong R&D markers that override the training-program rule
STRONG_RD_KEYWORDS = ("기술개발", "R&D", "연구개발", "과제공모", "기술혁신")

# SME startup-only programs
SME_STARTUP_ONLY_KEYWORDS = ("창업성장", "TIPS", "팁스", "디딤돌")

# SME regional innovation programs (non-metropolitan companies only)
SME_NON_METRO_KEYWORDS = ("지역혁신선도", "지역혁신")

METROPOLITAN_REGIONS = frozenset({"SEOUL", "GYEONGGI", "INCHEON"})

# Region names in SME titles -> eligible KoreanRegion values
SME_REGIONAL_KEYWORD_MAP = {
    "서울": ("SEOUL",),
    "인천": ("INCHEON",),
    "경기": ("GYEONGGI",),
    "부산": ("BUSAN",),
    "울산": ("ULSAN",),
    "경남": ("GYEONGNAM",),
    "대구": ("DAEGU",),
    "경북": ("GYEONGBUK",),
    "광주": ("GWANGJU",),
    "전남": ("JEONNAM",),
    "전북": ("JEONBUK",),
    "대전": ("DAEJEON",),
    "충남": ("CHUNGNAM",),
    "충북": ("CHUNGBUK",),
    "세종": ("SEJONG",),
    "강원": ("GANGWON",),
    "제주": ("JEJU",),
}

# Title words that carry no topical signal for keyword overlap
KOREAN_TITLE_STOPWORDS = frozenset(
    {
        "및", "의", "에", "을", "를", "은", "는", "이", "가", "와", "과", "로",
        "등", "한", "된", "중", "내", "대한", "위한", "통한", "관한", "또는",
        "또한", "대응", "공고", "계획", "선정", "신규", "추진", "사업", "지원",
        "년도", "기술", "기술개발", "개발", "구축", "기반", "시행", "시스템",
        "연구", "연구개발",
    }
)

# Government SME certifications (이노비즈, 메인비즈, 벤처기업)
RECOGNIZED_SME_CERTIFICATIONS = ("이노비즈", "메인비즈", "벤처기업")
