"""Explanation phrasing.

TemplateRenderer turns an ExplanationDraft into Korean sentences from
fixed templates. LLMRenderer asks an OpenAI chat model to rewrite the
template text more naturally while keeping its shape; it never decides
which factors are mentioned.
"""

import json
from typing import Dict, List, Optional

from openai import OpenAI, OpenAIError

from fundmatch.ai.retry import llm_retry
from fundmatch.core.exceptions import AIProcessingError, ParsingError
from fundmatch.core.logging import get_logger
from fundmatch.matching.explainer import DEADLINE_NOTICE_DAYS, ExplanationDraft, MatchExplanation
from fundmatch.settings import settings

logger = get_logger("ai.phrasing")

SUMMARY_TEMPLATES: Dict[str, str] = {
    "excellent": "'{title}' 공고는 {addressee}에 매우 적합한 과제입니다 (적합도 {score:.1f}점).",
    "good": "'{title}' 공고는 {addressee}에 적합한 과제입니다 (적합도 {score:.1f}점).",
    "fair": "'{title}' 공고는 {addressee}에 조건부로 적합한 과제입니다 (적합도 {score:.1f}점).",
    "low": "'{title}' 공고는 {addressee}에 대한 적합도가 낮은 편입니다 (적합도 {score:.1f}점).",
}

REASON_TEMPLATES: Dict[str, str] = {
    "company_scale": "{addressee}의 기업 규모가 공고의 지원 대상 규모에 해당합니다.",
    "revenue_range": "매출 규모가 공고의 매출 요건 범위 안에 있습니다.",
    "employee_count": "종업원 수가 공고의 인력 요건에 부합합니다.",
    "business_age": "업력이 공고의 업력 요건을 충족합니다.",
    "region": "소재 지역이 공고의 지원 대상 지역에 포함됩니다.",
    "certifications": "보유 인증이 공고의 필수·우대 인증 요건에 잘 맞습니다.",
    "biz_type": "사업 유형({biz_type})이 {addressee}의 현황과 잘 맞습니다.",
    "lifecycle": "{addressee}의 성장 단계가 공고가 지원하는 단계와 일치합니다.",
    "industry_content": "{addressee}의 산업 분야와 보유 기술이 공고 내용과 밀접하게 관련됩니다.",
    "deadline": "접수 마감이 가까워 지금 바로 준비하기 좋은 시점입니다.",
    "financial_relevance": "지원 금액이 {addressee}의 매출 규모 대비 의미 있는 수준입니다.",
    "sport_type": "지원 유형({sport_type})이 {addressee}의 역량과 잘 맞습니다.",
}

# Historical mode: the deadline factor rewards recently closed calls
HISTORICAL_DEADLINE_REASON = "최근 마감된 공고로, 다음 차수 공고에 대비해 참고하기 좋습니다."

CAUTION_TEMPLATES: Dict[str, str] = {
    "company_scale": "기업 규모가 지원 대상 규모와 다소 차이가 있습니다.",
    "revenue_range": "매출 규모가 공고 요건과 차이가 있어 세부 기준 확인이 필요합니다.",
    "employee_count": "종업원 수가 공고의 인력 요건과 차이가 있습니다.",
    "business_age": "업력이 공고의 업력 요건과 차이가 있습니다.",
    "region": "소재 지역 정보가 없어 지역 요건을 확인해야 합니다.",
    "certifications": "필수 또는 우대 인증 중 보유하지 않은 항목이 있습니다.",
    "biz_type": "사업 유형이 {addressee}의 현황과 완전히 일치하지는 않습니다.",
    "lifecycle": "성장 단계가 공고 대상 단계와 다를 수 있습니다.",
    "industry_content": "{addressee}의 주력 분야와 공고 분야의 관련성이 높지 않습니다.",
    "deadline": "접수 마감까지 여유가 있어 일정 변동 여부를 확인하세요.",
    "financial_relevance": "지원 금액이 매출 규모에 비해 크거나 작을 수 있습니다.",
    "sport_type": "지원 유형이 {addressee}의 역량과 다소 거리가 있습니다.",
}

BAND_RECOMMENDATIONS: Dict[str, str] = {
    "excellent": "적극적인 지원을 권장합니다.",
    "good": "세부 공고문을 검토한 뒤 지원을 준비하시기 바랍니다.",
    "fair": "자격요건과 평가 기준을 꼼꼼히 확인한 후 지원 여부를 결정하세요.",
    "low": "다른 추천 공고와 비교해 우선순위를 정하시기 바랍니다.",
}


class TemplateRenderer:
    """Default Korean template phrasing."""

    def render(self, draft: ExplanationDraft) -> MatchExplanation:
        values = {
            "title": draft.program_title,
            "addressee": draft.addressee,
            "score": draft.score,
            "biz_type": draft.biz_type or "-",
            "sport_type": draft.sport_type or "-",
        }

        reasons: List[str] = []
        for name in draft.reason_factors:
            if name == "deadline" and draft.include_expired:
                reasons.append(HISTORICAL_DEADLINE_REASON)
            else:
                reasons.append(REASON_TEMPLATES[name].format(**values))

        cautions = [CAUTION_TEMPLATES[name].format(**values) for name in draft.caution_factors]

        return MatchExplanation(
            summary=SUMMARY_TEMPLATES[draft.band].format(**values),
            reasons=reasons,
            cautions=cautions or None,
            recommendation=self._recommendation(draft),
        )

    @staticmethod
    def _recommendation(draft: ExplanationDraft) -> str:
        parts = [BAND_RECOMMENDATIONS[draft.band]]

        if draft.days_left is not None and 0 <= draft.days_left <= DEADLINE_NOTICE_DAYS:
            parts.append(f"접수 마감까지 {draft.days_left}일 남았으니 신청 서류를 서둘러 준비하세요.")

        if draft.low_confidence:
            parts.append("공고의 자격요건 정보가 불확실하니 반드시 공고 원문을 확인하세요.")
        elif draft.manual_review:
            parts.append("일부 자격요건을 확인할 수 없어 공고 원문 확인이 필요합니다.")

        if draft.completeness_percent < settings.completeness_nudge_percent:
            missing = ", ".join(draft.missing_profile_labels[:3])
            parts.append(
                f"프로필 완성도가 {draft.completeness_percent}%입니다. "
                f"{missing} 정보를 보완하면 더 정확한 추천을 받을 수 있습니다."
            )

        return " ".join(parts)


SYSTEM_PROMPT = """당신은 정부 R&D 지원사업 전문 컨설턴트입니다.
주어진 매칭 설명을 기업 담당자가 읽기 쉬운 자연스러운 한국어로 다듬으세요.

규칙:
- 새로운 사실이나 수치를 추가하지 마세요
- reasons와 cautions의 항목 수와 순서를 그대로 유지하세요
- cautions가 null이면 null로 두세요

반드시 아래 형식의 유효한 JSON으로만 응답하세요:
{
  "summary": "...",
  "reasons": ["..."],
  "cautions": ["..."] 또는 null,
  "recommendation": "..."
}"""


class LLMRenderer:
    """Rewrites the template text with an OpenAI chat model.

    Raises AIProcessingError (or ParsingError) on failure; explain()
    then keeps the template text.
    """

    def __init__(
        self,
        client: Optional[OpenAI] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
    ):
        self._client = client
        self.model = model or settings.ai_model
        self.temperature = settings.ai_temperature if temperature is None else temperature
        self.template = TemplateRenderer()

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(api_key=settings.openai_api_key)
        return self._client

    def render(self, draft: ExplanationDraft) -> MatchExplanation:
        base = self.template.render(draft)
        user_prompt = json.dumps(base.model_dump(), ensure_ascii=False, indent=2)

        try:
            content = self._complete(user_prompt)
        except OpenAIError as e:
            raise AIProcessingError(
                f"Explanation phrasing failed: {e}",
                model=self.model,
                prompt_preview=user_prompt,
            ) from e

        return parse_rephrased(content, base)

    @llm_retry
    def _complete(self, user_prompt: str) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": user_prompt},
            ],
            temperature=self.temperature,
            max_tokens=settings.ai_max_tokens,
            response_format={"type": "json_object"},
        )
        content = response.choices[0].message.content
        logger.debug("LLM phrasing: %d chars from %s", len(content or ""), self.model)
        return content or ""


def _string_list(value, name: str, raw: str) -> List[str]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ParsingError(f"'{name}' must be a list of strings", raw_output=raw)
    return value


def parse_rephrased(content: str, base: MatchExplanation) -> MatchExplanation:
    """Validate an LLM rewrite against the shape of the template explanation."""
    expected = "summary, reasons, cautions, recommendation"
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ParsingError(f"LLM reply is not JSON: {e}", raw_output=content, expected_schema=expected) from e

    if not isinstance(data, dict):
        raise ParsingError("LLM reply is not a JSON object", raw_output=content, expected_schema=expected)

    summary = data.get("summary")
    recommendation = data.get("recommendation")
    if not isinstance(summary, str) or not summary.strip():
        raise ParsingError("'summary' missing", raw_output=content, expected_schema=expected)
    if not isinstance(recommendation, str) or not recommendation.strip():
        raise ParsingError("'recommendation' missing", raw_output=content, expected_schema=expected)

    reasons = _string_list(data.get("reasons"), "reasons", content)
    if len(reasons) != len(base.reasons):
        raise ParsingError(
            f"Expected {len(base.reasons)} reasons, got {len(reasons)}",
            raw_output=content,
            expected_schema=expected,
        )

    cautions = data.get("cautions")
    if base.cautions is None:
        if cautions:
            raise ParsingError("Unexpected cautions", raw_output=content, expected_schema=expected)
        cautions = None
    else:
        cautions = _string_list(cautions, "cautions", content)
        if len(cautions) != len(base.cautions):
            raise ParsingError(
                f"Expected {len(base.cautions)} cautions, got {len(cautions)}",
                raw_output=content,
                expected_schema=expected,
            )

    return MatchExplanation(
        summary=summary.strip(),
        reasons=[reason.strip() for reason in reasons],
        cautions=[caution.strip() for caution in cautions] if cautions is not None else None,
        recommendation=recommendation.strip(),
    )
