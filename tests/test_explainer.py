"""Unit tests for match explanations and template phrasing."""

from datetime import timedelta

import pytest

from fundmatch.ai.phrasing import HISTORICAL_DEADLINE_REASON, REASON_TEMPLATES, TemplateRenderer
from fundmatch.core.exceptions import AIProcessingError
from fundmatch.matching.eligibility_gate import GateOptions, evaluate_eligibility_gate
from fundmatch.matching.engine import match_program
from fundmatch.matching.explainer import MatchExplanation, build_draft, explain, score_band
from fundmatch.matching.weights import ScoringWeights

COMPLETE_PROFILE = {
    "description": "산업용 AI 솔루션 기업",
    "website": "https://example.co.kr",
    "primary_contact_name": "김담당",
    "primary_contact_email": "contact@example.co.kr",
    "address": "서울특별시 강남구",
    "primary_business_domain": "AI 소프트웨어",
    "company_profile_description": "제조 데이터 분석 플랫폼 개발",
}


def _match(program, organization, now, include_expired=False, weights=None):
    options = GateOptions(now=now, include_expired=include_expired)
    gate_result = evaluate_eligibility_gate(program, organization, options)
    return match_program(
        program,
        organization,
        gate_result,
        now=now,
        include_expired=include_expired,
        weights=weights,
    )


class FailingRenderer:
    def render(self, draft):
        raise AIProcessingError("model unavailable")


class FixedRenderer:
    def render(self, draft):
        return MatchExplanation(summary="요약", reasons=["이유"] * len(draft.reason_factors), recommendation="권장")


class TestScoreBand:
    """Tests for score bands."""

    @pytest.mark.parametrize(
        "value, band",
        [(95, "excellent"), (80, "excellent"), (79.9, "good"), (60, "good"), (40, "fair"), (39.9, "low"), (0, "low")],
    )
    def test_band_boundaries(self, value, band):
        """Test band thresholds at 80/60/40."""
        assert score_band(value) == band


class TestDraft:
    """Tests for factor selection."""

    def test_reasons_sorted_by_points(self, program, organization, now):
        """Test strong factors are ordered by sub-score."""
        draft = build_draft(_match(program, organization, now), organization, program)
        assert draft.reason_factors == ["industry_content", "deadline", "region"]
        assert draft.band == "fair"
        assert draft.addressee == "귀사"

    def test_cautions_are_weak_nonzero_factors(self, program, organization, now):
        """Test cautions cover factors below the caution ratio but above zero."""
        draft = build_draft(_match(program, organization, now), organization, program)
        assert draft.caution_factors == ["biz_type", "sport_type"]

    def test_zero_factors_are_not_cautions(self, make_program, organization, now):
        """Test a zero-ratio factor is neither reason nor caution."""
        program = make_program(target_regions=["BUSAN"])
        draft = build_draft(_match(program, organization, now), organization, program)
        assert "region" not in draft.reason_factors
        assert "region" not in draft.caution_factors

    def test_zero_weight_factors_skipped(self, program, organization, now):
        """Test factors with no weight are never mentioned."""
        weights = ScoringWeights(version="no-types", biz_type=0, sport_type=0, industry_content=41)
        draft = build_draft(_match(program, organization, now, weights=weights), organization, program)
        assert "biz_type" not in draft.caution_factors
        assert "sport_type" not in draft.caution_factors

    def test_days_left(self, program, organization, now):
        """Test days left is computed from the evaluation time."""
        draft = build_draft(_match(program, organization, now), organization, program)
        assert draft.days_left == 30


class TestTemplateExplanation:
    """Tests for the default Korean explanation."""

    def test_structure(self, program, organization, now):
        """Test summary, ordered reasons and cautions."""
        explanation = explain(_match(program, organization, now), organization, program)
        assert program.title in explanation.summary
        assert "귀사에 조건부로 적합한 과제입니다" in explanation.summary
        assert "56.0점" in explanation.summary
        assert len(explanation.reasons) == 3
        assert explanation.reasons[0] == REASON_TEMPLATES["industry_content"].format(addressee="귀사")
        assert len(explanation.cautions) == 2

    def test_cautions_none_when_empty(self, program, organization, now):
        """Test cautions is None rather than an empty list."""
        weights = ScoringWeights(version="no-types", biz_type=0, sport_type=0, industry_content=41)
        explanation = explain(_match(program, organization, now, weights=weights), organization, program)
        assert explanation.cautions is None

    def test_deadline_note(self, program, organization, now):
        """Test recommendation mentions an upcoming deadline."""
        explanation = explain(_match(program, organization, now), organization, program)
        assert "접수 마감까지 30일 남았으니" in explanation.recommendation

    def test_no_deadline_note_for_distant_deadline(self, make_program, organization, now):
        """Test no deadline note beyond 30 days."""
        program = make_program(deadline=now + timedelta(days=45))
        explanation = explain(_match(program, organization, now), organization, program)
        assert "접수 마감까지" not in explanation.recommendation

    def test_low_confidence_note(self, make_program, organization, now):
        """Test LOW extraction confidence asks to check the original notice."""
        program = make_program(eligibility_confidence="LOW")
        explanation = explain(_match(program, organization, now), organization, program)
        assert "공고의 자격요건 정보가 불확실하니" in explanation.recommendation

    def test_manual_review_note(self, make_program, make_org, now):
        """Test unverified requirements ask for a manual check."""
        program = make_program(required_certifications=["이노비즈"])
        org = make_org(certifications=[])
        explanation = explain(_match(program, org, now), org, program)
        assert "일부 자격요건을 확인할 수 없어" in explanation.recommendation

    def test_completeness_nudge(self, program, organization, now):
        """Test incomplete profiles are nudged with the first missing fields."""
        explanation = explain(_match(program, organization, now), organization, program)
        assert "프로필 완성도가 53%입니다" in explanation.recommendation
        assert "기관 소개, 웹사이트, 담당자명" in explanation.recommendation

    def test_no_nudge_for_complete_profile(self, program, make_org, now):
        """Test complete profiles get no nudge."""
        org = make_org(**COMPLETE_PROFILE)
        explanation = explain(_match(program, org, now), org, program)
        assert "프로필 완성도" not in explanation.recommendation

    def test_institution_addressee(self, make_program, make_org, now):
        """Test non-company organizations are addressed as 귀 기관."""
        program = make_program(target_type=[])
        institute = make_org(id="org-inst", type="RESEARCH_INSTITUTE")
        explanation = explain(_match(program, institute, now), institute, program)
        assert "귀 기관에" in explanation.summary

    def test_historical_deadline_reason(self, make_program, organization, now):
        """Test historical mode phrases the deadline factor as a recent call."""
        program = make_program(deadline=now - timedelta(days=10))
        match = _match(program, organization, now, include_expired=True)
        explanation = explain(match, organization, program)
        assert HISTORICAL_DEADLINE_REASON in explanation.reasons
        assert "접수 마감까지" not in explanation.recommendation

    def test_template_renderer_is_deterministic(self, program, organization, now):
        """Test the same draft renders identically."""
        draft = build_draft(_match(program, organization, now), organization, program)
        renderer = TemplateRenderer()
        assert renderer.render(draft) == renderer.render(draft)


class TestRendererFallback:
    """Tests for pluggable renderers."""

    def test_custom_renderer_used(self, program, organization, now):
        """Test a supplied renderer phrases the explanation."""
        explanation = explain(_match(program, organization, now), organization, program, renderer=FixedRenderer())
        assert explanation.summary == "요약"
        assert explanation.reasons == ["이유"] * 3

    def test_failing_renderer_falls_back_to_templates(self, program, organization, now):
        """Test renderer errors keep the template explanation."""
        match = _match(program, organization, now)
        fallback = explain(match, organization, program, renderer=FailingRenderer())
        assert fallback == explain(match, organization, program)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
