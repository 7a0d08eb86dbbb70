"""Unit tests for the eligibility gate and its title rule table."""

from datetime import datetime, timedelta, timezone

import pytest

from fundmatch.core.constants import BLOCK_REASON_DESCRIPTIONS
from fundmatch.matching.eligibility_gate import GateOptions, evaluate_eligibility_gate
from fundmatch.matching.title_rules import TITLE_RULES, resolve_application_type
from fundmatch.models import (
    ApplicationType,
    BlockReason,
    EligibilityLevel,
    OrganizationType,
)


def _rule(code: BlockReason):
    return next(rule for rule in TITLE_RULES if rule.code is code)


class TestReferenceScenarios:
    """Tests for the reference matching scenarios."""

    def test_open_ai_program_passes(self, program, organization):
        """Test ICT company passes an open AI program."""
        result = evaluate_eligibility_gate(program, organization)
        assert result.passed is True
        assert result.application_type is ApplicationType.OPEN_COMPETITION
        assert result.block_reasons == []

    def test_institutional_only_blocks_company(self, make_program, organization):
        """Test 출연(연) 전용 program is blocked for a company."""
        program = make_program(title="출연(연) 전용 과제")
        result = evaluate_eligibility_gate(program, organization)
        assert result.passed is False
        assert BlockReason.INSTITUTIONAL_ONLY in result.block_reasons

    def test_result_serializes_to_plain_strings(self, make_program, organization):
        """Test gate result dumps enums as strings."""
        result = evaluate_eligibility_gate(make_program(title="AI 지정과제"), organization)
        data = result.model_dump(mode="json")
        assert data["block_reasons"] == ["DESIGNATED_PROJECT"]
        assert data["application_type"] == "DESIGNATED_PROJECT"


class TestTitleMarkers:
    """Tests for Korean administrative title markers."""

    @pytest.mark.parametrize("title", ["2026년 AI 지정과제 공모", "AI 플랫폼 위탁과제 수행기관 선정"])
    def test_designated_project(self, make_program, organization, title):
        """Test 지정과제/위탁과제 titles are blocked as designated projects."""
        result = evaluate_eligibility_gate(make_program(title=title), organization)
        assert result.passed is False
        assert BlockReason.DESIGNATED_PROJECT in result.block_reasons
        assert result.application_type is ApplicationType.DESIGNATED_PROJECT

    def test_demand_survey(self, make_program, organization):
        """Test 수요조사 titles are blocked as demand surveys."""
        result = evaluate_eligibility_gate(make_program(title="2026년 AI 기술수요조사"), organization)
        assert BlockReason.DEMAND_SURVEY in result.block_reasons
        assert result.application_type is ApplicationType.DEMAND_SURVEY

    def test_designated_beats_demand_survey(self, make_program, organization):
        """Test application type follows fixed priority, not title order."""
        result = evaluate_eligibility_gate(make_program(title="AI 수요조사 및 지정과제"), organization)
        assert result.application_type is ApplicationType.DESIGNATED_PROJECT
        assert BlockReason.DEMAND_SURVEY in result.block_reasons
        assert BlockReason.DESIGNATED_PROJECT in result.block_reasons

    @pytest.mark.parametrize("title", ["출연연 전용 과제", "출연연전용 과제", "출연 (연) 전용 과제"])
    def test_institutional_spelling_variants(self, make_program, organization, title):
        """Test institutional marker spacing/bracket variants."""
        result = evaluate_eligibility_gate(make_program(title=title), organization)
        assert BlockReason.INSTITUTIONAL_ONLY in result.block_reasons

    def test_institutional_allows_research_institute(self, make_program, make_org):
        """Test research institutes may apply to 출연(연) 전용 programs."""
        program = make_program(title="출연(연) 전용 과제", target_type=[])
        institute = make_org(id="org-kist", type="RESEARCH_INSTITUTE")
        result = evaluate_eligibility_gate(program, institute)
        assert result.passed is True
        assert result.application_type is ApplicationType.INSTITUTIONAL_ONLY

    def test_hospital_only_blocks_company_and_university(self, make_program, make_org):
        """Test hospital markers block companies and universities."""
        program = make_program(title="의사과학자 양성 사업", target_type=[])
        company = make_org()
        university = make_org(id="org-univ", type="UNIVERSITY")
        assert BlockReason.HOSPITAL_ONLY in evaluate_eligibility_gate(program, company).block_reasons
        assert BlockReason.HOSPITAL_ONLY in evaluate_eligibility_gate(program, university).block_reasons

    def test_hospital_marker_keeps_application_type(self, make_program, organization):
        """Test hospital markers do not change the application type."""
        result = evaluate_eligibility_gate(make_program(title="상급종합병원 연구 지원"), organization)
        assert result.application_type is ApplicationType.OPEN_COMPETITION

    def test_training_blocks_company(self, make_program, organization):
        """Test 교육훈련 title without R&D keywords blocks a company."""
        result = evaluate_eligibility_gate(make_program(title="AI 교육훈련 지원사업"), organization)
        assert result.passed is False
        assert BlockReason.TRAINING_PROGRAM in result.block_reasons

    def test_training_overridden_by_rd_keywords(self, make_program, organization):
        """Test 기술개발/과제공모 suppress the training block."""
        program = make_program(title="AI 교육훈련 기술개발 과제공모")
        result = evaluate_eligibility_gate(program, organization)
        assert BlockReason.TRAINING_PROGRAM not in result.block_reasons

    def test_talent_growth_rd_call_not_blocked(self, make_program, organization):
        """Test 인재성장 R&D calls are not treated as training."""
        result = evaluate_eligibility_gate(make_program(title="AI 인재성장 R&D 지원"), organization)
        assert BlockReason.TRAINING_PROGRAM not in result.block_reasons

    def test_training_does_not_block_university(self, make_program, make_org):
        """Test training marker only applies to companies."""
        program = make_program(title="AI 교육훈련 지원사업", target_type=[])
        university = make_org(id="org-univ", type="UNIVERSITY")
        result = evaluate_eligibility_gate(program, university)
        assert BlockReason.TRAINING_PROGRAM not in result.block_reasons


class TestTitleRuleTable:
    """Tests for individual title rule rows."""

    def test_training_rule_override(self):
        """Test training row fires without and not with an R&D keyword."""
        rule = _rule(BlockReason.TRAINING_PROGRAM)
        assert rule.matches("인재성장 프로그램") is True
        assert rule.matches("인재성장 기술혁신 프로그램") is False

    def test_training_rule_scope(self):
        """Test training row blocks only companies."""
        rule = _rule(BlockReason.TRAINING_PROGRAM)
        assert rule.blocks(OrganizationType.COMPANY) is True
        assert rule.blocks(OrganizationType.UNIVERSITY) is False

    def test_institutional_rule_exemption(self):
        """Test institutional row exempts research institutes."""
        rule = _rule(BlockReason.INSTITUTIONAL_ONLY)
        assert rule.blocks(OrganizationType.RESEARCH_INSTITUTE) is False
        assert rule.blocks(OrganizationType.COMPANY) is True

    def test_every_block_reason_described(self):
        """Test each block code has a display description."""
        assert set(BLOCK_REASON_DESCRIPTIONS) == {reason.value for reason in BlockReason}

    def test_empty_title_matches_nothing(self):
        """Test no rule fires on an empty title."""
        assert not any(rule.matches("") for rule in TITLE_RULES)

    def test_application_type_priority(self):
        """Test consolidated outranks institutional-only."""
        candidates = [ApplicationType.INSTITUTIONAL_ONLY, ApplicationType.CONSOLIDATED_ANNOUNCEMENT]
        assert resolve_application_type(candidates) is ApplicationType.CONSOLIDATED_ANNOUNCEMENT
        assert resolve_application_type([]) is ApplicationType.OPEN_COMPETITION


class TestConsolidatedAnnouncement:
    """Tests for umbrella announcements without concrete call data."""

    def test_all_missing_blocks(self, make_program, organization):
        """Test missing deadline, start and budget block the program."""
        program = make_program(deadline=None, application_start=None, budget_amount=None)
        result = evaluate_eligibility_gate(program, organization)
        assert BlockReason.CONSOLIDATED_ANNOUNCEMENT in result.block_reasons
        assert result.application_type is ApplicationType.CONSOLIDATED_ANNOUNCEMENT

    @pytest.mark.parametrize("field_name", ["deadline", "application_start", "budget_amount"])
    def test_any_field_present_removes_block(self, make_program, organization, now, field_name):
        """Test one concrete field is enough to lift the block."""
        values = {
            "deadline": None,
            "application_start": None,
            "budget_amount": None,
        }
        values[field_name] = 50_000_000 if field_name == "budget_amount" else now + timedelta(days=10)
        result = evaluate_eligibility_gate(make_program(**values), organization)
        assert BlockReason.CONSOLIDATED_ANNOUNCEMENT not in result.block_reasons


class TestStructuralRules:
    """Tests for organization type, business structure and TRL rules."""

    def test_org_type_mismatch(self, make_program, organization):
        """Test company blocked from an institute-only target list."""
        program = make_program(target_type=["RESEARCH_INSTITUTE"])
        result = evaluate_eligibility_gate(program, organization)
        assert BlockReason.ORG_TYPE_MISMATCH in result.block_reasons

    def test_empty_target_type_allows_all(self, make_program, organization):
        """Test empty target list does not block."""
        result = evaluate_eligibility_gate(make_program(target_type=[]), organization)
        assert result.passed is True

    def test_business_structure_mismatch(self, make_program, make_org):
        """Test sole proprietor blocked from corporation-only program."""
        program = make_program(allowed_business_structures=["CORPORATION"])
        org = make_org(business_structure="SOLE_PROPRIETOR")
        result = evaluate_eligibility_gate(program, org)
        assert BlockReason.BUSINESS_STRUCTURE_MISMATCH in result.block_reasons

    def test_unknown_business_structure_never_blocks(self, make_program, organization):
        """Test unknown structure is insufficient evidence."""
        program = make_program(allowed_business_structures=["CORPORATION"])
        result = evaluate_eligibility_gate(program, organization)
        assert BlockReason.BUSINESS_STRUCTURE_MISMATCH not in result.block_reasons

    def test_trl_out_of_range(self, make_program, make_org):
        """Test org TRL 8 against program TRL 1-3 is blocked."""
        result = evaluate_eligibility_gate(
            make_program(min_trl=1, max_trl=3), make_org(technology_readiness_level=8)
        )
        assert BlockReason.TRL_OUT_OF_RANGE in result.block_reasons

    def test_trl_inside_range(self, make_program, make_org):
        """Test org TRL 5 against program TRL 3-7 passes."""
        result = evaluate_eligibility_gate(
            make_program(min_trl=3, max_trl=7), make_org(technology_readiness_level=5)
        )
        assert BlockReason.TRL_OUT_OF_RANGE not in result.block_reasons

    def test_missing_org_trl_is_neutral(self, make_program, make_org):
        """Test unknown org TRL does not block."""
        result = evaluate_eligibility_gate(
            make_program(min_trl=1, max_trl=3), make_org(technology_readiness_level=None)
        )
        assert BlockReason.TRL_OUT_OF_RANGE not in result.block_reasons

    def test_target_research_trl_takes_precedence(self, make_program, make_org):
        """Test target research TRL is used over current TRL."""
        org = make_org(technology_readiness_level=8, target_research_trl=5)
        result = evaluate_eligibility_gate(make_program(min_trl=3, max_trl=7), org)
        assert BlockReason.TRL_OUT_OF_RANGE not in result.block_reasons

    def test_historical_mode_relaxes_trl(self, make_program, make_org):
        """Test include_expired widens the TRL window by 3 levels."""
        program = make_program(min_trl=1, max_trl=3)
        options = GateOptions(include_expired=True)
        relaxed = evaluate_eligibility_gate(program, make_org(technology_readiness_level=6), options)
        still_out = evaluate_eligibility_gate(program, make_org(technology_readiness_level=8), options)
        assert BlockReason.TRL_OUT_OF_RANGE not in relaxed.block_reasons
        assert BlockReason.TRL_OUT_OF_RANGE in still_out.block_reasons


class TestHardRequirements:
    """Tests for hard requirement checks."""

    def test_missing_required_certification_blocks(self, make_program, organization):
        """Test known missing required certification blocks."""
        result = evaluate_eligibility_gate(make_program(required_certifications=["이노비즈"]), organization)
        assert BlockReason.HARD_REQUIREMENT_FAILED in result.block_reasons
        assert result.eligibility_level is EligibilityLevel.INELIGIBLE

    def test_unknown_certifications_need_review(self, make_program, make_org):
        """Test unknown certifications recommend manual review instead of blocking."""
        result = evaluate_eligibility_gate(
            make_program(required_certifications=["이노비즈"]), make_org(certifications=[])
        )
        assert result.passed is True
        assert result.manual_review_recommended is True
        assert result.eligibility_level is EligibilityLevel.CONDITIONALLY_ELIGIBLE

    def test_employee_minimum_violation(self, make_program, organization):
        """Test employee bucket below the minimum blocks."""
        result = evaluate_eligibility_gate(make_program(required_min_employees=100), organization)
        assert BlockReason.HARD_REQUIREMENT_FAILED in result.block_reasons

    def test_government_certification_counts(self, make_program, make_org):
        """Test government certifications satisfy required certifications."""
        org = make_org(certifications=[], government_certifications=["이노비즈 인증"])
        result = evaluate_eligibility_gate(make_program(required_certifications=["이노비즈"]), org)
        assert BlockReason.HARD_REQUIREMENT_FAILED not in result.block_reasons


class TestSMERules:
    """Tests for 중소벤처기업부 program rules."""

    SME_MINISTRY = "중소벤처기업부"

    def test_large_enterprise_blocked(self, make_program, make_org):
        """Test large enterprise blocked from SME ministry program."""
        program = make_program(title="중소기업 기술혁신개발사업", ministry=self.SME_MINISTRY)
        result = evaluate_eligibility_gate(program, make_org(company_scale_type="LARGE_ENTERPRISE"))
        assert BlockReason.SME_SCALE_BLOCK in result.block_reasons

    def test_sme_company_passes(self, make_program, organization):
        """Test SME passes a general SME program regardless of industry."""
        program = make_program(title="중소기업 기술혁신개발사업", ministry=self.SME_MINISTRY)
        assert evaluate_eligibility_gate(program, organization).passed is True

    def test_startup_only_blocks_mid_sized(self, make_program, make_org):
        """Test 창업성장/디딤돌 programs block mid-sized companies."""
        program = make_program(title="창업성장기술개발사업 디딤돌", ministry=self.SME_MINISTRY)
        mid_sized = evaluate_eligibility_gate(program, make_org(company_scale_type="MID_SIZED"))
        sme = evaluate_eligibility_gate(program, make_org(company_scale_type="SME"))
        assert BlockReason.SME_STARTUP_ONLY in mid_sized.block_reasons
        assert sme.passed is True

    def test_industry_specific_sme_program_skips_sub_rules(self, make_program, make_org):
        """Test SME programs with an industry keyword skip the startup-only rule."""
        program = make_program(title="창업성장 AI 기술개발", ministry=self.SME_MINISTRY)
        result = evaluate_eligibility_gate(program, make_org(company_scale_type="MID_SIZED"))
        assert BlockReason.SME_STARTUP_ONLY not in result.block_reasons

    def test_non_metro_program_blocks_metropolitan_org(self, make_program, make_org):
        """Test 지역혁신 programs block organizations located only in the capital area."""
        program = make_program(title="지역혁신선도기업 육성사업", ministry=self.SME_MINISTRY)
        seoul = evaluate_eligibility_gate(program, make_org(regions=["SEOUL", "GYEONGGI"]))
        busan = evaluate_eligibility_gate(program, make_org(regions=["BUSAN"]))
        unknown = evaluate_eligibility_gate(program, make_org(regions=[]))
        assert BlockReason.SME_REGION_NON_METRO_ONLY in seoul.block_reasons
        assert busan.passed is True
        assert unknown.passed is True

    def test_regional_program_mismatch(self, make_program, make_org):
        """Test a region named in the title must match the org region."""
        program = make_program(title="부산 중소기업 지원사업", ministry=self.SME_MINISTRY)
        seoul = evaluate_eligibility_gate(program, make_org(regions=["SEOUL"]))
        busan = evaluate_eligibility_gate(program, make_org(regions=["BUSAN"]))
        assert BlockReason.SME_REGION_MISMATCH in seoul.block_reasons
        assert busan.passed is True


class TestIndustryRules:
    """Tests for excluded domains and the cross-industry rule."""

    MARINE_TITLE = "해양 양식 기술 고도화"

    def test_excluded_domain(self, make_program, make_org):
        """Test program in an excluded domain is blocked."""
        org = make_org(excluded_domains=["BIO_HEALTH"])
        result = evaluate_eligibility_gate(make_program(title="바이오 신약 개발"), org)
        assert BlockReason.EXCLUDED_DOMAIN in result.block_reasons

    def test_low_affinity_without_overlap_blocks(self, make_program, organization):
        """Test ICT company blocked from marine program without keyword overlap."""
        program = make_program(title=self.MARINE_TITLE, ministry="해양수산부")
        result = evaluate_eligibility_gate(program, organization)
        assert BlockReason.INDUSTRY_MISMATCH in result.block_reasons

    def test_keyword_overlap_rescues_low_affinity(self, make_program, organization):
        """Test literal keyword overlap lifts the industry block."""
        program = make_program(title=self.MARINE_TITLE, ministry="해양수산부", keywords=["데이터분석"])
        result = evaluate_eligibility_gate(program, organization)
        assert BlockReason.INDUSTRY_MISMATCH not in result.block_reasons

    def test_overlap_is_case_insensitive(self, make_program, organization):
        """Test keyword overlap ignores case."""
        program = make_program(title=self.MARINE_TITLE, ministry="해양수산부", keywords=["ai"])
        result = evaluate_eligibility_gate(program, organization)
        assert BlockReason.INDUSTRY_MISMATCH not in result.block_reasons

    def test_org_without_keywords_is_not_blocked(self, make_program, make_org):
        """Test missing org keywords are insufficient evidence."""
        program = make_program(title=self.MARINE_TITLE, ministry="해양수산부")
        result = evaluate_eligibility_gate(program, make_org(key_technologies=[]))
        assert BlockReason.INDUSTRY_MISMATCH not in result.block_reasons

    def test_unknown_org_sector_is_not_blocked(self, make_program, make_org):
        """Test missing org sector does not block."""
        program = make_program(title=self.MARINE_TITLE, ministry="해양수산부")
        result = evaluate_eligibility_gate(program, make_org(industry_sector=None))
        assert BlockReason.INDUSTRY_MISMATCH not in result.block_reasons

    def test_threshold_affinity_passes(self, make_program, organization):
        """Test affinity exactly at the threshold passes (ICT -> manufacturing)."""
        program = make_program(title="스마트공장 장비 고도화")
        result = evaluate_eligibility_gate(program, organization)
        assert BlockReason.INDUSTRY_MISMATCH not in result.block_reasons

    def test_custom_threshold(self, make_program, organization):
        """Test per-call affinity threshold override."""
        program = make_program(title="스마트공장 장비 고도화")
        result = evaluate_eligibility_gate(program, organization, GateOptions(affinity_threshold=0.6))
        assert BlockReason.INDUSTRY_MISMATCH in result.block_reasons

    def test_category_used_when_title_is_generic(self, make_program, organization):
        """Test program category decides the sector for generic titles."""
        program = make_program(title="차세대 선도 과제", category="BIO")
        result = evaluate_eligibility_gate(program, organization)
        assert BlockReason.INDUSTRY_MISMATCH in result.block_reasons

    def test_historical_mode_skips_industry_rule(self, make_program, organization):
        """Test include_expired disables the cross-industry block."""
        program = make_program(title=self.MARINE_TITLE, ministry="해양수산부")
        result = evaluate_eligibility_gate(program, organization, GateOptions(include_expired=True))
        assert BlockReason.INDUSTRY_MISMATCH not in result.block_reasons


class TestLifecycleRules:
    """Tests for status and deadline rules (only with an explicit now)."""

    def test_inactive_status(self, make_program, organization, now):
        """Test closed program blocked when now is supplied."""
        result = evaluate_eligibility_gate(
            make_program(status="CLOSED"), organization, GateOptions(now=now)
        )
        assert BlockReason.STATUS_INACTIVE in result.block_reasons

    def test_deadline_passed(self, make_program, organization, now):
        """Test past deadline blocked when now is supplied."""
        program = make_program(deadline=now - timedelta(days=1))
        result = evaluate_eligibility_gate(program, organization, GateOptions(now=now))
        assert BlockReason.DEADLINE_PASSED in result.block_reasons

    def test_no_time_rules_without_now(self, make_program, organization, now):
        """Test the gate does not judge time without now."""
        program = make_program(status="CLOSED", deadline=now - timedelta(days=1))
        assert evaluate_eligibility_gate(program, organization).passed is True

    def test_historical_mode_keeps_expired(self, make_program, organization, now):
        """Test include_expired keeps past programs."""
        program = make_program(status="CLOSED", deadline=now - timedelta(days=40))
        options = GateOptions(now=now, include_expired=True)
        assert evaluate_eligibility_gate(program, organization, options).passed is True


class TestRobustness:
    """Tests for malformed input and reason accumulation."""

    def test_malformed_optional_fields_never_raise(self, make_program, make_org):
        """Test out-of-range TRLs and unknown enum strings degrade to unknown."""
        program = make_program(min_trl=0, max_trl=15, target_regions=["ATLANTIS"])
        org = make_org(technology_readiness_level=42, employee_count="LOTS", regions=["ATLANTIS"])
        result = evaluate_eligibility_gate(program, org)
        assert org.employee_count is None
        assert org.regions == []
        assert result.passed is True

    @pytest.mark.parametrize(
        "field, value",
        [
            ("deadline", "상시"),
            ("published_at", "2026-13-45"),
            ("min_trl", "미정"),
            ("budget_amount", "약 10억"),
            ("required_operating_years", ""),
            ("max_support_amount", True),
        ],
    )
    def test_unparseable_program_values_become_unknown(self, make_program, organization, field, value):
        """Test free-text numbers and dates load as unknown instead of raising."""
        program = make_program(**{field: value})
        assert getattr(program, field) is None
        assert evaluate_eligibility_gate(program, organization).passed is True

    def test_unparseable_organization_values_become_unknown(self, make_org, program):
        """Test organization numbers and dates degrade the same way."""
        org = make_org(
            technology_readiness_level="N/A",
            investment_total="비공개",
            business_established_date="모름",
        )
        assert org.technology_readiness_level is None
        assert org.investment_total is None
        assert org.business_established_date is None
        assert evaluate_eligibility_gate(program, org).passed is True

    def test_parseable_strings_still_load(self, make_program):
        """Test numeric and ISO strings keep their values."""
        program = make_program(
            min_trl="4",
            budget_amount="500000000",
            deadline="2026-04-01T18:00:00+09:00",
        )
        assert program.min_trl == 4
        assert program.budget_amount == 500_000_000
        assert program.deadline == datetime(2026, 4, 1, 9, 0, tzinfo=timezone.utc)

    def test_reasons_accumulate_in_rule_order(self, make_program, make_org):
        """Test all rules are evaluated and reasons keep rule order."""
        program = make_program(
            title="AI 지정과제 수요조사",
            target_type=["RESEARCH_INSTITUTE"],
            min_trl=1,
            max_trl=3,
        )
        result = evaluate_eligibility_gate(program, make_org(technology_readiness_level=8))
        assert result.block_reasons == [
            BlockReason.DESIGNATED_PROJECT,
            BlockReason.DEMAND_SURVEY,
            BlockReason.ORG_TYPE_MISMATCH,
            BlockReason.TRL_OUT_OF_RANGE,
        ]

    def test_low_confidence_recommends_review(self, make_program, organization):
        """Test LOW confidence flags manual review without blocking."""
        result = evaluate_eligibility_gate(make_program(eligibility_confidence="LOW"), organization)
        assert result.passed is True
        assert result.manual_review_recommended is True
        assert result.review_notes

    def test_unknown_trl_noted_with_program_range(self, make_program, make_org):
        """Test a TRL range the organization cannot be checked against is noted."""
        program = make_program(min_trl=4, max_trl=6)
        result = evaluate_eligibility_gate(program, make_org(technology_readiness_level=None))
        assert result.passed is True
        assert any("TRL 4-6" in note for note in result.review_notes)

        known = evaluate_eligibility_gate(program, make_org(technology_readiness_level=5))
        assert not any("TRL" in note for note in known.review_notes)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
