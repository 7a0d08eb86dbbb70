#!/usr/bin/env python
"""
Run the matching engine for one organization against a program file.

Usage:
    python scripts/run_matching.py --organization org.json --programs programs.json
    python scripts/run_matching.py --organization org.json --programs programs.json \\
        --now 2026-03-01T09:00:00+09:00 --include-expired --limit 10 --collapse-duplicates \\
        --duplicates --show-blocked --verbose

Input:
    - org.json: one organization object
    - programs.json: a list of program objects

Output:
    - Ranked matches with score breakdown and explanation
    - Optionally the duplicate groups found in the program file
    - Optionally the programs blocked by the eligibility gate and why
"""
import argparse
import json
import sys
from datetime import datetime, timezone
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from fundmatch.core.constants import BLOCK_REASON_DESCRIPTIONS, SEPARATOR_LINE, SEPARATOR_LINE_THIN
from fundmatch.core.exceptions import FundMatchError
from fundmatch.core.logging import setup_logging
from fundmatch.dedup import detect_duplicates
from fundmatch.matching.eligibility_gate import GateOptions, evaluate_eligibility_gate
from fundmatch.matching.engine import MatchOptions, generate_matches
from fundmatch.models import Organization, Program
from fundmatch.settings import settings


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Match an organization against funding programs")
    parser.add_argument("--organization", required=True, type=Path, help="Organization JSON file")
    parser.add_argument("--programs", required=True, type=Path, help="Programs JSON file (list)")
    parser.add_argument("--now", help="Reference time (ISO 8601), default: current UTC time")
    parser.add_argument("--include-expired", action="store_true", help="Historical matching mode")
    parser.add_argument("--limit", type=int, default=None, help="Number of matches to show")
    parser.add_argument("--minimum-score", type=float, default=None, help="Minimum score")
    parser.add_argument(
        "--collapse-duplicates", action="store_true", help="Match only one program per duplicate group"
    )
    parser.add_argument("--duplicates", action="store_true", help="Also print duplicate groups")
    parser.add_argument("--show-blocked", action="store_true", help="Also print gate block reasons")
    parser.add_argument("--verbose", action="store_true", help="Debug logging for this run")
    return parser.parse_args(argv)


def load_json(path: Path):
    with path.open(encoding="utf-8") as f:
        return json.load(f)


def main(argv=None):
    """Run matching and print ranked results."""
    args = parse_args(argv)
    setup_logging(settings, level="DEBUG" if args.verbose else None)

    organization = Organization.model_validate(load_json(args.organization))
    programs = [Program.model_validate(item) for item in load_json(args.programs)]
    now = datetime.fromisoformat(args.now) if args.now else datetime.now(timezone.utc)

    options = MatchOptions(
        limit=args.limit,
        minimum_score=args.minimum_score,
        include_expired=args.include_expired,
        deduplicate=args.collapse_duplicates,
    )

    try:
        matches = generate_matches(organization, programs, now=now, options=options)
    except FundMatchError as e:
        print(f"Matching failed: {e.message}")
        return 1

    print(SEPARATOR_LINE)
    print(f"MATCHES: {organization.name or organization.id}")
    print(SEPARATOR_LINE)
    print(f"  공고 수:         {len(programs)}")
    print(f"  추천 수:         {len(matches)}")
    print(f"  기준 시각:       {now.isoformat()}")
    print()

    for rank, match in enumerate(matches, start=1):
        print(f"{rank}. {match.program_title}  [{match.score:.1f}]")
        print(SEPARATOR_LINE_THIN)
        for name, points in match.breakdown.factors().items():
            maximum = match.breakdown.maxima.get(name, 0)
            print(f"   {name:<20} {points:>5.1f} / {maximum}")
        if match.explanation:
            print()
            print(f"   {match.explanation.summary}")
            for reason in match.explanation.reasons:
                print(f"   + {reason}")
            for caution in match.explanation.cautions or []:
                print(f"   ! {caution}")
            print(f"   > {match.explanation.recommendation}")
        if match.manual_review_recommended:
            print("   ⚠️  공고 원문 확인 권장")
        print()

    if args.show_blocked:
        gate_options = GateOptions(now=now, include_expired=args.include_expired)
        blocked = [
            (program, evaluate_eligibility_gate(program, organization, gate_options)) for program in programs
        ]
        blocked = [(program, result) for program, result in blocked if not result.passed]
        print(SEPARATOR_LINE)
        print(f"차단 공고: {len(blocked)}개")
        print(SEPARATOR_LINE)
        for program, result in blocked:
            print(f"  {program.title} ({program.id})")
            for reason in result.block_reasons:
                print(f"   x {BLOCK_REASON_DESCRIPTIONS.get(reason.value, reason.value)}")
        print()

    if args.duplicates:
        try:
            groups = detect_duplicates(programs, enable_external_id_match=True)
        except FundMatchError as e:
            print(f"Duplicate detection failed: {e.message}")
            return 1
        print(SEPARATOR_LINE)
        print(f"중복 공고: {len(groups)}개 그룹")
        print(SEPARATOR_LINE)
        for group in groups:
            others = [pid for pid in group.program_ids if pid != group.representative_id]
            print(
                f"  {group.representative_id} <- {', '.join(others)} "
                f"({', '.join(group.match_reasons)}, {group.max_title_similarity:.2f})"
            )

    return 0


if __name__ == "__main__":
    sys.exit(main())
