"""Duplicate announcement detection.

The same call is often published several times (agency portal, ministry
portal, re-announcements with a year prefix or a "(재공고)" suffix). This
module groups such programs with a union-find over three kinds of
evidence: identical content hash, identical normalized external id (when
enabled) and normalized title similarity above a threshold.

Title evidence never links two different editions of a call: when both
titles name a year ("2025년도") or a round ("1차"), those must agree.

The grouping is order-independent: programs are processed sorted by id
and each pair is compared once, so any permutation of the input yields
the same groups. Program ids must be unique.
"""

import re
import unicodedata
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Set, Tuple

from rapidfuzz import fuzz, process

from fundmatch.core.exceptions import ContractViolationError
from fundmatch.core.logging import get_logger
from fundmatch.models import Program, ProgramStatus
from fundmatch.settings import settings

logger = get_logger("dedup")

# Leading "2026년", "2026년도", "2026 년도" prefixes
YEAR_PREFIX_PATTERN = re.compile(r"^\s*[\[\(]?\s*\d{4}\s*년도?\s*[\]\)]?\s*")

# Trailing parenthetical such as "(재공고)", "(2차)", "[연장]"
TRAILING_PAREN_PATTERN = re.compile(r"\s*[\(\[][^\(\)\[\]]*[\)\]]\s*$")

NON_WORD_PATTERN = re.compile(r"[\W_]+")

# Edition markers: "2025년", "2차" (but not "2차전지")
EDITION_YEAR_PATTERN = re.compile(r"(\d{4})\s*년")
EDITION_ROUND_PATTERN = re.compile(r"(\d{1,2})\s*차(?![가-힣A-Za-z0-9])")

# Fields counted for representative selection
COMPLETENESS_FIELDS = (
    "description",
    "agency",
    "ministry",
    "deadline",
    "application_start",
    "budget_amount",
    "max_support_amount",
    "keywords",
    "category",
    "target_type",
    "min_trl",
    "max_trl",
)

REASON_CONTENT_HASH = "content_hash"
REASON_EXTERNAL_ID = "external_id"
REASON_TITLE = "title_similarity"


@dataclass
class DuplicateGroup:
    """Programs considered the same underlying announcement."""

    representative_id: str
    program_ids: List[str]  # Sorted, representative included
    max_title_similarity: float  # 0.0 - 1.0
    shared_external_id: Optional[str] = None
    match_reasons: List[str] = field(default_factory=list)


def normalize_title(title: str) -> str:
    """Normalize a program title for comparison.

    Removes:
    - Leading year (2026년 / 2026년도)
    - One trailing parenthetical
    - Whitespace and punctuation

    Args:
        title: Original program title

    Returns:
        Normalized title (lowercase, NFKC)
    """
    if not title:
        return ""

    title = unicodedata.normalize("NFKC", title)
    title = YEAR_PREFIX_PATTERN.sub("", title)
    stripped = TRAILING_PAREN_PATTERN.sub("", title)
    # Keep titles that are nothing but a parenthetical
    if NON_WORD_PATTERN.sub("", stripped):
        title = stripped
    return NON_WORD_PATTERN.sub("", title).lower()


def normalize_external_id(external_id: Optional[str]) -> Optional[str]:
    if not external_id:
        return None
    normalized = NON_WORD_PATTERN.sub("", unicodedata.normalize("NFKC", external_id)).lower()
    return normalized or None


def title_similarity(left: str, right: str, threshold: float = 0.0) -> float:
    """Indel similarity (0.0 - 1.0) of two normalized titles.

    Returns 0.0 when the pair cannot reach the threshold.
    """
    if not left or not right:
        return 0.0
    if left == right:
        return 1.0
    return fuzz.ratio(left, right, score_cutoff=_cutoff(threshold)) / 100


def _cutoff(threshold: float) -> float:
    # rapidfuzz scores are percentages; 0.9 * 100 is not exactly 90.0
    return round(threshold * 100, 9)


def announcement_edition(title: str) -> Tuple[Optional[int], Optional[int]]:
    """Year and round named in a title, e.g. (2026, 2) for "2026년도 ... (2차)"."""
    text = unicodedata.normalize("NFKC", title or "")
    year = EDITION_YEAR_PATTERN.search(text)
    round_marker = EDITION_ROUND_PATTERN.search(text)
    return (
        int(year.group(1)) if year else None,
        int(round_marker.group(1)) if round_marker else None,
    )


def _editions_conflict(left: Tuple, right: Tuple) -> bool:
    return any(a is not None and b is not None and a != b for a, b in zip(left, right))


class _UnionFind:
    def __init__(self, items: List[str]):
        self.parent: Dict[str, str] = {item: item for item in items}

    def find(self, item: str) -> str:
        root = item
        while self.parent[root] != root:
            root = self.parent[root]
        while self.parent[item] != root:
            self.parent[item], item = root, self.parent[item]
        return root

    def union(self, left: str, right: str) -> None:
        left_root, right_root = self.find(left), self.find(right)
        if left_root == right_root:
            return
        # Smaller id becomes the root
        if right_root < left_root:
            left_root, right_root = right_root, left_root
        self.parent[right_root] = left_root


def _program_completeness(program: Program) -> int:
    filled = 0
    for name in COMPLETENESS_FIELDS:
        value = getattr(program, name)
        if value is None:
            continue
        if isinstance(value, (str, list)) and not value:
            continue
        filled += 1
    return filled


def _representative_key(program: Program) -> Tuple:
    published: Optional[datetime] = program.published_at
    return (
        program.status is not ProgramStatus.ACTIVE,
        -_program_completeness(program),
        program.deadline is None,
        program.budget_amount is None,
        published is None,
        -published.timestamp() if published is not None else 0.0,
        program.id,
    )


def detect_duplicates(
    programs: List[Program],
    *,
    enable_external_id_match: bool = False,
    similarity_threshold: Optional[float] = None,
) -> List[DuplicateGroup]:
    """Group likely duplicate programs.

    Args:
        programs: Candidate programs
        enable_external_id_match: Also group programs sharing a normalized external id
        similarity_threshold: Title similarity for duplicates (default from settings)

    Returns:
        Groups of two or more programs, sorted by representative id

    Raises:
        ContractViolationError: two programs share an id
    """
    threshold = similarity_threshold
    if threshold is None:
        threshold = settings.duplicate_similarity_threshold

    seen: Set[str] = set()
    for program in programs:
        if program.id in seen:
            raise ContractViolationError(
                "Program ids must be unique for duplicate detection",
                program_id=program.id,
            )
        seen.add(program.id)

    ordered = sorted(programs, key=lambda p: p.id)
    if len(ordered) < 2:
        return []

    ids = [program.id for program in ordered]
    union_find = _UnionFind(ids)
    normalized = {program.id: normalize_title(program.title) for program in ordered}
    external_ids = {program.id: normalize_external_id(program.external_id) for program in ordered}
    editions = {program.id: announcement_edition(program.title) for program in ordered}

    # Evidence per linked pair: (left_id, right_id) -> (similarity, reasons)
    evidence: List[Tuple[str, str, float, Set[str]]] = []

    # Exact keys first (linear)
    by_hash: Dict[str, str] = {}
    by_external_id: Dict[str, str] = {}
    for program in ordered:
        if program.content_hash:
            first = by_hash.setdefault(program.content_hash, program.id)
            if first != program.id:
                union_find.union(first, program.id)
                evidence.append((first, program.id, 0.0, {REASON_CONTENT_HASH}))
        external_id = external_ids[program.id]
        if enable_external_id_match and external_id:
            first = by_external_id.setdefault(external_id, program.id)
            if first != program.id:
                union_find.union(first, program.id)
                evidence.append((first, program.id, 0.0, {REASON_EXTERNAL_ID}))

    # Pairwise title similarity, each pair once (left < right)
    titled = [(program_id, normalized[program_id]) for program_id in ids if normalized[program_id]]
    titles = [title for _, title in titled]
    cutoff = _cutoff(threshold)
    comparisons = 0
    for i, (left, left_title) in enumerate(titled):
        candidates = titles[i + 1:]
        comparisons += len(candidates)
        hits = process.extract(
            left_title,
            candidates,
            scorer=fuzz.ratio,
            score_cutoff=cutoff,
            limit=None,
        )
        for _, similarity, offset in hits:
            right = titled[i + 1 + offset][0]
            if _editions_conflict(editions[left], editions[right]):
                continue
            union_find.union(left, right)
            evidence.append((left, right, similarity / 100, {REASON_TITLE}))

    members: Dict[str, List[str]] = {}
    for program_id in ids:
        members.setdefault(union_find.find(program_id), []).append(program_id)

    by_id = {program.id: program for program in ordered}
    groups: List[DuplicateGroup] = []
    for root, group_ids in members.items():
        if len(group_ids) < 2:
            continue

        reasons: Set[str] = set()
        max_similarity = 0.0
        for left, right, similarity, pair_reasons in evidence:
            if union_find.find(left) == root:
                reasons |= pair_reasons
                max_similarity = max(max_similarity, similarity)

        shared_ids = {external_ids[pid] for pid in group_ids if external_ids[pid]}
        shared_external_id = None
        if REASON_EXTERNAL_ID in reasons:
            # Smallest id that more than one member carries
            counts = [external_ids[pid] for pid in group_ids]
            shared = sorted(eid for eid in shared_ids if counts.count(eid) > 1)
            shared_external_id = shared[0] if shared else None

        representative = min((by_id[pid] for pid in group_ids), key=_representative_key)
        groups.append(
            DuplicateGroup(
                representative_id=representative.id,
                program_ids=sorted(group_ids),
                max_title_similarity=round(max_similarity, 3),
                shared_external_id=shared_external_id,
                match_reasons=sorted(reasons),
            )
        )

    groups.sort(key=lambda group: group.representative_id)
    logger.info(
        "Duplicate detection: %d programs, %d comparisons, %d groups",
        len(ordered),
        comparisons,
        len(groups),
    )
    return groups


def collapse_duplicates(
    programs: List[Program],
    *,
    enable_external_id_match: bool = False,
    similarity_threshold: Optional[float] = None,
) -> List[Program]:
    """Keep one representative per duplicate group, preserving input order."""
    groups = detect_duplicates(
        programs,
        enable_external_id_match=enable_external_id_match,
        similarity_threshold=similarity_threshold,
    )
    dropped: Set[str] = set()
    for group in groups:
        dropped.update(pid for pid in group.program_ids if pid != group.representative_id)

    return [program for program in programs if program.id not in dropped]
