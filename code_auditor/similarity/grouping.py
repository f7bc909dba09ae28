"""
Duplicate Grouping

Combines:
- Layer 1: Exact matching (fingerprint buckets, verified by normalized text)
- Layer 2: Near-duplicate matching (token-sequence similarity cliques),
  only when the similarity threshold is below 1.0

Layer 2 works on units: each Layer 1 group takes part as one unit (its
members share a token sequence), every other fragment as a unit of its own.
A near fragment can therefore extend an exact group, which then becomes a
near-duplicate group scored by its weakest pair.

Every group is a clique: each member meets the threshold against every
other member, not just against its neighbour. Fragments are visited in
ascending (file, line) order, so grouping is deterministic.
"""

from __future__ import annotations

import hashlib
import logging
from collections import defaultdict
from typing import Dict, List, Sequence, Set, Tuple

from .config import SimilarityConfig
from .structural import calculate_token_similarity, similarity_upper_bound, tokenize_code
from ..constants import FingerprintDefaults
from ..models.duplicate_group import DuplicateGroup, SimilarityMethod
from ..models.fragment import Fragment

logger = logging.getLogger(__name__)

Unit = List[int]


def group_fragments(
    fragments: Sequence[Fragment],
    similarity_threshold: float = 1.0,
    keep_whitespace: bool = False,
) -> List[DuplicateGroup]:
    """
    Group fragments of one kind into duplicate cliques.

    Args:
        fragments: Candidate fragments (any order)
        similarity_threshold: Minimum pairwise similarity; 1.0 means exact only
        keep_whitespace: Whether whitespace runs count as tokens in Layer 2

    Returns:
        Groups ordered by their first member's (file, line)
    """
    ordered = sorted(fragments, key=lambda fragment: fragment.sort_key)

    exact_units = _group_by_exact_fingerprint(ordered)
    if SimilarityConfig.DEBUG:
        logger.debug("Layer 1: %d exact groups from %d fragments", len(exact_units), len(ordered))

    if similarity_threshold >= 1.0:
        groups = [
            _create_duplicate_group([ordered[i] for i in unit], 1.0, SimilarityMethod.EXACT_MATCH)
            for unit in exact_units
        ]
    else:
        grouped = {index for unit in exact_units for index in unit}
        units = exact_units + [[index] for index in range(len(ordered)) if index not in grouped]
        units.sort(key=lambda unit: ordered[unit[0]].sort_key)
        groups = _group_by_token_similarity(ordered, units, similarity_threshold, keep_whitespace)
        if SimilarityConfig.DEBUG:
            logger.debug("Layer 2: %d groups from %d units", len(groups), len(units))

    groups.sort(key=lambda group: group.fragments[0].sort_key)
    return groups


def _group_by_exact_fingerprint(fragments: List[Fragment]) -> List[Unit]:
    """Layer 1: bucket by fingerprint, then split buckets by exact normalized text."""
    buckets: Dict[str, List[int]] = defaultdict(list)
    for index, fragment in enumerate(fragments):
        buckets[fragment.fingerprint].append(index)

    units: List[Unit] = []
    for indices in buckets.values():
        if len(indices) < 2:
            continue
        # Fingerprint collisions are resolved by comparing the text itself
        by_text: Dict[str, List[int]] = defaultdict(list)
        for index in indices:
            by_text[fragments[index].normalized_text].append(index)

        for candidates in by_text.values():
            members: Unit = []
            for index in candidates:
                if not any(fragments[index].overlaps(fragments[m]) for m in members):
                    members.append(index)
            if len(members) >= 2:
                units.append(members)
    return units


def _group_by_token_similarity(
    fragments: List[Fragment],
    units: List[Unit],
    threshold: float,
    keep_whitespace: bool,
) -> List[DuplicateGroup]:
    """Layer 2: grow cliques of units greedily from each unused seed, in (file, line) order.

    An exact unit that attracts no near candidate is reported as it was.
    """
    tokens = [tokenize_code(fragments[unit[0]].normalized_text, keep_whitespace) for unit in units]
    cache: Dict[Tuple[int, int], float] = {}

    def similarity(i: int, j: int) -> float:
        key = (i, j) if i < j else (j, i)
        if key not in cache:
            if similarity_upper_bound(len(tokens[i]), len(tokens[j])) < threshold:
                cache[key] = 0.0
            else:
                cache[key] = calculate_token_similarity(tokens[i], tokens[j])
        return cache[key]

    def overlaps(candidate: int, members: List[int]) -> bool:
        return any(
            fragments[c].overlaps(fragments[m])
            for c in units[candidate]
            for member in members
            for m in units[member]
        )

    groups: List[DuplicateGroup] = []
    used: Set[int] = set()
    for seed in range(len(units)):
        if seed in used:
            continue
        members = [seed]
        weakest = 1.0
        for candidate in range(seed + 1, len(units)):
            if candidate in used or overlaps(candidate, members):
                continue
            scores = []
            for member in members:
                score = similarity(member, candidate)
                if score < threshold:
                    break
                scores.append(score)
            else:
                members.append(candidate)
                weakest = min([weakest] + scores)

        if len(members) >= 2:
            used.update(members)
            groups.append(_create_duplicate_group(
                [fragments[i] for member in members for i in units[member]],
                round(weakest, 4),
                SimilarityMethod.TOKEN_SEQUENCE,
            ))
        elif len(units[seed]) >= 2:
            used.add(seed)
            groups.append(_create_duplicate_group(
                [fragments[i] for i in units[seed]], 1.0, SimilarityMethod.EXACT_MATCH,
            ))
    return groups


def _create_duplicate_group(
    members: List[Fragment],
    similarity: float,
    method: SimilarityMethod,
) -> DuplicateGroup:
    members = sorted(members, key=lambda fragment: fragment.sort_key)
    identity = '|'.join(f"{fragment.file_path}:{fragment.span[0]}" for fragment in members)
    digest = hashlib.sha256(identity.encode('utf-8')).hexdigest()
    return DuplicateGroup(
        group_id=f"dg_{digest[:FingerprintDefaults.GROUP_ID_WIDTH]}",
        kind=members[0].kind,
        fragments=members,
        similarity=similarity,
        similarity_method=method,
    )
