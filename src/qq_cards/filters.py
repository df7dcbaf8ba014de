"""Candidate-set computation for the favorites and tag filters.

Everything here is a pure function of its arguments.
"""
from typing import Iterable, Mapping, Optional

from qq_cards.models import FilterState


def _tagged(tags: Iterable[str], tag_index: Mapping[str, set[int]]) -> set[int]:
    ids: set[int] = set()
    for tag in tags:
        ids |= tag_index.get(tag, set())
    return ids


def compute_candidate_set(
    corpus_size: int,
    hidden_ids: set[int],
    favorite_ids: set[int],
    favorites_filter: FilterState,
    tag_filters: Mapping[str, FilterState],
    tag_index: Mapping[str, set[int]],
    all_ids: Optional[set[int]] = None,
) -> set[int]:
    """Ids eligible for a draw under the active filters.

    The universe is ``all_ids`` when given, otherwise ``1..corpus_size``.
    Hidden ids are always removed. Included tags are OR-ed together, as are
    excluded tags.
    """
    if all_ids is not None:
        candidates = set(all_ids)
    else:
        candidates = set(range(1, corpus_size + 1))
    candidates -= hidden_ids

    if favorites_filter is FilterState.INCLUDE:
        candidates &= favorite_ids
    elif favorites_filter is FilterState.EXCLUDE:
        candidates -= favorite_ids

    included = [tag for tag, state in tag_filters.items() if state is FilterState.INCLUDE]
    excluded = [tag for tag, state in tag_filters.items() if state is FilterState.EXCLUDE]
    if included:
        candidates &= _tagged(included, tag_index)
    if excluded:
        candidates -= _tagged(excluded, tag_index)
    return candidates


def compute_filtered_total(
    corpus_size: int,
    hidden_ids: set[int],
    favorite_ids: set[int],
    favorites_filter: FilterState,
    tag_filters: Mapping[str, FilterState],
    tag_index: Mapping[str, set[int]],
    all_ids: Optional[set[int]] = None,
) -> int:
    return len(compute_candidate_set(
        corpus_size, hidden_ids, favorite_ids, favorites_filter, tag_filters, tag_index, all_ids
    ))


def compute_completed_for_filter(completed_ids: set[int], candidate_set: set[int]) -> int:
    return len(completed_ids & candidate_set)
