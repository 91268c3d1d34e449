"""Narrow catalog candidates for a title down to a single game.

Precedence once more than one candidate came back:

* location and index: the index counts within the location subset
* location only: every candidate at that venue
* index only: the candidate at that position in the catalog order
* neither: all of them

An unknown location name matches nothing. When the pick is still not
unique, the caller gets the full list back so it can be numbered for the
user exactly as the catalog returned it.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from core.locations import venue_id_for
from core.models import CandidateGame
from core.outcomes import Ambiguous, NotFound, Resolution, Resolved


def disambiguate_games(
    candidates: Sequence[CandidateGame],
    *,
    location: Optional[str] = None,
    choice_index: Optional[int] = None,
) -> Resolution[CandidateGame]:
    games = list(candidates)
    if not games:
        return NotFound(reason="no_candidates")
    if len(games) == 1:
        return Resolved(games[0])

    if location:
        subset = _at_venue(games, location)
        if not subset:
            return NotFound(reason="no_candidates_at_location")
    else:
        subset = games

    if choice_index is not None:
        picked = _pick(subset, choice_index)
        if picked is None:
            return Ambiguous.of(games, subset)
        return Resolved(picked)

    if len(subset) == 1:
        return Resolved(subset[0])
    return Ambiguous.of(games, subset)


def format_game_choices(candidates: Sequence[CandidateGame]) -> str:
    return "\n".join(f"{idx}. {game.title}" for idx, game in enumerate(candidates, start=1))


def _at_venue(games: List[CandidateGame], location: str) -> List[CandidateGame]:
    venue_id = venue_id_for(location)
    if venue_id is None:
        return []
    return [game for game in games if game.venue_id == venue_id]


def _pick(games: List[CandidateGame], choice_index: int) -> Optional[CandidateGame]:
    if 1 <= choice_index <= len(games):
        return games[choice_index - 1]
    return None


__all__ = ["disambiguate_games", "format_game_choices"]
