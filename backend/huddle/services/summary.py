"""Thematic summary of the latest statement per participant.

Functions:
    coerce_summary(raw, items): Map an untrusted remote JSON object onto :class:`Summary`.
    heuristic_summary(items, embed): Deterministic seed-based clustering used offline.

Classes:
    SummaryService: Remote-first summarisation with local fallback; saves the result on
        the run and broadcasts it as ``summary``.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Optional, Sequence

from huddle.models import Run
from huddle.schemas import AgendaItem, Contradiction, Outlier, Summary, SummaryStats, Theme
from huddle.services.broadcast import BroadcastBus
from huddle.services.embeddings import hash_embed
from huddle.services.openai_client import OpenAIService
from huddle.services.run_state import latest_statements, load_run_state
from huddle.utils.vectors import cosine

_LOGGER = logging.getLogger(__name__)

MAX_THEMES = 6
MAX_CONTRADICTIONS = 3
MAX_OUTLIERS = 2
MAX_AGENDA = 4
MAX_EXAMPLES = 3
HEURISTIC_SEEDS = 3
AGENDA_MEMBER_LIMIT = 4

_LABEL_KEYS = ("label", "title", "name", "theme")
_WHY_KEYS = ("why", "rationale", "reason", "explanation", "description")
_EXPLAIN_KEYS = ("explain", "explanation", "why", "reason")
_MEMBER_KEYS = ("members", "participants", "participant_ids", "ids")
_EXAMPLE_KEYS = ("examples", "quotes", "example_quotes")


def _first(entry: dict[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        if key in entry and entry[key] is not None:
            return entry[key]
    return None


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _as_text(value: Any) -> Optional[str]:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str):
        return None
    text = value.strip()
    return text or None


def _as_id(value: Any, known: set[int]) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        candidate = value
    elif isinstance(value, float) and value.is_integer():
        candidate = int(value)
    elif isinstance(value, str) and value.strip().lstrip("#").isdigit():
        candidate = int(value.strip().lstrip("#"))
    else:
        return None
    if known and candidate not in known:
        return None
    return candidate


def _as_ids(value: Any, known: set[int]) -> list[int]:
    ids: list[int] = []
    for item in _as_list(value):
        candidate = _as_id(item, known)
        if candidate is not None and candidate not in ids:
            ids.append(candidate)
    return ids


def _coerce_themes(value: Any, known: set[int]) -> list[Theme]:
    themes: list[Theme] = []
    for index, entry in enumerate(_as_list(value)):
        if not isinstance(entry, dict):
            continue
        members = _as_ids(_first(entry, _MEMBER_KEYS), known)
        if not members:
            continue
        examples = [text for text in (_as_text(item) for item in _as_list(_first(entry, _EXAMPLE_KEYS))) if text]
        themes.append(
            Theme(
                label=_as_text(_first(entry, _LABEL_KEYS)) or f"Theme {index + 1}",
                why=_as_text(_first(entry, _WHY_KEYS)),
                members=members,
                examples=examples[:MAX_EXAMPLES],
            )
        )
    return themes[:MAX_THEMES]


def _coerce_contradictions(value: Any, known: set[int]) -> list[Contradiction]:
    contradictions: list[Contradiction] = []
    for entry in _as_list(value):
        if not isinstance(entry, dict):
            continue
        pair = _as_ids(_first(entry, ("pair", "members", "participants")), known)
        a = _as_id(_first(entry, ("a", "left", "first")), known)
        b = _as_id(_first(entry, ("b", "right", "second")), known)
        if (a is None or b is None) and len(pair) >= 2:
            a, b = pair[0], pair[1]
        if a is None or b is None or a == b:
            continue
        contradictions.append(Contradiction(a=a, b=b, explain=_as_text(_first(entry, _EXPLAIN_KEYS)) or ""))
    return contradictions[:MAX_CONTRADICTIONS]


def _coerce_outliers(value: Any, known: set[int]) -> list[Outlier]:
    outliers: list[Outlier] = []
    for entry in _as_list(value):
        if isinstance(entry, dict):
            participant_id = _as_id(
                _first(entry, ("participant_id", "participantId", "id", "member")),
                known,
            )
            explain = _as_text(_first(entry, _EXPLAIN_KEYS)) or ""
        else:
            participant_id = _as_id(entry, known)
            explain = ""
        if participant_id is None:
            continue
        outliers.append(Outlier(participant_id=participant_id, explain=explain))
    return outliers[:MAX_OUTLIERS]


def _coerce_agenda(value: Any, known: set[int]) -> list[AgendaItem]:
    agenda: list[AgendaItem] = []
    for entry in _as_list(value):
        if isinstance(entry, dict):
            title = _as_text(_first(entry, ("title", "label", "item", "name")))
            why = _as_text(_first(entry, _WHY_KEYS))
            members = _as_ids(_first(entry, _MEMBER_KEYS), known)
        else:
            title, why, members = _as_text(entry), None, []
        if not title:
            continue
        agenda.append(AgendaItem(title=title, why=why, members=members))
    return agenda[:MAX_AGENDA]


def coerce_summary(raw: Any, items: Sequence[dict[str, Any]]) -> Optional[Summary]:
    """Return a valid :class:`Summary`, or ``None`` when nothing usable survives."""

    if not isinstance(raw, dict):
        return None
    known = {int(item["id"]) for item in items}
    themes = _coerce_themes(raw.get("themes"), known)
    if not themes:
        return None
    return Summary(
        themes=themes,
        contradictions=_coerce_contradictions(raw.get("contradictions"), known),
        outliers=_coerce_outliers(raw.get("outliers"), known),
        agenda=_coerce_agenda(raw.get("agenda"), known),
        tone=_as_text(raw.get("tone")),
        stats=SummaryStats(count=len(items)),
        source="remote",
    )


def heuristic_summary(
    items: Sequence[dict[str, Any]],
    embed: Callable[[str], Sequence[float]] = hash_embed,
) -> Summary:
    """Seed up to three clusters with the first items and assign the rest greedily.

    The outlier is the item whose best similarity to a seed is lowest; ties keep the
    earlier item. When every item is its own seed, each is scored against the other
    seeds only.
    """

    vectors = [embed(str(item["text"])) for item in items]
    seeds = vectors[:HEURISTIC_SEEDS]
    all_seeds = len(items) <= HEURISTIC_SEEDS
    clusters: list[list[int]] = [[] for _ in seeds]

    best_scores: list[float] = []
    for position, vector in enumerate(vectors):
        best_index, best_score = 0, float("-inf")
        for seed_index, seed in enumerate(seeds):
            score = cosine(vector, seed)
            if score > best_score:
                best_index, best_score = seed_index, score
        clusters[best_index].append(position)

        if all_seeds:
            foreign = [cosine(vector, seed) for seed_index, seed in enumerate(seeds) if seed_index != position]
            best_scores.append(max(foreign) if foreign else best_score)
        else:
            best_scores.append(best_score)

    themes: list[Theme] = []
    agenda: list[AgendaItem] = []
    for seed_index, positions in enumerate(clusters):
        if not positions:
            continue
        members = [int(items[position]["id"]) for position in positions]
        label = f"Theme {seed_index + 1}"
        themes.append(
            Theme(
                label=label,
                members=members,
                examples=[str(items[position]["text"]) for position in positions[:2]],
            )
        )
        if len(members) >= 2:
            agenda.append(
                AgendaItem(
                    title=f"Clarify {label.lower()}",
                    why="Several statements point the same way; agree what they share.",
                    members=members[:AGENDA_MEMBER_LIMIT],
                )
            )

    outliers: list[Outlier] = []
    if best_scores:
        lowest = min(range(len(best_scores)), key=lambda position: (best_scores[position], position))
        outliers.append(
            Outlier(participant_id=int(items[lowest]["id"]), explain="Least similar to any theme")
        )

    return Summary(
        themes=themes,
        contradictions=[],
        outliers=outliers,
        agenda=agenda[:MAX_AGENDA],
        tone=None,
        stats=SummaryStats(count=len(items)),
        source="heuristic",
    )


class SummaryService:
    def __init__(self, bus: BroadcastBus, openai_service: Optional[OpenAIService] = None) -> None:
        self._bus = bus
        self._openai = openai_service or OpenAIService()

    async def summarise_items(self, items: Sequence[dict[str, Any]]) -> Summary:
        if not self._openai.is_configured:
            return heuristic_summary(items)
        try:
            raw = await self._openai.cluster_statements(items)
        except Exception as exc:
            _LOGGER.warning("Summary service failed, using heuristic clustering: %s", exc)
            return heuristic_summary(items)
        summary = coerce_summary(raw, items)
        if summary is None:
            _LOGGER.warning("Summary service returned no usable themes, using heuristic clustering")
            return heuristic_summary(items)
        return summary

    async def summarise(self, session, run_id: int) -> Summary:
        state = await load_run_state(session, run_id)
        if not state.submissions:
            raise ValueError("No submissions")

        summary = await self.summarise_items(latest_statements(state))

        run = await session.get(Run, run_id)
        if run is not None:
            run.summary_json = summary.model_dump_json()
            session.add(run)
            await session.commit()
        else:
            _LOGGER.warning("Run %s disappeared before summary could be saved", run_id)

        self._bus.publish("summary", summary.model_dump())
        return summary
