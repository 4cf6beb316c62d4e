"""Deterministic relevance scoring of app templates against a chat message."""

from __future__ import annotations

import re
from typing import Iterable, Sequence

from advisor.models import AppTemplate, Confidence, Recommendation

HIGH_CONFIDENCE = 0.85
MEDIUM_CONFIDENCE = 0.6

# Each keyword hit halves the remaining distance to 1.0, each capability or
# use-case hit shaves off a fifth.
_KEYWORD_WEIGHT = 0.5
_FEATURE_WEIGHT = 0.2

_TOKEN_RE = re.compile(r"[a-z0-9]+(?:-[a-z0-9]+)*")
_STOPWORDS = frozenset(
    {
        "a", "an", "and", "app", "apps", "are", "be", "can", "data", "do", "for",
        "from", "help", "i", "in", "is", "it", "like", "make", "map", "maps", "me",
        "my", "of", "on", "or", "our", "some", "that", "the", "to", "use", "want",
        "we", "what", "which", "with", "would", "you",
    }
)


def tokenize(text: str) -> list[str]:
    """Lower-case word tokens of ``text`` in order, stopwords removed."""

    return [token for token in _TOKEN_RE.findall(text.lower()) if token not in _STOPWORDS]


def _stem(token: str) -> str:
    for suffix in ("ing", "ion", "es", "s", "e", "ed"):
        if token.endswith(suffix) and len(token) - len(suffix) >= 3:
            return token[: -len(suffix)]
    return token


def _matches(phrase: str, stems: set[str]) -> bool:
    words = _TOKEN_RE.findall(phrase.lower())
    return any(_stem(word) in stems for word in words if word not in _STOPWORDS)


def confidence_for(score: float) -> Confidence:
    if score >= HIGH_CONFIDENCE:
        return "high"
    if score >= MEDIUM_CONFIDENCE:
        return "medium"
    return "low"


def score_app(app: AppTemplate, tokens: Iterable[str]) -> tuple[float, list[str], list[str]]:
    """Score ``app`` against message tokens.

    Returns ``(score, matched_keywords, matched_features)``; the score is in
    ``[0, 1]`` and zero when nothing matched.
    """

    stems = {_stem(token) for token in tokens}
    keywords = [keyword for keyword in app.keywords if _matches(keyword, stems)]
    features = [
        feature
        for feature in (*app.capabilities, *app.use_cases)
        if _matches(feature, stems)
    ]

    remaining = (1 - _KEYWORD_WEIGHT) ** len(keywords) * (1 - _FEATURE_WEIGHT) ** len(features)
    score = round(1 - remaining, 4)
    return min(max(score, 0.0), 1.0), keywords, features


def _reasoning(app: AppTemplate, keywords: Sequence[str], features: Sequence[str]) -> str:
    terms = list(dict.fromkeys([*keywords, *(f.lower() for f in features)]))[:4]
    return (
        f"{app.name} matches your interest in {', '.join(terms)}. "
        f"It is commonly used for {app.use_cases[0].lower()}."
    )


def rank_apps(
    message: str,
    catalog: Sequence[AppTemplate],
    *,
    limit: int,
) -> list[Recommendation]:
    """Rank catalog entries for ``message``, best first.

    Entries with a zero score are dropped. ``sorted`` is stable, so equal
    scores keep catalog order.
    """

    tokens = tokenize(message)
    scored: list[Recommendation] = []
    for app in catalog:
        score, keywords, features = score_app(app, tokens)
        if score <= 0:
            continue
        scored.append(
            Recommendation(
                app=app,
                score=score,
                reasoning=_reasoning(app, keywords, features),
                confidence=confidence_for(score),
                matched_features=tuple(features),
            )
        )

    scored.sort(key=lambda rec: rec.score, reverse=True)
    return scored[:limit]
