"""
Product relevance scoring

Multi-field keyword matching across product names, brands, categories and
descriptions. Everything here is pure, so it can run on every keystroke;
debouncing belongs to the caller.
"""

from dataclasses import dataclass, field
from typing import Iterable

from ..models.product import Product

# Field weights, most important first
FIELD_WEIGHTS = {
    "name": 3.0,
    "brand": 2.5,
    "categories": 2.0,
    "short_description": 1.5,
    "description": 1.0,
}

# Multiplier applied when the whole query appears verbatim in a field
EXACT_MATCH_BOOST = 2.0
EXACT_MATCH_FIELDS = ("name", "brand", "categories")

MAX_SCORE = 10.0
DEFAULT_MIN_SCORE = 0.1


@dataclass
class ScoreResult:
    score: float
    matched_fields: set[str] = field(default_factory=set)
    matched_keywords: set[str] = field(default_factory=set)


@dataclass
class SearchResult:
    product: Product
    score: float
    matched_fields: set[str] = field(default_factory=set)
    matched_keywords: set[str] = field(default_factory=set)


def extract_keywords(term: str) -> list[str]:
    return [keyword for keyword in term.split() if keyword]


def _searchable_fields(product: Product, case_sensitive: bool) -> dict[str, list[str]]:
    def norm(value: str) -> str:
        return value if case_sensitive else value.lower()

    return {
        "name": [norm(product.name)],
        "brand": [norm(product.brand)] if product.brand else [],
        "categories": [norm(category) for category in product.categories],
        "short_description": [norm(product.short_description)],
        "description": [norm(product.description)],
    }


def score(
    query: str,
    product: Product,
    case_sensitive: bool = False,
    boost_exact_matches: bool = True,
) -> ScoreResult:
    """
    Score one product against a free-text query.

    A blank query scores every product 1 so that search acts as a
    pass-through. Otherwise the weighted field hits of each keyword are
    summed, averaged over the keyword count and capped at MAX_SCORE.
    """
    if not query.strip():
        return ScoreResult(score=1.0)

    full_term = query.strip() if case_sensitive else query.strip().lower()
    keywords = extract_keywords(full_term)
    fields = _searchable_fields(product, case_sensitive)

    total = 0.0
    matched_fields: set[str] = set()
    matched_keywords: set[str] = set()

    if boost_exact_matches:
        for name in EXACT_MATCH_FIELDS:
            if any(full_term in value for value in fields[name]):
                total += EXACT_MATCH_BOOST * FIELD_WEIGHTS[name]
                matched_fields.add(name)
                matched_keywords.add(full_term)

    for keyword in keywords:
        keyword_score = 0.0
        for name, weight in FIELD_WEIGHTS.items():
            if any(keyword in value for value in fields[name]):
                keyword_score += weight
                matched_fields.add(name)

        if keyword_score > 0:
            total += keyword_score
            matched_keywords.add(keyword)

    normalized = total / len(keywords) if keywords else 0.0

    return ScoreResult(
        score=min(normalized, MAX_SCORE),
        matched_fields=matched_fields,
        matched_keywords=matched_keywords,
    )


def search(
    products: Iterable[Product],
    query: str,
    min_score: float = DEFAULT_MIN_SCORE,
    case_sensitive: bool = False,
    boost_exact_matches: bool = True,
) -> list[SearchResult]:
    """Score, filter below `min_score` and sort by descending score (stable)"""
    results = []
    for product in products:
        result = score(query, product, case_sensitive, boost_exact_matches)
        if result.score >= min_score:
            results.append(
                SearchResult(
                    product=product,
                    score=result.score,
                    matched_fields=result.matched_fields,
                    matched_keywords=result.matched_keywords,
                )
            )

    results.sort(key=lambda r: r.score, reverse=True)
    return results


def suggest(products: Iterable[Product], term: str, max_suggestions: int = 5) -> list[str]:
    """Product names, brands and categories containing the term"""
    normalized = term.strip().lower()
    if len(normalized) < 2:
        return []

    suggestions: dict[str, None] = {}
    for product in products:
        candidates = [product.name, product.brand or "", *product.categories]
        for candidate in candidates:
            if candidate and normalized in candidate.lower():
                suggestions.setdefault(candidate, None)

        if len(suggestions) >= max_suggestions:
            break

    return list(suggestions)[:max_suggestions]
