# roamly/llm.py
import json
from typing import Any, Dict, List, Optional

from openai import OpenAI

from roamly.config import get_logger, get_settings

logger = get_logger(__name__)

_settings = get_settings()
if _settings.openai_api_key:
    _client: Optional[OpenAI] = OpenAI(api_key=_settings.openai_api_key, timeout=_settings.fetch_timeout)
else:  # pragma: no cover - exercised indirectly in tests without API key
    _client = None
    logger.info("OPENAI_API_KEY not set; venue summaries use the heuristic template")

SUMMARY_SYSTEM = """You write short venue blurbs for a group trip planner.
Use ONLY the facts and web snippets provided.
Respond ONLY in JSON: {"summary": "..."}
- One or two sentences, at most 280 characters.
- Do not invent prices, awards or opening hours.
"""

SUMMARY_TEMPLATE = """Venue: {title}
Category: {category}
Known facts: {facts}

Web snippets:
{snippets}
"""

_VENUE_LABELS = {
    "fine_dining": "fine-dining restaurant",
    "fast_casual": "fast-casual spot",
    "cafe": "cafe",
    "bar": "bar",
    "casual": "casual restaurant",
}


def _format_facts(facts: Dict[str, Any]) -> str:
    bits = [f"{key}: {value}" for key, value in facts.items() if value not in (None, "", [], ())]
    return "; ".join(bits) if bits else "none"


def heuristic_summary(title: str, category: str, facts: Dict[str, Any]) -> str:
    """Deterministic blurb assembled from the extracted facts."""
    if category == "hotel":
        tier = facts.get("tier")
        if tier and tier != "unknown":
            return f"{title} is a {tier} hotel, estimated around ${facts.get('nightly_rate')} per night."
        return f"{title} is a place to stay for the trip."

    cuisine = facts.get("cuisine_type")
    label = _VENUE_LABELS.get(facts.get("venue_type") or "casual", "restaurant")
    noun = f"{cuisine} {label}" if cuisine else label
    article = "an" if noun[:1].lower() in "aeiou" else "a"
    parts: List[str] = [f"{title} is {article} {noun}"]
    meals = facts.get("meal_times") or []
    if meals:
        parts.append(f" good for {' and '.join(meals)}")
    price = facts.get("estimated_price_per_person")
    if price:
        parts.append(f", about ${int(price)} per person")
    return "".join(parts) + "."


def summarize_venue(
    title: str,
    category: str,
    facts: Dict[str, Any],
    snippets: str,
    *,
    model: Optional[str] = None,
) -> Optional[str]:
    """Short venue summary. Hosted model when configured, heuristic template otherwise.

    Returns ``None`` when there is nothing to summarise (no snippets and no facts).
    """
    if not snippets and not any(v for v in facts.values()):
        return None

    if _client is None:
        return heuristic_summary(title, category, facts)

    model = model or _settings.openai_model
    user_prompt = SUMMARY_TEMPLATE.format(
        title=title,
        category=category,
        facts=_format_facts(facts),
        snippets=(snippets or "")[:2400],
    )
    logger.info("Invoking LLM model %s for venue summary of '%s'", model, title)
    try:
        resp = _client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": SUMMARY_SYSTEM},
                {"role": "user", "content": user_prompt},
            ],
            temperature=0.2,
            response_format={"type": "json_object"},
        )
        raw = resp.choices[0].message.content
        summary = json.loads(raw).get("summary")
    except Exception:
        logger.warning("LLM venue summary failed; using heuristic template", exc_info=True)
        return heuristic_summary(title, category, facts)

    if isinstance(summary, str) and summary.strip():
        return summary.strip()[:400]
    return heuristic_summary(title, category, facts)
