"""Search-box suggestions across titles, tech stacks and categories"""
import logging
from typing import Optional

from config import (
    SUGGESTION_CATEGORY_LIMIT,
    SUGGESTION_MIN_LENGTH,
    SUGGESTION_TECH_LIMIT,
    SUGGESTION_TITLE_LIMIT,
)
from filters import contains

logger = logging.getLogger(__name__)


def empty_suggestions() -> dict:
    return {"titles": [], "techStacks": [], "categories": []}


def suggest(db, q: Optional[str]) -> dict:
    query = (q or "").strip()
    if len(query) < SUGGESTION_MIN_LENGTH:
        return empty_suggestions()

    titles = [
        p["title"]
        for p in db["project"].find({"title": contains(query)}, {"title": 1}).limit(SUGGESTION_TITLE_LIMIT)
    ]

    # Tokens from the matched projects that themselves contain the fragment, first-seen order
    needle = query.lower()
    tech_stacks = []
    tech_projects = db["project"].find({"techStack": contains(query)}, {"techStack": 1}).limit(SUGGESTION_TECH_LIMIT)
    for p in tech_projects:
        for tech in p.get("techStack") or []:
            if needle in tech.lower() and tech not in tech_stacks:
                tech_stacks.append(tech)
    tech_stacks = tech_stacks[:SUGGESTION_TECH_LIMIT]

    categories = db["project"].distinct("category", {"category": contains(query)})[:SUGGESTION_CATEGORY_LIMIT]

    logger.debug(
        "Suggestions for %r: %d titles, %d tech, %d categories",
        query, len(titles), len(tech_stacks), len(categories),
    )
    return {"titles": titles, "techStacks": tech_stacks, "categories": list(categories)}
