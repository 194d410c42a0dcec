"""
Query predicates for project listings.

Absent or blank parameters add no constraint. `category` and `difficulty`
match stored values exactly; `title` is a case-insensitive substring match;
`search` matches title OR description (substring) OR an exact techStack token.
Constraints from different parameters are ANDed.
"""
import re
from typing import Optional


def _given(value: Optional[str]) -> bool:
    return bool(value and value.strip())


def contains(text: str) -> dict:
    """Case-insensitive substring predicate."""
    return {"$regex": re.escape(text), "$options": "i"}


def search_clause(search: str) -> dict:
    return {
        "$or": [
            {"title": contains(search)},
            {"description": contains(search)},
            {"techStack": search},
        ]
    }


def build_project_filter(
    category: Optional[str] = None,
    difficulty: Optional[str] = None,
    title: Optional[str] = None,
    search: Optional[str] = None,
    creator_id: Optional[str] = None,
) -> dict:
    clauses = []
    if _given(category):
        clauses.append({"category": category})
    if _given(difficulty):
        clauses.append({"difficulty": difficulty})
    if _given(title):
        clauses.append({"title": contains(title)})
    if _given(search):
        clauses.append(search_clause(search))
    if _given(creator_id):
        clauses.append({"creatorId": creator_id})

    if not clauses:
        return {}
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}
