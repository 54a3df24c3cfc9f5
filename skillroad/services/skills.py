"""
Keyword-based skill extraction for job descriptions.

Used by the portal adapters when a portal gives us free text instead of a
structured skills list. Pure function, no LLM involved.
"""

import re
from functools import lru_cache
from typing import Iterable, Optional

# Default vocabulary. Order matters: the pattern is an alternation in this
# order, so "JavaScript" is tried before "Java".
DEFAULT_SKILL_VOCABULARY = (
    "JavaScript", "TypeScript", "React", "Node.js", "Python", "Java", "SQL",
    "AWS", "Docker", "Kubernetes", "Git", "HTML", "CSS", "Angular", "Vue.js",
    "MongoDB", "PostgreSQL", "Redis", "GraphQL", "REST", "API", "Agile", "Scrum",
)


@lru_cache(maxsize=32)
def build_skill_pattern(vocabulary: tuple[str, ...]) -> re.Pattern:
    """Compile one case-insensitive alternation for the whole vocabulary."""
    alternation = "|".join(re.escape(term) for term in vocabulary)
    return re.compile(f"({alternation})", re.IGNORECASE)


def extract_skills(text: Optional[str], vocabulary: Optional[Iterable[str]] = None) -> list[str]:
    """
    Find known skills in free text.

    Returns lowercase tokens in order of first appearance, each only once.
    Never raises; empty/None text gives [].
    """
    if not text:
        return []

    terms = tuple(vocabulary) if vocabulary else DEFAULT_SKILL_VOCABULARY
    if not terms:
        return []

    pattern = build_skill_pattern(terms)

    # dict keeps insertion order, so this dedupes without reordering
    found = dict.fromkeys(match.lower() for match in pattern.findall(text))
    return list(found)
