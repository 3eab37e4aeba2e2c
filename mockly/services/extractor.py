import logging
import re
from typing import List, Optional

from mockly.models.interview import CandidateInfo

logger = logging.getLogger(__name__)

NAME_PATTERN = re.compile(r"\b(?:my name is|i['’]m|i am|call me)\s+([a-z][a-z\s]*)", re.IGNORECASE)
ROLE_PATTERN = re.compile(
    r"\b(?:role|position|job|targeting|applying for)\s+(?:is\s+)?"
    r"([a-z\s]+?(?:developer|engineer|designer|manager|analyst))\b",
    re.IGNORECASE,
)
QUESTION_COUNT_PATTERN = re.compile(r"(?:only\s+)?(?:ask\s+)?(\d+)\s+questions?", re.IGNORECASE)
TOKEN_SPLIT = re.compile(r"[\s,;()\\/]+")

# Words that end a spoken name ("I'm Dana applying for ...")
NAME_STOP_WORDS = {
    "a", "an", "the", "and", "but", "so", "applying", "targeting", "looking", "interested",
    "here", "from", "with", "working", "currently", "for", "to", "in", "at", "on", "who",
    "i", "my", "really", "just", "also", "ready", "good", "fine", "not", "very", "excited",
    "junior", "senior", "mid",
}
MAX_NAME_WORDS = 3

LEADING_ARTICLE = re.compile(r"^(?:a|an|the)\s+", re.IGNORECASE)

EXPERIENCE_LEVELS = [
    ("junior", "Junior"),
    ("senior", "Senior"),
    ("mid", "Mid-level"),
]

TECH_KEYWORDS = [
    "javascript", "react", "node", "python", "java", "typescript", "angular", "vue",
    "php", "ruby", "go", "rust", "c++", "c#", "swift", "kotlin",
]
TECH_ALIASES = {"node.js": "node", "nodejs": "node"}
TECH_DISPLAY_NAMES = {"javascript": "JavaScript", "typescript": "TypeScript", "php": "PHP"}


def _extract_name(text: str) -> Optional[str]:
    match = NAME_PATTERN.search(text)
    if not match:
        return None
    words = []
    for word in match.group(1).split():
        if word.lower() in NAME_STOP_WORDS or len(words) == MAX_NAME_WORDS:
            break
        words.append(word)
    return " ".join(words) or None


def _extract_role(text: str) -> Optional[str]:
    match = ROLE_PATTERN.search(text)
    if not match:
        return None
    role = LEADING_ARTICLE.sub("", match.group(1).strip())
    return role or None


def _extract_experience_level(text: str) -> Optional[str]:
    lowered = text.lower()
    for needle, level in EXPERIENCE_LEVELS:
        if needle in lowered:
            return level
    return None


def _display_tech_name(keyword: str) -> str:
    if keyword in TECH_DISPLAY_NAMES:
        return TECH_DISPLAY_NAMES[keyword]
    return " ".join(part[:1].upper() + part[1:] for part in keyword.split())


def _extract_tech_stack(text: str) -> List[str]:
    tokens = [t for t in TOKEN_SPLIT.split(text.lower()) if t]
    tokens = [re.sub(r"[.!?]$", "", t) for t in tokens]
    tokens = [TECH_ALIASES.get(t, t) for t in tokens]

    mentioned = []
    for token in tokens:
        if token in TECH_KEYWORDS and token not in mentioned:
            mentioned.append(token)
    # "javascript" must not also count as "java"
    if "javascript" in mentioned and "java" in mentioned:
        mentioned.remove("java")
    return [_display_tech_name(tech) for tech in mentioned]


def _extract_question_count(text: str) -> Optional[int]:
    match = QUESTION_COUNT_PATTERN.search(text)
    if not match:
        return None
    count = int(match.group(1))
    logger.info(f"🎯 [EXTRACT] Extracted question count: {count}")
    return count


def extract_candidate_info(text: str) -> CandidateInfo:
    """Pull whatever candidate attributes one utterance mentions.

    Fields that the utterance says nothing about are left as ``None`` so the
    result can be merged into the running ``CandidateInfo``.
    """
    return CandidateInfo(
        name=_extract_name(text),
        role=_extract_role(text),
        experience_level=_extract_experience_level(text),
        tech_stack=_extract_tech_stack(text) or None,
        question_count=_extract_question_count(text),
    )
