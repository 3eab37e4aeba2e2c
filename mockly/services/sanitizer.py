import re

LIST_MARKER = re.compile(r"^\s*(?:\d+[.)]|[-*•])\s*")
INTERJECTION = re.compile(
    r"^(?:sure|okay|ok|alright|all right|great|certainly|absolutely)\b[\s,.!:;—–-]*",
    re.IGNORECASE,
)
TRANSITION = re.compile(
    r"^(?:i['’]ll go ahead|let['’]s|let us|get started|here['’]s|here is|i will|we will)\b",
    re.IGNORECASE,
)
CLAUSE_DELIMITER = re.compile(r"\s*(?:[—–:,]|[.!](?=\s)|\s-\s)\s*")
SENTENCE_BOUNDARY = re.compile(r"(?<=[.!])\s+(?=[A-Z\"“'])|\n+")
FIRST_SENTENCE_SPLIT = re.compile(r"\n|\.|!")


def _strip_lead_ins(text: str) -> str:
    while True:
        stripped = INTERJECTION.sub("", text, count=1)
        match = TRANSITION.match(stripped)
        if match:
            rest = stripped[match.end():]
            question_at = rest.find("?")
            clause = rest if question_at == -1 else rest[:question_at]
            delimiter = CLAUSE_DELIMITER.search(clause)
            if delimiter:
                rest = rest[delimiter.end():]
            stripped = rest.lstrip(" :,-")
        stripped = stripped.strip()
        if stripped == text:
            return text
        text = stripped


def sanitize_to_single_question(raw_text: str) -> str:
    """Reduce generator output to exactly one well-formed question.

    Lead-in chatter ("Sure, let's start -", "Here's your next question:") is
    dropped, then the first question-marked sentence is kept. Text without a
    question mark is cut to its first sentence and given one.
    """
    if not raw_text or not raw_text.strip():
        return ""

    original = LIST_MARKER.sub("", raw_text.strip(), count=1).strip()
    text = _strip_lead_ins(original) or original

    question_at = text.find("?")
    if question_at != -1:
        head = text[:question_at + 1]
        fragments = [f.strip() for f in SENTENCE_BOUNDARY.split(head) if f.strip()]
        question = fragments[-1] if fragments else head
    else:
        sentences = [s.strip() for s in FIRST_SENTENCE_SPLIT.split(text) if s.strip()]
        first = sentences[0] if sentences else ""
        question = f"{first}?"

    question = LIST_MARKER.sub("", question, count=1)
    return " ".join(question.split())
