"""Pattern-matching helpers for contact detection and free-form LLM text."""

import re

EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
PHONE_PATTERN = re.compile(r"(?:\+?\d{1,4}[\s-]?)?(?:\(?\d{3}\)?[\s-]?)?\d[\d\s-]{5,}\d")
MIN_PHONE_DIGITS = 7

SCORE_PATTERN = re.compile(r"(?:SCORE|Score)[:\s]*(\d+)")
QUICK_WINS_PATTERN = re.compile(r"QUICK WINS?:(.*?)(?:\n\n|\n[A-Z]|$)", re.IGNORECASE | re.DOTALL)
PRIORITY_PATTERN = re.compile(r"(?:#1|TOP|CRITICAL|PRIORITY).*?(?:\n\n|\n[A-Z]|$)", re.IGNORECASE | re.DOTALL)


def has_email(text: str) -> bool:
    return bool(EMAIL_PATTERN.search(text or ""))


def has_phone(text: str) -> bool:
    # Whitespace runs alone must not count as a number.
    for match in PHONE_PATTERN.finditer(text or ""):
        if sum(ch.isdigit() for ch in match.group(0)) >= MIN_PHONE_DIGITS:
            return True
    return False


def extract_score(text: str) -> int | None:
    """Return the first "Score: N" value in text, clamped to [0, 100]."""
    match = SCORE_PATTERN.search(text or "")
    if not match:
        return None
    return min(100, int(match.group(1)))


def extract_quick_wins(texts: list[str]) -> list[str]:
    wins: list[str] = []
    for text in texts:
        match = QUICK_WINS_PATTERN.search(text or "")
        if match and match.group(1).strip():
            wins.append(match.group(1).strip())
    return wins


def extract_priority_actions(text: str, limit: int = 3) -> list[str]:
    actions = [m.group(0).strip() for m in PRIORITY_PATTERN.finditer(text or "")]
    return [a for a in actions if a][:limit]
