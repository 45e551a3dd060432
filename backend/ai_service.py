"""
Conversion critique via Claude.

The API key must be defined in the environment or in a .env file in the
backend root (see config.py):

ANTHROPIC_API_KEY=your_real_key_here

Without a key the critique is skipped and analyses carry scores only.
"""

import json
import logging
import random
import time

from anthropic import Anthropic

import config
from models import CritiqueContent, CritiqueResult
from patterns import extract_priority_actions, extract_quick_wins, extract_score

logger = logging.getLogger(__name__)

MODEL_CANDIDATES = [
    config.CLAUDE_MODEL,
    "claude-3-5-sonnet-latest",
    "claude-3-haiku-20240307",
]
MODEL_CANDIDATES = [m for m in dict.fromkeys(MODEL_CANDIDATES) if m]
TEMPERATURE = 0.7

CRITIQUE_SECTIONS = ("headline", "cta", "trust", "copy", "value", "overall")
UNAVAILABLE_RESULT: CritiqueResult = {"error": "AI analysis temporarily unavailable"}

SYSTEM_MESSAGE = """You are a senior website conversion consultant.
You know what separates a 2% conversion rate from a 20% one: clear value
propositions, frictionless calls to action, visible trust signals and copy that
sells benefits rather than features.
Return ONLY valid raw JSON that matches the schema exactly.
Do not include markdown, code fences, or text outside JSON."""

USER_TEMPLATE = """Website URL: {url}

Headline: {headline}
Subheadline: {subheadline}
Calls to action: {cta_texts}
Body copy: {body_text}
Testimonials present: {has_testimonials}
Trust badges present: {has_trust_badges}
Video present: {has_video}

Tasks:
1. Score each area from 0 to 100: headline, cta, trust, copy, value, overall.
2. For each area give a short, specific critique with an exact rewrite where relevant.
3. List 3-5 quick wins that take under an hour.
4. List the top 3 priority actions, most important first.
5. Do not use unescaped double quotes inside any JSON string value.

Return ONLY this JSON structure:

{{
  "scores": {{"headline": number, "cta": number, "trust": number, "copy": number, "value": number, "overall": number}},
  "analysis": {{"headline": "string", "cta": "string", "trust": "string", "copy": "string", "value": "string", "overall": "string"}},
  "quick_wins": ["string"],
  "priority_actions": ["string"]
}}

No additional text."""


def _extract_json(text: str) -> dict | None:
    if not text:
        return None

    text = text.strip()

    # Remove markdown fences
    if text.startswith("```"):
        text = text.replace("```json", "").replace("```", "").strip()

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1:
        return None

    json_str = (
        text[start : end + 1]
        .replace("“", '"')
        .replace("”", '"')
        .replace("‘", "'")
        .replace("’", "'")
    )

    try:
        parsed = json.loads(json_str)
    except ValueError:
        try:
            parsed = json.loads(_escape_inner_quotes(json_str))
        except ValueError as e:
            logger.warning("CLAUDE PARSE: invalid JSON (%s)", e)
            return None
    return parsed if isinstance(parsed, dict) else None


def _escape_inner_quotes(value: str) -> str:
    """
    Escape likely unescaped quotes inside JSON strings.
    Keeps closing quotes intact by checking the next non-space token.
    """
    out: list[str] = []
    in_string = False
    escaped = False
    length = len(value)

    for i, ch in enumerate(value):
        if escaped:
            out.append(ch)
            escaped = False
            continue
        if ch == "\\":
            out.append(ch)
            escaped = True
            continue
        if ch != '"':
            out.append(ch)
            continue
        if not in_string:
            in_string = True
            out.append(ch)
            continue

        j = i + 1
        while j < length and value[j].isspace():
            j += 1
        next_char = value[j] if j < length else ""

        # Valid string-close chars in JSON: key close before ":", value close before ",", "}", "]"
        if next_char in {":", ",", "}", "]"}:
            in_string = False
            out.append(ch)
        else:
            out.append('\\"')

    return "".join(out)


def _build_user_message(url: str, content: CritiqueContent) -> str:
    def _text_value(value: object) -> str:
        cleaned = str(value or "").strip()
        return cleaned if cleaned else "Not found"

    return USER_TEMPLATE.format(
        url=url,
        headline=_text_value(content.get("headline")),
        subheadline=_text_value(content.get("subheadline")),
        cta_texts=_text_value(", ".join(content.get("cta_texts") or [])),
        body_text=_text_value(content.get("body_text")),
        has_testimonials=bool(content.get("has_testimonials")),
        has_trust_badges=bool(content.get("has_trust_badges")),
        has_video=bool(content.get("has_video")),
    )


def _extract_response_text(response: object) -> str:
    content = ""
    for block in getattr(response, "content", []) or []:
        text = getattr(block, "text", None)
        if text:
            content += text
    return content.strip()


def _is_retryable_error(exc: Exception) -> bool:
    msg = str(exc).lower()
    retry_tokens = (
        "overloaded",
        "529",
        "rate limit",
        "rate_limit",
        "429",
        "500",
        "502",
        "503",
        "504",
        "timeout",
    )
    return any(token in msg for token in retry_tokens)


def _call_claude(client: Anthropic, user_message: str) -> str:
    last_error: Exception | None = None

    for model in MODEL_CANDIDATES:
        for attempt in range(config.CLAUDE_MAX_RETRIES):
            try:
                response = client.messages.create(
                    model=model,
                    max_tokens=config.CLAUDE_MAX_TOKENS,
                    system=SYSTEM_MESSAGE,
                    messages=[{"role": "user", "content": user_message}],
                    temperature=TEMPERATURE,
                )
                content = _extract_response_text(response)
                if getattr(response, "stop_reason", None) == "max_tokens":
                    logger.warning("CLAUDE WARNING: output hit max_tokens for model=%s.", model)
                if content:
                    return content

                last_error = RuntimeError("Empty Claude response content.")
                if attempt < config.CLAUDE_MAX_RETRIES - 1:
                    delay = config.CLAUDE_RETRY_BASE_SECONDS * (2 ** attempt) + random.uniform(0, 0.35)
                    logger.info("CLAUDE RETRY: model=%s empty-content wait=%.2fs", model, delay)
                    time.sleep(delay)
                    continue
            except Exception as e:
                last_error = e
                if _is_retryable_error(e) and attempt < config.CLAUDE_MAX_RETRIES - 1:
                    delay = config.CLAUDE_RETRY_BASE_SECONDS * (2 ** attempt) + random.uniform(0, 0.35)
                    logger.info("CLAUDE RETRY: model=%s attempt=%s wait=%.2fs", model, attempt + 1, delay)
                    time.sleep(delay)
                    continue
            break

    if last_error is not None:
        raise last_error
    return ""


def _normalize_result(raw: dict) -> CritiqueResult:
    """Ensure parsed dict has the shape and types of CritiqueResult."""

    def score(v) -> int | None:
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            return None
        return int(min(100, max(0, v)))

    def str_list(v) -> list[str]:
        if not isinstance(v, list):
            return []
        return [str(x).strip() for x in v if x is not None and str(x).strip()]

    raw_scores = raw.get("scores") if isinstance(raw.get("scores"), dict) else {}
    raw_analysis = raw.get("analysis") if isinstance(raw.get("analysis"), dict) else {}

    return {
        "scores": {name: score(raw_scores.get(name)) for name in CRITIQUE_SECTIONS},
        "analysis": {name: str(raw_analysis.get(name) or "") for name in CRITIQUE_SECTIONS},
        "quick_wins": str_list(raw.get("quick_wins")),
        "priority_actions": str_list(raw.get("priority_actions"))[:3],
    }


def _result_from_text(text: str) -> CritiqueResult:
    """Best-effort critique from a free-form (non-JSON) reply."""
    return {
        "scores": {name: (extract_score(text) if name == "overall" else None) for name in CRITIQUE_SECTIONS},
        "analysis": {name: (text if name == "overall" else "") for name in CRITIQUE_SECTIONS},
        "quick_wins": extract_quick_wins([text]),
        "priority_actions": extract_priority_actions(text),
    }


def critique_website(url: str, content: CritiqueContent, client: Anthropic | None = None) -> CritiqueResult:
    """
    Ask Claude for a structured conversion critique of the page copy.
    On API/key/network failure, returns UNAVAILABLE_RESULT. Never raises.
    """
    try:
        if client is None:
            if not config.ANTHROPIC_API_KEY:
                logger.error("ANTHROPIC_API_KEY not found in environment.")
                return dict(UNAVAILABLE_RESULT)
            client = Anthropic(api_key=config.ANTHROPIC_API_KEY)

        reply = _call_claude(client, _build_user_message(url, content))
        logger.debug("RAW CLAUDE RESPONSE: %s", reply)
        if not reply:
            return dict(UNAVAILABLE_RESULT)

        parsed = _extract_json(reply)
        if parsed is None:
            logger.info("CLAUDE PARSE: falling back to text extraction.")
            return _result_from_text(reply)
        return _normalize_result(parsed)
    except Exception as e:
        logger.error("CLAUDE ERROR: %s", e)
        return dict(UNAVAILABLE_RESULT)


def is_enabled() -> bool:
    return bool(config.ANTHROPIC_API_KEY)
