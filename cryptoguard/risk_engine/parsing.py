import re
from typing import List, Protocol, Tuple

from ..errors import ParseError
from ..models import PhishingVerdict
from .degrade import degradable
from .weights import W

SCORE_RE = re.compile(r"(?:score|rating|safety):\s*(\d+)", re.IGNORECASE)
BULLETS = ("-", "*", "•")
ISSUE_KEYWORDS = ("risk:", "issue:", "warning:", "concern:")
STRIP_RE = re.compile(r"^[-*•]|\b(?:risk|issue|warning|concern):", re.IGNORECASE)
LEADING_INT = re.compile(r"^\s*(-?\d+)")

FALLBACK_ISSUE = "AI analysis completed, potential risks identified"
PARSE_ERROR_ISSUE = "Error parsing AI response"
NO_PHISHING_ANALYSIS = "unable to perform phishing analysis"


def _clamp(n: int) -> int:
    return max(0, min(100, n))


def _lines(text: str) -> List[str]:
    if not isinstance(text, str):
        raise ParseError(f"expected text, got {type(text).__name__}")
    return [ln.strip() for ln in text.splitlines() if ln.strip()]


def _is_issue_line(line: str) -> bool:
    return line.startswith(BULLETS) or any(k in line for k in ISSUE_KEYWORDS)


@degradable(lambda: (W.NEUTRAL_SCORE, [PARSE_ERROR_ISSUE]), stage="AI response parsing")
def parse_score_and_issues(text: str) -> Tuple[int, List[str]]:
    """Pull a 0-100 score and the itemized issues out of model prose.

    Missing fields fall back to defaults; this never raises.
    """
    lines = _lines(text)
    m = SCORE_RE.search(text)
    score = _clamp(int(m.group(1))) if m else W.NEUTRAL_SCORE

    issues = []
    for line in lines:
        if not _is_issue_line(line):
            continue
        cleaned = STRIP_RE.sub("", line).strip()
        if cleaned:
            issues.append(cleaned)
    return score, issues or [FALLBACK_ISSUE]


def _confidence(line: str) -> int:
    _, sep, rest = line.partition(":")
    m = LEADING_INT.match(rest) if sep else None
    return _clamp(int(m.group(1))) if m else W.NEUTRAL_SCORE


def failed_verdict() -> PhishingVerdict:
    return PhishingVerdict(is_phishing=False, confidence=0, warnings=[NO_PHISHING_ANALYSIS])


@degradable(failed_verdict, stage="Phishing verdict parsing")
def parse_verdict(text: str) -> PhishingVerdict:
    lines = _lines(text)
    lowered = [ln.lower() for ln in lines]

    conf_line = next((ln for ln, lo in zip(lines, lowered) if "confidence" in lo), None)
    confidence = _confidence(conf_line) if conf_line is not None else W.NEUTRAL_SCORE

    verdict_line = next((lo for lo in lowered if "is phishing" in lo), "")
    warnings = [ln[1:].strip() for ln in lines if ln.startswith(BULLETS) and ln[1:].strip()]

    return PhishingVerdict(is_phishing="true" in verdict_line, confidence=confidence, warnings=warnings)


class ResponseInterpreter(Protocol):
    """Turns an oracle answer into structured fields."""

    def score_and_issues(self, text: str) -> Tuple[int, List[str]]: ...

    def verdict(self, text: str) -> PhishingVerdict: ...


class FreeTextInterpreter:
    """Line-pattern extraction over free-form model output."""

    def score_and_issues(self, text: str) -> Tuple[int, List[str]]:
        return parse_score_and_issues(text)

    def verdict(self, text: str) -> PhishingVerdict:
        return parse_verdict(text)
