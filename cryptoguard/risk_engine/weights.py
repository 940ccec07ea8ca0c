from dataclasses import dataclass
from typing import Tuple


class W:
    # puntaje inicial del sitio y deducciones planas
    WEBSITE_START = 100
    RED_FLAG = 10
    NO_HTTPS = 15

    # sub-puntajes del contrato
    CONTRACT_VERIFIED = 100
    CONTRACT_UNVERIFIED = 30
    CONTRACT_MIN_TX = 100

    # ajuste posterior al promedio
    PHISHING_PENALTY = 30

    # umbrales de nivel (estrictamente mayor)
    LOW_ABOVE = 70
    MEDIUM_ABOVE = 40

    NEUTRAL_SCORE = 50


@dataclass(frozen=True)
class Signal:
    """One trust-signal category scanned for in page text.

    ``deduction`` is applied when none of ``keywords`` occurs in the page.
    """
    name: str
    keywords: Tuple[str, ...]
    deduction: int
    flag: str
    finding: str


WHITEPAPER = Signal(
    name="whitepaper",
    keywords=(
        "whitepaper", "white-paper", "white paper", "documentation", "docs", "litepaper",
        "bitcoin.pdf", "bitcoin paper", "satoshi nakamoto", "technical paper",
    ),
    deduction=20,
    flag="missing-whitepaper",
    finding="No whitepaper or documentation found",
)

TEAM = Signal(
    name="team",
    keywords=("team", "about us", "about-us", "our team", "founders", "core team", "leadership"),
    deduction=15,
    flag="missing-team-info",
    finding="No team information found",
)

AUDIT = Signal(
    name="audit",
    keywords=("audit", "security", "certik", "hacken", "consensys", "verified", "certification"),
    deduction=20,
    flag="missing-audit",
    finding="No security audit information found",
)

ROADMAP = Signal(
    name="roadmap",
    keywords=("roadmap", "timeline", "milestones", "development plan", "future plans"),
    deduction=10,
    flag="missing-roadmap",
    finding="No roadmap or project timeline found",
)

GITHUB = Signal(
    name="github",
    keywords=("github.com", "gitlab.com", "bitbucket.org"),
    deduction=10,
    flag="missing-github",
    finding="No GitHub repository linked",
)

SOCIAL = Signal(
    name="social",
    keywords=(
        "twitter.com", "t.co",
        "telegram.org", "t.me",
        "discord.com", "discord.gg",
        "medium.com",
        "linkedin.com",
        "reddit.com/r/",
        "facebook.com",
    ),
    deduction=15,
    flag="missing-social",
    finding="Limited or no social media presence",
)

# orden = orden de los hallazgos
SIGNALS: Tuple[Signal, ...] = (WHITEPAPER, TEAM, AUDIT, ROADMAP, GITHUB, SOCIAL)

RED_FLAGS: Tuple[str, ...] = (
    "guaranteed returns",
    "investment opportunity",
    "limited time offer",
    "act now",
    "instant profits",
    "risk-free",
    "100% safe",
    "get rich",
    "guaranteed profit",
    "no risk",
    "huge returns",
    "massive gains",
    "presale bonus",
    "exclusive offer",
    "once in a lifetime",
    "dont miss out",
    "last chance",
)
RED_FLAG_TAG = "suspicious-marketing"

NO_HTTPS_TAG = "no-https"
NO_HTTPS_FINDING = "Website does not use secure HTTPS connection"

CLEAN_FINDING = "Website analysis completed successfully"

FETCH_FAILED_TAG = "fetch-failed"
FETCH_FAILED_FINDINGS: Tuple[str, ...] = (
    "Unable to fully analyze website content",
    "Website might be blocking automated access",
    "Consider manual verification of project legitimacy",
)
