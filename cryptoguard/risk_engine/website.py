from typing import List
from urllib.parse import urlparse

from ..errors import InvalidInputError
from ..logging_utils import get_logger
from ..models import WebsiteDetails, WebsiteProfile
from ..sources import webpage
from . import weights
from .weights import W

logger = get_logger(__name__)


def _found(text: str, keywords) -> List[str]:
    return [k for k in keywords if k in text]


def score(page_text: str, source_url: str) -> WebsiteProfile:
    """Score a project page by the trust signals it shows and the hype it uses.

    Starts at 100 and only ever deducts. Every deduction leaves a finding and a
    content flag behind; the score never drops below 0.
    """
    text = (page_text or "").lower()
    points = W.WEBSITE_START
    findings: List[str] = []
    flags: List[str] = []
    present = {}

    for signal in weights.SIGNALS:
        hits = _found(text, signal.keywords)
        present[signal.name] = bool(hits)
        if not hits:
            findings.append(signal.finding)
            flags.append(signal.flag)
            points -= signal.deduction

    social_links = _found(text, weights.SOCIAL.keywords)

    red_flags = _found(text, weights.RED_FLAGS)
    if red_flags:
        findings.append(f"Suspicious marketing language detected: {', '.join(red_flags)}")
        flags.append(weights.RED_FLAG_TAG)
        points -= W.RED_FLAG * len(red_flags)  # sin tope

    if not source_url.lower().startswith("https://"):
        findings.append(weights.NO_HTTPS_FINDING)
        flags.append(weights.NO_HTTPS_TAG)
        points -= W.NO_HTTPS

    return WebsiteProfile(
        score=max(0, points),
        findings=findings or [weights.CLEAN_FINDING],
        details=WebsiteDetails(
            has_whitepaper=present["whitepaper"],
            has_team_info=present["team"],
            has_audit=present["audit"],
            has_roadmap=present["roadmap"],
            has_social_links=present["social"],
            has_github=present["github"],
            content_flags=flags,
            social_links=social_links,
        ),
    )


def fetch_failed_profile() -> WebsiteProfile:
    return WebsiteProfile(
        score=W.NEUTRAL_SCORE,
        findings=list(weights.FETCH_FAILED_FINDINGS),
        details=WebsiteDetails(content_flags=[weights.FETCH_FAILED_TAG]),
    )


async def analyze_website(url: str, fetcher=webpage) -> WebsiteProfile:
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        raise InvalidInputError("Invalid URL format")

    try:
        content = await fetcher.fetch_page(url)
    except Exception as e:
        # el sitio puede bloquear bots: perfil neutral en lugar de error
        logger.warning("Website fetch failed for %s: %s", url, e)
        return fetch_failed_profile()

    profile = score(content, url)
    logger.info("Website %s scored %d (%s)", url, profile.score, ",".join(profile.details.content_flags) or "clean")
    return profile
