from typing import Optional

from ..models import ContractProfile, WebsiteProfile


def phishing_prompt(target: str) -> str:
    return f"""Analyze this crypto address or URL for potential phishing or scam indicators: {target}
Please check for:
1. Known scam patterns
2. Phishing indicators
3. Similarity to legitimate services
4. Suspicious patterns

Format response as:
Confidence: [0-100]
Is Phishing: [true/false]
Warnings:
- [warning 1]
- [warning 2]"""


def project_prompt(target: str, contract: Optional[ContractProfile], website: Optional[WebsiteProfile]) -> str:
    parts = [f"Please analyze this crypto project: {target}"]
    if contract is not None:
        parts.append(
            "Contract Info:\n"
            f"- Verified: {str(contract.is_verified).lower()}\n"
            f"- Balance: {contract.balance}\n"
            f"- Tx Count: {contract.tx_count}"
        )
    if website is not None:
        parts.append(
            "Website Analysis:\n"
            f"- Score: {website.score}\n"
            f"- Findings: {', '.join(website.findings)}"
        )
    parts.append(
        "Format your response exactly like this:\n"
        "Safety Score: [0-100]\n\n"
        "Identified Issues:\n"
        "- [First issue]\n"
        "- [Second issue]\n"
        "- [Additional issues...]"
    )
    return "\n\n".join(parts)
