import asyncio
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from ..errors import ScanStageError
from ..logging_utils import get_logger
from ..models import (
    AddressInput, ContractProfile, GasSnapshot, PhishingVerdict, ProjectDetails, RiskLevel,
    ScanInput, ScanResult, WalletDetails, WalletProfile, WebsiteProfile,
)
from ..sources import etherscan, openrouter, webpage
from ..utils.address import classify, short
from .degrade import degradable
from .parsing import FreeTextInterpreter, ResponseInterpreter, failed_verdict
from .prompts import phishing_prompt, project_prompt
from .website import analyze_website
from .weights import W

logger = get_logger(__name__)

UNVERIFIED_CONTRACT = "⚠️ Contract is not verified on Etherscan"
ZERO_BALANCE = "⚠️ Contract has zero balance"
LOW_TX_COUNT = "⚠️ Low transaction count - might be a new or inactive contract"


def risk_level(score: int) -> RiskLevel:
    if score > W.LOW_ABOVE:
        return RiskLevel.LOW
    if score > W.MEDIUM_ABOVE:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


def dedupe(issues: List[str]) -> List[str]:
    return list(dict.fromkeys(issues))


def _round(x: Decimal) -> int:
    # .5 hacia arriba, no redondeo bancario
    return int(x.quantize(Decimal(1), rounding=ROUND_HALF_UP))


@dataclass
class Tally:
    """Running sum of the sub-scores actually collected, plus their issues."""
    total: int = 0
    count: int = 0
    issues: List[str] = field(default_factory=list)

    def add(self, score: int, issues: List[str]) -> None:
        self.total += score
        self.count += 1
        self.issues.extend(issues)

    def mean(self) -> int:
        return _round(Decimal(self.total) / max(self.count, 1))


def contract_issues(contract: ContractProfile) -> List[str]:
    issues = []
    if not contract.is_verified:
        issues.append(UNVERIFIED_CONTRACT)
    try:
        zero = int(contract.balance or "0") == 0
    except ValueError:
        zero = True
    if zero:
        issues.append(ZERO_BALANCE)
    if (contract.tx_count or 0) < W.CONTRACT_MIN_TX:
        issues.append(LOW_TX_COUNT)
    return issues


def contract_score(contract: ContractProfile) -> int:
    return W.CONTRACT_VERIFIED if contract.is_verified else W.CONTRACT_UNVERIFIED


# ------------------- tareas de fondo -------------------
@degradable(failed_verdict, stage="Phishing check")
async def check_phishing(target: str, oracle, interpreter: ResponseInterpreter) -> PhishingVerdict:
    text = await oracle.complete(phishing_prompt(target))
    return interpreter.verdict(text)


@degradable(GasSnapshot, stage="Gas tracker")
async def gas_snapshot(chain) -> GasSnapshot:
    return await chain.get_gas_price()


def _wallet_result(target: str, wallet: WalletProfile, verdict: PhishingVerdict, gas: GasSnapshot) -> ScanResult:
    # wallets no pasan por la fusión: siempre 100/low, las alertas sólo se listan
    wallet.gas_tracker = gas
    wallet.phishing_status = PhishingVerdict(is_phishing=verdict.is_phishing, confidence=verdict.confidence)
    return ScanResult(
        target=target,
        risk=RiskLevel.LOW,
        score=100,
        issues=dedupe(verdict.warnings),
        details=WalletDetails(wallet=wallet),
    )


async def _resolve(target: ScanInput, phishing: asyncio.Task, gas: asyncio.Task,
                   chain, fetcher, oracle, interpreter: ResponseInterpreter) -> ScanResult:
    tally = Tally()
    contract: Optional[ContractProfile] = None
    website: Optional[WebsiteProfile] = None

    if isinstance(target, AddressInput):
        address = target.value
        try:
            contract = await chain.get_contract_info(address)
            wallet = await chain.get_wallet_transactions(address) if contract is None else None
        except Exception as e:
            logger.error("Address analysis error for %s: %s", short(address), e)
            raise ScanStageError("Address analysis", e) from e

        if contract is None:
            verdict, snapshot = await asyncio.gather(phishing, gas)
            return _wallet_result(address, wallet, verdict, snapshot)

        tally.add(contract_score(contract), contract_issues(contract))
    else:
        try:
            website = await analyze_website(target.value, fetcher)
        except Exception as e:
            logger.error("Website analysis error for %s: %s", target.value, e)
            raise ScanStageError("Website analysis", e) from e
        tally.add(website.score, website.findings)

    try:
        text = await oracle.complete(project_prompt(target.value, contract, website))
    except Exception as e:
        logger.error("AI analysis error for %s: %s", target.value, e)
        raise ScanStageError("AI analysis", e) from e
    ai_score, ai_issues = interpreter.score_and_issues(text)
    tally.add(ai_score, ai_issues)

    verdict, snapshot = await asyncio.gather(phishing, gas)

    final = tally.mean()
    issues = tally.issues
    if verdict.is_phishing:
        # ajuste posterior al promedio, una sola vez
        issues.extend(verdict.warnings)
        final -= W.PHISHING_PENALTY
    final = max(0, min(100, final))

    logger.info("Scan %s: %d sub-scores, final=%d", target.value, tally.count, final)
    return ScanResult(
        target=target.value,
        risk=risk_level(final),
        score=final,
        issues=dedupe(issues),
        details=ProjectDetails(
            contract=contract,
            website=website,
            gas_tracker=snapshot,
            phishing_status=verdict,
        ),
    )


# ------------------- FUNCIÓN PRINCIPAL -------------------
async def scan(raw: str, *, chain=etherscan, fetcher=webpage, oracle=openrouter,
               interpreter: Optional[ResponseInterpreter] = None) -> ScanResult:
    """Classify ``raw``, gather every applicable source and fuse them into one result.

    The phishing check and the gas lookup start before the primary branch and
    can only degrade. Primary-path failures abort with a ScanStageError naming
    the stage.
    """
    target = classify(raw)
    interpreter = interpreter or FreeTextInterpreter()
    logger.info("Scanning %s %s", target.kind, target.value)

    phishing = asyncio.create_task(check_phishing(target.value, oracle, interpreter))
    gas = asyncio.create_task(gas_snapshot(chain))
    try:
        return await _resolve(target, phishing, gas, chain, fetcher, oracle, interpreter)
    finally:
        for task in (phishing, gas):
            if not task.done():
                task.cancel()
