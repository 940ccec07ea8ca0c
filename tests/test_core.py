import asyncio

import pytest

from cryptoguard.errors import FetchError, InvalidInputError, RateLimitError, ScanStageError, UpstreamTransportError
from cryptoguard.models import ContractProfile, GasSnapshot, ProjectDetails, RiskLevel, WalletDetails
from cryptoguard.risk_engine.core import (
    LOW_TX_COUNT, UNVERIFIED_CONTRACT, ZERO_BALANCE, Tally, contract_issues, risk_level, scan,
)

from conftest import CONTRACT, WALLET, FakeChain, FakeFetcher, FakeOracle, wallet_profile

PHISHY = "Confidence: 90\nIs Phishing: true\n- flagged by community list"


def unverified(**kw) -> ContractProfile:
    return ContractProfile(is_verified=False, balance="0", tx_count=5, **kw)


@pytest.mark.parametrize("score,level", [
    (100, RiskLevel.LOW), (71, RiskLevel.LOW), (70, RiskLevel.MEDIUM),
    (41, RiskLevel.MEDIUM), (40, RiskLevel.HIGH), (0, RiskLevel.HIGH),
])
def test_risk_level_thresholds(score, level):
    assert risk_level(score) == level


def test_tally_mean_rounds_half_up():
    t = Tally()
    t.add(30, [])
    t.add(45, [])
    assert t.mean() == 38
    assert Tally().mean() == 0


def test_contract_issues():
    assert contract_issues(unverified()) == [UNVERIFIED_CONTRACT, ZERO_BALANCE, LOW_TX_COUNT]
    healthy = ContractProfile(is_verified=True, balance="5", tx_count=100)
    assert contract_issues(healthy) == []


async def test_invalid_input_never_touches_network(fetcher, oracle):
    chain = FakeChain()
    with pytest.raises(InvalidInputError):
        await scan("not an address", chain=chain, fetcher=fetcher, oracle=oracle)
    assert chain.calls == []
    assert fetcher.calls == []
    assert oracle.prompts == []


async def test_unverified_contract_with_oracle_score(fetcher):
    chain = FakeChain(contract=unverified())
    oracle = FakeOracle(analysis="Safety Score: 70\n- Owner can pause transfers")
    result = await scan(CONTRACT, chain=chain, fetcher=fetcher, oracle=oracle)

    assert result.score == 50
    assert result.risk == RiskLevel.MEDIUM
    assert set(result.issues) == {UNVERIFIED_CONTRACT, ZERO_BALANCE, LOW_TX_COUNT, "Owner can pause transfers"}
    assert isinstance(result.details, ProjectDetails)
    assert result.details.contract.is_verified is False
    assert result.details.website is None
    assert result.details.gas_tracker.medium == 12
    assert "wallet" not in chain.calls
    assert fetcher.calls == []


async def test_verified_contract_prompt_mentions_contract(fetcher):
    chain = FakeChain(contract=ContractProfile(is_verified=True, balance="10", tx_count=500))
    oracle = FakeOracle(analysis="Safety Score: 90")
    result = await scan(CONTRACT, chain=chain, fetcher=fetcher, oracle=oracle)
    assert result.score == 95
    assert result.risk == RiskLevel.LOW
    project_prompt = next(p for p in oracle.prompts if "Please analyze this crypto project" in p)
    assert "- Verified: true" in project_prompt
    assert "- Tx Count: 500" in project_prompt


async def test_wallet_short_circuits_to_full_score(fetcher):
    chain = FakeChain(contract=None, wallet=wallet_profile())
    oracle = FakeOracle(verdict=PHISHY)
    result = await scan(WALLET, chain=chain, fetcher=fetcher, oracle=oracle)

    assert result.score == 100
    assert result.risk == RiskLevel.LOW
    assert result.issues == ["flagged by community list"]
    assert isinstance(result.details, WalletDetails)
    wallet = result.details.wallet
    assert wallet.phishing_status.is_phishing is True
    assert wallet.phishing_status.confidence == 90
    assert wallet.gas_tracker.high == 15
    assert chain.calls.index("contract") < chain.calls.index("wallet")
    assert "gas" in chain.calls
    # sin prompt de análisis de proyecto
    assert all("Please analyze this crypto project" not in p for p in oracle.prompts)


async def test_website_branch(oracle):
    fetcher = FakeFetcher(text="whitepaper team audit roadmap github.com twitter.com")
    result = await scan("https://project.io", chain=FakeChain(), fetcher=fetcher, oracle=oracle)
    # (100 + 70) / 2
    assert result.score == 85
    assert result.risk == RiskLevel.LOW
    assert result.details.website.score == 100
    assert result.details.contract is None
    assert "Website analysis completed successfully" in result.issues


async def test_phishing_penalty_after_averaging():
    fetcher = FakeFetcher(text="whitepaper team audit roadmap github.com twitter.com")
    oracle = FakeOracle(verdict=PHISHY, analysis="Safety Score: 60")
    result = await scan("https://project.io", chain=FakeChain(), fetcher=fetcher, oracle=oracle)
    # media 80, menos 30
    assert result.score == 50
    assert result.risk == RiskLevel.MEDIUM
    assert "flagged by community list" in result.issues
    assert result.details.phishing_status.is_phishing is True


async def test_penalty_never_drives_score_below_zero(fetcher):
    chain = FakeChain(contract=unverified())
    oracle = FakeOracle(verdict=PHISHY, analysis="Safety Score: 0")
    result = await scan(CONTRACT, chain=chain, fetcher=fetcher, oracle=oracle)
    assert result.score == 0
    assert result.risk == RiskLevel.HIGH


async def test_duplicate_issues_are_removed(fetcher):
    chain = FakeChain(contract=unverified())
    oracle = FakeOracle(
        verdict="Is Phishing: true\n- Contract is not verified on Etherscan",
        analysis=f"Score: 30\n- {UNVERIFIED_CONTRACT}\n- Contract is not verified on Etherscan",
    )
    result = await scan(CONTRACT, chain=chain, fetcher=fetcher, oracle=oracle)
    assert len(result.issues) == len(set(result.issues))
    assert result.issues.count("Contract is not verified on Etherscan") == 1


async def test_background_failures_degrade(fetcher):
    chain = FakeChain(contract=unverified(), gas_error=UpstreamTransportError("gas down"))
    oracle = FakeOracle(verdict_error=RuntimeError("model exploded"), analysis="Score: 70")
    result = await scan(CONTRACT, chain=chain, fetcher=fetcher, oracle=oracle)
    assert result.score == 50
    assert result.details.gas_tracker == GasSnapshot(timestamp=result.details.gas_tracker.timestamp)
    assert result.details.phishing_status.is_phishing is False
    assert result.details.phishing_status.warnings == ["unable to perform phishing analysis"]
    assert "unable to perform phishing analysis" not in result.issues


async def test_wallet_with_failed_phishing_check(fetcher):
    chain = FakeChain(contract=None, wallet=wallet_profile())
    oracle = FakeOracle(verdict_error=RuntimeError("boom"))
    result = await scan(WALLET, chain=chain, fetcher=fetcher, oracle=oracle)
    assert result.score == 100
    assert result.issues == ["unable to perform phishing analysis"]


async def test_address_failure_is_wrapped(fetcher, oracle):
    chain = FakeChain(error=RateLimitError("Etherscan API rate limit reached. Please try again in a moment."))
    with pytest.raises(ScanStageError) as exc:
        await scan(CONTRACT, chain=chain, fetcher=fetcher, oracle=oracle)
    assert str(exc.value).startswith("Address analysis failed: Etherscan API rate limit reached")
    assert exc.value.stage == "Address analysis"
    assert isinstance(exc.value.__cause__, RateLimitError)


async def test_ai_failure_is_wrapped(fetcher):
    chain = FakeChain(contract=unverified())
    oracle = FakeOracle(analysis_error=UpstreamTransportError("AI service error (500): oops"))
    with pytest.raises(ScanStageError, match=r"^AI analysis failed: AI service error \(500\): oops$"):
        await scan(CONTRACT, chain=chain, fetcher=fetcher, oracle=oracle)


async def test_website_fetch_failure_still_produces_result(oracle):
    fetcher = FakeFetcher(error=FetchError("HTTP error! status: 403"))
    result = await scan("https://blocked.io", chain=FakeChain(), fetcher=fetcher, oracle=oracle)
    # perfil neutral (50) + oráculo (70)
    assert result.score == 60
    assert result.details.website.details.content_flags == ["fetch-failed"]


async def test_background_tasks_cancelled_on_abort(fetcher):
    class SlowOracle(FakeOracle):
        task = None

        async def complete(self, prompt):
            if "phishing or scam indicators" in prompt:
                SlowOracle.task = asyncio.current_task()
                await asyncio.sleep(60)
            return await super().complete(prompt)

    class BrokenChain(FakeChain):
        async def get_contract_info(self, address):
            await asyncio.sleep(0)
            raise UpstreamTransportError("explorer down")

    with pytest.raises(ScanStageError, match="Address analysis failed: explorer down"):
        await scan(CONTRACT, chain=BrokenChain(), fetcher=fetcher, oracle=SlowOracle())

    task = SlowOracle.task
    assert task is not None
    await asyncio.gather(task, return_exceptions=True)
    assert task.cancelled()
