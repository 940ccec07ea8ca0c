from typing import Callable, List, Optional

import httpx
import pytest

from cryptoguard.models import ContractProfile, GasSnapshot, WalletProfile

WALLET = "0x" + "ab" * 20
CONTRACT = "0x" + "cd" * 20


class FakeChain:
    def __init__(self, contract: Optional[ContractProfile] = None, wallet: Optional[WalletProfile] = None,
                 gas: Optional[GasSnapshot] = None, error: Optional[Exception] = None,
                 gas_error: Optional[Exception] = None):
        self.contract = contract
        self.wallet = wallet
        self.gas = gas or GasSnapshot(low=10, medium=12, high=15)
        self.error = error
        self.gas_error = gas_error
        self.calls: List[str] = []

    async def get_contract_info(self, address):
        self.calls.append("contract")
        if self.error:
            raise self.error
        return self.contract

    async def get_wallet_transactions(self, address):
        self.calls.append("wallet")
        return self.wallet

    async def get_gas_price(self):
        self.calls.append("gas")
        if self.gas_error:
            raise self.gas_error
        return self.gas


class FakeFetcher:
    def __init__(self, text: str = "", error: Optional[Exception] = None):
        self.text = text
        self.error = error
        self.calls: List[str] = []

    async def fetch_page(self, url):
        self.calls.append(url)
        if self.error:
            raise self.error
        return self.text


class FakeOracle:
    """Answers the phishing prompt and the project prompt separately."""

    def __init__(self, verdict: str = "Confidence: 10\nIs Phishing: false", analysis: str = "Safety Score: 70",
                 verdict_error: Optional[Exception] = None, analysis_error: Optional[Exception] = None):
        self.verdict = verdict
        self.analysis = analysis
        self.verdict_error = verdict_error
        self.analysis_error = analysis_error
        self.prompts: List[str] = []

    async def complete(self, prompt):
        self.prompts.append(prompt)
        if "phishing or scam indicators" in prompt:
            if self.verdict_error:
                raise self.verdict_error
            return self.verdict
        if self.analysis_error:
            raise self.analysis_error
        return self.analysis


def wallet_profile(address: str = WALLET) -> WalletProfile:
    return WalletProfile(address=address, balance="1000", last_active=1700000000, total_tx_count=0)


def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> Callable[[], httpx.AsyncClient]:
    """A ``_client()`` replacement whose requests are answered by ``handler``."""
    def factory():
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return factory


@pytest.fixture
def oracle():
    return FakeOracle()


@pytest.fixture
def fetcher():
    return FakeFetcher()
