from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


# ------------------- entrada -------------------
class AddressInput(BaseModel):
    kind: Literal["address"] = "address"
    value: str


class UrlInput(BaseModel):
    kind: Literal["url"] = "url"
    value: str


ScanInput = Annotated[Union[AddressInput, UrlInput], Field(discriminator="kind")]


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# ------------------- cadena -------------------
class Transaction(BaseModel):
    hash: str
    from_address: str = Field(default="", alias="from")
    to: str = ""
    value: str = "0"  # wei / unidades crudas del token
    timestamp: int = 0  # unix seconds
    is_error: str = "0"
    method_name: Optional[str] = None
    token_name: Optional[str] = None
    token_symbol: Optional[str] = None
    token_decimal: Optional[str] = None

    model_config = {"populate_by_name": True}


class TokenBalance(BaseModel):
    token_name: str
    token_symbol: str
    token_decimal: str
    balance: str
    contract_address: str


class ProfitLoss(BaseModel):
    total_profit: str
    total_loss: str
    net_position: str


class GasSnapshot(BaseModel):
    low: int = 0
    medium: int = 0
    high: int = 0
    timestamp: datetime = Field(default_factory=utcnow)


class PhishingVerdict(BaseModel):
    is_phishing: bool = False
    confidence: int = Field(default=0, ge=0, le=100)
    warnings: List[str] = Field(default_factory=list)


class WalletProfile(BaseModel):
    address: str
    balance: str = "0"
    token_balances: List[TokenBalance] = Field(default_factory=list)
    transactions: List[Transaction] = Field(default_factory=list)
    token_transfers: List[Transaction] = Field(default_factory=list)
    last_active: int
    # items fetched (max 50 + 50), not the lifetime count of the account
    total_tx_count: int
    gas_tracker: Optional[GasSnapshot] = None
    phishing_status: Optional[PhishingVerdict] = None
    profit_loss: Optional[ProfitLoss] = None


class TokenInfo(BaseModel):
    name: Optional[str] = None
    symbol: Optional[str] = None
    total_supply: Optional[str] = None
    holders: Optional[int] = None


class ContractProfile(BaseModel):
    is_verified: bool
    contract_name: Optional[str] = None
    compiler: Optional[str] = None
    balance: str = "0"
    tx_count: int = 0
    token_info: Optional[TokenInfo] = None


# ------------------- web -------------------
class WebsiteDetails(BaseModel):
    has_whitepaper: bool = False
    has_team_info: bool = False
    has_audit: bool = False
    has_roadmap: bool = False
    has_social_links: bool = False
    has_github: bool = False
    content_flags: List[str] = Field(default_factory=list)
    social_links: List[str] = Field(default_factory=list)


class WebsiteProfile(BaseModel):
    score: int = Field(ge=0, le=100)
    findings: List[str]
    details: WebsiteDetails


# ------------------- resultado -------------------
class WalletDetails(BaseModel):
    kind: Literal["wallet"] = "wallet"
    wallet: WalletProfile


class ProjectDetails(BaseModel):
    kind: Literal["project"] = "project"
    contract: Optional[ContractProfile] = None
    website: Optional[WebsiteProfile] = None
    gas_tracker: Optional[GasSnapshot] = None
    phishing_status: Optional[PhishingVerdict] = None


ScanDetails = Annotated[Union[WalletDetails, ProjectDetails], Field(discriminator="kind")]


class ScanResult(BaseModel):
    target: str
    risk: RiskLevel
    score: int = Field(ge=0, le=100)
    issues: List[str]
    details: Optional[ScanDetails] = None
    timestamp: datetime = Field(default_factory=utcnow)
