from urllib.parse import urlparse

from ..errors import InvalidInputError
from ..models import AddressInput, ScanInput, UrlInput

ADDRESS_LEN = 42
URL_SCHEMES = ("http", "https")


def is_evm_address(value: str) -> bool:
    return len(value) == ADDRESS_LEN and value.startswith("0x")


def is_web_url(value: str) -> bool:
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return parsed.scheme.lower() in URL_SCHEMES and bool(parsed.netloc)


def classify(raw: str) -> ScanInput:
    """Decide whether ``raw`` is an EVM address or a website URL.

    Purely syntactic: nothing is looked up on chain or resolved over the network.
    """
    value = (raw or "").strip()
    if not value:
        raise InvalidInputError("Please provide a contract address, wallet address, or project URL")
    if is_evm_address(value):
        return AddressInput(value=value)
    if is_web_url(value):
        return UrlInput(value=value)
    raise InvalidInputError(
        "Invalid input. Please provide a valid Ethereum address (0x...) or website URL (http...)"
    )


def short(addr: str) -> str:
    # 0x1234…abcd para logs
    if len(addr) <= 12:
        return addr
    return f"{addr[:6]}…{addr[-4:]}"
