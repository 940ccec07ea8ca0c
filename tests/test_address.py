import pytest

from cryptoguard.errors import InvalidInputError
from cryptoguard.models import AddressInput, UrlInput
from cryptoguard.utils.address import classify, short


def test_address_is_classified():
    addr = "0x742d35Cc6634C0532925a3b844Bc454e4438f44e"
    result = classify(addr)
    assert isinstance(result, AddressInput)
    assert result.kind == "address"
    assert result.value == addr


@pytest.mark.parametrize("url", ["https://uniswap.org", "http://example.com/token?x=1", "HTTPS://Example.com"])
def test_urls_are_classified(url):
    result = classify(url)
    assert isinstance(result, UrlInput)
    assert result.value == url


def test_surrounding_whitespace_is_ignored():
    assert classify("  https://uniswap.org \n").value == "https://uniswap.org"


@pytest.mark.parametrize("raw", [
    "",
    "   ",
    None,
    "0x1234",
    "0x" + "a" * 41,
    "742d35Cc6634C0532925a3b844Bc454e4438f44e00",
    "ftp://example.com",
    "example.com",
    "https://",
    "hello world",
])
def test_everything_else_is_rejected(raw):
    with pytest.raises(InvalidInputError):
        classify(raw)


def test_short():
    assert short("0x742d35Cc6634C0532925a3b844Bc454e4438f44e") == "0x742d…f44e"
    assert short("0x12") == "0x12"
