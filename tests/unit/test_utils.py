"""Unit tests for date, currency and lock helpers"""

import asyncio
import pytest
from datetime import date
from decimal import Decimal
from finia_gateway.utils.date_utils import format_date, safe_date, widen_year
from finia_gateway.utils.formatting import format_currency
from finia_gateway.utils.locks import KeyedLocks


@pytest.mark.parametrize(
    "token,expected",
    [("00", 2000), ("24", 2024), ("49", 2049), ("50", 1950), ("98", 1998), ("2023", 2023), ("0000", 0), ("0024", 24)],
)
def test_widen_year(token, expected):
    """Test the two-digit year pivot only applies to two-digit tokens"""
    assert widen_year(token) == expected


def test_safe_date():
    """Test impossible calendar days are rejected"""
    assert safe_date(2024, 2, 29) == date(2024, 2, 29)
    assert safe_date(2023, 2, 29) is None
    assert safe_date(2024, 13, 1) is None


def test_format_date():
    assert format_date(date(2024, 4, 2)) == "02/04/2024"


@pytest.mark.parametrize(
    "value,expected",
    [
        (Decimal("0"), "R$ 0,00"),
        (Decimal("35"), "R$ 35,00"),
        (Decimal("1234.56"), "R$ 1.234,56"),
        (Decimal("1000000.1"), "R$ 1.000.000,10"),
        (Decimal("-50.5"), "- R$ 50,50"),
    ],
)
def test_format_currency(value, expected):
    """Test Brazilian currency formatting"""
    assert format_currency(value) == expected


async def test_keyed_locks_serialize_same_key():
    """Test holders of the same key run one at a time"""
    locks = KeyedLocks()
    events = []

    async def worker(name: str):
        async with locks.hold("+5511900000001"):
            events.append(f"{name}:start")
            await asyncio.sleep(0.01)
            events.append(f"{name}:end")

    await asyncio.gather(worker("a"), worker("b"))

    assert events == ["a:start", "a:end", "b:start", "b:end"]
    assert len(locks) == 0


async def test_keyed_locks_independent_keys():
    """Test different keys do not block each other"""
    locks = KeyedLocks()
    entered = asyncio.Event()

    async def first():
        async with locks.hold("a"):
            await asyncio.wait_for(entered.wait(), timeout=1)

    async def second():
        async with locks.hold("b"):
            entered.set()

    await asyncio.gather(first(), second())

    assert len(locks) == 0


async def test_keyed_locks_release_on_error():
    """Test the lock is released when the body raises"""
    locks = KeyedLocks()

    with pytest.raises(ValueError):
        async with locks.hold("a"):
            raise ValueError("boom")

    assert len(locks) == 0
    async with locks.hold("a"):
        assert len(locks) == 1
