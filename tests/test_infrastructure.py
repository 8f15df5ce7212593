"""Tests for the one-time cell and the account context."""

import threading
import uuid
from concurrent.futures import ThreadPoolExecutor

import pytest

from pal_infrastructure import (
    AccountContext,
    OnceCell,
    get_current_account_id,
    require_current_account_id,
    set_current_account_id,
)


def test_once_cell_keeps_first_value():
    cell: OnceCell[bytes] = OnceCell()

    assert not cell.is_set
    assert cell.get() is None
    assert cell.set(b"first") == b"first"
    assert cell.set(b"second") == b"first"
    assert cell.get() == b"first"


def test_once_cell_concurrent_writers_agree():
    cell: OnceCell[int] = OnceCell()
    barrier = threading.Barrier(8)

    def write(value: int) -> int:
        barrier.wait()
        return cell.set(value)

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(write, range(8)))

    assert len(set(results)) == 1
    assert cell.get() == results[0]


def test_account_context_sets_and_resets():
    account_id = uuid.uuid4()

    assert get_current_account_id() is None
    with AccountContext(account_id):
        assert get_current_account_id() == account_id
        assert require_current_account_id() == account_id
    assert get_current_account_id() is None


async def test_account_context_async():
    account_id = uuid.uuid4()

    async with AccountContext(account_id):
        assert get_current_account_id() == account_id
    assert get_current_account_id() is None


def test_require_current_account_id_without_context():
    with pytest.raises(LookupError):
        require_current_account_id()


def test_set_current_account_id_returns_reset_token():
    account_id = uuid.uuid4()
    with AccountContext(uuid.uuid4()):
        token = set_current_account_id(account_id)
        assert get_current_account_id() == account_id
        token.var.reset(token)
