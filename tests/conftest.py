"""Shared fixtures built on the fakes in tests/helpers.py."""

import pytest

from tests.helpers import FakeClock, FakePool, FakeQuoter, FakeSleep, FakeWeb3, make_triple


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_sleep():
    return FakeSleep()


@pytest.fixture
def fake_web3():
    return FakeWeb3()


@pytest.fixture
def fake_pool(fake_web3):
    return FakePool(fake_web3)


@pytest.fixture
def quoter():
    return FakeQuoter()


@pytest.fixture
def triple():
    return make_triple()


