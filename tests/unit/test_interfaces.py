"""Tests for the oracle and sink protocols."""

from tests.helpers import CONTRACT, FakePool
from flash_arbitrage.arbitrage.oracle import ContractOracle
from flash_arbitrage.interfaces import OpportunitySink, ProfitabilityOracle


class RecordingSink:
    def __init__(self):
        self.batches = []

    async def submit(self, opportunities):
        self.batches.append(list(opportunities))


def test_contract_oracle_satisfies_protocol():
    assert isinstance(ContractOracle(FakePool(), CONTRACT), ProfitabilityOracle)


def test_sink_protocol():
    assert isinstance(RecordingSink(), OpportunitySink)
    assert not isinstance(object(), OpportunitySink)
