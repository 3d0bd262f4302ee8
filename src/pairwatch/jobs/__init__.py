"""Polling loop bodies. Each job exposes ``name`` and ``run_once() -> JobResult``."""

from pairwatch.jobs.indicators import IndicatorRefreshJob
from pairwatch.jobs.ingestion import PairIngestionJob
from pairwatch.jobs.market_cap import MarketCapRefreshJob
from pairwatch.jobs.metadata import PairMetadataRefreshJob

__all__ = [
    "IndicatorRefreshJob",
    "MarketCapRefreshJob",
    "PairIngestionJob",
    "PairMetadataRefreshJob",
]
