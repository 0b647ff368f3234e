"""Public SDK surface for periodharvest.

This module provides a stable import path for connector authors.
It re-exports the client, the connector contract, and typed models.
"""

from __future__ import annotations

from core.config import HarvestConfig
from core.periods import DayPeriod, MonthPeriod, PeriodId, QuarterPeriod, YearPeriod
from core.types import (
    NOT_YET_PUBLISHED,
    ConnectorSettings,
    ExtractionReport,
    ExtractionState,
    RawArtifact,
    RecordSet,
    ReindexReport,
)
from extract.client import HarvestClient
from extract.connector import BaseConnector, Connector
from extract.engine import ExtractionEngine
from extract.reindex import Reindexer
from layout.table_reconstruction import PositionedToken, Sentinel, TableLayout, reconstruct_table
from validation.field_parsers import (
    CommaDecimal,
    Count,
    Label,
    OptionalCount,
    Percentage,
    PointDecimal,
)
from validation.record_schema import RecordSchema

__all__ = [
    "NOT_YET_PUBLISHED",
    "BaseConnector",
    "CommaDecimal",
    "Connector",
    "ConnectorSettings",
    "Count",
    "DayPeriod",
    "ExtractionEngine",
    "ExtractionReport",
    "ExtractionState",
    "HarvestClient",
    "HarvestConfig",
    "Label",
    "MonthPeriod",
    "OptionalCount",
    "Percentage",
    "PeriodId",
    "PointDecimal",
    "PositionedToken",
    "QuarterPeriod",
    "RawArtifact",
    "RecordSchema",
    "RecordSet",
    "ReindexReport",
    "Reindexer",
    "Sentinel",
    "TableLayout",
    "YearPeriod",
    "reconstruct_table",
]
