"""Prediction rule engine.

Pure, synchronous evaluation of every field rule against evidence that was
fetched beforehand. A failing rule is logged and skipped; the remaining
fields are still produced.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from habitta.models import EnrichmentSnapshot, PredictionField, PredictionResult, PropertyRecord
from habitta.prediction.context import EvidenceContext, PredictionSettings, build_context
from habitta.prediction.rules import FieldRule, default_rules
from habitta.prediction.timeline import SystemTimeline, infer_timelines
from habitta.reference.lifespans import ClimateFactorTable, LifespanTable

logger = logging.getLogger(__name__)


@dataclass
class EngineOutput:
    results: list[PredictionResult] = field(default_factory=list)
    failed_fields: list[PredictionField] = field(default_factory=list)

    def by_field(self) -> dict[PredictionField, PredictionResult]:
        return {result.field: result for result in self.results}


class PredictionEngine:
    """Evaluate the field rules with injected reference tables."""

    def __init__(
        self,
        lifespans: LifespanTable,
        climate_factors: ClimateFactorTable,
        rules: list[FieldRule] | None = None,
        settings: PredictionSettings | None = None,
    ):
        self.lifespans = lifespans
        self.climate_factors = climate_factors
        self.rules = rules if rules is not None else default_rules()
        self.settings = settings or PredictionSettings()

    def predict(
        self,
        snapshots: Iterable[EnrichmentSnapshot],
        prop: PropertyRecord,
        as_of: date | None = None,
    ) -> EngineOutput:
        """Predict every tracked field for one property.

        Args:
            snapshots: Enrichment snapshots for the property (any providers)
            prop: Property row
            as_of: Date ages are measured against (defaults to today)

        Returns:
            EngineOutput with the successful results and the failed fields
        """
        ctx = build_context(
            snapshots,
            prop,
            self.lifespans,
            self.climate_factors,
            as_of or date.today(),
            self.settings,
        )
        return self.evaluate(ctx)

    def timelines(
        self,
        snapshots: Iterable[EnrichmentSnapshot],
        prop: PropertyRecord,
        as_of: date | None = None,
    ) -> list[SystemTimeline]:
        """Replacement timelines for the major systems of one property."""
        ctx = build_context(
            snapshots,
            prop,
            self.lifespans,
            self.climate_factors,
            as_of or date.today(),
            self.settings,
        )
        return infer_timelines(ctx)

    def evaluate(self, ctx: EvidenceContext) -> EngineOutput:
        output = EngineOutput()
        for rule in self.rules:
            try:
                result = rule.evaluate(ctx)
            except Exception:
                logger.exception(
                    "Prediction failed for %s field %s",
                    ctx.property.address_id,
                    rule.field.value,
                )
                output.failed_fields.append(rule.field)
                continue
            logger.debug(
                "Predicted %s=%s (%.2f, tier=%s) for %s",
                result.field.value,
                result.value,
                result.confidence,
                result.provenance.get("tier"),
                ctx.property.address_id,
            )
            output.results.append(result)
        return output
