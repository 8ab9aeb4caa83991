from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Optional

import httpx
from data_designer.engine.column_generators.generators.base import ColumnGeneratorFullColumn

from data_designer_aigard.config import AigardColumnConfig
from data_designer_aigard.core import DocumentVerdict, analyze_text, analyze_text_async
from data_designer_aigard.errors import InputTooShortError
from data_designer_aigard.external import ClassifierSettings, ExternalClassifier, MistralClassifier
from data_designer_aigard.hyperparameters import DEFAULT_HYPERPARAMETERS, Hyperparameters

if TYPE_CHECKING:
    import pandas as pd

logger = logging.getLogger(__name__)


class AigardColumnGenerator(ColumnGeneratorFullColumn[AigardColumnConfig]):
    """Column generator that estimates machine authorship of text via heuristic signals."""

    def generate(self, data: pd.DataFrame) -> pd.DataFrame:
        logger.info(f"\U0001f575 Scoring column {self.config.name!r} for machine-generated text")
        logger.info(f"   target columns: {self.config.target_columns}")
        logger.info(f"   max_ai_score: {self.config.max_ai_score}")

        hp = replace(DEFAULT_HYPERPARAMETERS, max_chunk_size=self.config.max_chunk_size)
        texts = [
            " ".join(str(v) for v in row.values if v is not None)
            for _, row in data[self.config.target_columns].iterrows()
        ]

        settings = ClassifierSettings.from_env() if self.config.use_external_classifier else None
        if settings is not None and not settings.configured:
            logger.warning("   AIGARD_API_KEY is not set, scoring with local heuristics only")
            settings = None

        if settings is None:
            verdicts = [self._score(text, hp) for text in texts]
        else:
            logger.info(f"   external classifier: {settings.model}")
            verdicts = asyncio.run(self._score_with_classifier(texts, settings, hp))

        data = data.copy()
        data[self.config.name] = [self._row_output(v) for v in verdicts]
        return data

    @staticmethod
    def _score(text: str, hp: Hyperparameters) -> Optional[DocumentVerdict]:
        try:
            return analyze_text(text, hp)
        except InputTooShortError:
            return None

    @staticmethod
    async def _score_async(text: str, classifier: ExternalClassifier, hp: Hyperparameters) -> Optional[DocumentVerdict]:
        try:
            return await analyze_text_async(text, classifier, hp)
        except InputTooShortError:
            return None

    async def _score_with_classifier(
        self, texts: list[str], settings: ClassifierSettings, hp: Hyperparameters
    ) -> list[Optional[DocumentVerdict]]:
        async with httpx.AsyncClient(timeout=settings.timeout) as client:
            classifier = MistralClassifier(settings, client=client)
            return [await self._score_async(text, classifier, hp) for text in texts]

    def _row_output(self, verdict: Optional[DocumentVerdict]) -> dict:
        if verdict is None:
            return {
                "is_valid": True,
                "ai_score": None,
                "ai_label": None,
                "ai_confidence": None,
                "chunks": 0,
                "error": "text too short",
            }
        output: dict = {
            "is_valid": verdict.ai_score <= self.config.max_ai_score,
            "ai_score": verdict.ai_score,
            "ai_label": verdict.label,
            "ai_confidence": round(verdict.confidence, 2),
            "chunks": verdict.chunks,
        }
        if self.config.include_evidence:
            output["ai_evidence"] = list(verdict.evidence)
            output["ai_explanation"] = verdict.explanation
        if self.config.include_metrics:
            output["ai_metrics"] = dict(verdict.metrics)
        if verdict.external_errors:
            output["external_errors"] = list(verdict.external_errors)
        return output
