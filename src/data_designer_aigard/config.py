from __future__ import annotations

from typing import Literal

from pydantic import Field

from data_designer.config.column_configs import SingleColumnConfig


class AigardColumnConfig(SingleColumnConfig):
    """Estimate how likely each row's text is machine generated, using local heuristics.

    Scores the concatenated target columns with the marker dictionary and the structural
    signal blend, and writes an AI score (0-100), a HUMAN/MIXED/AI label, and the evidence
    trail. A hosted classifier can be blended in at low weight when an API key is present
    in ``AIGARD_API_KEY``.

    Attributes:
        target_columns: Columns whose text content will be concatenated and scored.
        max_ai_score: Highest AI score (0-100) that still counts as ``is_valid=True``.
            Defaults to 40, the upper edge of the MIXED band.
        max_chunk_size: Longest chunk, in characters, scored as one window.
        include_evidence: Include the evidence phrases in output.
        include_metrics: Include diagnostic metrics (per-signal sub-scores, rhythm stats).
        use_external_classifier: Blend in the hosted classifier configured through the
            environment. Rows fall back to local scoring when no key is set.
    """

    target_columns: list[str]
    max_ai_score: int = Field(default=40, ge=0, le=100, description="Highest AI score for is_valid=True")
    max_chunk_size: int = Field(default=5000, gt=0, description="Maximum characters per scored chunk")
    include_evidence: bool = Field(default=True, description="Include evidence phrases in output")
    include_metrics: bool = Field(default=False, description="Include diagnostic metrics in output")
    use_external_classifier: bool = Field(default=False, description="Blend in the hosted classifier verdict")
    column_type: Literal["aigard"] = "aigard"

    @staticmethod
    def get_column_emoji() -> str:
        return "\U0001f575"

    @property
    def required_columns(self) -> list[str]:
        return self.target_columns

    @property
    def side_effect_columns(self) -> list[str]:
        return []
