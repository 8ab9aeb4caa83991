# SPDX-License-Identifier: Apache-2.0
"""AIGard plugin for NeMo Data Designer.

Adds an ``aigard`` column type that estimates, from surface features alone, how likely
a passage was written by a language model. Russian and English text are supported; a
curated dictionary of human jargon and idioms short-circuits the structural signals.

Usage::

    from data_designer_aigard import AigardColumnConfig

    builder.add_column(AigardColumnConfig(
        name="provenance",
        target_columns=["review"],
        max_ai_score=40,
    ))
"""

from data_designer_aigard.config import AigardColumnConfig
from data_designer_aigard.core import DocumentVerdict, analyze_text, analyze_text_async, split_chunks
from data_designer_aigard.errors import (
    AuthenticationError,
    ExternalUnavailableError,
    InputTooShortError,
    MalformedExternalResponseError,
    RateLimitError,
)
from data_designer_aigard.external import (
    ClassifierSettings,
    ExternalClassifier,
    ExternalVerdict,
    MistralClassifier,
    NullClassifier,
    classifier_from_settings,
)
from data_designer_aigard.hyperparameters import Hyperparameters

__all__ = [
    "AigardColumnConfig",
    "AuthenticationError",
    "ClassifierSettings",
    "DocumentVerdict",
    "ExternalClassifier",
    "ExternalUnavailableError",
    "ExternalVerdict",
    "Hyperparameters",
    "InputTooShortError",
    "MalformedExternalResponseError",
    "MistralClassifier",
    "NullClassifier",
    "RateLimitError",
    "analyze_text",
    "analyze_text_async",
    "classifier_from_settings",
    "split_chunks",
]
