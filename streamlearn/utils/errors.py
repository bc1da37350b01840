# streamlearn/utils/errors.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


class StreamLearnError(RuntimeError):
    """
    Root of every fatal error surfaced to the host.

    Wrapping sites chain the original cause (``raise ... from ex``).
    """


# ------------------------------------------------------------------
# Configuration errors (fatal, no retry)
# ------------------------------------------------------------------
class ConfigurationError(StreamLearnError):
    """
    Invalid configuration detected before or while wiring a run.
    """


class UnsupportedAttributeKind(ConfigurationError):
    pass


class UnsupportedModeCombination(ConfigurationError):
    pass


class MalformedModelPath(ConfigurationError):
    pass


class NotResumable(ConfigurationError):
    """
    A loaded model cannot continue training iteratively.
    """


# ------------------------------------------------------------------
# Schema / order violations (fatal for the run)
# ------------------------------------------------------------------
class RepeatedStratificationValue(StreamLearnError):
    """
    A stratification value re-appeared after its stratum was closed.
    Input must be sorted by the stratification field.
    """


class ModelKindMismatch(StreamLearnError):
    pass


# ------------------------------------------------------------------
# Runtime failures (wrapped)
# ------------------------------------------------------------------
class FlushError(StreamLearnError):
    """
    Fitting or evaluation failed while flushing a buffer.
    """


class PersistenceError(StreamLearnError):
    pass


# ------------------------------------------------------------------
# Recoverable per-row outcomes
# ------------------------------------------------------------------
@dataclass(frozen=True)
class Outcome:
    """
    Result of a recoverable per-row operation.

    ``warning`` is set when the operation fell back; ``value`` then holds
    the documented fallback (usually None).
    """
    value: Any = None
    warning: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.warning is None
