"""
Training Doctrine

Two training paradigms share one row-by-row controller.

------------------------------------------------------------
Paradigm A: Buffered Batch Training
------------------------------------------------------------

- rows are buffered (all / every n rows / per stratification key)
- on flush: schema built over the buffer, evaluation protocol run,
  final model fitted on the whole buffer
- memory bounded by the buffer (or reservoir sample)

------------------------------------------------------------
Paradigm B: Incremental Training
------------------------------------------------------------

- chosen when the scheme updates in place AND the evaluation mode
  is none / separate test set / prequential
- per key: short header cache, then every row is tested and then
  used to update the model; rows are discarded after use

------------------------------------------------------------
Ordering
------------------------------------------------------------

Stratified input MUST be sorted by the stratification field.
On the buffered path (and in the separate test set driver) a key
re-appearing after its stratum was closed is a fatal error; the
incremental path keeps every key open until end-of-stream.
Rows with a null key are skipped with a warning.
"""
from .controller import TrainingController
from .incremental import IncrementalTrainer
from .persistence import ModelStore, StoredModel
from .pipeline import StreamingTrainingPipeline
from .separate_test import SeparateTestSetEvaluator
from .state import KeyReader, RunCounters, StratumState

__all__ = [
    "TrainingController",
    "IncrementalTrainer",
    "ModelStore",
    "StoredModel",
    "StreamingTrainingPipeline",
    "SeparateTestSetEvaluator",
    "KeyReader",
    "RunCounters",
    "StratumState",
]
