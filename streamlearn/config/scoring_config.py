# streamlearn/config/scoring_config.py
from pydantic import BaseModel


class ScoringConfig(BaseModel):
    """
    ScoringConfig

    - model_path: joblib artifact written by the training side
    - update_incremental_model: update updateable models with labelled rows
    - output_probabilities: append the full distribution + max probability
    - perform_evaluation: emit one metric row instead of scored rows
    """

    model_path: str
    update_incremental_model: bool = False
    output_probabilities: bool = False
    perform_evaluation: bool = False
    batch_size: int = 0
