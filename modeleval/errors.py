# Error taxonomy for the evaluation pipeline
# Every error is raised synchronously by the call that detects it


class EvaluationError(Exception):
    """Base class for evaluation pipeline errors."""
    pass


class InvalidParameter(EvaluationError):
    """Raised for bad split, fold, bootstrap or hyperparameter settings."""
    pass


class InsufficientData(EvaluationError):
    """Raised when a subset has too few records to fit the requested model."""
    pass


class DegenerateMetric(EvaluationError):
    """Raised when a metric is undefined for the given data (e.g. zero variance truth)."""
    pass
