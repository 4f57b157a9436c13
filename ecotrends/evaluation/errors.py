"""
Evaluation Errors
=================
Exceptions raised by the importance and performance pipelines.
"""


class ShapeMismatchError(ValueError):
    """Periods, replicates or columns disagree between the evaluation inputs."""


class DegenerateImportanceError(ZeroDivisionError):
    """
    Permutation importances of a model sum to zero and cannot be normalised.

    Typically a model whose predictions do not react to any predictor
    (e.g. a constant score).
    """

    def __init__(self, message, period=None, replicate=None):
        self.period = period
        self.replicate = replicate
        if period is not None:
            message = f"{message} (period {period}, replicate {replicate})"
        super().__init__(message)
