"""
Model Interfaces
================
Trained models are consumed only through predict(table) -> scores.

Modules:
    score_provider - ScoreProvider protocol, EstimatorScoreProvider adapter, cloglog link
"""
