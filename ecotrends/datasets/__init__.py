"""
Evaluation Inputs
=================
Containers for the trained models and prediction surfaces being evaluated.

Modules:
    model_set - ModelSet: period -> replicate -> ScoreProvider, plus the shared observation table
    surfaces  - SurfaceStack: one prediction layer per replicate on a common grid
"""
