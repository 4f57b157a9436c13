"""
Evaluation Framework
====================
Importance and performance evaluation of temporal model ensembles.

Modules:
    importance  - Permutation importance per model, aggregated over periods and replicates
    performance - Train/test AUC, TSS and Kappa of every replicate of every period
    metrics     - Presence-background scores, AUC, threshold search, confusion-matrix metrics
    visualize   - Plotting helpers: importance trends, ROC curves, threshold curves
    errors      - ShapeMismatchError, DegenerateImportanceError
"""
