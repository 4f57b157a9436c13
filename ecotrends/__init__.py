"""
ecotrends
=========
Evaluation of temporal ensembles of species-distribution models: permutation
importance of predictors and train/test discrimination (AUC, TSS, Kappa) of
every model replicate across a sequence of periods.

Modules:
    datasets/   - ModelSet (models + observation table) and prediction SurfaceStacks
    models/     - ScoreProvider interface and adapters for fitted estimators
    evaluation/ - Permutation importance, performance metrics, threshold optimisation, plots
    utils/      - Shared utility functions (raster I/O, spatial sampling, seeding)
    config      - YAML configuration loading
"""

__version__ = "0.1.0"
