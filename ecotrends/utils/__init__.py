"""
Shared Utilities
================
Common functions used across multiple modules.

Modules:
    seed      - NumPy Generator construction from seeds
    raster_io - GeoTIFF read/write of prediction stacks and NoData cleaning
    spatial   - Nearest-cell sampling of surfaces at points, masking to point footprints
"""
