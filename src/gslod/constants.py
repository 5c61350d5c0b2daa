"""
Constants and default values for gslod.

Centralizes magic numbers and configuration defaults for better maintainability.
"""

from __future__ import annotations

# =============================================================================
# LOD Builder Defaults
# =============================================================================

DEFAULT_DISTANCES = (5.0, 10.0, 20.0, 50.0)  # Ascending viewing distances
DEFAULT_SMOOTH_FACTOR = 1.0  # s in blur = (s * d / f)^2
DEFAULT_FOCAL_LENGTH = 1000.0  # Approximate focal length in pixels
DEFAULT_PRUNING_THRESHOLD = 0.02  # Base pruning threshold (tau)
DEFAULT_FINE_TUNE_STEPS = 100  # Opacity adjustment steps per pruning step
DEFAULT_DIFFUSION_ALPHA = 0.1  # Opacity compensation for blurred footprint
DEFAULT_VALIDATION_VIEWS = 10  # Reserved for multi-view scorers
DEFAULT_MAX_WORKERS = 1  # Levels built sequentially

# Fraction of tau used at each pruning step within one level
THRESHOLD_SCHEDULE = (0.2, 0.6, 1.0)

# =============================================================================
# Importance / Pruning Constants
# =============================================================================

IMPORTANCE_DISTANCE_FALLOFF = 0.1  # score = opacity * exp(-0.1 * |center|)
SCENE_ORIGIN = (0.0, 0.0, 0.0)
FALLBACK_KEEP_FRACTION = 0.1  # Keep top 10% when nothing passes tau

# =============================================================================
# Fine-Tuning Constants
# =============================================================================

FINE_TUNE_SAMPLE_LOW = 0.7  # d_sample ~ U[0.7 d, 1.3 d]
FINE_TUNE_SAMPLE_HIGH = 1.3
FINE_TUNE_FALLOFF = 0.01  # factor = exp(-0.01 * (d_sample - d)^2)

# =============================================================================
# Scene I/O Constants
# =============================================================================

SH_C0 = 0.28209479177387814  # Zeroth-order spherical harmonic constant
DEFAULT_EXPORT_COLOR = 128  # Gray used when colors were dropped by pruning
IDENTITY_QUATERNION = (1.0, 0.0, 0.0, 0.0)  # w, x, y, z
MIN_EXPORT_SCALE = 1e-7  # Floor before log() on export
OPACITY_EPSILON = 1e-6  # Keeps logit() finite on export
MIN_ACTIVATED_SCALE = 1e-7  # Clamp range for exp(log-scale) on load
MAX_ACTIVATED_SCALE = 1e4
OPACITY_PRUNE_PERCENTAGES = (10, 20, 30, 40, 50)  # Opacity-percentile pruning tool
METADATA_VERSION = "1.0"

# =============================================================================
# General Constants
# =============================================================================

SPATIAL_DIMS = 3  # X, Y, Z
COVARIANCE_TERMS = 6  # Upper triangle of a symmetric 3x3 matrix
COLOR_CHANNELS = 4  # R, G, B, A

# Diagonal entries of the packed covariance (S00, S11, S22)
COVARIANCE_DIAGONAL = (0, 3, 5)
