"""
Configuration constants for the NIfTI slice viewer.
All tolerances and configurable parameters are centralized here.
"""

# ==========================================
# Planes
# ==========================================
PLANES = ("yz", "xz", "xy")   # Sliced axis: x, y, z respectively

# ==========================================
# Volume Settings
# ==========================================

# Value every normalized sample takes when the volume is constant (min == max)
DEGENERATE_FILL_VALUE = 0

# Display range of normalized samples
NORMALIZED_MAX = 255

# ==========================================
# Geometry Settings
# ==========================================

# Vectors shorter than this are treated as zero (collinear plane points)
GEOMETRY_EPS = 1e-9

# Points closer than this are merged in the box/plane intersection polygon
INTERSECTION_MERGE_EPS = 1e-9

# ==========================================
# Oriented Plane Defaults
# ==========================================

# Plane used by run configs whose "oriented" block omits points (voxel coordinates)
DEFAULT_PLANE_POINTS = (
    (50.0, 30.0, 10.0),
    (10.0, 10.0, 10.0),
    (20.0, 10.0, 20.0),
)
DEFAULT_PLANE_DISTANCE = 0.0

# ==========================================
# Orchestrator Settings
# ==========================================

# Drop axis-slice responses superseded by a newer request for the same plane
DISCARD_STALE_SLICES = False

# Milliseconds to wait for the worker thread on shutdown
WORKER_STOP_TIMEOUT_MS = 5000

# ==========================================
# Export Settings
# ==========================================
EXPORT_FORMATS = ("vtk", "tiff", "npy")
DEFAULT_EXPORT_FORMATS = ("npy",)
DEFAULT_OUTPUT_DIR = "slices_output"

# Synthetic phantom size used by --dummy when no size is given
DUMMY_SHAPE = (64, 64, 48)
