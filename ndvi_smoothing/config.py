# input columns
TIMESTAMP_COLUMN = "timestamp"
NDVI_COLUMN = "ndvi"
CLOUD_COLUMN = "cp"

# quality filter: observations with cloud probability below this are "good"
CLOUD_THRESHOLD = 0.01

# box-plot whisker coefficient for the weekly outlier removal
IQR_COEF = 1.5

# Savitzky-Golay filter
SAVGOL_WINDOW = 15
SAVGOL_POLYORDER = 7

# upper bound on the spline's sum of squared residuals, small -> close to the data
SPLINE_SMOOTHING = 0.05
SPLINE_DEGREE = 3

# LOESS window, in multiples of the minimum sampling interval (one day)
LOESS_WINDOW_DAYS = 30
# fewest samples a LOESS neighbourhood may hold
LOESS_MIN_POINTS = 5

SMOOTHERS = ["savgol", "spline", "loess", "linear"]

FIGURE_SIZE = (12, 6)
FIGURE_DPI = 300
