BATCH_PROCESSING = "processing"
BATCH_PROCESSED = "processed"
BATCH_FAILED = "failed"

# Filter token meaning "no filter", as sent by dashboard dropdowns.
ALL_FILTER_TOKEN = "ALL"

GRANULARITIES = ("day", "week", "month")
DEFAULT_GRANULARITY = "day"

STOCK_CRITICAL = "critical"
STOCK_LOW = "low"
STOCK_ADEQUATE = "adequate"
STOCK_HIGH = "high"
STOCK_STATUSES = (STOCK_CRITICAL, STOCK_LOW, STOCK_ADEQUATE, STOCK_HIGH)

# Upper bounds (exclusive) in days of stock for each band.
STOCK_STATUS_THRESHOLDS = (
    (7, STOCK_CRITICAL),
    (14, STOCK_LOW),
    (30, STOCK_ADEQUATE),
)

CBM_HIGH = "high"
CBM_MEDIUM = "medium"
CBM_LOW = "low"
CBM_LEVELS = (CBM_HIGH, CBM_MEDIUM, CBM_LOW)

# Lower bounds (inclusive) in cubic meters for each dead-stock level.
CBM_LEVEL_THRESHOLDS = (
    (1.0, CBM_HIGH),
    (0.1, CBM_MEDIUM),
)

MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
