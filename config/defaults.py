"""Default configuration constants for the Service Desk Dimensioning Engine."""

# Demand model calendar
WORKING_DAYS_PER_MONTH = 22
HOURS_PER_WORKDAY = 8
MINUTES_PER_HOUR = 60

# Workload safety margin applied after the occupancy correction
WORKLOAD_SAFETY_FACTOR = 1.2

# Monthly call capacity per agent (calls/month)
DEFAULT_TIER1_CAPACITY_PER_AGENT = 100
DEFAULT_TIER2_CAPACITY_PER_AGENT = 75
SHORT_SHIFT_CAPACITY_FACTOR = 0.75  # 6h shift handles 75% of an 8h shift

# Minimum agents per tier, regardless of demand
MIN_AGENTS_PER_TIER = 1

# Coverage targets
BUSINESS_HOURS_MIN_STAFF = 2
EXTENDED_HOURS_MIN_STAFF = 3
FULL_TIME_MIN_STAFF_RATIO = 0.3
FULL_TIME_SHIFT_COUNT = 4

# Shift premiums
NIGHT_SHIFT_MULTIPLIER = 1.3
EVENING_SHIFT_MULTIPLIER = 1.2
NIGHT_SPECIAL_RATE = 1.2
WEEKEND_SPECIAL_RATE = 1.1

# Days of week (0 = Sunday)
WEEKDAYS = [1, 2, 3, 4, 5]
ALL_DAYS = [0, 1, 2, 3, 4, 5, 6]
WEEKEND_DAYS = [0, 6]

# Weekly hours per hour class (8h or 6h shift equivalents)
WEEKLY_HOURS_FULL = 48
WEEKLY_HOURS_SHORT = 36
SUPPORTED_WEEKLY_HOURS = (WEEKLY_HOURS_FULL, WEEKLY_HOURS_SHORT)

# Other costs
ONE_TIME_AMORTIZATION_MONTHS = 12

# Contract and financial analysis
DEFAULT_CONTRACT_MONTHS = 12
INVESTMENT_RATIO = 0.2        # Implementation investment as share of total cost
DISCOUNT_RATE = 0.10          # Per-period (monthly) rate used for NPV / IRR / discounted payback
PROFIT_BASE_FALLBACK_RATIO = 0.2
IRR_MAX_ITERATIONS = 100
IRR_TOLERANCE = 0.0001

# Risk level by margin %
RISK_HIGH_MARGIN_PCT = 10.0
RISK_LOW_MARGIN_PCT = 25.0

# Tax suggestion thresholds (%)
TAX_EFFECTIVE_RATE_WARNING = 30.0
TAX_ISS_WARNING = 5.0
TAX_IR_WARNING = 15.0

# Tax presets per regime: component name -> rate %
TAX_PRESETS = {
    "lucro_presumido": {
        "PIS": 0.65,
        "COFINS": 3.0,
        "IR": 1.2,
        "CSLL": 1.08,
        "ISS": 5.0,
    },
    "lucro_real": {
        "PIS": 1.65,
        "COFINS": 7.6,
        "ISS": 5.0,
    },
    "simples_nacional": {
        "DAS": 6.0,
    },
}
DEFAULT_TAX_REGIME = "lucro_presumido"

# Scenario negotiation
BASELINE_SCENARIO_NAME = "Baseline"
COMPARISON_METRICS = [
    # (key, label, unit, higher_is_better)
    ("total_price", "Total Price", "currency", True),
    ("total_cost", "Total Cost", "currency", False),
    ("profit", "Profit", "currency", True),
    ("margin_pct", "Margin", "%", True),
    ("roi_pct", "ROI", "%", True),
    ("payback_months", "Payback", "months", False),
]

# Version history
MAX_VERSIONS_PER_SCENARIO = 50
VERSION_RETENTION_DAYS = 90
AUTO_BACKUP_TAG = "auto-backup"
ROLLBACK_TAG = "rollback"
KEEP_TAG = "keep"
SYSTEM_AUTHOR = "system-auto"
