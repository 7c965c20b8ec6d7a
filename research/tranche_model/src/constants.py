# Fixed point scale factors
PRECISION = 1_000_000_000_000_000_000  # 1e18
BPS_DENOMINATOR = 10_000  # Basis points (100% = 10000)
MAX_UINT256 = 2**256 - 1

# Time constants
SECONDS_PER_DAY = 24 * 60 * 60
SECONDS_PER_MONTH = 30 * SECONDS_PER_DAY
SECONDS_PER_YEAR = 365 * SECONDS_PER_DAY
COOLDOWN_PERIOD = 7 * SECONDS_PER_DAY
DEPOSIT_EXPIRY = 48 * 60 * 60
DEFAULT_MIN_REBASE_INTERVAL = SECONDS_PER_MONTH

# APY tiers (annualized, bps)
MIN_APY_BPS = 1100  # 11%
MID_APY_BPS = 1200  # 12%
MAX_APY_BPS = 1300  # 13%

# Monthly compounding rates: (1 + apy) ** (1 / 12) - 1, scaled by PRECISION
MIN_MONTHLY_RATE = 8_734_593_823_552_000   # 11% APY
MID_MONTHLY_RATE = 9_488_792_934_583_000   # 12% APY
MAX_MONTHLY_RATE = 10_236_844_358_176_000  # 13% APY

# Senior backing thresholds
SENIOR_TARGET_BACKING = PRECISION * 110 // 100     # 110%
SENIOR_TRIGGER_BACKING = PRECISION                 # 100%
SENIOR_RESTORE_BACKING = PRECISION * 1009 // 1000  # 100.9%

# Spillover split
JUNIOR_SPILLOVER_SHARE = PRECISION * 80 // 100   # 80%
RESERVE_SPILLOVER_SHARE = PRECISION * 20 // 100  # 20%

# Fee constants
MGMT_FEE_ANNUAL = PRECISION // 100            # 1% per year
PERF_FEE = PRECISION * 2 // 100               # 2% of newly accrued tokens
EARLY_WITHDRAWAL_PENALTY = PRECISION * 20 // 100  # 20% inside cooldown
WITHDRAWAL_FEE = PRECISION // 100             # 1% standing fee

# Deposit cap: Senior supply may not exceed reserve value x 10
DEPOSIT_CAP_MULTIPLIER = 10

# updateValue bounds per call (bps)
MAX_VALUE_INCREASE_BPS = 10_000  # +100%
MAX_VALUE_DECREASE_BPS = 5_000   # -50%

# Reserve counts as depleted below 1% of last month's value
RESERVE_DEPLETION_THRESHOLD = PRECISION // 100
