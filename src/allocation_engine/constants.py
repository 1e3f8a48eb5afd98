"""Limits and precision settings shared by the validator and calculator"""

MIN_ASSETS = 2
MAX_ASSETS = 20

# Allowed drift of the summed target percentages from 100, in percentage points
PERCENTAGE_SUM_TOLERANCE = 0.1

# Money is handled in integer cents, shares are kept to 4 decimals
MONEY_MULTIPLIER = 100
SHARE_MULTIPLIER = 10000

MAX_NEW_MONEY = 1_000_000
