"""Global default values and constants.

All numeric constants used throughout the pv_ev_model package must be defined
here rather than as inline literals. Import from this module wherever a constant
is needed to ensure a single source of truth and full traceability.
"""

# ---------------------------------------------------------------------------
# Time constants
# ---------------------------------------------------------------------------

HOURS_PER_YEAR: int = 8760
"""Number of hours in a non-leap year (365 × 24)."""

DAYS_PER_YEAR: int = 365
"""Number of days used per simulation year (leap-day hours are discarded)."""

HOURS_PER_DAY: int = 24
"""Number of hourly timesteps per day."""

DAYS_PER_WEEK: int = 7
"""Length of the weekly demand cycle."""

WEEKEND_START_DAY: int = 5
"""Day-of-week index (``day % 7``) from which a day counts as weekend."""

MONTH_BLOCK_HOURS: int = 730
"""Fixed hour block used for monthly chart aggregation (8760 / 12)."""

MONTHS_PER_YEAR: int = 12
"""Number of monthly blocks in a year."""

# ---------------------------------------------------------------------------
# Unit conversion
# ---------------------------------------------------------------------------

KWH_TO_MWH: float = 1.0 / 1000.0
"""Conversion factor from kWh to MWh (multiply kWh value by this)."""

KG_TO_TONNES: float = 1.0 / 1000.0
"""Conversion factor from kg to metric tonnes."""

# ---------------------------------------------------------------------------
# Embedded heuristics (overridable via ``Assumptions``)
# ---------------------------------------------------------------------------

DEFAULT_CO2_FACTOR_KG_PER_KWH: float = 0.3
"""Grid emission factor avoided per kWh of PV production (kg CO2/kWh)."""

DEFAULT_AVG_CHARGE_ENERGY_KWH: float = 30.0
"""Average energy delivered per EV charge event (kWh)."""

DEFAULT_AVG_CHARGE_DURATION_H: float = 1.5
"""Average duration of one EV charge event (hours)."""

DEFAULT_PRODUCTION_DEGRADATION_PCT: float = 0.5
"""Annual PV production degradation used for LCOE (% per year)."""

# ---------------------------------------------------------------------------
# Dispatch defaults
# ---------------------------------------------------------------------------

DEFAULT_START_SOC_FRACTION: float = 0.50
"""Initial state-of-charge for hour 0 (fraction of nameplate capacity)."""

ENERGY_TOLERANCE: float = 1e-9
"""Energy amounts below this (kWh) are treated as zero in the dispatch loop."""

# ---------------------------------------------------------------------------
# Default PV configuration
# ---------------------------------------------------------------------------

DEFAULT_PV_POWER_KWP: float = 100.0
DEFAULT_PV_ORIENTATION_DEG: float = 180.0
"""Compass azimuth (0 = north, 180 = south)."""
DEFAULT_PV_TILT_DEG: float = 30.0
DEFAULT_LATITUDE: float = 41.9028
DEFAULT_LONGITUDE: float = 12.4964
DEFAULT_PV_COST_PER_KWP: float = 900.0
DEFAULT_PV_OM_COST_PCT: float = 1.5
DEFAULT_PV_LIFE_YEARS: int = 25
DEFAULT_SYSTEM_LOSS_PCT: float = 14.0
"""PVGIS system loss (cabling, inverter, soiling) in percent."""

# ---------------------------------------------------------------------------
# Default storage configuration
# ---------------------------------------------------------------------------

DEFAULT_STORAGE_CAPACITY_KWH: float = 200.0
DEFAULT_STORAGE_MAX_POWER_KW: float = 50.0
DEFAULT_STORAGE_RTE_PCT: float = 90.0
DEFAULT_STORAGE_COST_PER_KWH: float = 400.0
DEFAULT_STORAGE_OM_COST_PER_YEAR: float = 2000.0
DEFAULT_STORAGE_LIFE_YEARS: int = 15
DEFAULT_STORAGE_MAX_DOD_PCT: float = 90.0

# ---------------------------------------------------------------------------
# Default charging configuration
# ---------------------------------------------------------------------------

DEFAULT_NUM_STATIONS: int = 2
DEFAULT_POWER_PER_STATION_KW: float = 22.0
DEFAULT_COST_PER_STATION: float = 8000.0
DEFAULT_OM_COST_PER_STATION: float = 500.0
DEFAULT_CHARGING_LIFE_YEARS: int = 10
DEFAULT_CHARGING_TARIFF: float = 0.45
DEFAULT_UTILIZATION_RATE_PCT: float = 10.0
"""Equivalent full-power hours as a share of the 8760 hours of the year."""

# ---------------------------------------------------------------------------
# Default economic configuration
# ---------------------------------------------------------------------------

DEFAULT_AVG_PURCHASE_PRICE: float = 0.12
DEFAULT_SYSTEM_CHARGES: float = 0.08
DEFAULT_GRID_SELL_PRICE: float = 0.08
DEFAULT_BUSINESS_PLAN_YEARS: int = 15
DEFAULT_DISCOUNT_RATE_PCT: float = 5.0
DEFAULT_TAX_RATE_PCT: float = 28.0
DEFAULT_INFLATION_RATE_PCT: float = 2.0
DEFAULT_TECHNICAL_COSTS_PCT: float = 10.0
DEFAULT_INSURANCE_PCT: float = 0.5

# ---------------------------------------------------------------------------
# Default profile synthesis
# ---------------------------------------------------------------------------

DEMAND_RANDOM_MIN: float = 0.8
"""Lower bound of the multiplicative noise applied to synthetic demand."""

DEMAND_RANDOM_SPAN: float = 0.4
"""Width of the multiplicative noise band for synthetic demand."""

DEMAND_PROFILE_DECIMALS: int = 2
"""Rounding applied to the synthetic demand profile (kW)."""

PRICE_PEAK: float = 0.12
"""Synthetic price during peak hours 08–20 (currency/kWh)."""

PRICE_SHOULDER: float = 0.10
"""Synthetic price during shoulder hours 06–07 and 21–22 (currency/kWh)."""

PRICE_OFF_PEAK: float = 0.06
"""Synthetic price during night hours (currency/kWh)."""

PRICE_SEASONAL_AMPLITUDE: float = 0.2
"""Amplitude of the seasonal price modulation (winter higher)."""

PRICE_RANDOM_MIN: float = 0.9
PRICE_RANDOM_SPAN: float = 0.2
PRICE_PROFILE_DECIMALS: int = 3
DAYS_PER_PRICE_MONTH: int = 30
"""Day-to-month mapping used by the synthetic price generator."""

# ---------------------------------------------------------------------------
# Clear-sky fallback PV model
# ---------------------------------------------------------------------------

SOLAR_DECLINATION_MAX_DEG: float = 23.45
"""Maximum solar declination (degrees)."""

SOLAR_DECLINATION_DAY_OFFSET: int = 81
"""Day-of-year offset of the spring equinox in the declination formula."""

DEGREES_PER_HOUR: float = 15.0
"""Hour-angle rotation of the Earth per hour (degrees)."""

SOLAR_NOON_HOUR: int = 12
"""Local hour used as solar noon."""

CLEAR_SKY_IRRADIANCE_W_M2: float = 1000.0
"""Standard test condition irradiance (W/m²)."""

DEFAULT_ATMOSPHERIC_FACTOR: float = 0.75
"""Clear-sky attenuation factor applied to the geometric irradiance."""

# ---------------------------------------------------------------------------
# PVGIS API
# ---------------------------------------------------------------------------

PVGIS_API_BASE_URL: str = "https://re.jrc.ec.europa.eu/api/v5_2/"
"""Base URL for the EU PVGIS REST API."""

PVGIS_CACHE_DIR: str = "~/.pv_ev_cache"
"""Local directory for caching raw PVGIS JSON responses."""

PVGIS_SERIESCALC_ENDPOINT: str = "seriescalc"
"""PVGIS endpoint used for hourly production data."""

PVGIS_OUTPUT_FORMAT: str = "json"
PVGIS_PV_TECHNOLOGY: str = "crystSi"
PVGIS_MOUNTING_PLACE: str = "free"
PVGIS_REFERENCE_YEAR: int = 2020
"""Single historical year requested from PVGIS as representative year."""

PVGIS_RETRY_MAX: int = 3
"""Maximum number of HTTP attempts for PVGIS API calls."""

PVGIS_RETRY_BACKOFF_FACTOR: float = 1.5
"""Exponential backoff factor (seconds) between PVGIS retries."""

PVGIS_REQUEST_TIMEOUT_S: int = 60
"""HTTP request timeout in seconds for PVGIS API calls."""

PVGIS_AZIMUTH_OFFSET_DEG: float = 180.0
"""Compass azimuth minus this gives the PVGIS aspect (0 = south)."""

W_TO_KW: float = 1.0 / 1000.0

# ---------------------------------------------------------------------------
# IRR solver
# ---------------------------------------------------------------------------

IRR_INITIAL_GUESS: float = 0.1
"""Starting rate for Newton-Raphson."""

IRR_MAX_ITERATIONS: int = 1000
"""Iteration cap for both Newton-Raphson and bisection."""

IRR_CONVERGENCE_TOLERANCE: float = 1e-7
"""Convergence tolerance on |NPV|, rate step and bracket width."""

IRR_LOWER_BOUND: float = -0.99
"""Lowest admissible rate (keeps 1 + rate positive)."""

IRR_UPPER_BOUND: float = 10.0
"""Highest admissible rate (1000 %)."""

IRR_FLAT_DERIVATIVE_STEP: float = 0.1
"""Rate perturbation applied when the NPV derivative is (near) zero."""

# ---------------------------------------------------------------------------
# Output defaults
# ---------------------------------------------------------------------------

DEFAULT_OUTPUT_DIR: str = "output"
"""Default root directory for scenario result files."""

CSV_DELIMITER: str = ","
"""Delimiter used in all input and output CSV files."""

CSV_TIMESTAMP_FORMAT: str = "%Y-%m-%dT%H:%M:%S"
"""ISO 8601 timestamp format used in CSV files."""

HOURLY_EXPORT_START_YEAR: int = 2025
"""Calendar year used to label the representative hourly series."""

FLOAT_PRECISION: int = 4
"""Number of decimal places for floating-point values in output CSVs."""

CURRENCY_PRECISION: int = 2
"""Number of decimal places for monetary values in output CSVs."""

EXCEL_SUMMARY_SHEET: str = "Summary"
EXCEL_BUSINESS_PLAN_SHEET: str = "Business Plan"
