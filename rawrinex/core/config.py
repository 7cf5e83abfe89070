# Copyright 2024 inuex35
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Conversion Parameters
=====================

Thresholds and offsets used when turning raw measurements into RINEX
observations. The module constants are the defaults; ``ConverterConfig``
carries a run-specific copy that can be overridden from a dictionary or
the command line.
"""

from dataclasses import dataclass, fields

# ============================================================================
# TIME SYSTEM
# ============================================================================
LEAP_SECONDS = 18            # GPS-UTC leap seconds (since 2017)

# ============================================================================
# MEASUREMENT QUALITY GATES
# ============================================================================
MAX_PRR_UNCERTAINTY_MPS = 10.0   # Max pseudorange rate (Doppler) uncertainty (m/s)
MAX_TOW_UNCERTAINTY_NS = 500     # Max received TOW uncertainty (ns)

# ============================================================================
# PSEUDORANGE ACCEPTANCE
# ============================================================================
MIN_PSEUDORANGE_SECONDS = 0.0    # Lower bound of the travel time window (s)
MAX_PSEUDORANGE_SECONDS = 0.5    # Upper bound of the travel time window (s)
MAX_BIAS_SECONDS = 10.0          # Residual above this after rollover fix is an error (s)

# ============================================================================
# EPOCH GROUPING
# ============================================================================
NEAR_ZERO = 1e-4                 # Receiver-millisecond change treated as "same epoch"
MIN_SATELLITES = 4               # Fewer satellites than this triggers a warning

# ============================================================================
# GALILEO 4 MS AMBIGUITY
# ============================================================================
GAL_BIAS_SECONDS = 0.004         # Galileo E1/E5a code period ambiguity (s)
GAL_BIAS_TOLERANCE_M = 1500.0    # Match tolerance around +-4 ms light distance (m)


@dataclass
class ConverterConfig:
    """Run-time conversion settings.

    Attributes
    ----------
    leap_seconds : int
        GPS-UTC leap seconds used for GLONASS time of day
    max_prr_uncertainty : float
        Doppler uncertainty ceiling (m/s)
    max_tow_uncertainty_nanos : float
        Received satellite time uncertainty ceiling (ns)
    min_pseudorange_seconds, max_pseudorange_seconds : float
        Closed acceptance window for the signal travel time (s)
    max_bias_seconds : float
        Sanity bound on the travel time left after rollover correction (s)
    epoch_tolerance_millis : float
        Receiver-millisecond difference still considered the same epoch
    min_satellites : int
        Satellite count below which an epoch is reported as sparse
    """
    leap_seconds: int = LEAP_SECONDS
    max_prr_uncertainty: float = MAX_PRR_UNCERTAINTY_MPS
    max_tow_uncertainty_nanos: float = MAX_TOW_UNCERTAINTY_NS
    min_pseudorange_seconds: float = MIN_PSEUDORANGE_SECONDS
    max_pseudorange_seconds: float = MAX_PSEUDORANGE_SECONDS
    max_bias_seconds: float = MAX_BIAS_SECONDS
    epoch_tolerance_millis: float = NEAR_ZERO
    min_satellites: int = MIN_SATELLITES

    @classmethod
    def from_dict(cls, config: dict) -> 'ConverterConfig':
        """Build a configuration, overriding defaults with known keys

        Example config:
        {
            'leap_seconds': 18,
            'max_prr_uncertainty': 10.0,
            'max_tow_uncertainty_nanos': 500
        }
        """
        known = {f.name for f in fields(cls)}
        unknown = set(config) - known
        if unknown:
            raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")
        return cls(**{key: value for key, value in config.items() if value is not None})
