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

"""GNSS Constants and System Parameters"""

import numpy as np

# Physical Constants
CLIGHT = 299792458.0  # speed of light (m/s)

# GPS frequencies
FREQ_L1 = 1.57542E9   # L1 frequency (Hz)
FREQ_L5 = 1.17645E9   # L5 frequency (Hz)

# GLONASS frequencies
FREQ_G1 = 1.60200E9   # GLONASS G1 base frequency (Hz)

# Galileo frequencies
FREQ_E1 = 1.57542E9   # E1 frequency (Hz) - same as GPS L1
FREQ_E5a = 1.17645E9  # E5a frequency (Hz) - same as GPS L5

# BeiDou frequencies
FREQ_B1I = 1.561098E9  # BeiDou B1I frequency (Hz)
FREQ_B2a = 1.17645E9   # BeiDou B2a frequency (Hz) - same as GPS L5

# GNSS System IDs
SYS_NONE = 0x00   # unknown / unsupported
SYS_GPS = 0x01    # GPS
SYS_GLO = 0x02    # GLONASS
SYS_GAL = 0x04    # Galileo
SYS_BDS = 0x08    # BeiDou
SYS_QZS = 0x10    # QZSS

# Systems written to RINEX, in header order
RINEX_SYSTEMS = (SYS_GPS, SYS_GLO, SYS_GAL, SYS_BDS, SYS_QZS)

# Android GnssStatus constellation types
CONSTELLATION_UNKNOWN = 0
CONSTELLATION_GPS = 1
CONSTELLATION_SBAS = 2
CONSTELLATION_GLONASS = 3
CONSTELLATION_QZSS = 4
CONSTELLATION_BEIDOU = 5
CONSTELLATION_GALILEO = 6
CONSTELLATION_IRNSS = 7

CONSTELLATION_TO_SYS = {
    CONSTELLATION_GPS: SYS_GPS,
    CONSTELLATION_GLONASS: SYS_GLO,
    CONSTELLATION_QZSS: SYS_QZS,
    CONSTELLATION_BEIDOU: SYS_BDS,
    CONSTELLATION_GALILEO: SYS_GAL,
}

# QZSS svid offset (Android reports 193-200)
QZSS_SVID_OFFSET = 192

# GLONASS slot numbers above this are frequency-channel ids, not PRNs
MAX_GLO_PRN = 80

# Time System Parameters
GPST0 = [1980, 1, 6, 0, 0, 0]  # GPS time reference epoch

NANOS_PER_SECOND = 1_000_000_000
SECONDS_PER_DAY = 86400
SECONDS_PER_WEEK = 604800
DAY_NANOS = SECONDS_PER_DAY * NANOS_PER_SECOND
WEEK_NANOS = SECONDS_PER_WEEK * NANOS_PER_SECOND

# Time system offsets
GPS_BDS_OFFSET = 14            # GPS-BeiDou time offset (seconds)
GLO_UTC_OFFSET = 3 * 3600      # GLONASS time is UTC(SU) + 3h (seconds)

# Earth Parameters (WGS84)
RE_WGS84 = 6378137.0           # earth semimajor axis (m)
FE_WGS84 = 1.0 / 298.257223563 # earth flattening

# Unit conversions
D2R = np.pi / 180.0            # degrees to radians

# Receiver limits
MAXBAND = 5         # max signals per constellation

# Android GnssMeasurement tracking state bits
STATE_UNKNOWN = 0
STATE_CODE_LOCK = 1 << 0
STATE_TOW_DECODED = 1 << 3
STATE_GLO_STRING_SYNC = 1 << 6
STATE_GLO_TOD_DECODED = 1 << 7
STATE_GAL_E1BC_CODE_LOCK = 1 << 10
STATE_GAL_E1C_2ND_CODE_LOCK = 1 << 11
STATE_GAL_E1B_PAGE_SYNC = 1 << 12
STATE_TOW_KNOWN = 1 << 14

# Android accumulated delta range state bits
ADR_STATE_UNKNOWN = 0
ADR_STATE_VALID = 1 << 0
ADR_STATE_RESET = 1 << 1
ADR_STATE_CYCLE_SLIP = 1 << 2
ADR_STATE_HALF_CYCLE_RESOLVED = 1 << 3
ADR_STATE_HALF_CYCLE_REPORTED = 1 << 4

# RINEX loss of lock indicator
LLI_SLIP = 0x01     # cycle-slip
LLI_HALFC = 0x02    # half-cycle not resolved
LLI_BOCTRK = 0x04   # boc tracking of mboc signal
LLI_MASK = LLI_SLIP | LLI_HALFC | LLI_BOCTRK


def lam_carr(freq):
    """Get carrier wavelength"""
    return CLIGHT / freq if freq > 0 else 0.0


def constellation2sys(constellation_type):
    """Convert Android constellation type to system ID"""
    return CONSTELLATION_TO_SYS.get(constellation_type, SYS_NONE)


def sys2char(sys):
    """Convert system ID to character"""
    syschar = {
        SYS_GPS: 'G',
        SYS_GLO: 'R',
        SYS_GAL: 'E',
        SYS_BDS: 'C',
        SYS_QZS: 'J',
    }
    return syschar.get(sys, ' ')

