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

"""GNSS signal classification.

This module maps an Android (constellation, carrier frequency) pair onto a
RINEX signal identifier and keeps the per-constellation list of signals seen
during a conversion run.

Supported signals:
- GPS: L1 C/A (L1C), L5 (L5Q)
- GLONASS: G1 C/A (L1C), any FDMA channel
- Galileo: E1 (L1C), E5a (L5X)
- BeiDou: B1I (L2I), B2a (L5P)
- QZSS: L1 C/A (L1C), L5 (L5Q)

Notes:
    - Frequencies are rounded to a per-band resolution before matching,
      since receivers report the tracked frequency with small offsets
    - GLONASS is matched at 10 MHz and kept at 100 Hz so that each FDMA
      channel retains its own wavelength
    - Registry order is first-seen order and defines both the observation
      slots and the RINEX header layout
"""

import logging
from typing import Dict, Iterator, List, NamedTuple, Optional, Tuple

import numpy as np

from ..core.constants import (
    CONSTELLATION_BEIDOU,
    CONSTELLATION_GALILEO,
    CONSTELLATION_GLONASS,
    CONSTELLATION_GPS,
    CONSTELLATION_QZSS,
    FREQ_B1I,
    FREQ_B2a,
    FREQ_E1,
    FREQ_E5a,
    FREQ_G1,
    FREQ_L1,
    FREQ_L5,
    MAXBAND,
    RINEX_SYSTEMS,
    constellation2sys,
    sys2char,
)
from ..core.data_structures import ClassifiedMeasurement, RawMeasurement, SignalId

logger = logging.getLogger(__name__)


class Band(NamedTuple):
    """Nominal band of a constellation"""
    match_resolution: float   # Hz, rounding step used for matching
    nominal: int              # rounded frequency / match_resolution
    code: str                 # RINEX band + attribute
    resolution: float         # Hz, rounding step of the kept frequency


BANDS: Dict[int, Tuple[Band, ...]] = {
    CONSTELLATION_GPS: (
        Band(1e4, round(FREQ_L1 / 1e4), 'L1C', 1e4),
        Band(1e4, round(FREQ_L5 / 1e4), 'L5Q', 1e4),
    ),
    CONSTELLATION_GLONASS: (
        Band(1e7, round(FREQ_G1 / 1e7), 'L1C', 1e2),    # G1 + k * 562.5 kHz
    ),
    CONSTELLATION_GALILEO: (
        Band(1e4, round(FREQ_E1 / 1e4), 'L1C', 1e4),
        Band(1e4, round(FREQ_E5a / 1e4), 'L5X', 1e4),
    ),
    CONSTELLATION_BEIDOU: (
        Band(1e3, round(FREQ_B1I / 1e3), 'L2I', 1e3),
        Band(1e3, round(FREQ_B2a / 1e3), 'L5P', 1e3),
    ),
    CONSTELLATION_QZSS: (
        Band(1e4, round(FREQ_L1 / 1e4), 'L1C', 1e4),
        Band(1e4, round(FREQ_L5 / 1e4), 'L5Q', 1e4),
    ),
}


def round_half_away(value: float) -> float:
    """Round to the nearest integer, halves away from zero"""
    return float(np.sign(value) * np.floor(np.abs(value) + 0.5))


def find_band(constellation_type: int, carrier_frequency_hz: float) -> Optional[Band]:
    """Find the nominal band matching a carrier frequency, or None"""
    for band in BANDS.get(constellation_type, ()):
        if round_half_away(carrier_frequency_hz / band.match_resolution) == band.nominal:
            return band
    return None


def rounded_frequency(constellation_type: int, carrier_frequency_hz: float) -> float:
    """Carrier frequency rounded to its band resolution (0.0 when unmatched)"""
    band = find_band(constellation_type, carrier_frequency_hz)
    if band is None:
        return 0.0
    return round_half_away(carrier_frequency_hz / band.resolution) * band.resolution


class SignalRegistry:
    """Ordered, append-only set of signal codes per constellation.

    Parameters
    ----------
    max_signals : int
        Maximum number of signals kept per constellation
    """

    def __init__(self, max_signals: int = MAXBAND):
        self.max_signals = max_signals
        self._signals: Dict[int, List[str]] = {sys: [] for sys in RINEX_SYSTEMS}

    def register(self, signal: SignalId) -> Optional[int]:
        """Add a signal if unseen and return its slot index.

        Returns None when the system is unsupported or already holds
        ``max_signals`` signals.
        """
        codes = self._signals.get(signal.system)
        if codes is None:
            return None
        if signal.code in codes:
            return codes.index(signal.code)
        if len(codes) >= self.max_signals:
            logger.debug("Signal %s ignored: %s already has %d signals",
                         signal, sys2char(signal.system), self.max_signals)
            return None
        codes.append(signal.code)
        logger.debug("Registered signal %s in slot %d", signal, len(codes) - 1)
        return len(codes) - 1

    def index(self, signal: SignalId) -> Optional[int]:
        """Slot index of a registered signal, or None"""
        codes = self._signals.get(signal.system, [])
        return codes.index(signal.code) if signal.code in codes else None

    def signals(self, system: int) -> List[str]:
        """Registered codes of a system, in first-seen order"""
        return list(self._signals.get(system, []))

    def count(self, system: int) -> int:
        return len(self._signals.get(system, []))

    def systems(self) -> Iterator[int]:
        """Populated systems in RINEX header order"""
        for sys in RINEX_SYSTEMS:
            if self._signals[sys]:
                yield sys

    def __len__(self):
        return sum(len(codes) for codes in self._signals.values())

    def __repr__(self):
        content = ", ".join(f"{sys2char(sys)}: {self._signals[sys]}" for sys in self.systems())
        return f"SignalRegistry({content})"


class SignalClassifier:
    """Classify measurements and populate a signal registry"""

    def __init__(self, registry: Optional[SignalRegistry] = None):
        self.registry = registry if registry is not None else SignalRegistry()

    def classify(self, constellation_type: int, carrier_frequency_hz: float) -> Optional[SignalId]:
        """
        Map a constellation and carrier frequency to a signal identifier

        Parameters:
        -----------
        constellation_type : int
            Android constellation code
        carrier_frequency_hz : float
            Reported carrier frequency (Hz)

        Returns:
        --------
        SignalId or None
            Signal identifier, or None when the band is unknown or the
            constellation has no free registry slot
        """
        band = find_band(constellation_type, carrier_frequency_hz)
        if band is None:
            return None

        signal = SignalId(constellation2sys(constellation_type), band.code)
        if self.registry.register(signal) is None:
            return None
        return signal

    def classify_measurement(self, raw: RawMeasurement) -> ClassifiedMeasurement:
        """Attach signal id and rounded carrier frequency to a raw measurement"""
        signal = self.classify(raw.constellation_type, raw.carrier_frequency_hz)
        if signal is None:
            logger.trace("Unclassified: constellation %d, svid %d, %.1f Hz",
                         raw.constellation_type, raw.svid, raw.carrier_frequency_hz)
            return ClassifiedMeasurement(raw)
        return ClassifiedMeasurement(
            raw, signal, rounded_frequency(raw.constellation_type, raw.carrier_frequency_hz))

    def classify_all(self, measurements) -> List[ClassifiedMeasurement]:
        """Classify a full pass of measurements, in order"""
        return [self.classify_measurement(raw) for raw in measurements]
