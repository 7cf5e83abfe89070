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

"""Core data structures for raw measurement conversion"""

from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional

import numpy as np

from .constants import (
    MAXBAND,
    QZSS_SVID_OFFSET,
    SYS_QZS,
    constellation2sys,
    sys2char,
)


@dataclass(frozen=True)
class RawMeasurement:
    """One tracked-signal sample from an Android ``Raw`` log record.

    Field names follow the GnssLogger column names. Nanosecond counters are
    Python ints so that ``TimeNanos`` and ``FullBiasNanos`` keep all of their
    64 bits.

    Attributes
    ----------
    utc_time_millis : int
        Device UTC timestamp (ms)
    time_nanos : int
        Receiver internal hardware clock (ns)
    full_bias_nanos : int
        Difference between hardware clock and GPS time (ns)
    bias_nanos : float
        Sub-nanosecond part of the clock bias (ns)
    hardware_clock_discontinuity_count : int
        Incremented each time the hardware clock is reset
    svid : int
        Satellite id as reported by Android
    state : int
        Tracking state bit-field (``STATE_*``)
    received_sv_time_nanos : int
        Received satellite time of week / day (ns)
    accumulated_delta_range_state : int
        ADR state bit-field (``ADR_STATE_*``)
    carrier_frequency_hz : float
        Tracked carrier frequency (Hz)
    constellation_type : int
        Android constellation code (``CONSTELLATION_*``)
    """
    utc_time_millis: int = 0
    time_nanos: int = 0
    leap_second: int = 0
    time_uncertainty_nanos: float = 0.0
    full_bias_nanos: int = 0
    bias_nanos: float = 0.0
    bias_uncertainty_nanos: float = 0.0
    drift_nanos_per_second: float = 0.0
    drift_uncertainty_nanos_per_second: float = 0.0
    hardware_clock_discontinuity_count: int = 0
    svid: int = 0
    time_offset_nanos: float = 0.0
    state: int = 0
    received_sv_time_nanos: int = 0
    received_sv_time_uncertainty_nanos: int = 0
    cn0_dbhz: float = 0.0
    pseudorange_rate_meters_per_second: float = 0.0
    pseudorange_rate_uncertainty_meters_per_second: float = 0.0
    accumulated_delta_range_state: int = 0
    accumulated_delta_range_meters: float = 0.0
    accumulated_delta_range_uncertainty_meters: float = 0.0
    carrier_frequency_hz: float = 0.0
    constellation_type: int = 0

    @property
    def system(self) -> int:
        """Satellite system ID resolved from the constellation type"""
        return constellation2sys(self.constellation_type)

    @property
    def prn(self) -> int:
        """PRN number within the constellation"""
        if self.system == SYS_QZS:
            return self.svid - QZSS_SVID_OFFSET
        return self.svid

    @property
    def receiver_millis(self) -> int:
        """Receiver time since the GPS origin, truncated to milliseconds"""
        return int((self.time_nanos - self.full_bias_nanos) * 1e-6)


class SignalId(NamedTuple):
    """Signal identifier: system plus RINEX band/attribute code (e.g. ``L1C``)"""
    system: int
    code: str

    def __str__(self):
        return f"{sys2char(self.system)}{self.code}"


@dataclass(frozen=True)
class ClassifiedMeasurement:
    """Raw measurement annotated with its signal classification.

    ``signal`` is None for unsupported constellations or bands; such
    measurements still take part in epoch grouping but never produce
    observations.
    """
    raw: RawMeasurement
    signal: Optional[SignalId] = None
    carrier_frequency: float = 0.0


class TimeReference(NamedTuple):
    """Clock bias pair anchoring the receiver clock to GPS time"""
    full_bias_nanos: int
    bias_nanos: float

    @classmethod
    def from_measurement(cls, raw: RawMeasurement) -> 'TimeReference':
        return cls(raw.full_bias_nanos, raw.bias_nanos)


@dataclass
class Epoch:
    """Measurements sharing one receiver millisecond"""
    receiver_millis: int
    reference: TimeReference
    measurements: List[ClassifiedMeasurement] = field(default_factory=list)

    def __len__(self):
        return len(self.measurements)


class CalendarTime(NamedTuple):
    """Calendar epoch in GPS time"""
    year: int
    month: int
    day: int
    hour: int
    minute: int
    second: float


@dataclass
class ObservationRecord:
    """Observables of one satellite at one epoch.

    Arrays are indexed by the constellation's signal slot in the registry.
    Zero values mean "not observed".

    Attributes
    ----------
    system : int
        Satellite system ID
    prn : int
        PRN number
    P : np.ndarray
        Pseudorange measurements in meters, shape (MAXBAND,)
    L : np.ndarray
        Carrier phase measurements in cycles, shape (MAXBAND,)
    D : np.ndarray
        Doppler frequency measurements in Hz, shape (MAXBAND,)
    SNR : np.ndarray
        Carrier to noise density in dB-Hz, shape (MAXBAND,)
    LLI : np.ndarray
        Loss of lock indicators, shape (MAXBAND,), dtype int
    """
    system: int
    prn: int
    P: np.ndarray = field(default_factory=lambda: np.zeros(MAXBAND))   # pseudorange (m)
    L: np.ndarray = field(default_factory=lambda: np.zeros(MAXBAND))   # carrier phase (cycles)
    D: np.ndarray = field(default_factory=lambda: np.zeros(MAXBAND))   # doppler (Hz)
    SNR: np.ndarray = field(default_factory=lambda: np.zeros(MAXBAND)) # signal strength (dBHz)
    LLI: np.ndarray = field(default_factory=lambda: np.zeros(MAXBAND, dtype=int))  # loss of lock indicator

    @property
    def key(self):
        return (self.system, self.prn)

    @property
    def name(self) -> str:
        """RINEX satellite name, e.g. ``G05``"""
        return f"{sys2char(self.system)}{self.prn:02d}"


@dataclass
class ObservationEpoch:
    """RINEX epoch: calendar time and the satellites observed at it"""
    time: CalendarTime
    receiver_millis: int = 0
    satellites: List[ObservationRecord] = field(default_factory=list)

    @property
    def num_sats(self) -> int:
        return len(self.satellites)

    def find(self, system: int, prn: int) -> Optional[ObservationRecord]:
        """Find the record of a satellite, or None"""
        for sat in self.satellites:
            if sat.system == system and sat.prn == prn:
                return sat
        return None
