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

"""Observable computation from Android raw measurements.

This module turns the measurements of one epoch into RINEX observables:

- **Validity gate**: constellation-specific tracking state requirements
- **Pseudorange**: reception minus transmission time, corrected for the
  receiver clock bias and for week (or GLONASS day) rollover
- **Carrier phase / Doppler**: accumulated delta range and pseudorange rate
  scaled by the carrier wavelength
- **Loss of lock**: cycle slip and unresolved half-cycle flags
- **Galileo 4 ms ambiguity**: pseudorange jumps of one E1/E5a code period
  between consecutive epochs

References:
    European GNSS Agency, "Using GNSS Raw Measurements on Android Devices",
    2017, sections 2.4 and 2.5.
"""

import logging
from enum import Enum
from typing import Optional, Tuple

import numpy as np

from ..core.config import (
    GAL_BIAS_SECONDS,
    GAL_BIAS_TOLERANCE_M,
    MAX_BIAS_SECONDS,
    ConverterConfig,
)
from ..core.constants import (
    ADR_STATE_CYCLE_SLIP,
    ADR_STATE_HALF_CYCLE_REPORTED,
    ADR_STATE_HALF_CYCLE_RESOLVED,
    ADR_STATE_UNKNOWN,
    CLIGHT,
    LLI_HALFC,
    LLI_SLIP,
    MAX_GLO_PRN,
    NANOS_PER_SECOND,
    STATE_CODE_LOCK,
    STATE_GAL_E1C_2ND_CODE_LOCK,
    STATE_GLO_STRING_SYNC,
    STATE_GLO_TOD_DECODED,
    STATE_TOW_DECODED,
    SYS_BDS,
    SYS_GAL,
    SYS_GLO,
    SYS_GPS,
    SYS_QZS,
    lam_carr,
)
from ..core.data_structures import (
    ClassifiedMeasurement,
    Epoch,
    ObservationEpoch,
    ObservationRecord,
    RawMeasurement,
    TimeReference,
)
from ..core.time import receive_time_nanos, rollover_period, to_calendar
from .signals import SignalRegistry

logger = logging.getLogger(__name__)

GAL_BIAS_METERS = GAL_BIAS_SECONDS * CLIGHT


class RolloverStatus(Enum):
    """Outcome of the week/day rollover check"""
    NONE = 0
    CORRECTED = 1
    FAILED = 2


def is_tracking_valid(system: int, state: int) -> bool:
    """
    Check the tracking state bits required for an unambiguous measurement

    Parameters:
    -----------
    system : int
        Satellite system ID
    state : int
        Android tracking state bit-field

    Returns:
    --------
    bool
        True if the received satellite time can be used
    """
    if system in (SYS_GPS, SYS_BDS, SYS_QZS):
        return bool(state & STATE_CODE_LOCK) and bool(state & STATE_TOW_DECODED)
    elif system == SYS_GLO:
        return bool(state & STATE_GLO_STRING_SYNC) and bool(state & STATE_GLO_TOD_DECODED)
    elif system == SYS_GAL:
        return bool(state & STATE_GAL_E1C_2ND_CODE_LOCK) or bool(state & STATE_TOW_DECODED)
    return False


def correct_rollover(pseudorange_seconds, period: float,
                     max_bias_seconds: float = MAX_BIAS_SECONDS) -> Tuple[np.longdouble, RolloverStatus]:
    """
    Remove whole week (or day) wraps from a signal travel time

    Parameters:
    -----------
    pseudorange_seconds : float or np.longdouble
        Reception minus transmission time (s)
    period : float
        Rollover period of the satellite time counter (s)
    max_bias_seconds : float
        Largest residual accepted as corrected (s)

    Returns:
    --------
    tuple : (value, status)
        Corrected travel time and what was done
    """
    value = np.longdouble(pseudorange_seconds)
    period = np.longdouble(period)

    if abs(value) <= period / 2:
        return value, RolloverStatus.NONE

    value = value - np.round(value / period) * period
    if abs(value) > max_bias_seconds:
        return value, RolloverStatus.FAILED
    return value, RolloverStatus.CORRECTED


def loss_of_lock_indicator(adr_state: int) -> int:
    """RINEX LLI from an Android ADR state; a cycle slip overrides a half-cycle flag"""
    lli = 0
    if (adr_state & ADR_STATE_HALF_CYCLE_REPORTED) and not (adr_state & ADR_STATE_HALF_CYCLE_RESOLVED):
        lli = LLI_HALFC
    if adr_state & ADR_STATE_CYCLE_SLIP:
        lli = LLI_SLIP
    return lli


class ObservationComputer:
    """Compute per-satellite observables for the epochs of one run.

    Parameters
    ----------
    registry : SignalRegistry
        Signal registry populated by the classification pass
    config : ConverterConfig, optional
        Quality gates and leap seconds
    """

    def __init__(self, registry: SignalRegistry, config: Optional[ConverterConfig] = None):
        self.registry = registry
        self.config = config or ConverterConfig()

    def pseudorange_seconds(self, raw: RawMeasurement, reference: TimeReference):
        """
        Signal travel time, before rollover correction

        Parameters:
        -----------
        raw : RawMeasurement
            Measurement
        reference : TimeReference
            Clock bias pair of the current clock segment

        Returns:
        --------
        np.longdouble
            Reception minus transmission time minus receiver bias (s)
        """
        receive_nanos = receive_time_nanos(
            raw.system, raw.time_nanos, raw.time_offset_nanos,
            raw.full_bias_nanos, reference.full_bias_nanos,
            self.config.leap_seconds)
        travel_nanos = receive_nanos - int(raw.received_sv_time_nanos)
        return ((np.longdouble(travel_nanos) - np.longdouble(reference.bias_nanos))
                / np.longdouble(NANOS_PER_SECOND))

    def compute(self, epoch: Epoch) -> ObservationEpoch:
        """
        Compute the RINEX epoch for a group of measurements

        Parameters:
        -----------
        epoch : Epoch
            Measurements of one receiver millisecond

        Returns:
        --------
        ObservationEpoch
            Calendar time and satellites in first-seen order (may be empty)
        """
        reference = epoch.reference
        last = epoch.measurements[-1].raw
        time = to_calendar(last.time_nanos, reference.full_bias_nanos, reference.bias_nanos)
        obs_epoch = ObservationEpoch(time, epoch.receiver_millis)

        for measurement in epoch.measurements:
            self._add_measurement(obs_epoch, measurement, reference)

        return obs_epoch

    def _add_measurement(self, obs_epoch: ObservationEpoch,
                         measurement: ClassifiedMeasurement,
                         reference: TimeReference) -> bool:
        raw = measurement.raw
        if measurement.signal is None:
            return False

        system, prn = raw.system, raw.prn
        if not is_tracking_valid(system, raw.state):
            logger.trace("Discard %s PRN %02d: invalid tracking state %d",
                         measurement.signal, prn, raw.state)
            return False

        if (raw.pseudorange_rate_uncertainty_meters_per_second > self.config.max_prr_uncertainty
                or raw.received_sv_time_uncertainty_nanos > self.config.max_tow_uncertainty_nanos):
            logger.trace("Discard %s PRN %02d: uncertainty above limits", measurement.signal, prn)
            return False

        slot = self.registry.index(measurement.signal)
        if slot is None:
            return False

        travel, status = correct_rollover(self.pseudorange_seconds(raw, reference),
                                          rollover_period(system),
                                          self.config.max_bias_seconds)
        if status is RolloverStatus.CORRECTED:
            logger.warning("Week rollover detected and corrected for %s PRN %02d",
                           measurement.signal, prn)
        elif status is RolloverStatus.FAILED:
            logger.warning("Failed to correct week rollover for %s PRN %02d (residual %.3f s)",
                           measurement.signal, prn, float(travel))

        if not (self.config.min_pseudorange_seconds <= travel <= self.config.max_pseudorange_seconds):
            logger.trace("Discard %s PRN %02d: travel time %.6f s outside window",
                         measurement.signal, prn, float(travel))
            return False

        if system == SYS_GLO and prn > MAX_GLO_PRN:
            logger.trace("Discard GLONASS slot %d", prn)
            return False

        sat = obs_epoch.find(system, prn)
        if sat is None:
            sat = ObservationRecord(system, prn)
            obs_epoch.satellites.append(sat)

        wavelength = lam_carr(measurement.carrier_frequency)
        sat.P[slot] = float(travel * np.longdouble(CLIGHT))
        sat.D[slot] = -raw.pseudorange_rate_meters_per_second / wavelength
        sat.SNR[slot] = raw.cn0_dbhz
        if raw.accumulated_delta_range_state == ADR_STATE_UNKNOWN:
            sat.L[slot] = 0.0
        else:
            sat.L[slot] = raw.accumulated_delta_range_meters / wavelength
        sat.LLI[slot] = loss_of_lock_indicator(raw.accumulated_delta_range_state)
        return True


def correct_galileo_bias(previous: ObservationEpoch, current: ObservationEpoch,
                         tolerance: float = GAL_BIAS_TOLERANCE_M) -> int:
    """
    Remove 4 ms pseudorange jumps of Galileo satellites between two epochs

    Only epochs one second apart are compared; larger gaps and out-of-order
    epochs are left untouched.

    Parameters:
    -----------
    previous : ObservationEpoch
        Preceding epoch (already corrected)
    current : ObservationEpoch
        Epoch to correct in place
    tolerance : float
        Match tolerance around +-4 ms light distance (m)

    Returns:
    --------
    int
        Number of corrected pseudoranges
    """
    if previous.num_sats == 0 or current.num_sats == 0:
        return 0
    gap = current.receiver_millis - previous.receiver_millis
    if gap <= 0 or round(gap / 1000) != 1:
        return 0

    corrected = 0
    for sat in current.satellites:
        if sat.system != SYS_GAL:
            continue
        before = previous.find(sat.system, sat.prn)
        if before is None:
            continue

        for slot in range(len(sat.P)):
            if sat.P[slot] == 0 or before.P[slot] == 0:
                continue
            diff = sat.P[slot] - before.P[slot]
            if abs(diff - GAL_BIAS_METERS) < tolerance or abs(diff + GAL_BIAS_METERS) < tolerance:
                sign = -1 if diff < 0 else 1
                sat.P[slot] -= sign * GAL_BIAS_METERS
                corrected += 1
                logger.debug("Galileo 4 ms bias removed for %s slot %d", sat.name, slot)

    return corrected
