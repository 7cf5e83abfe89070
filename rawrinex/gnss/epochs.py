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

"""Epoch grouping of time-ordered raw measurements"""

import logging
from typing import Iterable, List, Optional

from ..core.config import NEAR_ZERO
from ..core.data_structures import ClassifiedMeasurement, Epoch, TimeReference

logger = logging.getLogger(__name__)


class ClockState:
    """Running receiver clock reference shared by the pipeline stages.

    Attributes
    ----------
    reference : TimeReference or None
        Full bias / bias pair valid for the current clock segment
    discontinuity_count : int or None
        Hardware clock discontinuity count seen at the last re-anchor
    resets : int
        Number of re-anchors after the first measurement
    """

    def __init__(self):
        self.reference: Optional[TimeReference] = None
        self.discontinuity_count: Optional[int] = None
        self.resets = 0

    def anchor(self, measurement: ClassifiedMeasurement):
        raw = measurement.raw
        if self.reference is not None:
            self.resets += 1
            logger.info("Hardware clock discontinuity %d -> %d, re-anchoring clock bias",
                        self.discontinuity_count, raw.hardware_clock_discontinuity_count)
        self.reference = TimeReference.from_measurement(raw)
        self.discontinuity_count = raw.hardware_clock_discontinuity_count


class EpochBuilder:
    """Group measurements into epochs by receiver millisecond.

    A new epoch starts whenever a measurement's receiver time differs from
    the open epoch's by more than ``tolerance_millis``. At that boundary a
    changed hardware clock discontinuity count re-anchors the clock
    reference to the new measurement.
    """

    def __init__(self, tolerance_millis: float = NEAR_ZERO):
        self.tolerance_millis = tolerance_millis

    def build(self, measurements: Iterable[ClassifiedMeasurement],
              clock: ClockState) -> List[Epoch]:
        """
        Build epochs from a time-ordered measurement sequence

        Parameters:
        -----------
        measurements : Iterable[ClassifiedMeasurement]
            Measurements in log order
        clock : ClockState
            Running clock reference, updated in place

        Returns:
        --------
        List[Epoch]
            Epochs in log order; the last one is flushed at end of input
        """
        epochs: List[Epoch] = []
        current: Optional[Epoch] = None

        for measurement in measurements:
            raw = measurement.raw
            millis = raw.receiver_millis

            if current is None:
                clock.anchor(measurement)
                current = Epoch(millis, clock.reference)
            elif abs(millis - current.receiver_millis) > self.tolerance_millis:
                epochs.append(current)
                if raw.hardware_clock_discontinuity_count != clock.discontinuity_count:
                    clock.anchor(measurement)
                current = Epoch(millis, clock.reference)

            current.measurements.append(measurement)

        if current is not None:
            epochs.append(current)

        logger.debug("Grouped measurements into %d epochs", len(epochs))
        return epochs
