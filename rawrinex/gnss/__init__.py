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

"""GNSS measurement processing: signal classification, epoch grouping and observables"""

from .epochs import ClockState, EpochBuilder
from .observables import (
    ObservationComputer,
    RolloverStatus,
    correct_galileo_bias,
    correct_rollover,
    is_tracking_valid,
    loss_of_lock_indicator,
)
from .signals import SignalClassifier, SignalRegistry, find_band, rounded_frequency

__all__ = [
    'ClockState', 'EpochBuilder',
    'ObservationComputer', 'RolloverStatus', 'correct_galileo_bias',
    'correct_rollover', 'is_tracking_valid', 'loss_of_lock_indicator',
    'SignalClassifier', 'SignalRegistry', 'find_band', 'rounded_frequency',
]
