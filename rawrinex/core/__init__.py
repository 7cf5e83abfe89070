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

"""Core Conversion Module.

This module provides the fundamental pieces shared by every conversion stage:

- **Constants**: physical constants, carrier frequencies, system IDs, Android
  tracking-state and ADR bit definitions, RINEX loss-of-lock flags
- **Configuration**: quality gates and tolerances with run-time overrides
- **Data Structures**: raw measurements, epochs, per-satellite observation
  records and RINEX epochs
- **Time Systems**: receiver clock to GPS calendar time, per-constellation
  reception time

Example Usage:
    >>> from rawrinex.core import *
    >>>
    >>> raw = RawMeasurement(time_nanos=0, full_bias_nanos=0, constellation_type=1)
    >>> to_calendar(raw.time_nanos, raw.full_bias_nanos, raw.bias_nanos)
    CalendarTime(year=1980, month=1, day=6, hour=0, minute=0, second=0.0)
"""

from .config import *
from .constants import *
from .data_structures import *
from .time import *
