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

"""GNSS Time Systems and Conversions

Receiver clock arithmetic for Android raw measurements. Nanosecond counters
are handled as exact Python ints; only the sub-second remainder is turned
into a floating value, in ``numpy.longdouble``.
"""

from datetime import datetime, timedelta

import numpy as np

from .config import LEAP_SECONDS
from .constants import (
    DAY_NANOS,
    GLO_UTC_OFFSET,
    GPS_BDS_OFFSET,
    GPST0,
    NANOS_PER_SECOND,
    SECONDS_PER_DAY,
    SECONDS_PER_WEEK,
    SYS_BDS,
    SYS_GAL,
    SYS_GLO,
    SYS_GPS,
    SYS_QZS,
    WEEK_NANOS,
)
from .data_structures import CalendarTime


def to_calendar(time_nanos: int, full_bias_nanos: int, bias_nanos: float) -> CalendarTime:
    """
    Convert a receiver clock reading to a GPS calendar time

    GPS time = TimeNanos - (FullBiasNanos + BiasNanos)

    Parameters:
    -----------
    time_nanos : int
        Receiver hardware clock (ns)
    full_bias_nanos : int
        Reference full bias (ns)
    bias_nanos : float
        Reference sub-nanosecond bias (ns)

    Returns:
    --------
    CalendarTime
        (year, month, day, hour, minute, second) with fractional seconds
    """
    delta_nanos = int(time_nanos) - int(full_bias_nanos)
    delta_seconds = delta_nanos // NANOS_PER_SECOND
    remainder = np.longdouble(delta_nanos - delta_seconds * NANOS_PER_SECOND)
    fraction = (remainder - np.longdouble(bias_nanos)) / np.longdouble(NANOS_PER_SECOND)

    # fraction in [0, 1): the bias borrows from or carries into whole seconds
    carry = int(np.floor(fraction))
    delta_seconds += carry
    fraction -= carry

    days, since_midnight = divmod(delta_seconds, SECONDS_PER_DAY)
    date = datetime(*GPST0) + timedelta(days=days)

    hour, last_hour = divmod(since_midnight, 3600)
    minute, second = divmod(last_hour, 60)

    return CalendarTime(date.year, date.month, date.day, int(hour), int(minute),
                        float(np.longdouble(second) + fraction))


def gps_week(full_bias_nanos: int) -> int:
    """GPS week number implied by a (negative) full bias"""
    return (-int(full_bias_nanos)) // WEEK_NANOS


def gps_day(full_bias_nanos: int) -> int:
    """Whole days since the GPS origin implied by a (negative) full bias"""
    return (-int(full_bias_nanos)) // DAY_NANOS


def receive_time_nanos(system: int, time_nanos: int, time_offset_nanos: float,
                       full_bias_nanos: int, reference_full_bias_nanos: int,
                       leap_seconds: int = LEAP_SECONDS) -> int:
    """
    Signal reception time in the satellite's own time scale

    GPS, Galileo and QZSS count from the start of the GPS week, BeiDou from
    the start of the BDT week (14 s behind GPS), GLONASS from the start of
    the GLONASS day (UTC + 3h).

    Parameters:
    -----------
    system : int
        Satellite system ID
    time_nanos : int
        Receiver hardware clock of the measurement (ns)
    time_offset_nanos : float
        Measurement time offset from ``time_nanos`` (ns)
    full_bias_nanos : int
        Full bias of the measurement itself, used for the week/day count (ns)
    reference_full_bias_nanos : int
        Full bias valid for the current clock segment (ns)
    leap_seconds : int
        GPS-UTC leap seconds

    Returns:
    --------
    int
        Time of reception (ns)
    """
    since_gps_origin = (int(time_nanos) - int(reference_full_bias_nanos)
                        + int(time_offset_nanos))

    if system in (SYS_GPS, SYS_GAL, SYS_QZS):
        return since_gps_origin - gps_week(full_bias_nanos) * WEEK_NANOS
    elif system == SYS_BDS:
        return (since_gps_origin - gps_week(full_bias_nanos) * WEEK_NANOS
                - GPS_BDS_OFFSET * NANOS_PER_SECOND)
    elif system == SYS_GLO:
        return (since_gps_origin - gps_day(full_bias_nanos) * DAY_NANOS
                + (GLO_UTC_OFFSET - int(leap_seconds)) * NANOS_PER_SECOND)
    else:
        raise ValueError(f"Unsupported satellite system: {system}")


def rollover_period(system: int) -> int:
    """Length of the time-of-week (or time-of-day for GLONASS) counter in seconds"""
    return SECONDS_PER_DAY if system == SYS_GLO else SECONDS_PER_WEEK
