"""RINEX 3.04 observation file writer.

Header records and epoch records follow the fixed-column layout of the
RINEX 3.04 standard: header content in columns 1-60 and the record label in
columns 61-80, observations as F14.3 followed by the loss-of-lock and
signal-strength indicator columns.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence, TextIO

import numpy as np

from ..core.constants import LLI_MASK, sys2char
from ..core.data_structures import CalendarTime, ObservationEpoch, ObservationRecord
from ..gnss.signals import SignalRegistry

logger = logging.getLogger(__name__)

RINEX_VERSION = 3.04
PROGRAM = "rawrinex"
OBS_TYPES_PER_LINE = 13
OBS_FIELD = 14
BLANK_OBS = " " * (OBS_FIELD + 2)


def header_line(content: str, label: str) -> str:
    """Format a header record: 60 columns of content plus a 20 column label"""
    return f"{content:<60.60s}{label:<20.20s}"


def observation_types(codes: Sequence[str]) -> List[str]:
    """Code, phase, Doppler and strength types for each signal, e.g. ``C1C L1C D1C S1C``"""
    types = []
    for code in codes:
        attribute = code[1:]
        types.extend(f"{kind}{attribute}" for kind in "CLDS")
    return types


def obs_types_lines(sys_char: str, types: Sequence[str]) -> List[str]:
    """``SYS / # / OBS TYPES`` records, continued every 13 types"""
    lines = []
    for start in range(0, len(types), OBS_TYPES_PER_LINE):
        chunk = "".join(f" {typ:3s}" for typ in types[start:start + OBS_TYPES_PER_LINE])
        if start == 0:
            content = f"{sys_char:1s}  {len(types):3d}{chunk}"
        else:
            content = f"{'':6s}{chunk}"
        lines.append(header_line(content, "SYS / # / OBS TYPES"))
    return lines


def format_value(value: float, indicator: Optional[int] = None) -> str:
    """16 column observation; zero means not observed and is left blank"""
    if value == 0 or not np.isfinite(value):
        return BLANK_OBS
    if indicator is None:
        return f"{value:{OBS_FIELD}.3f}  "
    return f"{value:{OBS_FIELD}.3f}{indicator:1d} "


def format_epoch_line(time: CalendarTime, num_sats: int, flag: int = 0) -> str:
    """``> YYYY MM DD hh mm ss.sssssss  0 NN`` epoch record"""
    return (f"> {time.year:04d} {time.month:02d} {time.day:02d} "
            f"{time.hour:02d} {time.minute:02d}{time.second:11.7f}"
            f"  {flag:1d}{num_sats:3d}")


def format_satellite_line(sat: ObservationRecord, nsig: int) -> str:
    """One satellite record with ``nsig`` groups of C/L/D/S observations"""
    fields = [f"{sys2char(sat.system)}{sat.prn:02d}"]
    for slot in range(nsig):
        fields.append(format_value(sat.P[slot]))
        fields.append(format_value(sat.L[slot], int(sat.LLI[slot]) & LLI_MASK))
        fields.append(format_value(sat.D[slot]))
        fields.append(format_value(sat.SNR[slot]))
    return "".join(fields)


def rinex_extension(time: CalendarTime) -> str:
    """Short-name extension for an observation file, e.g. ``.24o``"""
    return f".{time.year % 100:02d}o"


class RinexObsWriter:
    """Write a mixed-constellation RINEX 3.04 observation file.

    Parameters
    ----------
    fh : TextIO
        Open text stream
    registry : SignalRegistry
        Signals recorded for each constellation
    """

    def __init__(self, fh: TextIO, registry: SignalRegistry):
        self.fh = fh
        self.registry = registry
        self.epochs_written = 0

    def _write(self, line: str):
        self.fh.write(line + "\n")

    def write_header(self, first_epoch: Optional[ObservationEpoch] = None,
                     marker_name: str = "",
                     receiver_type: str = "",
                     approx_position: Optional[np.ndarray] = None,
                     created: Optional[datetime] = None):
        """
        Write the header section

        Parameters:
        -----------
        first_epoch : ObservationEpoch, optional
            First epoch to be written (TIME OF FIRST OBS)
        marker_name : str
            Marker name, usually the log file name
        receiver_type : str
            Receiver (device) type
        approx_position : np.ndarray, optional
            Approximate ECEF position (m)
        created : datetime, optional
            File creation time (defaults to now)
        """
        created = created or datetime.now(timezone.utc)
        position = np.zeros(3) if approx_position is None else np.asarray(approx_position, dtype=float)

        self._write(header_line(
            f"{RINEX_VERSION:9.2f}{'':11s}{'OBSERVATION DATA':20s}{'M: Mixed':20s}",
            "RINEX VERSION / TYPE"))
        self._write(header_line(
            f"{PROGRAM:20s}{'':20s}{created.strftime('%Y%m%d %H%M%S') + ' UTC':20s}",
            "PGM / RUN BY / DATE"))
        self._write(header_line(marker_name or "UNKNOWN", "MARKER NAME"))
        self._write(header_line(f"{'unknown':20s}{receiver_type:20s}{'':20s}", "REC # / TYPE / VERS"))
        self._write(header_line(
            f"{position[0]:14.4f}{position[1]:14.4f}{position[2]:14.4f}",
            "APPROX POSITION XYZ"))
        self._write(header_line(f"{0.0:14.4f}{0.0:14.4f}{0.0:14.4f}", "ANTENNA: DELTA H/E/N"))

        for sys in self.registry.systems():
            types = observation_types(self.registry.signals(sys))
            for line in obs_types_lines(sys2char(sys), types):
                self._write(line)

        if first_epoch is not None:
            t = first_epoch.time
            self._write(header_line(
                f"{t.year:6d}{t.month:6d}{t.day:6d}{t.hour:6d}{t.minute:6d}"
                f"{t.second:13.7f}{'':5s}{'GPS':3s}",
                "TIME OF FIRST OBS"))

        self._write(header_line("", "END OF HEADER"))

    def write_epoch(self, epoch: ObservationEpoch) -> bool:
        """
        Write one epoch; epochs without satellites are skipped

        Returns:
        --------
        bool
            True if the epoch was written
        """
        if epoch.num_sats == 0:
            return False

        self._write(format_epoch_line(epoch.time, epoch.num_sats))
        for sat in epoch.satellites:
            self._write(format_satellite_line(sat, self.registry.count(sat.system)))
        self.epochs_written += 1
        return True

    def write_epochs(self, epochs) -> int:
        """Write a sequence of epochs, returning the number written"""
        return sum(1 for epoch in epochs if self.write_epoch(epoch))
