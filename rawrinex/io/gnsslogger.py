"""Reader for Android GnssLogger text logs.

A GnssLogger file mixes several record types, one per line, each starting
with its type name (``Raw``, ``Fix``, ``Status``, ...). Comment lines start
with ``#``; the ``# Raw,...`` comment names the columns of the raw
measurement records and ``# Version: ...`` carries the device identity.

Only ``Raw`` records become measurements. Columns are mapped by name, so
logs written by different app versions (with extra or reordered columns)
are read alike. Empty fields are read as zero.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from ..coordinate.transforms import geodetic_deg2ecef
from ..core.data_structures import RawMeasurement

logger = logging.getLogger(__name__)

RAW_MARKER = "Raw"
FIX_MARKER = "Fix"
COMMENT = "#"

# Column name -> (RawMeasurement field, type)
RAW_FIELDS: Dict[str, Tuple[str, type]] = {
    'utcTimeMillis': ('utc_time_millis', int),
    'ElapsedRealtimeMillis': ('utc_time_millis', int),
    'TimeNanos': ('time_nanos', int),
    'LeapSecond': ('leap_second', int),
    'TimeUncertaintyNanos': ('time_uncertainty_nanos', float),
    'FullBiasNanos': ('full_bias_nanos', int),
    'BiasNanos': ('bias_nanos', float),
    'BiasUncertaintyNanos': ('bias_uncertainty_nanos', float),
    'DriftNanosPerSecond': ('drift_nanos_per_second', float),
    'DriftUncertaintyNanosPerSecond': ('drift_uncertainty_nanos_per_second', float),
    'HardwareClockDiscontinuityCount': ('hardware_clock_discontinuity_count', int),
    'Svid': ('svid', int),
    'TimeOffsetNanos': ('time_offset_nanos', float),
    'State': ('state', int),
    'ReceivedSvTimeNanos': ('received_sv_time_nanos', int),
    'ReceivedSvTimeUncertaintyNanos': ('received_sv_time_uncertainty_nanos', int),
    'Cn0DbHz': ('cn0_dbhz', float),
    'PseudorangeRateMetersPerSecond': ('pseudorange_rate_meters_per_second', float),
    'PseudorangeRateUncertaintyMetersPerSecond':
        ('pseudorange_rate_uncertainty_meters_per_second', float),
    'AccumulatedDeltaRangeState': ('accumulated_delta_range_state', int),
    'AccumulatedDeltaRangeMeters': ('accumulated_delta_range_meters', float),
    'AccumulatedDeltaRangeUncertaintyMeters':
        ('accumulated_delta_range_uncertainty_meters', float),
    'CarrierFrequencyHz': ('carrier_frequency_hz', float),
    'ConstellationType': ('constellation_type', int),
}

# Column order of GnssLogger files without a "# Raw," header comment
LEGACY_RAW_COLUMNS = [
    'ElapsedRealtimeMillis', 'TimeNanos', 'LeapSecond', 'TimeUncertaintyNanos',
    'FullBiasNanos', 'BiasNanos', 'BiasUncertaintyNanos', 'DriftNanosPerSecond',
    'DriftUncertaintyNanosPerSecond', 'HardwareClockDiscontinuityCount', 'Svid',
    'TimeOffsetNanos', 'State', 'ReceivedSvTimeNanos', 'ReceivedSvTimeUncertaintyNanos',
    'Cn0DbHz', 'PseudorangeRateMetersPerSecond', 'PseudorangeRateUncertaintyMetersPerSecond',
    'AccumulatedDeltaRangeState', 'AccumulatedDeltaRangeMeters',
    'AccumulatedDeltaRangeUncertaintyMeters', 'CarrierFrequencyHz', 'CarrierCycles',
    'CarrierPhase', 'CarrierPhaseUncertainty', 'MultipathIndicator', 'SnrInDb',
    'ConstellationType', 'AgcDb',
]

LEGACY_FIX_COLUMNS = ['Provider', 'LatitudeDegrees', 'LongitudeDegrees', 'AltitudeMeters']


@dataclass
class GnssLoggerFile:
    """Contents of a GnssLogger log relevant to RINEX conversion.

    Attributes
    ----------
    path : Path
        Log file path
    measurements : list[RawMeasurement]
        Raw measurements in log order
    manufacturer, model : str
        Device identity from the ``# Version:`` comment ('' if absent)
    fix_llh : np.ndarray or None
        First location fix [lat (deg), lon (deg), altitude (m)]
    skipped : int
        Number of ``Raw`` records that could not be parsed
    """
    path: Path
    measurements: List[RawMeasurement] = field(default_factory=list)
    manufacturer: str = ''
    model: str = ''
    fix_llh: Optional[np.ndarray] = None
    skipped: int = 0

    @property
    def receiver_type(self) -> str:
        return " ".join(part for part in (self.manufacturer, self.model) if part)

    def approx_position(self) -> Optional[np.ndarray]:
        """ECEF position (m) of the first fix, or None"""
        if self.fix_llh is None:
            return None
        return geodetic_deg2ecef(*self.fix_llh)


def _parse_int(token: str) -> Optional[int]:
    token = token.strip() or '0'
    try:
        return int(token)
    except ValueError:
        pass
    try:
        return int(float(token))
    except ValueError:
        return None


def parse_version(line: str) -> Tuple[str, str]:
    """Manufacturer and model from a ``# Version:`` comment"""
    parts = line.lstrip(COMMENT).split()
    manufacturer = model = ''
    if 'Manufacturer:' in parts:
        idx = parts.index('Manufacturer:') + 1
        manufacturer = parts[idx] if idx < len(parts) else ''
    if 'Model:' in parts:
        idx = parts.index('Model:') + 1
        model = " ".join(parts[idx:])
    return manufacturer, model


def parse_fix(tokens: List[str], columns: List[str]) -> Optional[np.ndarray]:
    """Latitude, longitude and altitude of a ``Fix`` record, or None"""
    values = dict(zip(columns, tokens))
    try:
        llh = [float(values[name]) for name in LEGACY_FIX_COLUMNS[1:]]
    except (KeyError, ValueError):
        return None
    if llh[0] == 0.0 and llh[1] == 0.0:
        return None
    return np.array(llh, dtype=np.float64)


def raw_records_to_measurements(rows: List[List[str]], columns: List[str]) -> Tuple[List[RawMeasurement], int]:
    """
    Convert tokenized ``Raw`` records to measurements

    Parameters:
    -----------
    rows : List[List[str]]
        Fields of each record, without the leading record type
    columns : List[str]
        Column names

    Returns:
    --------
    tuple : (measurements, skipped)
        Parsed measurements in input order and the number of rejected rows
    """
    if not rows:
        return [], 0

    width = len(columns)
    padded = [(row + [''] * width)[:width] for row in rows]
    df = pd.DataFrame(padded, columns=columns, dtype=object)

    data = {}
    invalid = pd.Series(False, index=df.index)
    for column, (name, kind) in RAW_FIELDS.items():
        if column not in df.columns or name in data:
            continue
        values = df[column].str.strip().replace('', '0')
        if kind is int:
            # object dtype keeps 64-bit counters exact
            parsed = pd.Series([_parse_int(v) for v in values], index=df.index, dtype=object)
        else:
            parsed = pd.to_numeric(values, errors='coerce')
        invalid |= parsed.isna()
        data[name] = parsed

    if not data:
        raise ValueError("Raw records have no recognised columns")

    table = pd.DataFrame(data)[~invalid]
    skipped = int(invalid.sum())

    measurements = []
    for record in table.to_dict('records'):
        for name, value in record.items():
            record[name] = int(value) if isinstance(value, (int, np.integer)) else float(value)
        measurements.append(RawMeasurement(**record))

    return measurements, skipped


def read_gnsslogger(path) -> GnssLoggerFile:
    """
    Read a GnssLogger text log

    Parameters:
    -----------
    path : str or Path
        Log file path

    Returns:
    --------
    GnssLoggerFile
        Measurements and device metadata

    Raises:
    -------
    FileNotFoundError
        If the file does not exist
    """
    log_path = Path(path)
    if not log_path.exists():
        raise FileNotFoundError(f"GnssLogger file not found: {log_path}")

    result = GnssLoggerFile(log_path)
    raw_columns = list(LEGACY_RAW_COLUMNS)
    fix_columns = list(LEGACY_FIX_COLUMNS)
    rows: List[List[str]] = []

    with log_path.open("r", encoding="utf-8", errors="ignore") as fh:
        for line in fh:
            line = line.strip()
            if not line:
                continue

            if line.startswith(COMMENT):
                body = line.lstrip(COMMENT).strip()
                if body.startswith(RAW_MARKER + ","):
                    raw_columns = [name.strip() for name in body.split(",")[1:]]
                elif body.startswith(FIX_MARKER + ","):
                    fix_columns = [name.strip() for name in body.split(",")[1:]]
                elif body.startswith("Version:"):
                    result.manufacturer, result.model = parse_version(body)
                continue

            tokens = line.split(",")
            if tokens[0] == RAW_MARKER:
                rows.append(tokens[1:])
            elif tokens[0] == FIX_MARKER and result.fix_llh is None:
                result.fix_llh = parse_fix(tokens[1:], fix_columns)

    result.measurements, result.skipped = raw_records_to_measurements(rows, raw_columns)
    if result.skipped:
        logger.debug("Skipped %d malformed Raw records", result.skipped)
    logger.info("Read %d raw measurements from %s", len(result.measurements), log_path.name)
    return result
