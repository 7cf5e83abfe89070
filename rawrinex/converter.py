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

"""Raw measurement to RINEX conversion pipeline.

Stages, in order:

1. Classification pass over every measurement (fills the signal registry)
2. Epoch grouping by receiver millisecond, with clock re-anchoring
3. Observable computation per epoch
4. Galileo 4 ms bias correction against the preceding epoch
5. RINEX header and epoch encoding

Shared mutable state (signal registry, running clock reference) lives in a
``ConversionContext`` owned by one run.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from .core.config import ConverterConfig
from .core.data_structures import ObservationEpoch, RawMeasurement
from .gnss.epochs import ClockState, EpochBuilder
from .gnss.observables import ObservationComputer, correct_galileo_bias
from .gnss.signals import SignalClassifier, SignalRegistry
from .io.gnsslogger import GnssLoggerFile, read_gnsslogger
from .io.rinex import RinexObsWriter, rinex_extension

logger = logging.getLogger(__name__)


class ConversionError(RuntimeError):
    """Raised when a log yields nothing that can be written as RINEX"""


@dataclass
class ConversionContext:
    """State shared by the stages of one conversion run"""
    config: ConverterConfig = field(default_factory=ConverterConfig)
    registry: SignalRegistry = field(default_factory=SignalRegistry)
    clock: ClockState = field(default_factory=ClockState)
    sparse_epochs: int = 0


@dataclass
class ConversionResult:
    """Observation epochs of a run and the registry describing their slots"""
    context: ConversionContext
    epochs: List[ObservationEpoch]

    @property
    def registry(self) -> SignalRegistry:
        return self.context.registry

    def emitted(self) -> List[ObservationEpoch]:
        """Epochs that will appear in the RINEX file"""
        return [epoch for epoch in self.epochs if epoch.num_sats > 0]

    def first_epoch(self) -> Optional[ObservationEpoch]:
        emitted = self.emitted()
        return emitted[0] if emitted else None


def convert_measurements(measurements: Iterable[RawMeasurement],
                         context: Optional[ConversionContext] = None) -> ConversionResult:
    """
    Turn time-ordered raw measurements into RINEX observation epochs

    Parameters:
    -----------
    measurements : Iterable[RawMeasurement]
        Measurements in log order
    context : ConversionContext, optional
        Run state; a fresh one is created if omitted

    Returns:
    --------
    ConversionResult
        All epochs, including empty ones, in log order
    """
    context = context or ConversionContext()
    config = context.config

    classified = SignalClassifier(context.registry).classify_all(measurements)
    logger.debug("Signals: %r", context.registry)

    epochs = EpochBuilder(config.epoch_tolerance_millis).build(classified, context.clock)
    computer = ObservationComputer(context.registry, config)

    results: List[ObservationEpoch] = []
    for epoch in epochs:
        obs_epoch = computer.compute(epoch)
        if results:
            correct_galileo_bias(results[-1], obs_epoch)
        if 0 < obs_epoch.num_sats < config.min_satellites:
            context.sparse_epochs += 1
            t = obs_epoch.time
            logger.warning("Number of satellites is less than %d in epoch "
                           "%04d-%02d-%02d %02d:%02d:%010.7f (%d satellites)",
                           config.min_satellites, t.year, t.month, t.day,
                           t.hour, t.minute, t.second, obs_epoch.num_sats)
        results.append(obs_epoch)

    return ConversionResult(context, results)


def output_path(input_path: Path, first_epoch: ObservationEpoch,
                output: Optional[Path] = None) -> Path:
    """RINEX file name: output (or input) stem with a ``.YYo`` extension"""
    base = Path(output) if output is not None else Path(input_path)
    return base.with_suffix(rinex_extension(first_epoch.time))


def write_rinex(path: Path, result: ConversionResult,
                log: Optional[GnssLoggerFile] = None) -> int:
    """
    Write a conversion result to a RINEX observation file

    The file is removed again if writing fails part way.

    Returns:
    --------
    int
        Number of epochs written
    """
    first = result.first_epoch()
    if first is None:
        raise ConversionError("No epoch with valid observations")

    path = Path(path)
    with path.open("w", encoding="ascii", errors="replace", newline="\n") as fh:
        try:
            writer = RinexObsWriter(fh, result.registry)
            writer.write_header(
                first,
                marker_name=log.path.stem if log is not None else "",
                receiver_type=log.receiver_type if log is not None else "",
                approx_position=log.approx_position() if log is not None else None,
            )
            written = writer.write_epochs(result.epochs)
        except Exception:
            fh.close()
            path.unlink(missing_ok=True)
            raise

    return written


def convert_file(input_path, output=None,
                 config: Optional[ConverterConfig] = None) -> Path:
    """
    Convert a GnssLogger log into a RINEX 3.04 observation file

    Parameters:
    -----------
    input_path : str or Path
        GnssLogger text log
    output : str or Path, optional
        Output base name; the extension is replaced by ``.YYo``
    config : ConverterConfig, optional
        Conversion settings

    Returns:
    --------
    Path
        Written RINEX file

    Raises:
    -------
    OSError
        If the input file cannot be read (FileNotFoundError when missing)
    ConversionError
        If no epoch has any valid observation or the output cannot be written
    """
    log = read_gnsslogger(input_path)
    if not log.measurements:
        raise ConversionError(f"No raw measurements in {log.path}")

    context = ConversionContext(config or ConverterConfig())
    result = convert_measurements(log.measurements, context)

    first = result.first_epoch()
    if first is None:
        raise ConversionError(f"No epoch with valid observations in {log.path}")

    path = output_path(log.path, first, output)
    try:
        written = write_rinex(path, result, log)
    except OSError as e:
        raise ConversionError(f"Cannot write {path}: {e}") from e

    logger.info("Wrote %d epochs to %s (%d sparse, %d clock resets)",
                written, path, context.sparse_epochs, context.clock.resets)
    return path
