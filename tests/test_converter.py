#!/usr/bin/env python3
"""End-to-end tests of the raw measurement to RINEX pipeline"""

import glob
import os
import tempfile
import unittest
from unittest import mock

from rawrinex.converter import (
    ConversionContext, ConversionError, convert_file, convert_measurements,
    output_path, write_rinex
)
from rawrinex.core.config import ConverterConfig
from rawrinex.core.constants import (
    CLIGHT, CONSTELLATION_GALILEO, CONSTELLATION_GPS, CONSTELLATION_SBAS, SYS_GAL
)
from rawrinex.core.data_structures import CalendarTime, ObservationEpoch, RawMeasurement
from rawrinex.io.gnsslogger import RAW_FIELDS
from rawrinex.io.rinex import RinexObsWriter

WEEK = 2300
TOW = 349200
TIME_NANOS = 1_000_000_000_000
HALF_MS = 500_000
FULL_BIAS = TIME_NANOS - (WEEK * 604800 + TOW) * 1_000_000_000
TRAVEL = 70_000_000
GAL_BIAS_NANOS = 4_000_000

COLUMNS = [name for name in RAW_FIELDS if name != 'ElapsedRealtimeMillis']


def make_raw(constellation, svid, offset_s=0, travel_ns=TRAVEL, **kwargs):
    """GPS-time constellation measurement whose signal travelled ``travel_ns``"""
    receive = (TOW + offset_s) * 1_000_000_000 + HALF_MS
    fields = dict(
        utc_time_millis=1707354000000 + offset_s * 1000,
        time_nanos=TIME_NANOS + HALF_MS + offset_s * 1_000_000_000,
        full_bias_nanos=FULL_BIAS,
        svid=svid,
        constellation_type=constellation,
        carrier_frequency_hz=1575420000.0,
        state=1 | 8 | 2048,
        received_sv_time_nanos=receive - travel_ns,
        received_sv_time_uncertainty_nanos=20,
        cn0_dbhz=40.0 + svid,
        pseudorange_rate_meters_per_second=-400.0,
        pseudorange_rate_uncertainty_meters_per_second=0.1,
        accumulated_delta_range_state=1,
        accumulated_delta_range_meters=1000.0,
    )
    fields.update(kwargs)
    return RawMeasurement(**fields)


def two_epochs():
    """Five satellites over two epochs; E11 jumps by one Galileo code period"""
    raws = []
    for offset in (0, 1):
        for svid in (2, 5, 7):
            raws.append(make_raw(CONSTELLATION_GPS, svid, offset))
        jump = GAL_BIAS_NANOS if offset else 0
        raws.append(make_raw(CONSTELLATION_GALILEO, 11, offset, TRAVEL + jump))
        raws.append(make_raw(CONSTELLATION_GALILEO, 12, offset))
    return raws


def log_line(raw):
    return "Raw," + ",".join(str(getattr(raw, RAW_FIELDS[name][0])) for name in COLUMNS)


class TestConvertMeasurements(unittest.TestCase):
    """Test the in-memory pipeline"""

    def test_two_epochs(self):
        result = convert_measurements(two_epochs())

        self.assertEqual(len(result.epochs), 2)
        self.assertEqual([e.num_sats for e in result.epochs], [5, 5])
        self.assertEqual([s.name for s in result.epochs[0].satellites],
                         ['G02', 'G05', 'G07', 'E11', 'E12'])
        self.assertEqual(result.epochs[1].receiver_millis - result.epochs[0].receiver_millis, 1000)
        self.assertEqual(result.registry.signals(SYS_GAL), ['L1C'])

    def test_galileo_jump_removed(self):
        """The 4 ms jump of E11 is removed in the second epoch"""
        first, second = convert_measurements(two_epochs()).epochs
        before = first.find(SYS_GAL, 11).P[0]
        after = second.find(SYS_GAL, 11).P[0]
        self.assertAlmostEqual(before, 0.07 * CLIGHT, places=3)
        self.assertAlmostEqual(after, before, delta=1.0)

    def test_sparse_epoch_warning(self):
        raws = [make_raw(CONSTELLATION_GPS, 2), make_raw(CONSTELLATION_GPS, 5)]
        context = ConversionContext()
        with self.assertLogs('rawrinex.converter', level='WARNING') as cm:
            convert_measurements(raws, context)
        self.assertIn('Number of satellites is less than 4', cm.output[0])
        self.assertEqual(context.sparse_epochs, 1)

    def test_empty_epoch_not_sparse(self):
        """Epochs without any valid satellite are dropped silently"""
        context = ConversionContext()
        result = convert_measurements([make_raw(CONSTELLATION_SBAS, 131)], context)
        self.assertEqual(context.sparse_epochs, 0)
        self.assertEqual(result.emitted(), [])
        self.assertIsNone(result.first_epoch())

    def test_configurable_sparse_limit(self):
        context = ConversionContext(ConverterConfig(min_satellites=2))
        convert_measurements([make_raw(CONSTELLATION_GPS, 2), make_raw(CONSTELLATION_GPS, 5)], context)
        self.assertEqual(context.sparse_epochs, 0)

    def test_first_epoch_skips_empty(self):
        raws = [make_raw(CONSTELLATION_GPS, 2, 0, state=1)] + [
            make_raw(CONSTELLATION_GPS, svid, 1) for svid in (2, 5, 7, 9)]
        result = convert_measurements(raws)
        self.assertEqual([e.num_sats for e in result.epochs], [0, 4])
        self.assertIs(result.first_epoch(), result.epochs[1])


class TestConvertFile(unittest.TestCase):
    """Test conversion of GnssLogger files"""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.dir = self.tmpdir.name

    def tearDown(self):
        self.tmpdir.cleanup()

    def _write_log(self, raws, name='gnss_log_2024_02_08.txt'):
        path = os.path.join(self.dir, name)
        with open(path, 'w') as f:
            f.write("# Version: v3.0.6.1 Platform: 13 Manufacturer: Google Model: Pixel 7\n")
            f.write("# Raw," + ",".join(COLUMNS) + "\n")
            for raw in raws:
                f.write(log_line(raw) + "\n")
        return path

    def test_convert_file(self):
        path = convert_file(self._write_log(two_epochs()))
        self.assertEqual(path.name, 'gnss_log_2024_02_08.24o')
        self.assertTrue(path.exists())

        lines = path.read_text().splitlines()
        labels = [line[60:].strip() for line in lines[:20]]
        self.assertIn('END OF HEADER', labels)
        self.assertTrue(lines[2].startswith('gnss_log_2024_02_08'))
        self.assertIn('Google Pixel 7', lines[3])

        epochs = [line for line in lines if line.startswith('>')]
        self.assertEqual(len(epochs), 2)
        self.assertTrue(epochs[0].endswith('  0  5'))
        self.assertEqual(len(lines), labels.index('END OF HEADER') + 1 + 2 * 6)

    def test_output_name(self):
        path = convert_file(self._write_log(two_epochs()), os.path.join(self.dir, 'station'))
        self.assertEqual(path.name, 'station.24o')

    def test_empty_epochs_not_written(self):
        raws = two_epochs() + [make_raw(CONSTELLATION_SBAS, 131, 2)]
        lines = convert_file(self._write_log(raws)).read_text().splitlines()
        self.assertEqual(sum(1 for line in lines if line.startswith('>')), 2)

    def test_no_valid_epoch(self):
        """No output file is produced when nothing can be written"""
        with self.assertRaises(ConversionError):
            convert_file(self._write_log([make_raw(CONSTELLATION_SBAS, 131)]))
        self.assertEqual(glob.glob(os.path.join(self.dir, '*o')), [])

    def test_no_measurements(self):
        with self.assertRaises(ConversionError):
            convert_file(self._write_log([]))

    def test_missing_input(self):
        with self.assertRaises(FileNotFoundError):
            convert_file(os.path.join(self.dir, 'missing.txt'))

    def test_write_rinex_requires_epoch(self):
        result = convert_measurements([make_raw(CONSTELLATION_SBAS, 131)])
        target = os.path.join(self.dir, 'empty.24o')
        with self.assertRaises(ConversionError):
            write_rinex(target, result)
        self.assertFalse(os.path.exists(target))

    def test_unwritable_output(self):
        """Output directory problems are reported as conversion errors"""
        output = os.path.join(self.dir, 'nodir', 'site')
        with self.assertRaises(ConversionError) as cm:
            convert_file(self._write_log(two_epochs()), output)
        self.assertIn('Cannot write', str(cm.exception))

    def test_partial_file_removed(self):
        """A failure while writing epochs removes the incomplete file"""
        result = convert_measurements(two_epochs())
        target = os.path.join(self.dir, 'partial.24o')
        with mock.patch.object(RinexObsWriter, 'write_epochs', side_effect=RuntimeError('disk full')):
            with self.assertRaises(RuntimeError):
                write_rinex(target, result)
        self.assertFalse(os.path.exists(target))

    def test_open_failure_keeps_existing_path(self):
        """Nothing is deleted when the output cannot even be opened"""
        target = os.path.join(self.dir, 'taken.24o')
        os.mkdir(target)
        with self.assertRaises(OSError):
            write_rinex(target, convert_measurements(two_epochs()))
        self.assertTrue(os.path.isdir(target))

    def test_output_path(self):
        epoch = ObservationEpoch(CalendarTime(2023, 5, 1, 0, 0, 0.0))
        self.assertEqual(output_path('logs/gnss_log.txt', epoch).as_posix(), 'logs/gnss_log.23o')
        self.assertEqual(output_path('gnss_log.txt', epoch, 'out/site').as_posix(), 'out/site.23o')


if __name__ == '__main__':
    unittest.main()
