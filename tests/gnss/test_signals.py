#!/usr/bin/env python3
"""Test suite for signal classification"""

import unittest
from rawrinex.core.constants import (
    CONSTELLATION_BEIDOU, CONSTELLATION_GALILEO, CONSTELLATION_GLONASS,
    CONSTELLATION_GPS, CONSTELLATION_QZSS, CONSTELLATION_SBAS,
    SYS_BDS, SYS_GAL, SYS_GLO, SYS_GPS, SYS_QZS
)
from rawrinex.core.data_structures import RawMeasurement, SignalId
from rawrinex.gnss.signals import (
    BANDS, SignalClassifier, SignalRegistry, find_band, round_half_away,
    rounded_frequency
)


class TestBandMatching(unittest.TestCase):
    """Test frequency to band matching"""

    def test_band_nominals(self):
        """Nominal band values follow the carrier frequency constants"""
        nominals = {band.code: band.nominal for band in BANDS[CONSTELLATION_GPS]}
        self.assertEqual(nominals, {'L1C': 157542, 'L5Q': 117645})
        self.assertEqual([b.nominal for b in BANDS[CONSTELLATION_BEIDOU]], [1561098, 1176450])
        self.assertEqual([b.nominal for b in BANDS[CONSTELLATION_GLONASS]], [160])
        self.assertEqual([b.nominal for b in BANDS[CONSTELLATION_GALILEO]], [157542, 117645])
        self.assertIsInstance(BANDS[CONSTELLATION_QZSS][0].nominal, int)

    def test_round_half_away(self):
        self.assertEqual(round_half_away(2.5), 3.0)
        self.assertEqual(round_half_away(-2.5), -3.0)
        self.assertEqual(round_half_away(2.49), 2.0)

    def test_reported_offsets(self):
        """Small receiver frequency offsets still match the nominal band"""
        self.assertEqual(find_band(CONSTELLATION_GPS, 1575420030.0).code, 'L1C')
        self.assertEqual(find_band(CONSTELLATION_GPS, 1176450000.0).code, 'L5Q')
        self.assertEqual(find_band(CONSTELLATION_BEIDOU, 1561097980.0).code, 'L2I')
        self.assertEqual(find_band(CONSTELLATION_BEIDOU, 1176450000.0).code, 'L5P')
        self.assertEqual(find_band(CONSTELLATION_GALILEO, 1176450000.0).code, 'L5X')

    def test_glonass_channels(self):
        """Every GLONASS FDMA channel matches G1"""
        for k in (-7, 0, 6):
            freq = 1602e6 + k * 562500.0
            self.assertEqual(find_band(CONSTELLATION_GLONASS, freq).code, 'L1C')
            self.assertEqual(rounded_frequency(CONSTELLATION_GLONASS, freq), freq)

    def test_unmatched(self):
        """Unsupported bands and constellations do not match"""
        self.assertIsNone(find_band(CONSTELLATION_GPS, 1227600000.0))
        self.assertIsNone(find_band(CONSTELLATION_SBAS, 1575420000.0))
        self.assertEqual(rounded_frequency(CONSTELLATION_GPS, 1227600000.0), 0.0)

    def test_rounded_frequency(self):
        self.assertEqual(rounded_frequency(CONSTELLATION_GPS, 1575420030.0), 1575420000.0)
        self.assertEqual(rounded_frequency(CONSTELLATION_BEIDOU, 1561097980.0), 1561098000.0)


class TestSignalRegistry(unittest.TestCase):
    """Test the per-constellation signal registry"""

    def test_first_seen_order(self):
        registry = SignalRegistry()
        self.assertEqual(registry.register(SignalId(SYS_GPS, 'L5Q')), 0)
        self.assertEqual(registry.register(SignalId(SYS_GPS, 'L1C')), 1)
        self.assertEqual(registry.register(SignalId(SYS_GPS, 'L5Q')), 0)

        self.assertEqual(registry.signals(SYS_GPS), ['L5Q', 'L1C'])
        self.assertEqual(registry.index(SignalId(SYS_GPS, 'L1C')), 1)
        self.assertIsNone(registry.index(SignalId(SYS_GAL, 'L1C')))
        self.assertEqual(len(registry), 2)

    def test_systems_in_header_order(self):
        """Populated systems come out as G, R, E, C, J"""
        registry = SignalRegistry()
        registry.register(SignalId(SYS_QZS, 'L1C'))
        registry.register(SignalId(SYS_GAL, 'L1C'))
        registry.register(SignalId(SYS_GPS, 'L1C'))
        self.assertEqual(list(registry.systems()), [SYS_GPS, SYS_GAL, SYS_QZS])

    def test_capacity(self):
        """Signals beyond the per-constellation limit are refused"""
        registry = SignalRegistry(max_signals=2)
        registry.register(SignalId(SYS_GPS, 'L1C'))
        registry.register(SignalId(SYS_GPS, 'L5Q'))
        self.assertIsNone(registry.register(SignalId(SYS_GPS, 'L2X')))
        self.assertEqual(registry.count(SYS_GPS), 2)
        self.assertEqual(registry.register(SignalId(SYS_GLO, 'L1C')), 0)

    def test_unsupported_system(self):
        self.assertIsNone(SignalRegistry().register(SignalId(0, 'L1C')))


class TestSignalClassifier(unittest.TestCase):
    """Test measurement classification"""

    def test_classify(self):
        classifier = SignalClassifier()
        self.assertEqual(classifier.classify(CONSTELLATION_GPS, 1575420000.0), SignalId(SYS_GPS, 'L1C'))
        self.assertEqual(classifier.classify(CONSTELLATION_QZSS, 1176450000.0), SignalId(SYS_QZS, 'L5Q'))
        self.assertEqual(classifier.classify(CONSTELLATION_GLONASS, 1603687500.0), SignalId(SYS_GLO, 'L1C'))
        self.assertEqual(classifier.classify(CONSTELLATION_BEIDOU, 1561098000.0), SignalId(SYS_BDS, 'L2I'))
        self.assertEqual(classifier.classify(CONSTELLATION_GALILEO, 1575420000.0), SignalId(SYS_GAL, 'L1C'))
        self.assertIsNone(classifier.classify(CONSTELLATION_GPS, 1227600000.0))

    def test_idempotent(self):
        """Classifying the same signal twice registers it once"""
        classifier = SignalClassifier()
        first = classifier.classify(CONSTELLATION_GALILEO, 1176450000.0)
        second = classifier.classify(CONSTELLATION_GALILEO, 1176450000.0)
        self.assertEqual(first, second)
        self.assertEqual(classifier.registry.signals(SYS_GAL), ['L5X'])

    def test_classify_measurement(self):
        """Classified measurements carry the rounded carrier frequency"""
        classifier = SignalClassifier()
        raw = RawMeasurement(svid=3, constellation_type=CONSTELLATION_GPS,
                             carrier_frequency_hz=1575420030.0)
        cm = classifier.classify_measurement(raw)
        self.assertIs(cm.raw, raw)
        self.assertEqual(cm.signal, SignalId(SYS_GPS, 'L1C'))
        self.assertEqual(cm.carrier_frequency, 1575420000.0)

    def test_unclassified_measurement(self):
        classifier = SignalClassifier()
        raw = RawMeasurement(svid=131, constellation_type=CONSTELLATION_SBAS,
                             carrier_frequency_hz=1575420000.0)
        cm = classifier.classify_measurement(raw)
        self.assertIsNone(cm.signal)
        self.assertEqual(cm.carrier_frequency, 0.0)
        self.assertEqual(len(classifier.registry), 0)

    def test_classify_all_keeps_order(self):
        classifier = SignalClassifier()
        raws = [
            RawMeasurement(svid=1, constellation_type=CONSTELLATION_GPS, carrier_frequency_hz=1176450000.0),
            RawMeasurement(svid=2, constellation_type=CONSTELLATION_GPS, carrier_frequency_hz=1575420000.0),
        ]
        result = classifier.classify_all(raws)
        self.assertEqual([cm.raw.svid for cm in result], [1, 2])
        self.assertEqual(classifier.registry.signals(SYS_GPS), ['L5Q', 'L1C'])


if __name__ == '__main__':
    unittest.main()
