#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Tests for the analysis session, settings and command line entry point
"""

from __future__ import annotations
import json
import shutil
import tempfile
import unittest
from pathlib import Path

from analyzers.ocpp_voltage.analyze import VoltageAnalyzer, main
from analyzers.ocpp_voltage.settings import DEFAULT_VMAX, DEFAULT_VMIN, build_settings, display_tz
from analyzers.ocpp_voltage.utils import to_iso


T0 = 1709294400000


def meter_line(ts, l1, l2, l3, connector_id=1):
    payload = {'connectorId': connector_id, 'meterValue': [{
        'timestamp': to_iso(ts),
        'sampledValue': [
            {'value': str(v), 'measurand': 'Voltage', 'phase': ph}
            for ph, v in (('L1', l1), ('L2', l2), ('L3', l3))
        ],
    }]}
    return '[2,"1","MeterValues",%s]' % json.dumps(payload)


STATION_A = '\n'.join([
    meter_line(T0, 230, 231, 229),
    meter_line(T0 + 1000, 250, 249, 251),
]) + '\n'

STATION_B = '\n'.join([
    meter_line(T0 + 500000, 200, 230, 230, connector_id=2),
    '[2,"2","MeterValues",{"connectorId":2,"meterValue":[{"timestamp":"garbage","sampledValue":[]}]}]',
]) + '\n'


class TestSettings(unittest.TestCase):
    """Test cases for settings validation"""

    def test_defaults(self):
        settings = build_settings(timezone='UTC')
        self.assertEqual(settings['vmin'], DEFAULT_VMIN)
        self.assertEqual(settings['vmax'], DEFAULT_VMAX)

    def test_invalid_thresholds(self):
        with self.assertRaises(ValueError):
            build_settings(250, 240, 'UTC')
        with self.assertRaises(ValueError):
            build_settings(0, 240, 'UTC')

    def test_unknown_timezone(self):
        with self.assertRaises(ValueError):
            build_settings(timezone='Mars/Olympus_Mons')

    def test_display_tz(self):
        self.assertIsNotNone(display_tz({'timezone': 'UTC'}))


class TestVoltageAnalyzer(unittest.TestCase):
    """Test cases for VoltageAnalyzer session handling"""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.analyzer = VoltageAnalyzer(build_settings(timezone='UTC'))
        self.analyzer.add_text('a.log', STATION_A)
        self.analyzer.add_text('b.log', STATION_B)

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_aggregate_across_files(self):
        stats = self.analyzer.analysis_stats()
        self.assertEqual(stats['total_points'], 3)
        self.assertEqual(stats['cnt_under'], 1)
        self.assertEqual(stats['cnt_invalid_dates'], 1)
        self.assertEqual(stats['max_delta'], 30)
        self.assertEqual(stats['cnt_deep_dip'], 0)
        self.assertEqual(stats['risk_level'], 'low')

    def test_disable_and_enable(self):
        self.analyzer.set_enabled('b.log', False)
        stats = self.analyzer.analysis_stats()
        self.assertEqual(stats['total_points'], 2)
        self.assertEqual(stats['cnt_invalid_dates'], 0)
        self.assertEqual(self.analyzer.incident_summary()['errors'], [])

        self.analyzer.set_enabled('b.log', True)
        self.assertEqual(self.analyzer.analysis_stats()['total_points'], 3)

    def test_remove_file(self):
        self.analyzer.remove_file('a.log')
        self.assertEqual([f['name'] for f in self.analyzer.files], ['b.log'])
        self.assertEqual(len(self.analyzer.all_data()), 1)

    def test_unknown_file_raises(self):
        with self.assertRaises(KeyError):
            self.analyzer.remove_file('missing.log')
        with self.assertRaises(KeyError):
            self.analyzer.set_enabled('missing.log', False)

    def test_threshold_change_reevaluates(self):
        self.assertEqual(self.analyzer.analysis_stats()['cnt_over'], 0)
        self.analyzer.set_thresholds(vmax=245)
        self.assertEqual(self.analyzer.analysis_stats()['cnt_over'], 1)
        self.assertEqual(self.analyzer.settings['vmin'], DEFAULT_VMIN)

        with self.assertRaises(ValueError):
            self.analyzer.set_thresholds(vmin=300)

    def test_load_files_skips_unreadable(self):
        path = Path(self.temp_dir) / 'c.log'
        path.write_text(STATION_A, encoding='utf-8')

        loaded = self.analyzer.load_files([path, Path(self.temp_dir) / 'missing.log'])
        self.assertEqual([f['name'] for f in loaded], ['c.log'])
        self.assertEqual(len(self.analyzer.files), 3)

    def test_export_csv(self):
        triplets_path, incidents_path = self.analyzer.export_csv(self.temp_dir)
        self.assertTrue(Path(triplets_path).exists())
        self.assertTrue(Path(incidents_path).exists())

        self.analyzer.set_enabled('b.log', False)
        triplets_path, incidents_path = self.analyzer.export_csv(self.temp_dir)
        self.assertIsNotNone(triplets_path)
        self.assertIsNone(incidents_path)

    def test_summary_report_renders(self):
        self.analyzer.generate_summary_report()


class TestMain(unittest.TestCase):
    """Test cases for the command line entry point"""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.log_path = Path(self.temp_dir) / 'station.log'
        self.log_path.write_text(STATION_A + STATION_B, encoding='utf-8')

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_export(self):
        out_dir = Path(self.temp_dir) / 'out'
        main([str(self.log_path), '--timezone', 'UTC', '--export-csv', str(out_dir)])

        exported = sorted(p.name for p in out_dir.iterdir())
        self.assertEqual(len(exported), 2)
        self.assertTrue(exported[0].startswith('VoltageIncidents_'))
        self.assertTrue(exported[1].startswith('VoltageTriplets_'))

    def test_invalid_thresholds_exit(self):
        with self.assertRaises(SystemExit) as cm:
            main([str(self.log_path), '--vmin', '260', '--vmax', '250', '--timezone', 'UTC'])
        self.assertEqual(cm.exception.code, 2)

    def test_no_readable_files_exit(self):
        with self.assertRaises(SystemExit) as cm:
            main([str(Path(self.temp_dir) / 'missing.log'), '--timezone', 'UTC'])
        self.assertEqual(cm.exception.code, 1)


if __name__ == '__main__':
    unittest.main()
