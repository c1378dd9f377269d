#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Tests for status evaluation, aggregation and the risk model
"""

from __future__ import annotations
import unittest

from analyzers.ocpp_voltage.evaluator import compute_delta, evaluate_status
from analyzers.ocpp_voltage.stats import (
    aggregate_triplets,
    classify_risk,
    compute_analysis_stats,
    summarize_incidents,
)


T0 = 1709294400000


def triplet(ts=T0, L1=None, L2=None, L3=None, connector_id=1, dataset='a.log'):
    t = {
        'id': f'{dataset}|{connector_id}|{ts}',
        'ts': ts,
        'dataset': dataset,
        'connector_id': connector_id,
        'L1': L1,
        'L2': L2,
        'L3': L3,
        'session': 'idle',
    }
    t['delta'] = compute_delta(t)
    t['status'], t['deviation_details'] = evaluate_status(t, 207, 253)
    return t


def file_data(name, triplets, errors=None, enabled=True):
    return {
        'name': name,
        'size': 0,
        'enabled': enabled,
        'alert_counts': {},
        'triplets': triplets,
        'parsing_errors': errors or [],
        'raw_text': '',
    }


class TestEvaluator(unittest.TestCase):
    """Test cases for threshold classification"""

    def test_over_takes_precedence_over_under(self):
        t = triplet(L1=260, L2=200)
        self.assertEqual(t['status'], 'over')
        self.assertEqual(t['deviation_details'][:2], ['High', 'Low'])

    def test_under(self):
        t = triplet(L1=210, L2=205, L3=212)
        self.assertEqual(t['status'], 'under')
        self.assertEqual(t['deviation_details'], ['Low'])

    def test_imbalance_only_when_in_range(self):
        t = triplet(L1=240, L2=225)
        self.assertEqual(t['status'], 'imbalance')
        self.assertEqual(t['deviation_details'], ['Δ 15V'])

        t = triplet(L1=260, L2=225)
        self.assertEqual(t['status'], 'over', "Imbalance never overrides a threshold violation")
        self.assertEqual(t['deviation_details'], ['High', 'Δ 35V'])

    def test_below_imbalance_threshold(self):
        t = triplet(L1=240, L2=225.5)
        self.assertEqual(t['status'], 'ok')
        self.assertEqual(t['deviation_details'], [])

    def test_no_phases_is_ok(self):
        t = triplet()
        self.assertEqual(t['delta'], 0.0)
        self.assertEqual(t['status'], 'ok')
        self.assertEqual(t['deviation_details'], [])

    def test_single_phase_has_no_delta(self):
        self.assertEqual(compute_delta({'L1': 230, 'L2': None, 'L3': None}), 0.0)
        self.assertEqual(compute_delta({'L1': 230, 'L2': 220, 'L3': 226}), 10)

    def test_idempotent(self):
        t = triplet(L1=260, L2=200, L3=230)
        self.assertEqual(evaluate_status(t, 207, 253), evaluate_status(t, 207, 253))

    def test_thresholds_are_exclusive(self):
        t = triplet(L1=207, L2=253)
        status, deviations = evaluate_status(t, 207, 253)
        self.assertNotIn('High', deviations)
        self.assertNotIn('Low', deviations)


class TestAggregation(unittest.TestCase):
    """Test cases for multi-file aggregation"""

    def test_disabled_files_excluded(self):
        files = [
            file_data('a.log', [triplet(ts=T0, L1=230)], errors=['Invalid timestamp: "x" near char 1']),
            file_data('b.log', [triplet(ts=T0 + 1000, L1=231, dataset='b.log')],
                      errors=['Invalid timestamp: "y" near char 2'], enabled=False),
        ]
        data = aggregate_triplets(files, 207, 253)
        self.assertEqual([t['dataset'] for t in data], ['a.log'])

        stats = compute_analysis_stats(files, 207, 253)
        self.assertEqual(stats['total_points'], 1)
        self.assertEqual(stats['cnt_invalid_dates'], 1)

    def test_reevaluation_does_not_mutate_files(self):
        files = [file_data('a.log', [triplet(L1=250, L2=249, L3=248)])]
        data = aggregate_triplets(files, 200, 245)

        self.assertEqual(data[0]['status'], 'over')
        self.assertEqual(files[0]['triplets'][0]['status'], 'ok')

    def test_merged_in_time_order(self):
        files = [
            file_data('a.log', [triplet(ts=T0 + 2000, L1=230), triplet(ts=T0 + 4000, L1=230)]),
            file_data('b.log', [triplet(ts=T0, L1=230, dataset='b.log'),
                                triplet(ts=T0 + 3000, L1=230, dataset='b.log')]),
        ]
        data = aggregate_triplets(files, 207, 253)
        self.assertEqual([t['ts'] for t in data], [T0, T0 + 2000, T0 + 3000, T0 + 4000])


class TestAnalysisStats(unittest.TestCase):
    """Test cases for AnalysisStats and risk classification"""

    def test_empty(self):
        stats = compute_analysis_stats([], 207, 253)
        self.assertEqual(stats['total_points'], 0)
        self.assertIsNone(stats['start_time'])
        self.assertEqual(stats['duration_hours'], 0.0)
        self.assertEqual(stats['risk_level'], 'low')
        self.assertEqual(stats['phases']['L1']['min'], 0.0)

    def test_counts_and_duration(self):
        files = [file_data('a.log', [
            triplet(ts=T0, L1=230, L2=231, L3=229),
            triplet(ts=T0 + 1800000, L1=200, L2=230, L3=230),
            triplet(ts=T0 + 3600000, L1=260, L2=250, L3=250),
        ])]
        stats = compute_analysis_stats(files, 207, 253)

        self.assertEqual(stats['total_points'], 3)
        self.assertEqual(stats['start_time'], T0)
        self.assertEqual(stats['end_time'], T0 + 3600000)
        self.assertAlmostEqual(stats['duration_hours'], 1.0)
        self.assertEqual(stats['cnt_under'], 1)
        self.assertEqual(stats['cnt_over'], 1)
        self.assertEqual(stats['cnt_imbalance'], 0)
        self.assertEqual(stats['max_delta'], 30)
        self.assertEqual(stats['risk_level'], 'low')

    def test_per_phase_statistics_skip_absent_values(self):
        files = [file_data('a.log', [
            triplet(ts=T0, L1=220, L2=0),
            triplet(ts=T0 + 1000, L1=240),
            triplet(ts=T0 + 2000, L1=260),
        ])]
        stats = compute_analysis_stats(files, 207, 253)
        l1, l2, l3 = stats['phases']['L1'], stats['phases']['L2'], stats['phases']['L3']

        self.assertEqual(l1['min'], 220)
        self.assertEqual(l1['max'], 260)
        self.assertAlmostEqual(l1['avg'], 240)
        self.assertEqual(l1['over_count'], 1)
        self.assertEqual(l1['under_count'], 0)
        self.assertEqual(l2['zero_count'], 1)
        self.assertEqual(l2['under_count'], 1)
        self.assertEqual(l3['min'], 0.0)
        self.assertEqual(l3['max'], 0.0)
        self.assertEqual(l3['avg'], 0.0)

    def test_deep_dip_counted_per_triplet_and_high_risk(self):
        files = [file_data('a.log', [
            triplet(ts=T0, L1=185, L2=180, L3=230),
            triplet(ts=T0 + 1000, L1=230, L2=230, L3=230),
        ])]
        stats = compute_analysis_stats(files, 207, 253)
        self.assertEqual(stats['cnt_deep_dip'], 1)
        self.assertEqual(stats['risk_level'], 'high')

    def test_deep_dip_ignores_configured_vmin(self):
        files = [file_data('a.log', [triplet(L1=195, L2=195, L3=195)])]
        stats = compute_analysis_stats(files, 150, 253)
        self.assertEqual(stats['cnt_deep_dip'], 0)
        self.assertEqual(stats['cnt_under'], 0)

    def test_large_imbalance_is_high_risk(self):
        files = [file_data('a.log', [triplet(L1=245, L2=214)])]
        stats = compute_analysis_stats(files, 207, 253)
        self.assertEqual(stats['max_delta'], 31)
        self.assertEqual(stats['risk_level'], 'high')

    def test_incident_count_escalates_risk(self):
        ok_rows = [triplet(L1=230, L2=220)]
        error = 'Invalid timestamp: "x" near char 0'

        self.assertEqual(compute_analysis_stats([file_data('a.log', ok_rows, [error] * 150)], 207, 253)['risk_level'], 'high')
        self.assertEqual(compute_analysis_stats([file_data('a.log', ok_rows, [error] * 20)], 207, 253)['risk_level'], 'medium')
        self.assertEqual(compute_analysis_stats([file_data('a.log', ok_rows, [error] * 10)], 207, 253)['risk_level'], 'low')

    def test_many_violations_is_medium_risk(self):
        rows = [triplet(ts=T0 + i * 1000, L1=200, L2=200, L3=200) for i in range(51)]
        stats = compute_analysis_stats([file_data('a.log', rows)], 207, 253)
        self.assertEqual(stats['cnt_under'], 51)
        self.assertEqual(stats['risk_level'], 'medium')

    def test_classify_risk_order(self):
        self.assertEqual(classify_risk(1, 0, 0, 0), 'high')
        self.assertEqual(classify_risk(0, 30, 50, 10), 'low')
        self.assertEqual(classify_risk(0, 30.5, 0, 0), 'high')
        self.assertEqual(classify_risk(0, 0, 51, 0), 'medium')
        self.assertEqual(classify_risk(0, 0, 0, 101), 'high')


class TestIncidentSummary(unittest.TestCase):
    """Test cases for incident grouping"""

    def test_suspicious_samples_are_distinct(self):
        suspicious = 'Suspicious timestamp: "1999-01-01T00:00:00Z" -> 1999-01-01T00:00:00.000Z near char 10'
        files = [file_data('a.log', [], errors=[suspicious, suspicious, 'Invalid timestamp: "" near char 4'])]
        summary = summarize_incidents(files)

        self.assertEqual(len(summary['errors']), 3)
        self.assertEqual(summary['suspicious_count'], 2)
        self.assertEqual(summary['suspicious_samples'], [suspicious])
        self.assertEqual(len(summary['unique']), 2)
        self.assertFalse(summary['truncated'])

    def test_listing_truncated(self):
        errors = [f'Invalid timestamp: "{i}" near char {i}' for i in range(60)]
        summary = summarize_incidents([file_data('a.log', [], errors=errors)])
        self.assertEqual(len(summary['unique']), 50)
        self.assertTrue(summary['truncated'])

    def test_disabled_file_incidents_hidden(self):
        files = [file_data('a.log', [], errors=['Invalid timestamp: "" near char 4'], enabled=False)]
        self.assertEqual(summarize_incidents(files)['errors'], [])


if __name__ == '__main__':
    unittest.main()
