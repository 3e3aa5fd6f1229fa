"""
Tests for the CLI helpers that don't need a terminal
"""
import pytest

from household_splits.cli.init_db import create_template_rules
from household_splits.cli.review import parse_args as parse_review_args
from household_splits.cli.rule_tester import summarize_matches
from household_splits.core.exceptions import RuleConfigurationError


class TestSummarizeMatches:

    def test_merchant_draft(self, make_txn):
        transactions = [
            make_txn(merchant_name='Tesco Extra', amount=-20.10, date='2025-10-03'),
            make_txn(merchant_name='TESCO', amount=-5.05, date='2025-09-28'),
            make_txn(merchant_name='Aldi', amount=-12.00, date='2025-10-01'),
        ]

        summary = summarize_matches({'rule_type': 'merchant', 'merchant_pattern': 'tesco'}, transactions)

        assert summary['match_count'] == 2
        assert summary['total_amount'] == 25.15
        assert summary['date_range'] == {'start': '2025-09-28', 'end': '2025-10-03'}

    def test_no_matches(self, make_txn):
        summary = summarize_matches({'rule_type': 'amount_threshold', 'min_amount': 1000},
                                    [make_txn()])
        assert summary['match_count'] == 0
        assert summary['total_amount'] == 0
        assert summary['date_range'] == {'start': None, 'end': None}

    def test_invalid_draft(self):
        with pytest.raises(RuleConfigurationError):
            summarize_matches({'rule_type': 'merchant'}, [])


class TestCreateTemplateRules:

    def test_creates_known_templates(self, mock_conn, capsys):
        mock_conn.cursor.return_value.fetchone.return_value = {'id': 'saved'}

        created = create_template_rules(
            mock_conn, 'h1', ['alice', 'bob'],
            ['groceries-5050', 'no-such-template', 'default-keep-private'],
        )

        assert created == 2
        assert mock_conn.commit.call_count == 2
        assert "Unknown template: no-such-template" in capsys.readouterr().out


class TestReviewArgs:

    def test_queue_matches_default_review_threshold(self, monkeypatch):
        monkeypatch.delenv('REVIEW_THRESHOLD', raising=False)
        args = parse_review_args(['h1', '--user', 'alice'])
        assert args.max_confidence == 69

    def test_queue_follows_configured_review_threshold(self, monkeypatch):
        monkeypatch.setenv('REVIEW_THRESHOLD', '80')
        args = parse_review_args(['h1', '--user', 'alice'])
        # Category matches (75) are flagged below 80 and must reach the queue
        assert args.max_confidence == 79

    def test_explicit_ceiling_wins(self, monkeypatch):
        monkeypatch.setenv('REVIEW_THRESHOLD', '80')
        args = parse_review_args(['h1', '--user', 'alice', '--max-confidence', '50'])
        assert args.max_confidence == 50
