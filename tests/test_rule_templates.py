"""
Tests for rule templates
"""
import pytest

from household_splits.core.models import SplittingRule
from household_splits.core.rule_templates import (
    RULE_TEMPLATES,
    create_rule_from_template,
    get_template_by_id,
    get_templates_by_type,
    populate_template_private,
    populate_template_split,
)
from household_splits.core.rule_validation import validate_rule

MEMBERS = ['alice', 'bob']


class TestTemplateLookup:

    def test_template_ids_are_unique(self):
        ids = [template.id for template in RULE_TEMPLATES]
        assert len(ids) == len(set(ids)) == 11

    def test_get_by_id(self):
        assert get_template_by_id('groceries-5050').name == 'Split Groceries 50/50'
        assert get_template_by_id('no-such-template') is None

    def test_get_by_type(self):
        defaults = get_templates_by_type('default')
        assert {t.id for t in defaults} == {'default-share-all', 'default-keep-private'}
        assert get_templates_by_type('weekday') == []

    def test_private_templates(self):
        private = {t.id for t in RULE_TEMPLATES if t.keeps_private}
        assert private == {'small-purchases-private', 'default-keep-private'}


class TestPopulateSplit:

    @pytest.mark.parametrize("members,expected", [
        (['a'], {'a': 100}),
        (['a', 'b'], {'a': 50, 'b': 50}),
        (['a', 'b', 'c'], {'a': 34, 'b': 33, 'c': 33}),
        (['a', 'b', 'c', 'd', 'e', 'f'], {'a': 20, 'b': 16, 'c': 16, 'd': 16, 'e': 16, 'f': 16}),
    ])
    def test_equal_split_sums_to_100(self, members, expected):
        split = populate_template_split(members)
        assert split == expected
        assert sum(split.values()) == 100

    def test_no_members(self):
        assert populate_template_split([]) == {}

    def test_private(self):
        assert populate_template_private('alice') == {'alice': 100}


class TestCreateRuleFromTemplate:

    @pytest.mark.parametrize("template", RULE_TEMPLATES, ids=lambda t: t.id)
    def test_every_template_builds_a_valid_rule(self, template):
        fields = create_rule_from_template(template, MEMBERS, 'alice')
        rule = SplittingRule.from_dict({**fields, 'id': 'r1', 'household_id': 'h1'})
        validate_rule(rule)
        assert rule.rule_type == template.rule_type

    def test_shared_template_splits_between_members(self):
        fields = create_rule_from_template(get_template_by_id('groceries-5050'), MEMBERS, 'bob')
        assert fields['split_percentage'] == {'alice': 50, 'bob': 50}
        assert fields['category_match'] == 'groceries'

    def test_private_template_goes_to_current_user(self):
        template = get_template_by_id('small-purchases-private')
        fields = create_rule_from_template(template, MEMBERS, 'bob')
        assert fields['split_percentage'] == {'bob': 100}
        assert fields['max_amount'] == 10.00

    def test_customizations_win(self):
        template = get_template_by_id('large-purchases')
        fields = create_rule_from_template(template, MEMBERS, 'alice',
                                           customizations={'min_amount': 250.00, 'priority': 2})
        assert fields['min_amount'] == 250.00
        assert fields['priority'] == 2

    def test_template_config_is_not_mutated(self):
        template = get_template_by_id('large-purchases')
        create_rule_from_template(template, MEMBERS, 'alice', customizations={'min_amount': 1})
        assert template.default_config['min_amount'] == 100.00
        assert 'split_percentage' not in template.default_config
