from unittest import mock

from django.contrib.auth import get_user_model
from django.db.models.query import QuerySet
from django.test import TestCase, override_settings

from inventory.exceptions import UnknownPolicy
from inventory.models import CostingPolicy, CostingPolicyChange, CostingSetting
from inventory.services import DatabasePolicySwitch, StaticPolicySwitch


class CostingPolicyParseTests(TestCase):

    def test_parse_normalises_case_and_whitespace(self):
        self.assertIs(CostingPolicy.parse(' lifo '), CostingPolicy.LIFO)
        self.assertIs(CostingPolicy.parse('Average'), CostingPolicy.AVERAGE)
        self.assertIs(CostingPolicy.parse(CostingPolicy.FIFO), CostingPolicy.FIFO)

    def test_parse_rejects_anything_else(self):
        for value in ('MEDIAN', '', None, 1):
            with self.subTest(value=value):
                with self.assertRaises(UnknownPolicy):
                    CostingPolicy.parse(value)


class StaticPolicySwitchTests(TestCase):

    def test_defaults_to_fifo(self):
        self.assertIs(StaticPolicySwitch().get_policy(), CostingPolicy.FIFO)

    def test_set_and_get(self):
        switch = StaticPolicySwitch()
        switch.set_policy('AVERAGE')
        self.assertIs(switch.get_policy(), CostingPolicy.AVERAGE)

        with self.assertRaises(UnknownPolicy):
            switch.set_policy('MEDIAN')
        self.assertIs(switch.get_policy(), CostingPolicy.AVERAGE)


class DatabasePolicySwitchTests(TestCase):

    def setUp(self):
        self.switch = DatabasePolicySwitch()
        self.user = get_user_model().objects.create_user(username='manager', password='pass123')

    def test_missing_setting_logs_and_uses_fifo(self):
        with self.assertLogs('inventory.services.policy', level='WARNING') as logs:
            policy = self.switch.get_policy()

        self.assertIs(policy, CostingPolicy.FIFO)
        self.assertIn('No costing policy configured', logs.output[0])

    @override_settings(INVENTORY_CONFIG={'DEFAULT_COSTING_POLICY': 'LIFO'})
    def test_missing_setting_uses_configured_default(self):
        with self.assertLogs('inventory.services.policy', level='WARNING'):
            self.assertIs(self.switch.get_policy(), CostingPolicy.LIFO)

    def test_set_policy_persists_and_is_audited(self):
        self.switch.set_policy('LIFO', actor=self.user)
        self.switch.set_policy(CostingPolicy.AVERAGE)

        self.assertIs(self.switch.get_policy(), CostingPolicy.AVERAGE)
        self.assertEqual(CostingSetting.objects.count(), 1)

        changes = list(CostingPolicyChange.objects.order_by('id'))
        self.assertEqual(
            [(c.previous_policy, c.new_policy) for c in changes],
            [('', 'LIFO'), ('LIFO', 'AVERAGE')],
        )
        self.assertEqual(changes[0].changed_by, self.user)
        self.assertIsNone(changes[1].changed_by)

    def test_set_policy_logs_transition(self):
        with self.assertLogs('inventory.services.policy', level='INFO') as logs:
            self.switch.set_policy('LIFO', actor=self.user)
        self.assertIn('unset → LIFO by manager', logs.output[-1])

    def test_set_unknown_policy_writes_nothing(self):
        with self.assertRaises(UnknownPolicy):
            self.switch.set_policy('MEDIAN')

        self.assertFalse(CostingSetting.objects.exists())
        self.assertFalse(CostingPolicyChange.objects.exists())

    def test_first_write_tolerates_a_concurrent_first_write(self):
        original_get = QuerySet.get
        raced = []

        def get_after_other_writer(queryset, *args, **kwargs):
            # Another switch inserts the row between our lookup and our insert
            if queryset.model is CostingSetting and not raced:
                raced.append(True)
                CostingSetting.objects.bulk_create(
                    [CostingSetting(pk=CostingSetting.SINGLETON_PK, policy='LIFO')]
                )
                raise CostingSetting.DoesNotExist
            return original_get(queryset, *args, **kwargs)

        with mock.patch.object(QuerySet, 'get', autospec=True, side_effect=get_after_other_writer):
            self.switch.set_policy('AVERAGE', actor=self.user)

        self.assertTrue(raced)
        self.assertIs(self.switch.get_policy(), CostingPolicy.AVERAGE)
        self.assertEqual(CostingSetting.objects.count(), 1)
        change = CostingPolicyChange.objects.get()
        self.assertEqual((change.previous_policy, change.new_policy), ('LIFO', 'AVERAGE'))

    def test_existing_setting_is_updated_in_place(self):
        CostingSetting.objects.create(pk=CostingSetting.SINGLETON_PK, policy='FIFO')

        self.switch.set_policy('LIFO')

        self.assertEqual(CostingSetting.objects.get().policy, 'LIFO')
        self.assertEqual(CostingPolicyChange.objects.get().previous_policy, 'FIFO')

    def test_corrupt_setting_raises(self):
        CostingSetting.objects.create(pk=CostingSetting.SINGLETON_PK, policy='MEDIAN')
        with self.assertRaises(UnknownPolicy) as ctx:
            self.switch.get_policy()
        self.assertEqual(ctx.exception.value, 'MEDIAN')
