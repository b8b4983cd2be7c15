"""
Costing policy switch.

The allocation engine and the valuation calculator receive a switch object
instead of reading a global, so callers (and tests) decide where the policy
comes from.
"""

import logging

from django.conf import settings
from django.db import transaction

from inventory.models import CostingPolicy, CostingPolicyChange, CostingSetting

logger = logging.getLogger(__name__)


class StaticPolicySwitch:
    """In-memory switch. Holds one policy until told otherwise."""

    def __init__(self, policy=CostingPolicy.FIFO):
        self._policy = CostingPolicy.parse(policy)

    def get_policy(self) -> CostingPolicy:
        return self._policy

    def set_policy(self, policy, actor=None) -> None:
        self._policy = CostingPolicy.parse(policy)


class DatabasePolicySwitch:
    """
    Switch backed by the CostingSetting singleton row.

    A missing row means nobody configured a policy yet: the configured
    default is returned and a warning logged. A row holding an unknown value
    raises UnknownPolicy.
    """

    def default_policy(self) -> CostingPolicy:
        return CostingPolicy.parse(
            settings.INVENTORY_CONFIG.get('DEFAULT_COSTING_POLICY', CostingPolicy.FIFO)
        )

    def get_policy(self) -> CostingPolicy:
        stored = (
            CostingSetting.objects
            .filter(pk=CostingSetting.SINGLETON_PK)
            .values_list('policy', flat=True)
            .first()
        )
        if stored is None:
            policy = self.default_policy()
            logger.warning(
                f"[COSTING POLICY] No costing policy configured; using default {policy.value}"
            )
            return policy
        return CostingPolicy.parse(stored)

    def set_policy(self, policy, actor=None) -> None:
        new_policy = CostingPolicy.parse(policy)

        with transaction.atomic():
            # The row must exist before it can be locked; a concurrent first
            # writer makes get_or_create fall back to fetching its row.
            _, created = CostingSetting.objects.get_or_create(
                pk=CostingSetting.SINGLETON_PK,
                defaults={'policy': new_policy.value, 'updated_by': actor},
            )
            if created:
                previous = ''
            else:
                setting = CostingSetting.objects.select_for_update().get(pk=CostingSetting.SINGLETON_PK)
                previous = setting.policy
                setting.policy = new_policy.value
                setting.updated_by = actor
                setting.save(update_fields=['policy', 'updated_by', 'updated_at'])

            CostingPolicyChange.objects.create(
                previous_policy=previous,
                new_policy=new_policy.value,
                changed_by=actor,
            )

        logger.info(
            f"[COSTING POLICY] {previous or 'unset'} → {new_policy.value} "
            f"by {getattr(actor, 'username', None) or 'System'}"
        )
