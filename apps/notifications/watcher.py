"""
Ready-plan detection.

Plan status is level-triggered: a ready plan stays ready. The watcher keeps
the last observed status per item and turns the move into ``ready`` into a
single notification. The snapshot is stored under ``last-ready-plans-check``
so a plan that became ready while the customer was away is announced once on
their next visit.

The watcher does not fetch anything; callers pass in the items they loaded.
"""

from django.utils import timezone
from django.utils.dateparse import parse_datetime

from config.logging import get_logger

from .models import NotificationType
from .storage import dump_json, load_json

logger = get_logger(__name__)

SNAPSHOT_KEY = 'last-ready-plans-check'
READY = 'ready'


class ReadyPlanWatcher:

    def __init__(self, storage, notifications):
        self.storage = storage
        self.notifications = notifications
        self._statuses, self._observed_at = self._load()

    def _load(self):
        snapshot = load_json(self.storage, SNAPSHOT_KEY, default={})
        if not isinstance(snapshot, dict):
            return {}, None
        statuses = snapshot.get('statuses')
        if not isinstance(statuses, dict):
            statuses = {}
        observed_at = snapshot.get('observed_at')
        observed_at = parse_datetime(observed_at) if isinstance(observed_at, str) else None
        return {str(k): v for k, v in statuses.items() if isinstance(v, str)}, observed_at

    @property
    def snapshot(self):
        return dict(self._statuses)

    def last_known_status(self, item_id):
        return self._statuses.get(str(item_id))

    def observe(self, items, observed_at=None):
        """
        Diff ``items`` against the snapshot and notify newly ready plans.

        The snapshot is written after the notifications are added. A plan
        whose notification could not be added stays unseen and is announced
        by the next observation.

        Args:
            items: Objects with ``id``, ``plan_status`` and ``product_name``.
            observed_at (datetime, optional): When the items were read.
                Observations older than the last applied one are ignored.

        Returns:
            list: Notifications added by this observation.
        """
        observed_at = observed_at or timezone.now()
        if self._observed_at is not None and observed_at < self._observed_at:
            logger.info(
                'stale_observation_discarded',
                observed_at=observed_at.isoformat(),
                last_observed_at=self._observed_at.isoformat(),
            )
            return []

        newly_ready = []
        statuses = dict(self._statuses)
        for item in items:
            item_id = str(item.id)
            status = str(item.plan_status)
            if status == READY and statuses.get(item_id) != READY:
                newly_ready.append(item)
            statuses[item_id] = status

        added = []
        try:
            for item in newly_ready:
                added.append(self.notifications.add(
                    NotificationType.SUCCESS,
                    'Your plan is ready!',
                    f'Your plan "{item.product_name}" is ready to view.',
                    link=f'/plans/{item.id}',
                    link_text='View plan',
                ))
        finally:
            # Items whose notification was not added keep their previous status
            for item in newly_ready[len(added):]:
                item_id = str(item.id)
                if item_id in self._statuses:
                    statuses[item_id] = self._statuses[item_id]
                else:
                    statuses.pop(item_id, None)
            self._save(statuses, observed_at)

        if added:
            logger.info('ready_plans_detected', count=len(added))
        return added

    def _save(self, statuses, observed_at):
        dump_json(self.storage, SNAPSHOT_KEY, {
            'statuses': statuses,
            'observed_at': observed_at,
        })
        self._statuses = statuses
        self._observed_at = observed_at
