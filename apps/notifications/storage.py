"""
Per-user key/value storage backed by :class:`ClientStateEntry`.

Values are untrusted text. :func:`load_json` reads missing or corrupt
entries as the caller's default instead of failing.
"""

import json

from django.contrib.auth import get_user_model
from django.core.serializers.json import DjangoJSONEncoder

from config.logging import get_logger

from .models import ClientStateEntry

logger = get_logger(__name__)


class UserStateStorage:
    """Mapping-like view over one user's stored entries."""

    def __init__(self, user):
        self.user = user

    def lock(self):
        """
        Lock the owner's user row until the surrounding transaction ends.

        Every read-modify-write of a user's entries takes this lock first, so
        concurrent requests of the same user apply their changes one at a
        time. Must be called inside ``transaction.atomic()``.
        """
        get_user_model().objects.select_for_update().only('pk').get(pk=self.user.pk)

    def get(self, key, default=None):
        value = (
            ClientStateEntry.objects
            .filter(user=self.user, key=key)
            .values_list('value', flat=True)
            .first()
        )
        return default if value is None else value

    def __getitem__(self, key):
        value = self.get(key)
        if value is None:
            raise KeyError(key)
        return value

    def __setitem__(self, key, value):
        ClientStateEntry.objects.update_or_create(
            user=self.user,
            key=key,
            defaults={'value': value},
        )

    def __delitem__(self, key):
        ClientStateEntry.objects.filter(user=self.user, key=key).delete()

    def __contains__(self, key):
        return ClientStateEntry.objects.filter(user=self.user, key=key).exists()


def load_json(storage, key, default=None):
    raw = storage.get(key)
    if raw is None or raw == '':
        return default
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        logger.warning('client_state_corrupt', key=key)
        return default


def dump_json(storage, key, value):
    storage[key] = json.dumps(value, cls=DjangoJSONEncoder)


def locked_storage(user):
    """Return ``user``'s storage with their row locked by :meth:`UserStateStorage.lock`."""
    storage = UserStateStorage(user)
    storage.lock()
    return storage
