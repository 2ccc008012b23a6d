"""
Per-administrator workspace state: the selected pending items and the item
shown in the preview dialog.

Selection changes come from explicit admin actions and from
:meth:`AdminWorkspace.apply_activation`, which drops activated items.
"""

from apps.notifications.storage import dump_json, load_json

WORKSPACE_KEY = 'admin-plan-workspace'


class AdminWorkspace:
    """Selection set and preview dialog persisted in client state storage."""

    def __init__(self, storage):
        self.storage = storage
        state = load_json(storage, WORKSPACE_KEY, default={})
        if not isinstance(state, dict):
            state = {}
        selected = state.get('selected') or []
        self._selected = [str(item_id) for item_id in selected if isinstance(item_id, str)]
        preview = state.get('preview')
        self._preview = preview if isinstance(preview, str) else None

    @property
    def selected(self):
        return list(self._selected)

    @property
    def preview(self):
        return self._preview

    def _save(self):
        dump_json(self.storage, WORKSPACE_KEY, {
            'selected': self._selected,
            'preview': self._preview,
        })

    def select(self, item_ids):
        for item_id in map(str, item_ids):
            if item_id not in self._selected:
                self._selected.append(item_id)
        self._save()

    def deselect(self, item_ids):
        removed = set(map(str, item_ids))
        self._selected = [item_id for item_id in self._selected if item_id not in removed]
        self._save()

    def clear_selection(self):
        self._selected = []
        self._save()

    def open_preview(self, item_id):
        self._preview = str(item_id)
        self._save()

    def close_preview(self):
        self._preview = None
        self._save()

    def apply_activation(self, result):
        """Forget activated items; close the preview if it showed one of them."""
        activated = set(result.activated)
        self._selected = [item_id for item_id in self._selected if item_id not in activated]
        if self._preview in activated:
            self._preview = None
        self._save()
