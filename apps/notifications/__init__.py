"""
Notifications App - Customer Notification Log

Keeps the customer's notification bell: a bounded read/unread log, the
ready-plan watcher that feeds it, and the server outbox that backend
workflows (plan activation) write to.

Architecture:
- Models: UserNotification (outbox), ClientStateEntry (per-user storage)
- Store: NotificationStore, capped and newest first
- Watcher: ReadyPlanWatcher, snapshot diff over plan statuses
"""
