"""
Notification Service.

Read side and read-tracking for in-app notifications.  Workflow events are
written through ``sql_repository.SqlNotificationSink`` inside the workflow
transaction; comment events through ``NotificationService.notify_users``.
"""

from datetime import datetime, timezone

from parjis.core.exceptions import NotFoundError
from parjis.models import db
from parjis.models.notification import Notification, NotificationType
from parjis.models.user import User


class NotificationService:
    """Stateless service class for notification operations."""

    # ── Create ────────────────────────────────────────────────────────────

    @staticmethod
    def notify_users(user_ids, *, type, title, message, project_id=None):
        """
        Stage one notification per distinct user id.

        The caller owns the transaction.

        Returns:
            List of staged Notification instances.
        """
        notifications = []
        for uid in dict.fromkeys(user_ids):
            notif = Notification(
                user_id=uid,
                type=NotificationType(type).value,
                title=title,
                message=message,
                project_id=project_id,
                is_read=False,
            )
            db.session.add(notif)
            notifications.append(notif)
        return notifications

    # ── Query ─────────────────────────────────────────────────────────────

    @staticmethod
    def list_for_user(user_id, is_read=None, limit=None, offset=0):
        """
        Retrieve notifications for a user, newest first.

        Returns:
            (items, total) where total ignores limit/offset.
        """
        if not db.session.get(User, user_id):
            raise NotFoundError(resource="User", resource_id=user_id)
        q = Notification.query.filter_by(user_id=user_id)
        if is_read is not None:
            q = q.filter_by(is_read=is_read)
        total = q.count()
        q = q.order_by(Notification.created_at.desc(), Notification.id.desc()).offset(offset)
        if limit is not None:
            q = q.limit(limit)
        return q.all(), total

    @staticmethod
    def unread_count(user_id):
        """Return count of unread notifications."""
        return Notification.query.filter_by(user_id=user_id, is_read=False).count()

    # ── Actions ───────────────────────────────────────────────────────────

    @staticmethod
    def mark_read(notification_id, user_id):
        """Mark a single notification as read. It must belong to ``user_id``."""
        notif = db.session.get(Notification, notification_id)
        if not notif or notif.user_id != user_id:
            raise NotFoundError(resource="Notification", resource_id=notification_id)
        if not notif.is_read:
            notif.mark_read()
            db.session.commit()
        return notif

    @staticmethod
    def mark_all_read(user_id):
        """Mark all notifications for a user as read. Returns the number updated."""
        now = datetime.now(timezone.utc)
        count = (
            Notification.query
            .filter_by(user_id=user_id, is_read=False)
            .update({"is_read": True, "read_at": now}, synchronize_session="fetch")
        )
        db.session.commit()
        return count
