"""
Fire-and-forget notification sender.

State transitions call the notifier after their commit. Delivery runs in
Celery workers (see ``tablebook.jobs.tasks``); a failure to enqueue is logged
and never fails the transition that triggered it.
"""

import structlog

logger = structlog.get_logger()


class CeleryNotifier:
    """Enqueues notification tasks on the Celery broker"""

    def reservation_event(self, reservation_id: int, event: str) -> None:
        """event is one of: created, confirmed, cancelled"""
        from tablebook.jobs.tasks import send_reservation_notification

        try:
            send_reservation_notification.delay(reservation_id, event)
        except Exception as e:
            logger.error(
                "Failed to enqueue reservation notification",
                reservation_id=reservation_id,
                notification_event=event,
                error=str(e),
            )

    def restaurant_approved(self, restaurant_id: int) -> None:
        from tablebook.jobs.tasks import send_restaurant_approval_notification

        try:
            send_restaurant_approval_notification.delay(restaurant_id)
        except Exception as e:
            logger.error(
                "Failed to enqueue approval notification",
                restaurant_id=restaurant_id,
                error=str(e),
            )


def get_notifier() -> CeleryNotifier:
    """FastAPI dependency; tests override it with a recording notifier"""
    return CeleryNotifier()
