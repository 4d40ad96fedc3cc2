"""
Notification templates.
"""
from roadside.models import NotificationType
from roadside.services.notification_service import TEMPLATES, render


class TestRender:

    def test_every_kind_has_a_template(self):
        assert set(TEMPLATES) == set(NotificationType)

    def test_fills_placeholders(self):
        title, body = render(NotificationType.STATUS_UPDATE, {"request_id": "REQ-1-ABCDE", "status_label": "En Route"})
        assert title == "Request #REQ-1-ABCDE: En Route"
        assert body == "Your service request #REQ-1-ABCDE is now En Route."

    def test_missing_values_render_blank(self):
        _, body = render(NotificationType.REQUEST_CANCELLED, {"request_id": "REQ-1-ABCDE"})
        assert body == "Service request #REQ-1-ABCDE has been cancelled. "
