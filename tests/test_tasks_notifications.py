import logging


class TestSendNotificationEmail:
    def test_logs_delivery(self, caplog) -> None:
        from app.tasks.notifications import send_notification_email

        with caplog.at_level(logging.INFO, logger="app.tasks.notifications"):
            send_notification_email(
                person_id="p1",
                email="custodian@example.com",
                title="Legal Hold Notice: Acme",
                body="Preserve everything",
            )
        assert "custodian@example.com" in caplog.text
        assert "Legal Hold Notice: Acme" in caplog.text
