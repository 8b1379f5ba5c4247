import uuid
from unittest.mock import MagicMock, patch

from app.services.event import EventType, publish_event


class TestEventType:
    def test_all_event_types_have_dotted_values(self) -> None:
        for et in EventType:
            assert "." in et.value, f"{et.name} value should contain a dot"

    def test_event_type_count(self) -> None:
        assert len(EventType) == 8

    def test_document_events(self) -> None:
        assert EventType.document_created.value == "document.created"
        assert EventType.document_updated.value == "document.updated"

    def test_legal_hold_events(self) -> None:
        assert EventType.legal_hold_created.value == "legal_hold.created"
        assert EventType.legal_hold_released.value == "legal_hold.released"
        assert EventType.legal_hold_expired.value == "legal_hold.expired"
        assert EventType.legal_hold_document_added.value == "legal_hold.document_added"
        assert (
            EventType.legal_hold_custodian_assigned.value
            == "legal_hold.custodian_assigned"
        )
        assert EventType.legal_hold_acknowledged.value == "legal_hold.acknowledged"


class TestPublishEvent:
    @patch("app.tasks.events.process_event.delay")
    def test_publish_event_calls_delay(self, mock_delay: MagicMock) -> None:
        entity_id = uuid.uuid4()
        actor_id = uuid.uuid4()
        doc_id = uuid.uuid4()
        publish_event(
            EventType.legal_hold_document_added,
            entity_type="legal_hold",
            entity_id=entity_id,
            actor_id=actor_id,
            document_id=doc_id,
            payload={"key": "value"},
        )
        mock_delay.assert_called_once_with(
            event_type="legal_hold.document_added",
            entity_type="legal_hold",
            entity_id=str(entity_id),
            actor_id=str(actor_id),
            document_id=str(doc_id),
            payload={"key": "value"},
        )

    @patch("app.tasks.events.process_event.delay")
    def test_publish_event_none_actor_and_document(self, mock_delay: MagicMock) -> None:
        entity_id = uuid.uuid4()
        publish_event(
            EventType.legal_hold_expired,
            entity_type="legal_hold",
            entity_id=entity_id,
        )
        mock_delay.assert_called_once_with(
            event_type="legal_hold.expired",
            entity_type="legal_hold",
            entity_id=str(entity_id),
            actor_id=None,
            document_id=None,
            payload={},
        )

    @patch("app.tasks.events.process_event.delay", side_effect=RuntimeError("down"))
    def test_publish_event_never_raises(self, mock_delay: MagicMock) -> None:
        publish_event(
            EventType.document_created,
            entity_type="document",
            entity_id=uuid.uuid4(),
        )
        # Should not raise


class TestProcessEventTask:
    @patch("app.tasks.legal_holds.check_document_modification.delay")
    @patch("app.tasks.legal_holds.enforce_holds_on_document.delay")
    def test_document_created_triggers_enforcement(
        self, mock_enforce: MagicMock, mock_modification: MagicMock
    ) -> None:
        from app.tasks.events import process_event

        process_event(
            event_type="document.created",
            entity_type="document",
            entity_id="abc",
            actor_id="actor1",
            document_id="doc1",
            payload={"key": "val"},
        )
        mock_enforce.assert_called_once_with(document_id="doc1")
        mock_modification.assert_not_called()

    @patch("app.tasks.legal_holds.enforce_holds_on_document.delay")
    def test_document_entity_id_used_without_document_id(
        self, mock_enforce: MagicMock
    ) -> None:
        from app.tasks.events import process_event

        process_event(
            event_type="document.created",
            entity_type="document",
            entity_id="abc",
        )
        mock_enforce.assert_called_once_with(document_id="abc")

    @patch("app.tasks.legal_holds.check_document_modification.delay")
    def test_document_updated_triggers_modification_check(
        self, mock_modification: MagicMock
    ) -> None:
        from app.tasks.events import process_event

        process_event(
            event_type="document.updated",
            entity_type="document",
            entity_id="doc2",
        )
        mock_modification.assert_called_once_with(document_id="doc2")

    @patch("app.tasks.legal_holds.check_document_modification.delay")
    @patch("app.tasks.legal_holds.enforce_holds_on_document.delay")
    def test_legal_hold_events_are_not_fanned_out(
        self, mock_enforce: MagicMock, mock_modification: MagicMock
    ) -> None:
        from app.tasks.events import process_event

        process_event(
            event_type="legal_hold.document_added",
            entity_type="legal_hold",
            entity_id="hold1",
            document_id="doc1",
        )
        mock_enforce.assert_not_called()
        mock_modification.assert_not_called()

    @patch(
        "app.tasks.legal_holds.enforce_holds_on_document.delay",
        side_effect=RuntimeError("fail"),
    )
    def test_fanout_failure_does_not_raise(self, mock_enforce: MagicMock) -> None:
        from app.tasks.events import process_event

        process_event(
            event_type="document.created",
            entity_type="document",
            entity_id="abc",
        )
        mock_enforce.assert_called_once()
