import pytest
from fastapi import status
from sqlalchemy.orm import Session
from unittest.mock import patch
from sqlalchemy.exc import OperationalError

from backend.app.exceptions import NotFoundError, TransientDependencyError
from backend.app.models.models import Notification, NotificationType, NotificationPriority, ReferenceType
from backend.app.schemas.notifications import NotificationCreate
from backend.app.services.notification_service import (
    create_notification,
    get_notifications,
    get_unread_count,
    mark_as_read,
    mark_as_unread,
    mark_all_as_read,
    delete_notification,
    clear_notifications
)


def _draft(title="Heads up", notification_type=NotificationType.SYSTEM):
    return NotificationCreate(
        type=notification_type,
        title=title,
        message="Something happened",
        priority=NotificationPriority.LOW,
        reference_type=ReferenceType.NONE,
        metadata={"source": "test"}
    )


@pytest.fixture
def three_notifications(db_session, test_user_id):
    return [create_notification(db_session, test_user_id, _draft(title=f"Note {i}")) for i in range(3)]


# Service layer tests
def test_create_notification(db_session: Session, test_user_id):
    notification = create_notification(db_session, test_user_id, _draft())

    assert notification.id is not None
    assert notification.user_id == test_user_id
    assert notification.type == "SYSTEM"
    assert notification.priority == "LOW"
    assert notification.reference_type == "NONE"
    assert notification.notification_metadata == {"source": "test"}
    assert notification.is_read is False
    assert notification.read_at is None
    assert notification.created_at is not None


def test_create_notification_wraps_database_errors(db_session: Session, test_user_id):
    with patch.object(db_session, "commit", side_effect=OperationalError("INSERT", {}, Exception("locked"))):
        with pytest.raises(TransientDependencyError):
            create_notification(db_session, test_user_id, _draft())

    assert db_session.query(Notification).count() == 0


def test_get_notifications_pagination(db_session: Session, test_user_id, three_notifications):
    page = get_notifications(db_session, test_user_id, page=1, limit=2)

    assert len(page["items"]) == 2
    assert page["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}
    assert page["unread_count"] == 3

    second = get_notifications(db_session, test_user_id, page=2, limit=2)
    assert len(second["items"]) == 1


def test_get_notifications_newest_first(db_session: Session, test_user_id, three_notifications):
    items = get_notifications(db_session, test_user_id)["items"]
    created = [item.created_at for item in items]
    assert created == sorted(created, reverse=True)


def test_read_state_transitions(db_session: Session, test_user_id, three_notifications):
    target = three_notifications[0]

    read = mark_as_read(db_session, test_user_id, target.id)
    assert read.is_read is True
    assert read.read_at is not None
    assert get_unread_count(db_session, test_user_id) == 2
    assert len(get_notifications(db_session, test_user_id, is_read=True)["items"]) == 1

    unread = mark_as_unread(db_session, test_user_id, target.id)
    assert unread.is_read is False
    assert unread.read_at is None
    assert get_unread_count(db_session, test_user_id) == 3


def test_mark_all_as_read(db_session: Session, test_user_id, three_notifications):
    mark_as_read(db_session, test_user_id, three_notifications[0].id)

    assert mark_all_as_read(db_session, test_user_id) == 2
    assert get_unread_count(db_session, test_user_id) == 0


def test_delete_and_clear(db_session: Session, test_user_id, other_user_id, three_notifications):
    create_notification(db_session, other_user_id, _draft())

    assert delete_notification(db_session, test_user_id, three_notifications[0].id) == {"success": True}
    assert clear_notifications(db_session, test_user_id) == 2
    assert db_session.query(Notification).filter(Notification.user_id == other_user_id).count() == 1


def test_other_users_notification_is_not_found(db_session: Session, other_user_id, three_notifications):
    with pytest.raises(NotFoundError):
        mark_as_read(db_session, other_user_id, three_notifications[0].id)
    with pytest.raises(NotFoundError):
        delete_notification(db_session, other_user_id, three_notifications[0].id)


# API layer tests
def test_list_notifications_endpoint(client, test_user_id, three_notifications):
    response = client.get("/api/v1/notifications/", params={"user_id": test_user_id, "limit": 2})

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert len(data["items"]) == 2
    assert data["pagination"]["total"] == 3
    assert data["unread_count"] == 3
    assert data["items"][0]["metadata"] == {"source": "test"}


def test_notification_endpoints(client, test_user_id, three_notifications):
    target_id = three_notifications[0].id

    response = client.put(f"/api/v1/notifications/{target_id}/read", params={"user_id": test_user_id})
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["is_read"] is True

    response = client.get("/api/v1/notifications/unread-count", params={"user_id": test_user_id})
    assert response.json() == {"count": 2}

    response = client.put("/api/v1/notifications/read-all", params={"user_id": test_user_id})
    assert response.json() == {"count": 2}

    response = client.delete(f"/api/v1/notifications/{target_id}", params={"user_id": test_user_id})
    assert response.json() == {"success": True}

    response = client.delete("/api/v1/notifications/", params={"user_id": test_user_id})
    assert response.json() == {"count": 2}


def test_missing_notification_endpoint(client, test_user_id):
    response = client.put("/api/v1/notifications/missing/read", params={"user_id": test_user_id})
    assert response.status_code == status.HTTP_404_NOT_FOUND
