"""Transaction and timing behaviour shared by every service."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from app.core.exceptions import NotFoundException, ServiceException
from app.services import base as base_module
from app.services.base import BaseService


class _TimedService(BaseService):
    @BaseService.measure_operation("timed_op")
    def run(self, value):
        return value * 2


def test_transaction_commits_on_success():
    db = MagicMock()
    service = BaseService(db)

    with service.transaction() as session:
        assert session is db

    db.commit.assert_called_once()
    db.rollback.assert_not_called()


def test_database_errors_become_service_exceptions():
    db = MagicMock()
    db.commit.side_effect = OperationalError("COMMIT", {}, Exception("disk I/O error"))
    service = BaseService(db)

    with pytest.raises(ServiceException):
        with service.transaction():
            pass

    db.rollback.assert_called_once()


def test_domain_errors_roll_back_and_propagate_unchanged():
    db = MagicMock()
    service = BaseService(db)

    with pytest.raises(NotFoundException):
        with service.transaction():
            raise NotFoundException("Booking not found")

    db.rollback.assert_called_once()
    db.commit.assert_not_called()


def test_slow_operations_are_logged(monkeypatch, caplog):
    monkeypatch.setattr(base_module, "SLOW_OPERATION_SECONDS", -1.0)

    assert _TimedService(MagicMock()).run(21) == 42
    assert "Slow operation detected: timed_op" in caplog.text
