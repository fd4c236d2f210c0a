import pytest
from sqlalchemy.exc import OperationalError

from servicebay.core.exceptions import ServiceException, ValidationException
from servicebay.monitoring.prometheus_metrics import REGISTRY
from servicebay.services import base
from servicebay.services.base import BaseService


class StubService(BaseService):
    @BaseService.measure_operation("stub_ok")
    def ok(self) -> str:
        return "done"

    @BaseService.measure_operation("stub_fail")
    def fail(self) -> None:
        raise ValidationException("bad input")


def sample(name: str, **labels) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0


class TestMeasureOperation:
    def test_success_is_counted(self, db) -> None:
        labels = dict(service="StubService", operation="stub_ok", status="success")
        before = sample("servicebay_service_operations_total", **labels)

        assert StubService(db).ok() == "done"

        assert sample("servicebay_service_operations_total", **labels) == before + 1

    def test_error_is_counted_and_reraised(self, db) -> None:
        labels = dict(service="StubService", operation="stub_fail")
        ops_before = sample("servicebay_service_operations_total", status="error", **labels)
        errors_before = sample("servicebay_errors_total", error_type="ValidationException", **labels)

        with pytest.raises(ValidationException):
            StubService(db).fail()

        assert sample("servicebay_service_operations_total", status="error", **labels) == ops_before + 1
        assert sample("servicebay_errors_total", error_type="ValidationException", **labels) == errors_before + 1

    def test_metrics_failure_does_not_break_the_call(self, db, monkeypatch) -> None:
        def broken(**kwargs):
            raise RuntimeError("registry gone")

        monkeypatch.setattr(base.prometheus_metrics, "record_service_operation", broken)

        assert StubService(db).ok() == "done"

    def test_no_in_process_metrics_store(self) -> None:
        assert not hasattr(BaseService, "get_metrics")


class TestTransaction:
    def test_database_error_becomes_service_exception(self, db) -> None:
        service = StubService(db)

        with pytest.raises(ServiceException):
            with service.transaction():
                raise OperationalError("UPDATE clients", {}, Exception("database is locked"))

    def test_other_errors_propagate_unchanged(self, db) -> None:
        service = StubService(db)

        with pytest.raises(ValidationException):
            with service.transaction():
                raise ValidationException("bad input")
