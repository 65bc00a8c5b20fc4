import pytest

from dueq.domain.errors import (
    ConfigError,
    DueQError,
    LockError,
    ProcessingError,
    StoreError,
)


def test_dueq_error_is_exception():
    err = DueQError("test message")
    assert isinstance(err, Exception)
    assert str(err) == "test message"


def test_store_error_stores_cause_and_message():
    cause = ConnectionError("connection refused")
    err = StoreError("Redis ZADD/SADD failed", cause)
    assert isinstance(err, DueQError)
    assert err.cause is cause
    assert str(err) == "Redis ZADD/SADD failed: connection refused"


def test_lock_error_without_cause():
    err = LockError("Resource 'k' is already locked")
    assert err.cause is None
    assert str(err) == "Resource 'k' is already locked"


def test_lock_error_with_cause():
    cause = LockError("Resource 'k' is already locked")
    err = LockError("Failed to lock t:a", cause)
    assert err.cause is cause
    assert str(err) == "Failed to lock t:a: Resource 'k' is already locked"


def test_processing_error_names_the_job():
    cause = ValueError("bad payload")
    err = ProcessingError("email", "user-1", cause)
    assert err.job_type == "email"
    assert err.job_id == "user-1"
    assert err.cause is cause
    assert str(err) == "Job email:user-1 failed: bad payload"


def test_error_hierarchy():
    assert issubclass(StoreError, DueQError)
    assert issubclass(LockError, DueQError)
    assert issubclass(ConfigError, DueQError)
    assert issubclass(ProcessingError, DueQError)
    assert issubclass(DueQError, Exception)


def test_can_catch_subclass_as_base():
    with pytest.raises(DueQError):
        raise ConfigError("Missing due-time index")
