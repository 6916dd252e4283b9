import pytest

from forum_core.errors import (
    AppError,
    ConfigurationError,
    ConflictError,
    NotFoundError,
    PermissionError,
    ValidationError,
)


@pytest.mark.parametrize(
    ("error_class", "code", "status_code"),
    [
        (ValidationError, "VALIDATION_ERROR", 400),
        (PermissionError, "PERMISSION_DENIED", 403),
        (NotFoundError, "NOT_FOUND", 404),
        (ConflictError, "CONFLICT_ERROR", 409),
        (ConfigurationError, "CONFIGURATION_ERROR", 500),
    ],
)
def test_error_classes_carry_code_and_status(error_class, code, status_code) -> None:
    error = error_class()

    assert isinstance(error, AppError)
    assert error.code == code
    assert error.status_code == status_code
    assert str(error) == error.message


def test_error_overrides_are_per_instance() -> None:
    error = NotFoundError("Forum not found", details={"id": "42"})

    assert error.message == "Forum not found"
    assert error.details == {"id": "42"}
    assert NotFoundError().details is None


def test_forum_permission_error_is_not_the_builtin() -> None:
    with pytest.raises(PermissionError):
        raise PermissionError("nope")

    assert not issubclass(PermissionError, OSError)

