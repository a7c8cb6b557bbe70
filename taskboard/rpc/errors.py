from pydantic import ValidationError

HTTP_STATUS_BY_CODE = {
    "BAD_REQUEST": 400,
    "UNAUTHORIZED": 401,
    "NOT_FOUND": 404,
    "METHOD_NOT_SUPPORTED": 405,
    "CONFLICT": 409,
    "INTERNAL_SERVER_ERROR": 500,
    "SERVICE_UNAVAILABLE": 503,
}


class ProcedureError(Exception):
    """Typed failure raised by procedures and surfaced to RPC clients."""

    def __init__(
        self,
        code: str,
        message: str | None = None,
        field_errors: dict[str, list[str]] | None = None,
        form_errors: list[str] | None = None,
    ):
        if code not in HTTP_STATUS_BY_CODE:
            raise ValueError(f"Unknown error code: {code}")
        self.code = code
        self.message = message or code.replace("_", " ").capitalize()
        self.field_errors = field_errors
        self.form_errors = form_errors
        super().__init__(self.message)

    @property
    def http_status(self) -> int:
        return HTTP_STATUS_BY_CODE[self.code]

    @classmethod
    def from_validation_error(cls, exc: ValidationError) -> "ProcedureError":
        form_errors, field_errors = flatten_validation_error(exc)
        return cls(
            "BAD_REQUEST",
            "Invalid input",
            field_errors=field_errors,
            form_errors=form_errors,
        )

    def to_dict(self) -> dict:
        data = {
            "code": self.code,
            "message": self.message,
            "httpStatus": self.http_status,
        }
        if self.field_errors is not None or self.form_errors is not None:
            data["formErrors"] = self.form_errors or []
            data["fieldErrors"] = self.field_errors or {}
        return data


def flatten_validation_error(exc: ValidationError) -> tuple[list[str], dict[str, list[str]]]:
    """Split pydantic errors into model-level messages and per-field messages."""
    form_errors: list[str] = []
    field_errors: dict[str, list[str]] = {}
    for error in exc.errors():
        message = error["msg"]
        # custom validators raise ValueError, pydantic prefixes those
        if message.startswith("Value error, "):
            message = message[len("Value error, ") :]
        if not error["loc"]:
            form_errors.append(message)
            continue
        field = ".".join(str(part) for part in error["loc"])
        field_errors.setdefault(field, []).append(message)
    return form_errors, field_errors
