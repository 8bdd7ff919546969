from fastapi import HTTPException, status


class Denied(HTTPException):
    """The actor lacks the rights for the requested action."""

    def __init__(self, detail: str = "This action is unauthorized."):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFound(HTTPException):
    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ValidationFailed(HTTPException):
    """Well-formed and authorized, but semantically invalid."""

    def __init__(self, detail: str, field: str | None = None):
        if field:
            detail = {"field": field, "message": detail}
        super().__init__(status_code=422, detail=detail)


class InvalidTransition(HTTPException):
    def __init__(self, from_state, to_state):
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot move task from '{from_state.value}' to '{to_state.value}'",
        )
