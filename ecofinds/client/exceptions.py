# ecofinds/client/exceptions.py
from typing import Dict, List, Optional


class ApiError(Exception):
    """Non-2xx answer from the EcoFinds API (or a transport failure, status 0)."""

    def __init__(self, status_code: int, message: str, errors: Optional[List[dict]] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.errors = errors or []

    @classmethod
    def from_response(cls, response) -> "ApiError":
        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict):
            detail = body.get("detail")
            # FastAPI may still return a list detail for non-body validation errors
            if isinstance(detail, list):
                return cls(response.status_code, "Validation failed", detail)
            return cls(response.status_code, str(detail or response.reason_phrase), body.get("errors"))
        return cls(response.status_code, response.text or response.reason_phrase)

    def __str__(self):
        return f"{self.status_code}: {self.message}"


class AuthRequiredError(Exception):
    """Operation needs a logged-in session; raised before any request is sent."""


class FormValidationError(Exception):
    def __init__(self, errors: Dict[str, str]):
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))
        self.errors = errors
