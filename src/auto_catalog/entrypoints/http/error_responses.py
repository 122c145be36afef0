"""REST API error response models.

Structured error responses that provide consistent format for all HTTP errors.
"""

from pydantic import BaseModel, ConfigDict


class ErrorDetail(BaseModel):
    """Individual error detail for field-level errors."""

    field: str
    message: str
    code: str | None = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "field": "sort",
                "message": "Must be one of: price, year, mileage, created_at, name",
                "code": "INVALID_SORT_FIELD",
            }
        }
    )


class ErrorResponse(BaseModel):
    """Structured error response format.

    Examples:
        Simple error:
            {
                "detail": "Listing with identifier '41230987' not found",
                "code": "NOT_FOUND"
            }

        Query error with field details:
            {
                "detail": "Unsupported sort field 'color'",
                "code": "VALIDATION_ERROR",
                "errors": [
                    {
                        "field": "sort",
                        "message": "Must be one of: price, year, mileage, created_at, name",
                        "code": "INVALID_SORT_FIELD"
                    }
                ]
            }
    """

    detail: str
    code: str | None = None
    errors: list[ErrorDetail] | None = None

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"detail": "Listing with identifier '41230987' not found", "code": "NOT_FOUND"},
                {"detail": "page_size must be <= 100", "code": "VALIDATION_ERROR"},
                {
                    "detail": "Unsupported sort field 'color'",
                    "code": "VALIDATION_ERROR",
                    "errors": [
                        {
                            "field": "sort",
                            "message": "Must be one of: price, year, mileage, created_at, name",
                            "code": "INVALID_SORT_FIELD",
                        },
                    ],
                },
            ]
        }
    )
