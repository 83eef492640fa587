"""
Mutation and Validation Models

Mutations go to an external store. Callers only need to know whether a
mutation worked, so failures carry a plain message rather than a
structured error taxonomy.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_amount')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """Result of validating user input before a mutation."""

    validated_at: datetime = Field(
        default_factory=datetime.now
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    def summary(self) -> str:
        """All error messages on one line."""
        return "; ".join(
            issue.message for issue in self.issues if issue.severity == "error"
        )


class MutationResult(BaseModel):
    """Outcome of a create / update / delete request."""

    success: bool
    entity_id: Optional[str] = None
    message: str = ""
    issues: list[ValidationIssue] = Field(default_factory=list)

    @classmethod
    def ok(cls, entity_id: Optional[str], message: str = "Saved") -> "MutationResult":
        return cls(success=True, entity_id=entity_id, message=message)

    @classmethod
    def failed(
        cls,
        message: str,
        entity_id: Optional[str] = None,
        issues: Optional[list[ValidationIssue]] = None,
    ) -> "MutationResult":
        return cls(
            success=False,
            entity_id=entity_id,
            message=message,
            issues=issues or [],
        )
