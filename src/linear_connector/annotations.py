"""Annotations attached to sync responses."""

from datetime import datetime

from pydantic import BaseModel


class RateLimitDescription(BaseModel):
    """Rate-limit state reported by the API for one request."""

    limit: int = 0
    remaining: int = 0
    reset_at: datetime | None = None


class ChildResourceType(BaseModel):
    """Marks a resource type that is listed beneath a resource."""

    resource_type_id: str


Annotation = RateLimitDescription | ChildResourceType


class Annotations(list[Annotation]):
    """List of annotations returned alongside a page of results."""

    def with_rate_limiting(self, rate_limit: RateLimitDescription | None) -> "Annotations":
        """Append *rate_limit* if present."""
        if rate_limit is not None:
            self.append(rate_limit)
        return self

    def merge(self, *others: Annotation) -> "Annotations":
        self.extend(others)
        return self

    @property
    def rate_limits(self) -> list[RateLimitDescription]:
        return [a for a in self if isinstance(a, RateLimitDescription)]

    @property
    def child_resource_types(self) -> list[str]:
        return [a.resource_type_id for a in self if isinstance(a, ChildResourceType)]
