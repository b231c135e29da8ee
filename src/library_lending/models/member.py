"""
Member model for the library lending engine.

Members carry no lending state of their own. How many books a member holds
is always derived from the book store (``count_by_loaned_to``), so the two
can never drift apart.
"""

from pydantic import BaseModel, Field, field_validator


class Member(BaseModel):
    """A library member who can borrow and reserve books."""

    id: str = Field(
        ...,
        description="Unique identifier for the member",
        min_length=1,
        examples=["m1", "member-kertu"],
    )

    name: str = Field(
        ...,
        description="Display name of the member",
        min_length=1,
        max_length=200,
        examples=["Kertu", "Rasmus"],
    )

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        """Trim surrounding whitespace from display names."""
        v = v.strip()
        if not v:
            raise ValueError("Member name cannot be blank")
        return v
