"""
Shared base for API schemas.

WHY: The presentation layer speaks camelCase JSON (issueType, submitterId,
isInternal). Python code keeps snake_case attribute names; the alias
generator maps between the two and requests accept either spelling.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model with camelCase wire names and ORM attribute loading."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def clean_text(value: str) -> str:
    """
    Strip surrounding whitespace and reject empty text.

    Used by field validators for subject, description and comment bodies.
    """
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value
