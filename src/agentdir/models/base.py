"""Base Pydantic model configuration for agentdir models.

All directory models inherit from AgentDirBaseModel to ensure consistent behavior:
- Immutability (frozen=True) so a loaded snapshot cannot be mutated in place
- Strict validation (extra="forbid") to catch typos and invalid fields
- Flexible field naming (populate_by_name=True) for alias support
"""

from pydantic import BaseModel, ConfigDict


class AgentDirBaseModel(BaseModel):
    """Base model for all agentdir entities.

    This base class provides:
    - **Immutability**: Models are frozen after creation; updates go through model_copy
    - **Strict validation**: Extra fields are forbidden (catches errors early)
    - **Flexible naming**: Fields can be populated by name or alias

    Example:
        >>> from pydantic import Field
        >>> class MyModel(AgentDirBaseModel):
        ...     name: str
        ...     count: int = Field(default=0, ge=0)
        >>>
        >>> obj = MyModel(name="test", count=5)
        >>> obj.name
        'test'
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        # Keep enum members on the model; JSON dumps still emit values.
        use_enum_values=False,
        validate_default=True,
    )
