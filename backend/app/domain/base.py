"""
Base class for all domain models

Fields are snake_case in Python and in the database; the JSON the dashboards
consume is camelCase (merchantId, createdAt...). Both spellings are accepted
on input.
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DomainModel(BaseModel):
    """Shared configuration for domain entities and request payloads"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_dict(self, exclude: set = None) -> dict:
        """JSON-ready dict with camelCase keys"""
        return self.model_dump(by_alias=True, mode="json", exclude=exclude)

    def changes(self) -> dict:
        """snake_case dict holding only the fields the caller actually sent"""
        return self.model_dump(exclude_unset=True)
