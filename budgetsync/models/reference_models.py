"""BudgetSync — Reference Data Models (read-only configuration)."""

from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class UserRole(str, Enum):
    RTM = "RTM"  # Regional manager, submits requests
    TM = "TM"  # Territory manager, approves / rejects
    ASSISTANT = "ASSISTANT"
    FINANCE = "FINANCE"
    ADMIN = "ADMIN"


class User(BaseModel):
    id: str
    name: str
    role: UserRole
    region_id: Optional[Union[str, List[str]]] = None
    password: Optional[str] = None

    model_config = {"frozen": True, "alias_generator": to_camel, "populate_by_name": True}

    @property
    def region_ids(self) -> List[str]:
        if self.region_id is None:
            return []
        if isinstance(self.region_id, str):
            return [self.region_id]
        return list(self.region_id)

    def public_dict(self) -> dict:
        """Serialized user without credentials."""
        return self.model_dump(by_alias=True, mode="json", exclude={"password"}, exclude_none=True)


class Region(BaseModel):
    id: str
    name: str

    model_config = {"frozen": True}


class Branch(BaseModel):
    id: str
    name: str
    region_id: str

    model_config = {"frozen": True, "alias_generator": to_camel, "populate_by_name": True}


class PromoType(BaseModel):
    id: str
    name: str

    model_config = {"frozen": True}
