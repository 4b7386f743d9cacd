"""Request bodies for the command endpoints (notify, remind, upload-avatar).

Fields are optional at the schema level so that missing values are reported
as 400 by the route, matching the documented failure modes, instead of a
generic 422 validation error.
"""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# Largest value an INTEGER primary key can hold
MAX_ORDER_ID = 2**63 - 1


class OrderCommand(BaseModel):
    id: Optional[Union[int, str]] = None

    def order_id(self) -> Optional[int]:
        """Return the id as an int, or None when missing, not numeric or out of range."""
        if self.id is None or self.id == "":
            return None
        try:
            value = int(self.id)
        except (TypeError, ValueError):
            return None
        if not -MAX_ORDER_ID <= value <= MAX_ORDER_ID:
            return None
        return value


class AvatarUpload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_base64: Optional[str] = Field(None, alias="fileBase64")
    content_type: Optional[str] = Field(None, alias="contentType")
    filename: Optional[str] = None
    profile_id: Optional[str] = Field(None, alias="profileId")

    def missing_fields(self) -> list:
        return [
            alias
            for alias, value in (
                ("fileBase64", self.file_base64),
                ("contentType", self.content_type),
                ("filename", self.filename),
                ("profileId", self.profile_id),
            )
            if not value
        ]
