from pydantic import BaseModel, StrictBool, field_validator


class UpdateSettingsRequest(BaseModel):
    maintenance_mode: StrictBool
    maintenance_message: str

    @field_validator("maintenance_message")
    @classmethod
    def _non_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("maintenance_message is required")
        return v
