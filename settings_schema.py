from pydantic import BaseModel, Field, ValidationError

class SettingsSchema(BaseModel):
    weight_unit: str = Field(default="lbs", pattern="^(kg|lbs)$")
    default_weekly_workouts: int = Field(default=3, gt=0)
    default_monthly_workouts: int = Field(default=12, gt=0)
    calories_per_minute: float = Field(default=7.0, ge=0)
    recent_workouts_limit: int = Field(default=5, gt=0)
    password_pepper: str = ""

DEFAULT_SETTINGS = SettingsSchema().model_dump()

def validate_settings(data: dict) -> None:
    try:
        SettingsSchema(**data)
    except ValidationError as e:
        raise ValueError(str(e))
