from enum import Enum
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class Strictness(str, Enum):
    LENIENT = "lenient"
    MODERATE = "moderate"
    STRICT = "strict"


class CallType(str, Enum):
    SALES = "sales"
    SUPPORT = "support"
    CONSULTATION = "consultation"
    FOLLOW_UP = "follow_up"
    GENERAL = "general"

    @classmethod
    def parse(cls, value: Any) -> "CallType":
        """Map free-form input to a call type, treating anything unknown as general."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return cls.GENERAL
        cleaned = value.strip().lower().replace("-", "_").replace(" ", "_")
        try:
            return cls(cleaned)
        except ValueError:
            return cls.GENERAL


class PreferredTone(str, Enum):
    FORMAL = "formal"
    FRIENDLY = "friendly"
    PROFESSIONAL = "professional"


class _SettingsModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


def _clean_strings(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        raise ValueError("expected a list of strings")
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


StringList = Annotated[List[str], BeforeValidator(_clean_strings)]


class ScoringPreferences(_SettingsModel):
    """Organization-level scoring knobs."""
    strictness: Optional[Strictness] = None
    focus_areas: StringList = Field(default_factory=list)


class CustomerContext(_SettingsModel):
    typical_profiles: StringList = Field(default_factory=list)
    common_issues: StringList = Field(default_factory=list)
    preferred_tone: Optional[PreferredTone] = None

    @property
    def is_empty(self) -> bool:
        return not (self.typical_profiles or self.common_issues or self.preferred_tone)


class AISettings(_SettingsModel):
    """Analysis settings edited by organization administrators."""
    context: Optional[str] = None
    products: StringList = Field(default_factory=list)
    competitors: StringList = Field(default_factory=list)
    guidelines: Optional[str] = None
    compliance_scripts: StringList = Field(default_factory=list)
    custom_terminology: StringList = Field(default_factory=list)
    scoring_preferences: ScoringPreferences = Field(default_factory=ScoringPreferences)
    customer_context: Optional[CustomerContext] = None

    @field_validator("context", "guidelines", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Optional[str]:
        if not isinstance(value, str) or not value.strip():
            return None
        return value


class OrganizationProfile(_SettingsModel):
    """Domain model for an organization and its analysis settings."""
    id: str
    name: str
    industry: str = "general"
    ai_settings: AISettings = Field(default_factory=AISettings)

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, value: Any) -> str:
        return str(value)
