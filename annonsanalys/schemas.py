"""Typed shape of an ad comparison, as returned to the browser and stored."""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _str_list(v: Any) -> list:
    """Coerce None to an empty list and a lone string to a one-item list; null items are dropped."""
    if v is None:
        return []
    if isinstance(v, str):
        return [v]
    if isinstance(v, list):
        return [item for item in v if item is not None]
    return v


def _null_to_blank(v: Any) -> Any:
    return "" if v is None else v


class WireModel(BaseModel):
    """
    Base model for the analysis JSON.

    Python attributes are snake_case, the JSON keys are whatever the
    browser and the stored rows already use (mostly camelCase), so every
    renamed field declares its alias explicitly.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class AnalyzedAd(WireModel):
    id: str
    title: str
    company: Optional[str] = None
    summary: str = ""
    label: str
    score: int = 0

    @field_validator("summary", mode="before")
    @classmethod
    def blank_summary(cls, v: Any) -> Any:
        return _null_to_blank(v)

    @field_validator("score", mode="before")
    @classmethod
    def clamp_score(cls, v: Any) -> int:
        try:
            v = int(round(float(v)))
        except (TypeError, ValueError):
            return 0
        return max(0, min(100, v))


class SectionPerAd(WireModel):
    ad_id: str = Field(alias="adId")
    highlights: List[str] = []

    @field_validator("highlights", mode="before")
    @classmethod
    def coerce_list(cls, v: Any) -> list:
        return _str_list(v)


class AnalysisSection(WireModel):
    id: str
    title: str
    description: str = ""
    per_ad: List[SectionPerAd] = Field(default=[], alias="perAd")
    key_differences: Optional[List[str]] = None

    @field_validator("description", mode="before")
    @classmethod
    def blank_description(cls, v: Any) -> Any:
        return _null_to_blank(v)

    @field_validator("per_ad", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> list:
        return [] if v is None else v

    @field_validator("key_differences", mode="before")
    @classmethod
    def coerce_list(cls, v: Any) -> Optional[list]:
        return None if v is None else _str_list(v)


class DeepAnalysisPerAd(WireModel):
    ad_id: str = Field(alias="adId")
    strengths: List[str] = []
    risks: List[str] = []
    culture_and_fit: List[str] = Field(default=[], alias="cultureAndFit")
    development: List[str] = []

    @field_validator("strengths", "risks", "culture_and_fit", "development", mode="before")
    @classmethod
    def coerce_list(cls, v: Any) -> list:
        return _str_list(v)


class ApplicationAdvicePerAd(WireModel):
    ad_id: str = Field(alias="adId")
    themes: List[str] = []
    keywords: List[str] = []
    ats_tips: List[str] = Field(default=[], alias="atsTips")

    @field_validator("themes", "keywords", "ats_tips", mode="before")
    @classmethod
    def coerce_list(cls, v: Any) -> list:
        return _str_list(v)


class ApplicationAdvice(WireModel):
    overall_tips: List[str] = Field(default=[], alias="overallTips")
    per_ad: List[ApplicationAdvicePerAd] = Field(default=[], alias="perAd")

    @field_validator("overall_tips", mode="before")
    @classmethod
    def coerce_list(cls, v: Any) -> list:
        return _str_list(v)

    @field_validator("per_ad", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> list:
        return [] if v is None else v


class PreferenceOption(WireModel):
    id: str
    label: str
    ad_id: str = Field(alias="adId")


class PreferenceQuestion(WireModel):
    id: str
    text: str
    options: List[PreferenceOption] = []


class Comparison(WireModel):
    recommendation_ad_id: Optional[str] = Field(default=None, alias="recommendationAdId")
    recommendation_label: Optional[str] = Field(default=None, alias="recommendationLabel")
    reason: str


class AnalysisResult(WireModel):
    ads: List[AnalyzedAd]
    comparison: Comparison
    sections: List[AnalysisSection] = []
    application_advice: Optional[ApplicationAdvice] = Field(default=None, alias="applicationAdvice")
    deep_analysis_per_ad: Optional[List[DeepAnalysisPerAd]] = Field(default=None, alias="deepAnalysisPerAd")
    questions: Optional[List[PreferenceQuestion]] = None

    @field_validator("sections", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> list:
        return [] if v is None else v

    def ad_by_id(self, ad_id: Optional[str]) -> Optional[AnalyzedAd]:
        for ad in self.ads:
            if ad.id == ad_id:
                return ad
        return None
