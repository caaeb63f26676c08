from pydantic import BaseModel, ConfigDict, Field


# External API payloads

class EpisodePayload(BaseModel):
    """Embedded TVmaze episode (previousepisode / nextepisode)"""
    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1, description="Episode title")
    airstamp: str = Field(..., min_length=1, description="RFC 3339 air timestamp")


class StreamingOffer(BaseModel):
    """Single offering from the availability API"""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    service: str
    streaming_type: str = Field(..., alias="streamingType")
    addon: str | None = None

    @property
    def platform(self) -> str:
        """Add-on name for add-on offerings, otherwise the service name"""
        return self.addon or self.service


class MovieResult(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    title: str
    streaming_info: dict[str, list[StreamingOffer]] = Field(default_factory=dict, alias="streamingInfo")


class AvailabilityPayload(BaseModel):
    """Top-level availability API response"""
    model_config = ConfigDict(extra="ignore")

    result: MovieResult


# Service API responses

class ShowEventResponse(BaseModel):
    """Single show entry in a digest"""
    show_id: int
    name: str
    episode_name: str
    air_time: str = Field(..., description="ISO8601 air time in the digest timezone")
    airing_today: bool


class MovieResponse(BaseModel):
    """Movie available on subscribed platforms"""
    title: str
    platforms: list[str]


class FetchFailureResponse(BaseModel):
    """Identifier that could not be enriched"""
    kind: str = Field(..., description="'show' or 'movie'")
    identifier: int
    error: str


class DigestResponse(BaseModel):
    """Digest preview or delivery result"""
    status: str = Field(..., description="'built', 'sent' or 'skipped'")
    generated_at: str
    subject: str
    recipients: int = 0
    shows: list[ShowEventResponse] = Field(default_factory=list)
    movies: list[MovieResponse] = Field(default_factory=list)
    failures: list[FetchFailureResponse] = Field(default_factory=list)
    text: str = Field("", description="Plain-text rendering of the digest")


class ErrorDetail(BaseModel):
    """Standard error detail"""
    code: str = Field(..., description="Error code (e.g., 'DIGEST_FAILED', 'DELIVERY_FAILED')")
    message: str = Field(..., description="Human-readable error message")
    context: dict | None = Field(None, description="Additional context about the error")


class StandardErrorResponse(BaseModel):
    """Standardized error response for all endpoints"""
    status: str = Field("error", description="Status indicator")
    timestamp: str = Field(..., description="ISO8601 timestamp of error")
    error: ErrorDetail = Field(..., description="Error details")
