from pydantic import BaseModel, ConfigDict, Field


class ProbeStream(BaseModel):
    model_config = ConfigDict(extra="ignore")

    index: int = 0
    codec_type: str | None = None
    width: int = 0
    height: int = 0


class StreamProbeResult(BaseModel):
    """Subset of ``ffprobe -show_streams`` JSON output."""

    model_config = ConfigDict(extra="ignore")

    streams: list[ProbeStream] = Field(default_factory=list)
