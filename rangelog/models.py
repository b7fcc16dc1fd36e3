from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, conint

from .enums import ChannelState, Mode, Outcome


class DecodedReading(BaseModel):
    """One decode attempt. Invalid readings always carry distance 0."""
    model_config = ConfigDict(frozen=True)

    distance_mm: conint(ge=0) = 0
    valid:   bool    = False
    outcome: Outcome = Outcome.TIMEOUT
    detail:  Optional[str] = None

    @classmethod
    def accepted(cls, distance_mm: int) -> "DecodedReading":
        return cls(distance_mm=distance_mm, valid=True, outcome=Outcome.OK)

    @classmethod
    def rejected(cls, outcome: Outcome, detail: Optional[str] = None) -> "DecodedReading":
        return cls(distance_mm=0, valid=False, outcome=outcome, detail=detail)


class PortReading(BaseModel):
    model_config = ConfigDict(frozen=True)

    distance_mm: conint(ge=0) = 0
    distance_cm: conint(ge=0) = 0
    sampling_frequency_hz: Optional[float] = None   # отсутствует у закрытых портов

    @classmethod
    def from_mm(cls, distance_mm: int, frequency: Optional[float] = None) -> "PortReading":
        return cls(distance_mm=distance_mm,
                   distance_cm=distance_mm // 10,
                   sampling_frequency_hz=frequency)


class CycleRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: str
    sensors: Dict[str, PortReading]

    def to_line(self) -> str:
        """Compact JSON, no trailing newline; absent frequencies are dropped."""
        return self.model_dump_json(exclude_none=True)


class ChannelStatus(BaseModel):
    index: int
    path:  str
    mode:  Mode
    state: ChannelState
    counts: Dict[Outcome, int] = Field(default_factory=lambda: {o: 0 for o in Outcome})
    last_outcome: Optional[Outcome] = None
    last_distance_mm: int = 0
    last_sampling_frequency_hz: Optional[float] = None
    last_error: Optional[str] = None

    def record(self, reading: DecodedReading, frequency: Optional[float] = None) -> None:
        self.counts[reading.outcome] = self.counts.get(reading.outcome, 0) + 1
        self.last_outcome = reading.outcome
        if reading.valid:
            self.last_distance_mm = reading.distance_mm
            self.last_sampling_frequency_hz = frequency
        elif reading.outcome is not Outcome.TIMEOUT:
            self.last_error = reading.detail


class Health(BaseModel):
    ok: bool
    ports_configured: int
    ports_open: int
    cycles_written: int
    write_failures: int
