"""
Pydantic schemas mirroring the graphic control contract.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, validator


class LoadRequest(BaseModel):
    data: Dict[str, Any] = Field(default_factory=dict)
    scene: Optional[Union[str, Dict[str, Any]]] = None


class PlayRequest(BaseModel):
    skip_animation: bool = Field(default=False, alias="skipAnimation")
    delta: Optional[int] = None
    goto: Optional[int] = None
    model_config = ConfigDict(populate_by_name=True)

    def to_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {"skipAnimation": self.skip_animation}
        if self.delta is not None:
            params["delta"] = self.delta
        if self.goto is not None:
            params["goto"] = self.goto
        return params


class StopRequest(BaseModel):
    skip_animation: bool = Field(default=False, alias="skipAnimation")
    model_config = ConfigDict(populate_by_name=True)

    def to_params(self) -> Dict[str, Any]:
        return {"skipAnimation": self.skip_animation}


class UpdateRequest(BaseModel):
    data: Dict[str, Any] = Field(default_factory=dict)


class ActionModel(BaseModel):
    type: str
    params: Dict[str, Any] = Field(default_factory=dict)

    @validator("type", pre=True)
    def _normalise_type(cls, value: object) -> str:
        result = str(value or "").strip()
        if not result:
            raise ValueError("action type is required")
        return result


class ScheduleEntryModel(BaseModel):
    timestamp: float = Field(ge=0)
    action: ActionModel


class ScheduleRequest(BaseModel):
    schedule: List[ScheduleEntryModel] = Field(default_factory=list)

    def to_entries(self) -> List[Dict[str, Any]]:
        return [entry.model_dump() for entry in self.schedule]


class SeekRequest(BaseModel):
    timestamp: float = Field(ge=0)
    generation: Optional[int] = None


class ActionResultModel(BaseModel):
    statusCode: int = 200
    statusMessage: str = "OK"
    currentStep: Optional[int] = None
