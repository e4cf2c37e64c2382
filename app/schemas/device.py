"""
Device Schemas
==============

Pydantic models for request validation on the device API. They check
payload shape only; domain rules (moisture range, roles) are enforced by the
services so every entry point gets the same errors.
"""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt


class RegisterDeviceRequest(BaseModel):
    """Request model for registering a device"""

    device_id: str = Field(..., min_length=1, max_length=64, description="Stable device identifier")
    display_name: Optional[str] = Field(default=None, max_length=100)
    owner_id: Optional[str] = Field(default=None, max_length=64)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"device_id": "esp32_device_1", "display_name": "Greenhouse pump", "owner_id": "u-1"}
        }
    )


class EnqueueCommandRequest(BaseModel):
    """Desired pump/mode intent issued by an admin"""

    pump_control: StrictBool
    automatic_mode: StrictBool

    model_config = ConfigDict(json_schema_extra={"example": {"pump_control": True, "automatic_mode": False}})


class ExecuteCommandRequest(BaseModel):
    """Sent by the firmware after physically applying a command"""

    executed_at: Optional[datetime] = Field(default=None, description="Device time of execution (UTC)")


class HeartbeatRequest(BaseModel):
    status: str = Field(default="online", max_length=64)
    timestamp: Optional[datetime] = None


class AppendReadingRequest(BaseModel):
    """Moisture reading reported by the device"""

    moisture_percentage: Union[StrictFloat, StrictInt] = Field(..., description="Soil moisture in percent")
    moisture_digital: Optional[StrictBool] = None
    timestamp: Optional[datetime] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"moisture_percentage": 42, "moisture_digital": False, "timestamp": "2026-01-01T00:00:00Z"}
        }
    )


class StatusReportRequest(BaseModel):
    """Pump state the firmware reports after acting on its own (e.g. automatic mode)"""

    pump_status: StrictBool
    automatic_mode: StrictBool
    updated_at: Optional[datetime] = None
