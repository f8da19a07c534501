"""
Daemon wire models: request bodies and push channel frames.
"""

import json
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from leapp_sessions.errors import ParseError


class IamUserCreateDto(BaseModel):
    """POST /aws/iam-user-sessions body."""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    region: str
    mfa_device: Optional[str] = Field(default=None, alias="mfaDevice")
    aws_named_profile_name: Optional[str] = Field(default=None, alias="awsNamedProfileName")
    aws_access_key_id: str = Field(alias="awsAccessKeyId")
    aws_secret_access_key: str = Field(alias="awsSecretAccessKey")

    def to_params(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class IamUserEditDto(BaseModel):
    """PUT /aws/iam-user-sessions/:id body. Omitted credentials keep their remote values."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    region: str
    mfa_device: Optional[str] = Field(default=None, alias="mfaDevice")
    aws_named_profile_name: Optional[str] = Field(default=None, alias="awsNamedProfileName")
    aws_access_key_id: Optional[str] = Field(default=None, alias="awsAccessKeyId")
    aws_secret_access_key: Optional[str] = Field(default=None, alias="awsSecretAccessKey")

    def to_params(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class IamRoleChainedCreateDto(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    region: str
    role_arn: str = Field(alias="roleArn")
    parent_session_id: str = Field(alias="parentSessionId")
    role_session_name: Optional[str] = Field(default=None, alias="roleSessionName")
    aws_named_profile_name: Optional[str] = Field(default=None, alias="awsNamedProfileName")

    def to_params(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class DaemonMessageType(IntEnum):
    MFA_TOKEN_REQUEST = 0


class DaemonMessage(BaseModel):
    """Push channel frame. The daemon spells the keys MessageType/Data."""
    model_config = ConfigDict(populate_by_name=True)

    message_type: int = Field(alias="messageType")
    data: str = ""

    @classmethod
    def parse_frame(cls, raw: Any) -> "DaemonMessage":
        """Parse a raw frame. Raises ParseError on anything but a valid frame object."""
        try:
            payload = json.loads(raw) if isinstance(raw, (str, bytes, bytearray)) else raw
            if not isinstance(payload, dict):
                raise ParseError("frame is not a JSON object")
            if "MessageType" in payload and "messageType" not in payload:
                payload = {"messageType": payload["MessageType"], "data": payload.get("Data", "")}
            return cls.model_validate(payload)
        except ValueError as e:
            raise ParseError(f"malformed frame: {e}") from e

    def decode_data(self) -> dict[str, Any]:
        try:
            decoded = json.loads(self.data) if self.data else {}
        except ValueError as e:
            raise ParseError(f"frame data is not JSON: {e}") from e
        if not isinstance(decoded, dict):
            raise ParseError("frame data is not a JSON object")
        return decoded


class MfaTokenRequest(BaseModel):
    """Daemon asks for an MFA code on behalf of `session_id`."""
    model_config = ConfigDict(frozen=True)

    session_id: str = Field(min_length=1)
    received_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_message(cls, message: DaemonMessage) -> "MfaTokenRequest":
        data = message.decode_data()
        try:
            return cls(session_id=data.get("SessionId") or data.get("sessionId") or "")
        except ValidationError as e:
            raise ParseError(f"mfaTokenRequest without session id: {data!r}") from e
