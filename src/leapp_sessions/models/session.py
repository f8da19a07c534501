"""
Session models.

Sessions are frozen; lifecycle code derives updated copies with
`model_copy(update=...)` and hands them to the store as a whole.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict


class SessionStatus(str, Enum):
    STOPPED = "stopped"
    LOADING = "loading"
    ACTIVE = "active"
    ERROR = "error"


class SessionType(str, Enum):
    AWS_IAM_USER = "awsIamUser"
    AWS_IAM_ROLE_CHAINED = "awsIamRoleChained"


class Session(BaseModel):
    model_config = ConfigDict(frozen=True)

    session_id: str
    session_name: str
    region: str
    type: SessionType
    status: SessionStatus = SessionStatus.STOPPED
    profile_id: Optional[str] = None
    start_datetime: Optional[datetime] = None
    last_error: Optional[str] = None

    @property
    def account_name(self) -> str:
        return self.session_name


class AwsIamUserSession(Session):
    type: SessionType = SessionType.AWS_IAM_USER
    mfa_device: Optional[str] = None


class AwsIamRoleChainedSession(Session):
    type: SessionType = SessionType.AWS_IAM_ROLE_CHAINED
    parent_session_id: str
    role_arn: str = ""
    role_session_name: Optional[str] = None


AnySession = Union[AwsIamUserSession, AwsIamRoleChainedSession]


class AwsIamUserSessionRequest(BaseModel):
    account_name: str
    access_key: str
    secret_key: str
    region: str
    mfa_device: Optional[str] = None


class AwsIamRoleChainedSessionRequest(BaseModel):
    account_name: str
    region: str
    role_arn: str
    parent_session_id: str
    role_session_name: Optional[str] = None


class CredentialsInfo(BaseModel):
    access_key_id: str
    secret_access_key: str
    session_token: Optional[str] = None
