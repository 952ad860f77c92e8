from typing import Any, Literal
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)
from enum import StrEnum

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


class ApiVersion(StrEnum):
    V1 = "admission.k8s.io/v1"


class Operation(StrEnum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    CONNECT = "CONNECT"


# https://kubernetes.io/docs/reference/generated/kubernetes-api/v1.30/#status-v1-meta
class AdmissionReviewStatus(BaseModel):
    message: str
    code: int | None = None


# https://kubernetes.io/docs/reference/config-api/apiserver-admission.v1/#admission-k8s-io-v1-AdmissionResponse
class AdmissionResponse(BaseModel):
    allowed: bool
    status: AdmissionReviewStatus | None = None
    uid: str


# https://kubernetes.io/docs/reference/generated/kubernetes-api/v1.30/#userinfo-v1-authentication-k8s-io
class UserInfo(BaseModel):
    username: str = ""
    uid: str | None = None
    groups: list[str] = []


# https://kubernetes.io/docs/reference/config-api/apiserver-admission.v1/#admission-k8s-io-v1-AdmissionRequest
class AdmissionRequest(BaseModel):
    uid: str
    name: str | None = None
    namespace: str | None = None
    operation: Operation = Operation.CREATE
    userInfo: UserInfo = UserInfo()
    object: dict[str, Any] | None = None


# https://kubernetes.io/docs/reference/config-api/apiserver-admission.v1/#admission-k8s-io-v1-AdmissionReview
class AdmissionReview(BaseModel):
    apiVersion: Literal[ApiVersion.V1] = ApiVersion.V1
    kind: Literal["AdmissionReview"] = "AdmissionReview"
    request: AdmissionRequest | None = None
    response: AdmissionResponse | None = None

    @model_validator(mode="after")
    def validate_model(self):
        if not (self.request or self.response):
            raise ValueError("must contain a request or a response")

        return self


class Metadata(BaseModel):
    name: str | None = None
    namespace: str | None = None
    labels: dict[str, str] = {}


class PodSecurityContext(BaseModel):
    runAsUser: int | None = Field(default=None, ge=INT64_MIN, le=INT64_MAX)


class PodSpec(BaseModel):
    securityContext: PodSecurityContext | None = None
    serviceAccountName: str = ""

    @property
    def run_as_user(self) -> int | None:
        if self.securityContext is None:
            return None
        return self.securityContext.runAsUser


class Pod(BaseModel):
    metadata: Metadata = Metadata()
    spec: PodSpec = PodSpec()


class VerdictCode(StrEnum):
    VALID = "valid"
    NAMESPACE_UNAVAILABLE = "namespace-unavailable"
    CLIENT_INIT_FAILED = "client-init-failed"
    FETCH_FAILED = "fetch-failed"
    NO_UID = "no-uid"
    MALFORMED_UID = "malformed-uid"
    UID_MISMATCH = "uid-mismatch"


class Verdict(BaseModel):
    """The outcome of a policy check.

    `reason` is always human readable, including for accepted pods.
    """

    model_config = ConfigDict(frozen=True)

    valid: bool
    reason: str
    code: VerdictCode

    @classmethod
    def accept(cls, reason="Valid uid"):
        return cls(valid=True, reason=reason, code=VerdictCode.VALID)

    @classmethod
    def reject(cls, code, reason):
        return cls(valid=False, reason=reason, code=code)


class ServiceAccountIdentity(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["ServiceAccount"] = "ServiceAccount"
    namespace: str
    name: str


class UserIdentity(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["User"] = "User"
    name: str


class UnrecognizedIdentity(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["Unrecognized"] = "Unrecognized"
    raw: str


Identity = ServiceAccountIdentity | UserIdentity | UnrecognizedIdentity
