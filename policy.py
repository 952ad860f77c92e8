import logging
import re

from typing_extensions import Protocol

from identity import resolve_subject
from models import (
    INT64_MAX,
    INT64_MIN,
    AdmissionRequest,
    Pod,
    Verdict,
    VerdictCode,
)

LOG = logging.getLogger(__name__)

UID_PATTERN = re.compile(r"[+-]?[0-9]+", re.ASCII)


def parse_uid(value: str) -> int:
    """Parse a base-10 signed 64-bit integer.

    Unlike int(), surrounding whitespace and digit separators are rejected.
    """

    if not UID_PATTERN.fullmatch(value):
        raise ValueError(f"invalid syntax: {value!r}")

    uid = int(value)
    if not INT64_MIN <= uid <= INT64_MAX:
        raise ValueError(f"value out of range: {value!r}")

    return uid


class UidPolicyChecker:
    """Checks that a pod only asks to run as the UID mapped to its subject.

    `provider_factory` is called once per check to obtain a UidMapProvider;
    `namespace_source` says where the UID map lives.
    """

    def __init__(self, provider_factory, namespace_source, map_name):
        self.provider_factory = provider_factory
        self.namespace_source = namespace_source
        self.map_name = map_name

    def check(self, pod: Pod, subject: str) -> Verdict:
        try:
            namespace = self.namespace_source.namespace()
        except Exception as err:
            LOG.warning("failed to determine own namespace: %s", err)
            return Verdict.reject(
                VerdictCode.NAMESPACE_UNAVAILABLE,
                f"Failed retrieving the webhook namespace: {err}",
            )

        found = pod.spec.run_as_user
        if found is None:
            return Verdict.accept()

        try:
            provider = self.provider_factory()
        except Exception as err:
            LOG.warning("failed to initialize Kubernetes client: %s", err)
            return Verdict.reject(
                VerdictCode.CLIENT_INIT_FAILED,
                f"Failed initializing Kubernetes client: {err}",
            )

        try:
            data = provider.uid_map(namespace, self.map_name)
        except Exception as err:
            LOG.warning(
                "failed to fetch %s from namespace %s: %s",
                self.map_name,
                namespace,
                err,
            )
            return Verdict.reject(
                VerdictCode.FETCH_FAILED,
                f"Failed getting ConfigMap {self.map_name}: {err}",
            )

        value = data.get(subject, "")
        if value == "":
            return Verdict.reject(
                VerdictCode.NO_UID, f"User {subject} has no UID associated with it"
            )

        try:
            expected = parse_uid(value)
        except ValueError as err:
            return Verdict.reject(
                VerdictCode.MALFORMED_UID,
                f"Failed to convert UID for user {subject} to int64: {err}",
            )

        if expected != found:
            return Verdict.reject(
                VerdictCode.UID_MISMATCH,
                f"Invalid uid, expected: {expected}, found: {found}",
            )

        return Verdict.accept()


class PodValidator(Protocol):
    name: str

    def validate(self, pod: Pod, request: AdmissionRequest) -> Verdict: ...


class UidValidator(PodValidator):
    name = "uid_validator"

    def __init__(self, checker):
        self.checker = checker

    def validate(self, pod, request):
        subject = resolve_subject(request, pod)
        return self.checker.check(pod, subject)


def run_validators(validators, pod, request):
    """Run each validator in turn and return the first rejection."""

    reasons = []
    for validator in validators:
        verdict = validator.validate(pod, request)
        LOG.info(
            "%s: valid=%s reason=%s", validator.name, verdict.valid, verdict.reason
        )
        if not verdict.valid:
            return verdict
        reasons.append(verdict.reason)

    return Verdict.accept("; ".join(reasons) or "No validators configured")
