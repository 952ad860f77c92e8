import logging

from models import (
    AdmissionRequest,
    Identity,
    Pod,
    ServiceAccountIdentity,
    UnrecognizedIdentity,
    UserIdentity,
)

LOG = logging.getLogger(__name__)

SERVICEACCOUNT_PREFIX = "system:serviceaccount:"


def parse_identity(username: str) -> Identity:
    """Classify the principal that submitted an admission request.

    Service account principals look like
    `system:serviceaccount:<namespace>:<name>`. A name that carries the prefix
    but does not split into exactly four fields is not treated as a service
    account.
    """

    if not username:
        return UnrecognizedIdentity(raw=username)

    if username.startswith(SERVICEACCOUNT_PREFIX):
        parts = username.split(":")
        if len(parts) == 4:
            return ServiceAccountIdentity(namespace=parts[2], name=parts[3])
        return UnrecognizedIdentity(raw=username)

    return UserIdentity(name=username)


def subject_for(identity: Identity, pod: Pod) -> str:
    # Service account lookups are keyed on the pod spec, not on the principal.
    if isinstance(identity, ServiceAccountIdentity):
        return pod.spec.serviceAccountName
    elif isinstance(identity, UserIdentity):
        return identity.name
    else:
        return identity.raw


def resolve_subject(request: AdmissionRequest, pod: Pod) -> str:
    identity = parse_identity(request.userInfo.username)
    subject = subject_for(identity, pod)

    if isinstance(identity, ServiceAccountIdentity):
        if identity.name != subject:
            LOG.warning(
                "service account %s differs from pod serviceAccountName %s",
                identity.name,
                subject,
            )
        LOG.info(
            "Request made by ServiceAccount: %s in namespace: %s",
            subject,
            identity.namespace,
        )
    else:
        LOG.info(
            "Request made by User: %s in namespace: %s", subject, request.namespace
        )

    return subject
