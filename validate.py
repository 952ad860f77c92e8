import functools
import logging
import pydantic

from flask import Flask, request, jsonify, current_app

from models import (
    BaseModel,
    AdmissionReview,
    AdmissionResponse,
    AdmissionReviewStatus,
    Pod,
)

from policy import UidPolicyChecker, UidValidator, run_validators
from providers import (
    KubernetesProvider,
    ServiceAccountNamespace,
    StaticNamespace,
    SERVICEACCOUNT_NAMESPACE_FILE,
)
from exc import ApplicationError

LOG = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)


class DEFAULTS:
    UID_MAP_NAME = "nfs-pod-access-control-uid-mapping"
    NAMESPACE_FILE = SERVICEACCOUNT_NAMESPACE_FILE
    NAMESPACE = None
    PROVIDER = KubernetesProvider
    REQUEST_TIMEOUT = 10


def jsonresponse():
    """Transforms the response from a view function into a JSON object."""

    def _outer(func):
        def _inner(*args, **kwargs):
            res = func(*args, **kwargs)
            if isinstance(res, BaseModel):
                return jsonify(res.model_dump(mode="json", exclude_none=True))
            else:
                return jsonify(res)

        return _inner

    return _outer


@jsonresponse()
def validate_pod():
    body = AdmissionReview(**request.get_json())
    if body.request is None:
        raise ApplicationError("admission review does not contain a request")

    LOG.debug("admission request: %s", body.request.model_dump_json())
    pod = Pod.model_validate(body.request.object)

    verdict = run_validators(current_app.validators, pod, body.request)

    return AdmissionReview(
        response=AdmissionResponse(
            uid=body.request.uid,
            allowed=verdict.valid,
            status=AdmissionReviewStatus(
                message=verdict.reason,
                code=None if verdict.valid else 403,
            ),
        )
    )


def handle_validationerror(err):
    return str(err), 400, {"content-type": "text/plain"}


def handle_applicationerror(err):
    return str(err), 500, {"content-type": "text/plain"}


def health():
    return "OK", 200, {"content-type": "text/plain"}


def create_app(**config) -> Flask:
    """Use an application factory [1] to create the Flask app.

    PROVIDER is instantiated by the UID policy check for each request, not
    here.

    [1]: https://flask.palletsprojects.com/en/3.0.x/patterns/appfactories/
    """

    app = Flask(__name__)
    app.config.from_object(DEFAULTS)
    app.config.from_prefixed_env("UIDPOLICY")
    if config:
        app.config.update(config)

    if app.config.get("NAMESPACE"):
        namespace_source = StaticNamespace(app.config["NAMESPACE"])
    else:
        namespace_source = ServiceAccountNamespace(app.config["NAMESPACE_FILE"])

    checker = UidPolicyChecker(
        functools.partial(
            app.config["PROVIDER"], request_timeout=app.config["REQUEST_TIMEOUT"]
        ),
        namespace_source,
        app.config["UID_MAP_NAME"],
    )
    app.validators = [UidValidator(checker)]

    app.errorhandler(pydantic.ValidationError)(handle_validationerror)
    app.errorhandler(ApplicationError)(handle_applicationerror)
    app.add_url_rule("/healthz", view_func=health)
    app.add_url_rule("/validate", view_func=validate_pod, methods=["POST"])

    return app
