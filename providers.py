import logging

from kubernetes import config, client
from openshift.dynamic import DynamicClient
from typing_extensions import Protocol

from exc import NamespaceError, ProviderError

LOG = logging.getLogger(__name__)

SERVICEACCOUNT_NAMESPACE_FILE = "/var/run/secrets/kubernetes.io/serviceaccount/namespace"


class UidMapProvider(Protocol):
    def uid_map(self, namespace: str, name: str) -> dict[str, str]: ...


class NamespaceSource(Protocol):
    def namespace(self) -> str: ...


class KubernetesProvider(UidMapProvider):
    def __init__(self, request_timeout=None):
        """Allocate a Kubernetes dynamic client and ConfigMap API client"""

        super().__init__()

        try:
            config.load_config()
        except config.ConfigException as err:
            LOG.warning("unable to configure Kubernetes client: %s", err)
            raise ProviderError(f"unable to configure Kubernetes client: {err}")

        k8s_client = client.ApiClient()
        dyn_client = DynamicClient(k8s_client)

        self._client = dyn_client
        self._request_timeout = request_timeout
        self._configmap_resource = dyn_client.resources.get(
            api_version="v1", kind="ConfigMap"
        )

    def uid_map(self, namespace, name):
        kwargs = {}
        if self._request_timeout:
            kwargs["_request_timeout"] = self._request_timeout

        cm_obj = self._configmap_resource.get(name=name, namespace=namespace, **kwargs)
        return cm_obj.to_dict().get("data") or {}


class ServiceAccountNamespace(NamespaceSource):
    """Reads the namespace the webhook runs in from the service account mount.

    The value is kept after the first successful read. A failed read is not
    remembered, so the next call tries the file again.
    """

    def __init__(self, path=SERVICEACCOUNT_NAMESPACE_FILE):
        self.path = path
        self._namespace = None

    def namespace(self):
        if self._namespace is not None:
            return self._namespace

        try:
            with open(self.path) as fd:
                value = fd.read().strip()
        except OSError as err:
            raise NamespaceError(f"unable to read {self.path}: {err}")

        if not value:
            raise NamespaceError(f"{self.path} is empty")

        self._namespace = value
        return value


class StaticNamespace(NamespaceSource):
    def __init__(self, value):
        self.value = value

    def namespace(self):
        return self.value
