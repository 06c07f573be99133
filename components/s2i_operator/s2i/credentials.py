"""Resolution of secret references into concrete credentials."""

from __future__ import annotations

from urllib.parse import quote_plus, urlsplit

from pydantic import ValidationError as PydanticValidationError

from s2i_operator.app_config import logging
from s2i_operator.errors import errors
from s2i_operator.k8s.client_interfaces import K8sClient
from s2i_operator.k8s.constants import SECRET_GVK
from s2i_operator.k8s.models import K8sObjectMeta, K8sSecret
from s2i_operator.s2i import constants
from s2i_operator.s2i.crs import AuthConfig, DockerConfigEntry, DockerConfigJson, S2iConfig

logger = logging.getLogger(__name__)

DOCKER_AUTH_SLOTS = (
    "pushAuthentication",
    "pullAuthentication",
    "incrementalAuthentication",
    "runtimeAuthentication",
)


def docker_entry_from_secret(secret: K8sSecret) -> DockerConfigEntry:
    """Take the credentials of the first registry of a docker config json secret."""
    if secret.type != constants.DOCKER_CONFIG_JSON_SECRET_TYPE:
        raise errors.InvalidSecretTypeError(
            message=f"secret {secret.name} in ns {secret.namespace} type should be "
            f"{constants.DOCKER_CONFIG_JSON_SECRET_TYPE}"
        )
    raw = secret.get_value(constants.DOCKER_CONFIG_JSON_KEY)
    if raw is None:
        raise errors.MalformedSecretError(message=f"could not get data {constants.DOCKER_CONFIG_JSON_KEY}")
    try:
        docker_config = DockerConfigJson.model_validate_json(raw)
    except PydanticValidationError as err:
        raise errors.MalformedSecretError(
            message=f"The docker config of secret {secret.namespace}/{secret.name} cannot be parsed.",
            detail=str(err),
        ) from err
    if not docker_config.auths:
        raise errors.EmptyAuthMapError()
    registry, entry = next(iter(docker_config.auths.items()))
    return entry.model_copy(update={"serverAddress": registry})


def embed_basic_auth(source_url: str, username: str | bytes, password: str | bytes) -> str:
    """Put percent-encoded basic-auth credentials between the scheme and the host of a URL.

    Raw bytes are escaped as they are, they do not need to be valid UTF-8.
    """
    parsed = urlsplit(source_url)
    host = parsed.netloc.rpartition("@")[2]
    if not parsed.scheme or not host:
        raise errors.FieldInvalidValueError(
            field="sourceUrl", message=f"The source url {source_url} has no scheme or host."
        )
    request_uri = parsed.path or "/"
    if parsed.query:
        request_uri += f"?{parsed.query}"
    return f"{parsed.scheme}://{quote_plus(username)}:{quote_plus(password)}@{host}{request_uri}"


class CredentialResolver:
    """Replaces the secret references of a build config with the credentials they point to."""

    def __init__(self, client: K8sClient) -> None:
        self.client = client

    async def _get_secret(self, namespace: str, name: str) -> K8sSecret:
        obj = await self.client.get(K8sObjectMeta(name=name, namespace=namespace, gvk=SECRET_GVK))
        if obj is None:
            raise errors.missing_resource("Secret", namespace, name)
        return K8sSecret.from_k8s_object(obj)

    async def _resolve_docker_slot(self, namespace: str, slot: AuthConfig) -> None:
        if slot.secretRef is None:
            return
        secret = await self._get_secret(namespace, slot.secretRef.name)
        entry = docker_entry_from_secret(secret)
        slot.serverAddress = entry.serverAddress
        slot.username = entry.username
        slot.password = entry.password
        slot.email = entry.email
        slot.secretRef = None

    async def _resolve_git(self, namespace: str, config: S2iConfig) -> None:
        if config.gitSecretRef is None:
            return
        secret = await self._get_secret(namespace, config.gitSecretRef.name)
        values: dict[str, bytes] = {}
        for key in (constants.GIT_USERNAME_KEY, constants.GIT_PASSWORD_KEY):
            value = secret.get_value(key)
            if value is None:
                raise errors.FieldRequiredError(
                    field=key, message=f"could not get {key} in secret {secret.name}"
                )
            values[key] = value
        config.sourceUrl = embed_basic_auth(
            config.sourceUrl, values[constants.GIT_USERNAME_KEY], values[constants.GIT_PASSWORD_KEY]
        )
        config.gitSecretRef = None

    async def resolve(self, namespace: str, config: S2iConfig) -> None:
        """Resolve every secret reference of the config in place.

        Once resolved the references are cleared, the secrets are not consulted again for this config.
        """
        for slot_name in DOCKER_AUTH_SLOTS:
            slot: AuthConfig | None = getattr(config, slot_name)
            if slot is not None:
                await self._resolve_docker_slot(namespace, slot)
        await self._resolve_git(namespace, config)
        logger.debug(f"Resolved the credentials of a build config in namespace {namespace}")
