"""Registry credential rotation.

Credentials live in versioned secrets named ``<prefix><version>``. A
rotation never overwrites an existing secret: it creates the next version
and only then advances the stored counter, so the counter always points at
a secret that exists.

If the next version already exists (a secret was created by an earlier
attempt that failed before advancing the counter) the rotation skips ahead
to the following version. The number of skips is bounded by
``max_collision_retries``.
"""

from __future__ import annotations

from shared.config import RegistrySettings
from shared.models import RegistryAuthPayload
from shared.observability import get_logger

from .errors import InvalidAuthInputError, SecretVersionConflictError
from .interfaces import ClusterControl, RegistryStateStore
from .naming import auth_secret_name

logger = get_logger(__name__)


class CredentialRotationManager:
    """Creates versioned registry auth secrets and advances the counter."""

    def __init__(
        self,
        cluster: ClusterControl,
        store: RegistryStateStore,
        settings: RegistrySettings,
    ):
        self.cluster = cluster
        self.store = store
        self.settings = settings

    async def update_auth_header(
        self,
        username: str,
        password: str,
        domain: str,
        current_version: int | None = None,
    ) -> int:
        """Rotate the registry credentials.

        Args:
            username: Registry username
            password: Registry password
            domain: Registry server address
            current_version: Version to try first. Defaults to one past the
                stored version.

        Returns:
            The version now stored.

        Raises:
            InvalidAuthInputError: If any of username, password or domain is
                empty. Raised before the cluster is queried.
            SecretVersionConflictError: If ``max_collision_retries``
                consecutive versions already exist.
        """
        email = await self.store.get_user_email_address() or self.settings.default_email

        if current_version is not None:
            version = current_version
        else:
            version = await self.store.get_registry_auth_secret_version() + 1

        if not username or not password or not domain:
            raise InvalidAuthInputError("user, pass and domain are all required")

        first_version = version
        for _ in range(self.settings.max_collision_retries):
            secret_name = auth_secret_name(self.settings.auth_secret_prefix, version)

            if await self.cluster.secret_exists(secret_name):
                logger.warning(
                    "Unexpected secret exists. Perhaps it was created but the version was not stored",
                    secret_name=secret_name,
                    version=version,
                )
                version += 1
                continue

            payload = RegistryAuthPayload(
                username=username,
                password=password,
                email=email,
                serveraddress=domain,
            )
            await self.cluster.create_secret(secret_name, payload.model_dump_json())

            logger.info("Storing registry auth secret version", secret_name=secret_name, version=version)
            await self.store.set_registry_auth_secret_version(version)
            return version

        raise SecretVersionConflictError(
            f"Auth secrets for versions {first_version}..{version - 1} all exist already",
            details={"first_version": first_version, "last_version": version - 1},
        )

    async def get_current_auth_secret_name(self) -> str | None:
        """Name of the secret holding the current credentials, if any."""
        version = await self.store.get_registry_auth_secret_version()
        if version < 1:
            return None
        return auth_secret_name(self.settings.auth_secret_prefix, version)
