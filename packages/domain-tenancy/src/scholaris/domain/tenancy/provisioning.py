"""Academy provisioning: the two-phase "create academy + director" workflow.

Orchestrates the flow across two systems that fail independently:

1. Phase 1 (identity): create a pre-confirmed director account at the
   identity provider.
2. Phase 2 (tenant): create the academy row and the director's profile in
   one tenant-store transaction, keyed on the new identity id.
3. Compensation: if Phase 2 fails, delete the Phase-1 identity exactly
   once. If that delete fails too, the identity is orphaned and the
   attempt ends in :class:`InconsistentStateError`.

When a :class:`ProvisioningLogPort` is supplied, every attempt is recorded
before Phase 1 and resolved at the end, so identities orphaned by a crash
between the phases can be found later by the reconciler.

Provisioning is not idempotent: retrying after a Phase-2 failure creates a
new identity.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, NoReturn

from scholaris.foundation.domain.exceptions import (
    IdentityCreationFailedError,
    InconsistentStateError,
    ProvisioningError,
    SubdomainTakenError,
    TenantCreationFailedError,
    ValidationError,
)
from scholaris.foundation.domain.ports.identity_provider import IdentityProviderError
from scholaris.foundation.domain.ports.tenant_store import (
    SubdomainConflictError,
    TenantStoreError,
)
from scholaris.foundation.domain.tenant_value_objects import (
    AcademyName,
    SubdomainVerdict,
    validate_subdomain,
)
from scholaris.foundation.domain.user_value_objects import Email, FullName, Password, Role
from scholaris.infra.observability import start_span

if TYPE_CHECKING:
    from uuid import UUID

    from scholaris.domain.tenancy.intent_log import ProvisioningLogPort
    from scholaris.foundation.domain.ports.identity_provider import (
        IdentityProviderPort,
        IdentityRecord,
    )
    from scholaris.foundation.domain.ports.tenant_store import (
        AcademyCreated,
        TenantStorePort,
    )

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Academy and admin user created successfully!"


@dataclass(frozen=True, slots=True)
class ProvisionRequest:
    """Input of the provisioning workflow.

    Attributes:
        academy_name: Display name of the academy.
        academy_subdomain: Requested subdomain.
        admin_full_name: Director's full name.
        admin_email: Director's login email.
        admin_password: Director's initial password.
        modules_config: Enabled feature modules. Unknown keys are stored as
            given and ignored by the entitlement gate.
    """

    academy_name: str
    academy_subdomain: str
    admin_full_name: str
    admin_email: str
    admin_password: str = field(repr=False)
    modules_config: Mapping[str, bool] = field(default_factory=dict)

    def normalized(self) -> ProvisionRequest:
        """Validate every field and return a normalized copy.

        Names are stripped and the email is lowercased.

        Raises:
            ValidationError: For the first field that fails validation.
        """
        verdict = validate_subdomain(self.academy_subdomain)
        if verdict is SubdomainVerdict.INCOMPLETE:
            raise ValidationError("academy_subdomain", "Subdomain must be at least 3 characters")
        if verdict is not SubdomainVerdict.VALID:
            raise ValidationError("academy_subdomain", verdict.message)

        name = _validated("academy_name", AcademyName, self.academy_name)
        full_name = _validated("admin_full_name", FullName, self.admin_full_name)
        email = _validated("admin_email", Email, self.admin_email)
        _validated("admin_password", Password, self.admin_password)

        for key, enabled in self.modules_config.items():
            if not isinstance(enabled, bool):
                raise ValidationError("modules_config", f"Value for '{key}' must be a boolean")

        return ProvisionRequest(
            academy_name=name,
            academy_subdomain=self.academy_subdomain,
            admin_full_name=full_name,
            admin_email=email,
            admin_password=self.admin_password,
            modules_config=dict(self.modules_config),
        )


def _validated(field_name: str, value_type: Any, raw: str) -> str:
    try:
        return value_type(raw).value
    except ValueError as exc:
        raise ValidationError(field_name, str(exc)) from exc


@dataclass(frozen=True, slots=True)
class ProvisionResult:
    """Outcome of a successful provisioning.

    Attributes:
        tenant_id: Id of the new academy.
        admin_id: Identity id of the director.
        subdomain: The academy's subdomain.
        message: Confirmation text for the operator.
    """

    tenant_id: UUID
    admin_id: str
    subdomain: str
    message: str = SUCCESS_MESSAGE


def _identity_failure_reason(exc: BaseException) -> str:
    if isinstance(exc, IdentityProviderError) and exc.status_code is not None:
        return exc.message
    if isinstance(exc, TimeoutError):
        return "identity provider timed out"
    if isinstance(exc, IdentityProviderError):
        return "identity provider unavailable"
    return "unexpected identity provider error"


def _creation_outcome_unknown(exc: BaseException) -> bool:
    """Whether a failed create may still have reached the provider.

    A response with a status code is a definite answer. Timeouts and
    transport errors are not.
    """
    if isinstance(exc, TimeoutError):
        return True
    return isinstance(exc, IdentityProviderError) and exc.status_code is None


def _tenant_failure_reason(exc: BaseException) -> str:
    if isinstance(exc, SubdomainConflictError):
        return f"subdomain '{exc.subdomain}' already exists"
    if isinstance(exc, TimeoutError):
        return "tenant store timed out"
    if isinstance(exc, TenantStoreError):
        return "tenant store error"
    return "unexpected tenant store error"


class AcademyProvisioningService:
    """Creates an academy together with its director account.

    Example:
        >>> service = AcademyProvisioningService(identity_client, tenant_store)
        >>> result = await service.provision(request)
        >>> result.tenant_id
        UUID('...')
    """

    def __init__(
        self,
        identity: IdentityProviderPort,
        store: TenantStorePort,
        *,
        log: ProvisioningLogPort | None = None,
        identity_timeout: float | None = None,
        store_timeout: float | None = None,
        check_existing_email: bool = True,
    ) -> None:
        self._identity = identity
        self._store = store
        self._log = log
        self._identity_timeout = identity_timeout
        self._store_timeout = store_timeout
        self._check_existing_email = check_existing_email

    async def provision(self, request: ProvisionRequest) -> ProvisionResult:
        """Run the two-phase workflow.

        Args:
            request: Provisioning input. Validated before any I/O.

        Returns:
            Ids of the new academy and director.

        Raises:
            ValidationError: If the request is invalid. Nothing is created.
            IdentityCreationFailedError: Phase 1 failed. Nothing is created.
            SubdomainTakenError: The subdomain was claimed concurrently. The
                identity has been deleted.
            TenantCreationFailedError: Phase 2 failed. The identity has been
                deleted.
            InconsistentStateError: Phase 2 failed and the identity could not
                be deleted.
            ProvisioningError: The intent could not be recorded.
        """
        req = request.normalized()
        logger.info(
            "academy_provisioning_started",
            extra={"subdomain": req.academy_subdomain, "admin_email": req.admin_email},
        )

        intent_id = await self._record_intent(req)
        try:
            identity = await self._create_identity(req)
        except IdentityCreationFailedError as exc:
            if exc.outcome_unknown:
                # The account may exist; the pending intent lets the reconciler find it.
                logger.warning(
                    "admin_identity_outcome_unknown",
                    extra={
                        "subdomain": req.academy_subdomain,
                        "admin_email": req.admin_email,
                        "intent_id": str(intent_id) if intent_id else None,
                    },
                )
            else:
                await self._resolve_intent(intent_id, committed=False)
            raise

        if intent_id is not None and self._log is not None:
            try:
                await self._log.attach_identity(intent_id, identity.id)
            except Exception:
                self._log_intent_update_failure(intent_id, "attach_identity")

        try:
            created = await self._create_tenant(req, identity.id)
        except asyncio.CancelledError:
            logger.warning(
                "academy_provisioning_cancelled",
                extra={
                    "subdomain": req.academy_subdomain,
                    "identity_id": identity.id,
                    "intent_id": str(intent_id) if intent_id else None,
                },
            )
            raise
        except Exception as exc:
            await self._compensate(req, identity.id, exc, intent_id)

        await self._resolve_intent(intent_id, committed=True)
        logger.info(
            "academy_provisioned",
            extra={
                "subdomain": req.academy_subdomain,
                "academy_id": str(created.academy_id),
                "profile_id": str(created.profile_id),
                "identity_id": identity.id,
            },
        )
        return ProvisionResult(
            tenant_id=created.academy_id,
            admin_id=identity.id,
            subdomain=req.academy_subdomain,
        )

    async def _record_intent(self, req: ProvisionRequest) -> UUID | None:
        if self._log is None:
            return None
        try:
            return await self._log.record_pending(req.academy_subdomain, req.admin_email)
        except Exception as exc:
            logger.exception(
                "provisioning_intent_record_failed",
                extra={"subdomain": req.academy_subdomain},
            )
            raise ProvisioningError(
                "Failed to record provisioning intent",
                {"phase": "intent", "subdomain": req.academy_subdomain},
            ) from exc

    async def _create_identity(self, req: ProvisionRequest) -> IdentityRecord:
        with start_span(
            "provisioning.identity",
            {"academy.subdomain": req.academy_subdomain},
        ) as span:
            if self._check_existing_email:
                try:
                    async with asyncio.timeout(self._identity_timeout):
                        existing = await self._identity.find_user_by_email(req.admin_email)
                except Exception as exc:
                    self._log_identity_failure(req, exc)
                    raise IdentityCreationFailedError(
                        req.admin_email, _identity_failure_reason(exc)
                    ) from exc
                if existing is not None:
                    logger.info(
                        "admin_email_already_registered",
                        extra={"admin_email": req.admin_email, "identity_id": existing.id},
                    )
                    raise IdentityCreationFailedError(
                        req.admin_email,
                        f"User with email {req.admin_email} already exists.",
                    )

            try:
                async with asyncio.timeout(self._identity_timeout):
                    identity = await self._identity.create_user(
                        req.admin_email,
                        req.admin_password,
                        email_confirmed=True,
                        metadata={
                            "full_name": req.admin_full_name,
                            "role": Role.DIRECTOR.value,
                            "admin_created": True,
                        },
                    )
            except Exception as exc:
                self._log_identity_failure(req, exc)
                raise IdentityCreationFailedError(
                    req.admin_email,
                    _identity_failure_reason(exc),
                    outcome_unknown=_creation_outcome_unknown(exc),
                ) from exc

            span.set_attribute("identity.id", identity.id)
            logger.info(
                "admin_identity_created",
                extra={"subdomain": req.academy_subdomain, "identity_id": identity.id},
            )
            return identity

    async def _create_tenant(self, req: ProvisionRequest, identity_id: str) -> AcademyCreated:
        with start_span(
            "provisioning.tenant",
            {"academy.subdomain": req.academy_subdomain, "identity.id": identity_id},
        ) as span:
            async with asyncio.timeout(self._store_timeout):
                created = await self._store.create_academy_with_user(
                    academy_name=req.academy_name,
                    academy_subdomain=req.academy_subdomain,
                    admin_full_name=req.admin_full_name,
                    admin_email=req.admin_email,
                    admin_password=req.admin_password,
                    modules_config=req.modules_config,
                    user_id=identity_id,
                )
            span.set_attribute("academy.id", str(created.academy_id))
            return created

    async def _compensate(
        self,
        req: ProvisionRequest,
        identity_id: str,
        tenant_exc: Exception,
        intent_id: UUID | None,
    ) -> NoReturn:
        tenant_reason = _tenant_failure_reason(tenant_exc)
        logger.warning(
            "tenant_creation_failed_deleting_identity",
            extra={
                "subdomain": req.academy_subdomain,
                "identity_id": identity_id,
                "error_type": type(tenant_exc).__name__,
                "error": str(tenant_exc),
            },
        )

        with start_span(
            "provisioning.compensation",
            {"academy.subdomain": req.academy_subdomain, "identity.id": identity_id},
        ):
            try:
                async with asyncio.timeout(self._identity_timeout):
                    await self._identity.delete_user(identity_id)
            except IdentityProviderError as cleanup_exc:
                if not cleanup_exc.is_not_found:
                    self._raise_inconsistent(req, identity_id, tenant_reason, cleanup_exc)
            except Exception as cleanup_exc:
                self._raise_inconsistent(req, identity_id, tenant_reason, cleanup_exc)

        logger.info(
            "admin_identity_deleted",
            extra={"subdomain": req.academy_subdomain, "identity_id": identity_id},
        )
        await self._resolve_intent(intent_id, committed=False)

        if isinstance(tenant_exc, SubdomainConflictError):
            raise SubdomainTakenError(req.academy_subdomain, identity_id) from tenant_exc
        raise TenantCreationFailedError(
            req.academy_subdomain, identity_id, tenant_reason
        ) from tenant_exc

    def _raise_inconsistent(
        self,
        req: ProvisionRequest,
        identity_id: str,
        tenant_reason: str,
        cleanup_exc: Exception,
    ) -> NoReturn:
        cleanup_reason = _identity_failure_reason(cleanup_exc)
        logger.critical(
            "provisioning_inconsistent_state",
            extra={
                "subdomain": req.academy_subdomain,
                "identity_id": identity_id,
                "tenant_error": tenant_reason,
                "cleanup_error": cleanup_reason,
                "cleanup_error_detail": str(cleanup_exc),
            },
        )
        raise InconsistentStateError(
            req.academy_subdomain, identity_id, tenant_reason, cleanup_reason
        ) from cleanup_exc

    def _log_identity_failure(self, req: ProvisionRequest, exc: Exception) -> None:
        logger.warning(
            "admin_identity_creation_failed",
            extra={
                "subdomain": req.academy_subdomain,
                "admin_email": req.admin_email,
                "error_type": type(exc).__name__,
                "error": str(exc),
            },
        )

    async def _resolve_intent(self, intent_id: UUID | None, *, committed: bool) -> None:
        # Failures here leave the intent pending; the reconciler resolves it.
        if intent_id is None or self._log is None:
            return
        try:
            if committed:
                await self._log.mark_committed(intent_id)
            else:
                await self._log.discard(intent_id)
        except Exception:
            self._log_intent_update_failure(
                intent_id, "mark_committed" if committed else "discard"
            )

    def _log_intent_update_failure(self, intent_id: UUID, operation: str) -> None:
        logger.warning(
            "provisioning_intent_update_failed",
            extra={"intent_id": str(intent_id), "operation": operation},
            exc_info=True,
        )
