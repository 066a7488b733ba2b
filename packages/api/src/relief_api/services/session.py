# This project was developed with assistance from AI tools.
"""Per-user session controller and registry.

A ``SessionController`` owns one authenticated session: its profile and
application subscriptions, the hydrated ``SessionState``, the running
verification flow, and the fund-scoped draft. Hydration runs on every
profile snapshot the feed delivers; a snapshot superseded by a newer one
while its identity query is in flight is dropped.
"""

import asyncio
import logging
from dataclasses import dataclass, field

from pydantic import ValidationError
from relief_db.enums import UserRole
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..core.config import settings
from ..schemas.application import ApplicationForm, ApplicationRecord, LedgerResponse
from ..schemas.auth import UserContext
from ..schemas.draft import (
    ApplicationDraft,
    AssistantAction,
    ConversationMessage,
    ConversationUpdate,
    DraftUpdate,
)
from ..schemas.identity import FundIdentityRecord
from ..schemas.navigation import NavigationDecision, Page
from ..schemas.profile import ProfileRecord
from ..schemas.session import (
    SIGNED_OUT,
    SessionState,
    SessionStatus,
    VerificationAttemptRequest,
    VerificationResult,
    VerificationStatusResponse,
)
from . import access
from . import application as application_service
from . import identity as identity_service
from . import profile as profile_service
from .decision import DecisionService
from .drafts import DraftCache, apply_assistant_action, merge_draft
from .feed import ChangeFeed, Subscription
from .funds import get_fund, require_fund
from .hydration import ProfileIntegrityError, derive_state, within_provisioning_grace
from .ledger import compute_balances, can_apply
from .submission import SubmissionOrchestrator
from .verification import SsoLinker, VerificationSession, eligible_identity_for

logger = logging.getLogger(__name__)


class SessionNotReadyError(RuntimeError):
    """The session has no hydrated profile yet (still provisioning or signed out)."""

    pass


class IdentityActivationError(ValueError):
    """Only Eligible identities belonging to the user can be activated."""

    pass


class IdentityAlreadyVerifiedError(ValueError):
    """The fund already has an Eligible identity; there is nothing to verify."""

    pass


class VerificationNotStartedError(ValueError):
    pass


@dataclass
class SessionContext:
    """Everything one authenticated session needs; torn down on sign-out."""

    user: UserContext
    session_factory: async_sessionmaker
    feed: ChangeFeed
    drafts: DraftCache
    decision_service: DecisionService
    sso_linker: SsoLinker
    subscriptions: list[Subscription] = field(default_factory=list)


class SessionController:
    def __init__(self, context: SessionContext):
        self.context = context
        self.state = SessionState(status=SessionStatus.LOADING, page=Page.HOME)
        self.applications: tuple[ApplicationRecord, ...] = ()
        self.proxy_applications: tuple[ApplicationRecord, ...] = ()
        self.verification: VerificationSession | None = None
        self.integrity_error: ProfileIntegrityError | None = None
        self.closed = False
        self._generation = 0
        self._fund_epoch = 0
        self._lock = asyncio.Lock()
        self._orchestrator = SubmissionOrchestrator(
            context.session_factory, context.decision_service, context.drafts, context.feed,
        )

    @property
    def user(self) -> UserContext:
        return self.context.user

    @property
    def uid(self) -> str:
        return self.context.user.user_id

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Subscribe to the user's profile and applications, hydrating once."""
        ctx = self.context
        async with ctx.session_factory() as db:
            self.applications = tuple(await application_service.list_for_owner(db, self.uid))
            if self.user.is_admin:
                self.proxy_applications = tuple(
                    await application_service.list_for_proxy_submitter(db, self.uid)
                )

        ctx.subscriptions.append(
            application_service.subscribe_owner_applications(self.uid, self._on_owner_application, ctx.feed)
        )
        if self.user.is_admin:
            ctx.subscriptions.append(
                application_service.subscribe_proxy_applications(self.uid, self._on_proxy_application, ctx.feed)
            )
        ctx.subscriptions.append(
            await profile_service.subscribe_profile(
                ctx.session_factory, self.uid, self.on_profile_snapshot, ctx.feed,
            )
        )
        if self.integrity_error is not None:
            raise self.integrity_error

    async def close(self) -> None:
        """Sign out: drop every observer and clear all session state."""
        for subscription in self.context.subscriptions:
            subscription.unsubscribe()
        self.context.subscriptions.clear()
        self.closed = True
        self._generation += 1
        self._fund_epoch += 1
        self.verification = None
        self.applications = ()
        self.proxy_applications = ()
        self.state = SIGNED_OUT

    async def refresh(self) -> SessionState:
        """Re-read the profile and hydrate from it."""
        async with self.context.session_factory() as db:
            profile = await profile_service.get_profile(db, self.uid)
        await self.on_profile_snapshot(profile)
        return self.state

    # ------------------------------------------------------------------
    # Hydration
    # ------------------------------------------------------------------

    async def on_profile_snapshot(self, profile: ProfileRecord | None) -> None:
        self._generation += 1
        generation = self._generation
        async with self._lock:
            if generation != self._generation or self.closed:
                return
            await self._hydrate(profile, generation)

    async def _hydrate(self, profile: ProfileRecord | None, generation: int) -> None:
        if profile is None:
            if within_provisioning_grace(
                self.user.account_created_at, settings.PROFILE_PROVISIONING_GRACE_SECONDS,
            ):
                self.state = SessionState(status=SessionStatus.LOADING, page=self.state.page)
                return
            logger.error("No profile for authenticated user %s; forcing sign-out", self.uid)
            self.integrity_error = ProfileIntegrityError(f"No profile exists for user {self.uid}")
            self.state = SIGNED_OUT
            return

        async with self.context.session_factory() as db:
            identities = await identity_service.list_for_user(db, self.uid)
        if generation != self._generation:
            return

        state = derive_state(profile, identities, self.user.role, self.state.page)
        draft = await self.context.drafts.load(self.uid, state.fund_code)
        if generation != self._generation:
            return

        if state.fund_code != self.state.fund_code:
            self._fund_epoch += 1
        self.integrity_error = None
        self.state = state.model_copy(update={"draft": draft})

    def _require_profile(self) -> ProfileRecord:
        if self.state.profile is None:
            if self.integrity_error is not None:
                raise self.integrity_error
            raise SessionNotReadyError("The profile is not available yet")
        return self.state.profile

    async def _on_owner_application(self, record: ApplicationRecord) -> None:
        self.applications = (record, *self.applications)

    async def _on_proxy_application(self, record: ApplicationRecord) -> None:
        self.proxy_applications = (record, *self.proxy_applications)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def navigate(self, target: Page) -> NavigationDecision:
        profile = self._require_profile()
        state = access.access_state(profile, self.state.has_eligible_identity)
        decision = access.navigate(self.user.role, state, self.state.page, target)
        self.state = self.state.model_copy(update={"page": decision.page})
        return decision

    # ------------------------------------------------------------------
    # Identities
    # ------------------------------------------------------------------

    def _find_identity(self, identity_id: str) -> FundIdentityRecord | None:
        return next((i for i in self.state.identities if i.id == identity_id), None)

    async def activate_identity(self, identity_id: str) -> SessionState:
        profile = self._require_profile()
        identity = self._find_identity(identity_id)
        if identity is None:
            raise identity_service.IdentityNotFoundError(f"Identity {identity_id} not found")
        if not identity.is_eligible:
            raise IdentityActivationError("Only eligible identities can be activated")

        previous_fund = profile.fund_code
        async with self.context.session_factory() as db:
            touched = await identity_service.touch_identity(db, self.uid, identity_id)
            await profile_service.set_active_identity(db, self.uid, touched, self.context.feed)
        if previous_fund and previous_fund != touched.fund_code:
            await self.context.drafts.clear(self.uid, previous_fund)
        self.state = self.state.model_copy(update={"draft": None})
        logger.info("Identity switched: uid=%s identity=%s", self.uid, identity_id)
        return await self.refresh()

    async def remove_identity(self, identity_id: str) -> SessionState:
        self._require_profile()
        active_id = self.state.active_identity.id if self.state.active_identity else None
        async with self.context.session_factory() as db:
            await identity_service.delete_identity(db, self.uid, identity_id, active_id)
        return await self.refresh()

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    async def start_verification(self, fund_code: str) -> VerificationStatusResponse:
        """Begin (or resume) the verification flow for one fund.

        A locked flow is replaced by a fresh one with a new attempt counter.
        """
        self._require_profile()
        async with self.context.session_factory() as db:
            fund = await require_fund(db, fund_code)
        if eligible_identity_for(self.state.identities, fund.code) is not None:
            raise IdentityAlreadyVerifiedError(f"Already verified for {fund.code}")

        current = self.verification
        if current is None or current.fund_code != fund.code or current.locked:
            self.verification = VerificationSession(fund)
        return self.verification_status()

    def verification_status(self) -> VerificationStatusResponse:
        if self.verification is None:
            raise VerificationNotStartedError("No verification in progress")
        v = self.verification
        return VerificationStatusResponse(
            fund_code=v.fund.code,
            fund_name=v.fund.name,
            cv_type=v.fund.cv_type,
            attempts=v.attempts,
            max_attempts=v.max_attempts,
            locked=v.locked,
        )

    async def attempt_verification(
        self, fund_code: str, request: VerificationAttemptRequest
    ) -> VerificationResult:
        profile = self._require_profile()
        if self.verification is None or self.verification.fund_code != fund_code:
            raise VerificationNotStartedError(f"Verification for {fund_code} has not been started")
        verification = self.verification
        was_locked = verification.locked

        async with self.context.session_factory() as db:
            result = await verification.attempt(
                db, profile, request, self.context.sso_linker, self.context.feed,
            )

        if result.passed:
            await self.refresh()
            self.verification = None
        elif result.locked and not was_locked:
            await self.refresh()
        return result.model_copy(update={"page": self.state.page})

    # ------------------------------------------------------------------
    # Drafts
    # ------------------------------------------------------------------

    def _require_fund_code(self) -> str:
        fund_code = self._require_profile().fund_code
        if not fund_code:
            raise SessionNotReadyError("No active fund")
        return fund_code

    async def update_draft(self, update: DraftUpdate) -> ApplicationDraft:
        fund_code = self._require_fund_code()
        draft = merge_draft(self.state.draft, update, self.state.profile)
        await self.context.drafts.save(self.uid, fund_code, draft)
        self.state = self.state.model_copy(update={"draft": draft})
        return draft

    async def apply_assistant_action(self, action: AssistantAction) -> ApplicationDraft:
        fund_code = self._require_fund_code()
        draft = apply_assistant_action(self.state.draft, action, self.state.profile)
        await self.context.drafts.save(self.uid, fund_code, draft)
        self.state = self.state.model_copy(update={"draft": draft})
        return draft

    async def reset_draft(self) -> None:
        fund_code = self._require_fund_code()
        await self.context.drafts.clear(self.uid, fund_code)
        self.state = self.state.model_copy(update={"draft": None})

    async def load_conversation(self) -> list[ConversationMessage]:
        fund_code = self._require_fund_code()
        raw = await self.context.drafts.load_conversation(self.uid, fund_code)
        try:
            return ConversationUpdate.model_validate({"messages": raw}).messages
        except ValidationError:
            logger.warning("Discarding malformed conversation for uid=%s fund=%s", self.uid, fund_code)
            return []

    async def save_conversation(self, messages: list[ConversationMessage]) -> list[ConversationMessage]:
        fund_code = self._require_fund_code()
        await self.context.drafts.save_conversation(
            self.uid, fund_code, [m.model_dump() for m in messages],
        )
        return messages

    # ------------------------------------------------------------------
    # Submission and ledger
    # ------------------------------------------------------------------

    def _currency_guard(self):
        epoch = self._fund_epoch
        fund_code = self.state.fund_code

        def is_current() -> bool:
            return not self.closed and self._fund_epoch == epoch and self.state.fund_code == fund_code

        return is_current

    async def submit(self, form: ApplicationForm) -> ApplicationRecord:
        profile = self._require_profile()
        record = await self._orchestrator.submit(profile, form, self._currency_guard())
        self.state = self.state.model_copy(update={"draft": None})
        return record

    async def submit_proxy(self, form: ApplicationForm) -> ApplicationRecord:
        profile = self._require_profile()
        if profile.role != UserRole.ADMIN:
            raise PermissionError("Proxy submission requires the Admin role")
        return await self._orchestrator.submit_proxy(profile, form, self._currency_guard())

    async def update_profile(self, changes: dict) -> SessionState:
        self._require_profile()
        async with self.context.session_factory() as db:
            await profile_service.update_profile(db, self.uid, changes, self.context.feed)
        return self.state

    async def ledger(self) -> LedgerResponse:
        profile = self._require_profile()
        async with self.context.session_factory() as db:
            fund = await get_fund(db, profile.fund_code) if profile.fund_code else None
            if fund is None:
                return LedgerResponse(
                    fund_code=profile.fund_code,
                    twelve_month_remaining=0,
                    lifetime_remaining=0,
                    can_apply=False,
                )
            latest = await application_service.latest_for_fund(db, self.uid, fund.code)
        balances = compute_balances(fund, latest)
        return LedgerResponse(
            fund_code=fund.code,
            twelve_month_remaining=balances.twelve_month_remaining,
            lifetime_remaining=balances.lifetime_remaining,
            can_apply=can_apply(profile, balances),
        )


class SessionRegistry:
    """Open sessions keyed by user id."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        feed: ChangeFeed,
        drafts: DraftCache,
        decision_service: DecisionService,
        sso_linker: SsoLinker,
    ):
        self.session_factory = session_factory
        self.feed = feed
        self.drafts = drafts
        self.decision_service = decision_service
        self.sso_linker = sso_linker
        self._sessions: dict[str, SessionController] = {}
        self._lock = asyncio.Lock()

    def get(self, uid: str) -> SessionController | None:
        return self._sessions.get(uid)

    async def open(self, user: UserContext) -> SessionController:
        """Return the user's session, re-opening it if the role claim changed."""
        async with self._lock:
            controller = self._sessions.get(user.user_id)
            if controller is not None and controller.user.role == user.role:
                return controller
            if controller is not None:
                logger.info("Authorization claim changed for %s; re-opening session", user.user_id)
                await controller.close()
                del self._sessions[user.user_id]

            controller = SessionController(
                SessionContext(
                    user=user,
                    session_factory=self.session_factory,
                    feed=self.feed,
                    drafts=self.drafts,
                    decision_service=self.decision_service,
                    sso_linker=self.sso_linker,
                )
            )
            try:
                await controller.start()
            except ProfileIntegrityError:
                await controller.close()
                raise
            self._sessions[user.user_id] = controller
            return controller

    async def close(self, uid: str) -> None:
        async with self._lock:
            controller = self._sessions.pop(uid, None)
        if controller is not None:
            await controller.close()

    async def close_all(self) -> None:
        async with self._lock:
            controllers = list(self._sessions.values())
            self._sessions.clear()
        for controller in controllers:
            await controller.close()


_registry: SessionRegistry | None = None


def init_session_registry(registry: SessionRegistry) -> SessionRegistry:
    global _registry  # noqa: PLW0603
    _registry = registry
    return registry


def get_session_registry() -> SessionRegistry:
    if _registry is None:
        raise RuntimeError("Session registry has not been initialized")
    return _registry
