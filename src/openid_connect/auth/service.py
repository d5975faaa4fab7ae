"""Login orchestration.

Ties the flow controller, provider families, claims mapper and session
binder into the two request handlers of a login: start and callback.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from openid_connect.auth.flow import safe_destination
from openid_connect.auth.providers.exceptions import OpenIDConnectError, ProviderNotFoundError
from openid_connect.observability.logging import bind_context, get_logger
from openid_connect.observability.metrics import record_login
from openid_connect.observability.tracing import add_span_attributes, get_tracer


if TYPE_CHECKING:
    from collections.abc import Mapping

    from openid_connect.auth.binder import SessionBinder
    from openid_connect.auth.claims import ClaimsMapper
    from openid_connect.auth.flow import AuthorizationFlowController
    from openid_connect.auth.providers.factory import ProviderClients
    from openid_connect.auth.registry import ProviderRegistry
    from openid_connect.users.protocol import UserStore

logger = get_logger(__name__)
tracer = get_tracer(__name__)


class LoginResult(BaseModel):
    """Outcome of a completed login."""

    provider_id: str
    local_user_id: str
    session_token: str = Field(..., repr=False)
    destination: str

    model_config = {"frozen": True}


class LoginService:
    """Runs complete login attempts.

    Attributes:
        mapping_table: Local attribute name -> claim name.
        post_login_redirect: Destination used when the attempt has none.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        flow: AuthorizationFlowController,
        clients: ProviderClients,
        mapper: ClaimsMapper,
        binder: SessionBinder,
        users: UserStore,
        *,
        mapping_table: Mapping[str, str],
        post_login_redirect: str = "/",
    ) -> None:
        self.registry = registry
        self.flow = flow
        self.clients = clients
        self.mapper = mapper
        self.binder = binder
        self.users = users
        self.mapping_table = dict(mapping_table)
        self.post_login_redirect = safe_destination(post_login_redirect) or "/"

    def _metric_label(self, provider_id: str) -> str:
        try:
            return self.registry.get(provider_id).id
        except ProviderNotFoundError:
            return "unknown"

    async def begin(self, provider_id: str, destination: str | None = None) -> str:
        """Start a login and return the provider authorization URL."""
        bind_context(provider_id=provider_id)
        try:
            url, _ = await self.flow.begin_login(provider_id, destination)
        except OpenIDConnectError as e:
            record_login(self._metric_label(provider_id), e.error_code)
            raise
        record_login(provider_id, "started")
        return url

    async def complete(
        self,
        provider_id: str,
        state: str | None,
        code: str | None,
        error: str | None = None,
        error_description: str | None = None,
    ) -> LoginResult:
        """Complete a login from the provider callback.

        Raises:
            OpenIDConnectError: Any failure of the attempt; the attempt is
                consumed in every case.
        """
        bind_context(provider_id=provider_id)
        with tracer.start_as_current_span("oidc.login.complete"):
            add_span_attributes(provider_id=provider_id)
            try:
                attempt = await self.flow.handle_callback(
                    provider_id, state, code, error, error_description
                )
                assert code is not None

                provider = self.registry.get(attempt.provider_id)
                client = self.clients.for_provider(provider)
                tokens = await client.exchange_token(provider, attempt, code)
                claims = await client.verify_token(provider, tokens, attempt)

                attributes = self.mapper.map(claims, self.mapping_table)
                local_user_id = await self.binder.bind(provider.id, claims.subject, attributes)
                session_token = await self.users.establish_session(local_user_id)
            except OpenIDConnectError as e:
                add_span_attributes(error_code=e.error_code)
                record_login(self._metric_label(provider_id), e.error_code)
                raise

        record_login(provider.id, "success")
        logger.info("Login completed", provider_id=provider.id, local_user_id=local_user_id)
        return LoginResult(
            provider_id=provider.id,
            local_user_id=local_user_id,
            session_token=session_token,
            destination=attempt.destination or self.post_login_redirect,
        )
