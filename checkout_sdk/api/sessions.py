"""In-memory checkout sessions for the HTTP surface"""

import logging
import uuid
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from checkout_sdk.domain.handlers import build_handlers
from checkout_sdk.domain.orchestrator import CheckoutOrchestrator
from checkout_sdk.domain.ports import EMIProviderSource, MethodCatalog, PaymentProcessor, SecretVerifier

logger = logging.getLogger(__name__)


@dataclass
class CheckoutSession:
    session_id: str
    orchestrator: CheckoutOrchestrator


class CheckoutFactory:
    """Wires collaborators into a fresh orchestrator and handler set per session"""

    def __init__(
        self,
        catalog: MethodCatalog,
        processor: PaymentProcessor,
        provider_source: EMIProviderSource,
        verifier_for: Callable[[Optional[str]], SecretVerifier],
    ):
        self.catalog = catalog
        self.processor = processor
        self.provider_source = provider_source
        self.verifier_for = verifier_for

    def create(self, customer_id: Optional[str] = None) -> CheckoutOrchestrator:
        handlers = build_handlers(
            processor=self.processor,
            catalog=self.catalog,
            verifier=self.verifier_for(customer_id),
            provider_source=self.provider_source,
        )
        return CheckoutOrchestrator(self.catalog, handlers)


class SessionRegistry:
    """
    Session id -> orchestrator map, oldest evicted first once full.

    Lives on app.state; sessions do not survive a restart.
    """

    def __init__(self, max_sessions: int = 1000):
        self.max_sessions = max_sessions
        self._sessions: Dict[str, CheckoutSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def add(self, orchestrator: CheckoutOrchestrator) -> CheckoutSession:
        if len(self._sessions) >= self.max_sessions:
            oldest = next(iter(self._sessions))
            self._sessions.pop(oldest).orchestrator.reset_checkout()
            logger.info("Evicted checkout session", extra={"session_id": oldest})

        session = CheckoutSession(session_id=str(uuid.uuid4()), orchestrator=orchestrator)
        self._sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> Optional[CheckoutSession]:
        return self._sessions.get(session_id)

    def remove(self, session_id: str) -> Optional[CheckoutSession]:
        return self._sessions.pop(session_id, None)
