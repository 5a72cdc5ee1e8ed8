"""Bounded-attempt MPIN/OTP verification shared by every checkout flow"""

import asyncio
import dataclasses
import logging
from dataclasses import dataclass
from enum import Enum

from checkout_sdk.config import settings
from checkout_sdk.domain.exceptions import (
    AlreadyProcessingError,
    FormatError,
    InvalidStateError,
    LockedOutError,
)
from checkout_sdk.domain.models import (
    AuthorizationAttemptState,
    AuthorizationChannel,
    AuthorizationOutcome,
    AuthorizationStatus,
)
from checkout_sdk.domain.ports import SecretVerifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SecretPolicy:
    """Format rule and attempt budget for one authorization channel"""

    channel: AuthorizationChannel
    min_length: int
    max_length: int
    max_attempts: int

    @classmethod
    def mpin(cls) -> "SecretPolicy":
        return cls(
            channel=AuthorizationChannel.MPIN,
            min_length=settings.mpin_length,
            max_length=settings.mpin_length,
            max_attempts=settings.mpin_max_attempts,
        )

    @classmethod
    def otp(cls) -> "SecretPolicy":
        return cls(
            channel=AuthorizationChannel.OTP,
            min_length=settings.otp_min_length,
            max_length=settings.otp_max_length,
            max_attempts=settings.otp_max_attempts,
        )

    @property
    def label(self) -> str:
        return self.channel.value.upper()

    def check_format(self, secret: str) -> None:
        """Raise FormatError unless secret is all digits and of allowed length"""
        if self.min_length == self.max_length:
            expected = f"{self.min_length}-digit"
        else:
            expected = f"{self.min_length} to {self.max_length} digit"

        if not isinstance(secret, str) or not secret.isdigit() or not secret.isascii():
            raise FormatError(f"Please enter a valid {expected} {self.label}")
        if not self.min_length <= len(secret) <= self.max_length:
            raise FormatError(f"Please enter a valid {expected} {self.label}")


def _attempts_phrase(remaining: int) -> str:
    return f"{remaining} attempt{'s' if remaining != 1 else ''} remaining"


class AuthorizationGate:
    """
    Verifies a short numeric secret with a fixed attempt ceiling.

    States: pending -> verifying -> authorized | pending | locked.
    authorized and locked are terminal. There is no way to reset the attempt
    counter; callers that need a fresh budget discard the gate and build a
    new one when the flow is re-initiated.
    """

    def __init__(self, verifier: SecretVerifier, policy: SecretPolicy):
        if policy.max_attempts <= 0:
            raise ValueError("max_attempts must be positive")
        self._verifier = verifier
        self.policy = policy
        self._state = AuthorizationAttemptState(max_attempts=policy.max_attempts)

    @property
    def state(self) -> AuthorizationAttemptState:
        return dataclasses.replace(self._state)

    @property
    def status(self) -> AuthorizationStatus:
        return self._state.status

    @property
    def attempts_remaining(self) -> int:
        return self._state.attempts_remaining

    @property
    def authorized(self) -> bool:
        return self._state.status == AuthorizationStatus.AUTHORIZED

    def _locked_error(self) -> LockedOutError:
        return LockedOutError(
            f"Maximum {self.policy.label} attempts exceeded. Please try again later.",
            attempts_remaining=0,
        )

    async def submit(self, secret: str) -> AuthorizationOutcome:
        """
        Verify one secret.

        Returns:
            AuthorizationOutcome with status authorized on a match, or pending
            with the remaining attempt count on a mismatch

        Raises:
            LockedOutError: budget exhausted, by this call or an earlier one;
                the verifier is not called once locked
            FormatError: malformed secret, no attempt consumed
            AlreadyProcessingError: a verification is already in flight
            InvalidStateError: gate already authorized
        """
        status = self._state.status
        if status == AuthorizationStatus.LOCKED:
            raise self._locked_error()
        if status == AuthorizationStatus.AUTHORIZED:
            raise InvalidStateError(f"{self.policy.label} already verified")
        if status == AuthorizationStatus.VERIFYING:
            raise AlreadyProcessingError(f"{self.policy.label} verification already in progress")

        self.policy.check_format(secret)

        self._state.secret_entered = True
        self._state.status = AuthorizationStatus.VERIFYING
        try:
            matched = await self._verifier.verify_secret(self.policy.channel, secret)
        except (Exception, asyncio.CancelledError):
            # No attempt consumed on collaborator failure or cancellation
            self._state.status = AuthorizationStatus.PENDING
            logger.warning(
                "Secret verification failed",
                extra={"channel": self.policy.channel.value, "attempts_used": self._state.attempts_used},
            )
            raise

        if matched:
            self._state.status = AuthorizationStatus.AUTHORIZED
            logger.info("Authorization succeeded", extra={"channel": self.policy.channel.value})
            return AuthorizationOutcome(
                status=AuthorizationStatus.AUTHORIZED,
                attempts_remaining=self._state.attempts_remaining,
                message=f"{self.policy.label} verified",
            )

        self._state.attempts_used += 1
        if self._state.attempts_used >= self._state.max_attempts:
            self._state.status = AuthorizationStatus.LOCKED
            logger.warning(
                "Authorization locked out",
                extra={"channel": self.policy.channel.value, "attempts_used": self._state.attempts_used},
            )
            raise self._locked_error()

        self._state.status = AuthorizationStatus.PENDING
        remaining = self._state.attempts_remaining
        return AuthorizationOutcome(
            status=AuthorizationStatus.PENDING,
            attempts_remaining=remaining,
            message=f"Invalid {self.policy.label}. {_attempts_phrase(remaining)}.",
        )


class PinStrengthLevel(str, Enum):
    WEAK = "WEAK"
    MEDIUM = "MEDIUM"
    STRONG = "STRONG"


@dataclass(frozen=True)
class PinStrength:
    valid: bool
    strength: PinStrengthLevel
    message: str


def _is_sequential(pin: str) -> bool:
    steps = {(int(b) - int(a)) % 10 for a, b in zip(pin, pin[1:])}
    return steps == {1} or steps == {9}


def assess_pin_strength(pin: str) -> PinStrength:
    """Check a new card PIN: 4-6 digits; repeated or sequential digits are weak"""
    if len(pin) < 4:
        return PinStrength(False, PinStrengthLevel.WEAK, "PIN must be at least 4 digits")
    if len(pin) > 6:
        return PinStrength(False, PinStrengthLevel.WEAK, "PIN cannot be more than 6 digits")
    if not (pin.isdigit() and pin.isascii()):
        return PinStrength(False, PinStrengthLevel.WEAK, "PIN must contain only numbers")

    if len(set(pin)) == 1:
        return PinStrength(True, PinStrengthLevel.WEAK, "Avoid repeated digits for better security")
    if _is_sequential(pin):
        return PinStrength(True, PinStrengthLevel.WEAK, "Avoid sequential digits for better security")

    if len(pin) >= 6:
        return PinStrength(True, PinStrengthLevel.STRONG, "Strong PIN")
    return PinStrength(True, PinStrengthLevel.MEDIUM, "Medium strength PIN")
