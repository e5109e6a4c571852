# styledecor/domain/state_machine.py

from enum import Enum
from typing import Dict, FrozenSet, Set, Tuple

from styledecor.domain.exceptions import (
    InvalidStateTransitionError,
    UnauthorizedTransitionError,
)


class ServiceStatus(str, Enum):
    PENDING = "pending"
    PENDING_ASSIGN = "pending-assign"
    DECORATOR_ASSIGNED = "Decorator_Assigned"
    DECORATOR_ACCEPTED = "Decorator_Accepted"
    WORKING = "Working"
    COMPLETED = "Completed"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class TransitionActor(str, Enum):
    SYSTEM = "system"
    ADMIN = "admin"
    DECORATOR = "decorator"


class BookingStateMachine:
    """
    Central lifecycle controller for booking service status.
    Defines the legal transitions and who may drive each one.
    """

    _ALLOWED_TRANSITIONS: Dict[ServiceStatus, Set[ServiceStatus]] = {
        ServiceStatus.PENDING: {
            ServiceStatus.PENDING_ASSIGN,
        },
        ServiceStatus.PENDING_ASSIGN: {
            ServiceStatus.DECORATOR_ASSIGNED,
        },
        ServiceStatus.DECORATOR_ASSIGNED: {
            ServiceStatus.DECORATOR_ACCEPTED,
        },
        ServiceStatus.DECORATOR_ACCEPTED: {
            ServiceStatus.WORKING,
        },
        ServiceStatus.WORKING: {
            ServiceStatus.COMPLETED,
        },
        ServiceStatus.COMPLETED: set(),
    }

    # Payment confirmation is system-driven only; admins may push
    # progress on behalf of a decorator once the job is accepted.
    _AUTHORIZED_ACTORS: Dict[
        Tuple[ServiceStatus, ServiceStatus], FrozenSet[TransitionActor]
    ] = {
        (ServiceStatus.PENDING, ServiceStatus.PENDING_ASSIGN): frozenset(
            {TransitionActor.SYSTEM}
        ),
        (ServiceStatus.PENDING_ASSIGN, ServiceStatus.DECORATOR_ASSIGNED): frozenset(
            {TransitionActor.ADMIN}
        ),
        (ServiceStatus.DECORATOR_ASSIGNED, ServiceStatus.DECORATOR_ACCEPTED): frozenset(
            {TransitionActor.DECORATOR}
        ),
        (ServiceStatus.DECORATOR_ACCEPTED, ServiceStatus.WORKING): frozenset(
            {TransitionActor.DECORATOR, TransitionActor.ADMIN}
        ),
        (ServiceStatus.WORKING, ServiceStatus.COMPLETED): frozenset(
            {TransitionActor.DECORATOR, TransitionActor.ADMIN}
        ),
    }

    @classmethod
    def can_transition(
        cls,
        from_status: ServiceStatus,
        to_status: ServiceStatus,
    ) -> bool:
        """
        Returns True if transition is allowed.
        """
        cls._ensure_valid_status(from_status)
        cls._ensure_valid_status(to_status)

        return to_status in cls._ALLOWED_TRANSITIONS.get(from_status, set())

    @classmethod
    def validate_transition(
        cls,
        from_status: ServiceStatus,
        to_status: ServiceStatus,
        actor: TransitionActor | None = None,
    ) -> None:
        """
        Raises InvalidStateTransitionError if transition is illegal and
        UnauthorizedTransitionError if the actor may not drive it.
        """
        if not cls.can_transition(from_status, to_status):
            raise InvalidStateTransitionError(
                from_state=from_status.value,
                to_state=to_status.value,
            )

        if actor is None:
            return

        if actor not in cls.get_authorized_actors(from_status, to_status):
            raise UnauthorizedTransitionError(
                from_state=from_status.value,
                to_state=to_status.value,
                actor=TransitionActor(actor).value,
            )

    @classmethod
    def is_terminal(cls, status: ServiceStatus) -> bool:
        """
        Returns True if the state is terminal (no further transitions allowed).
        """
        cls._ensure_valid_status(status)
        return len(cls._ALLOWED_TRANSITIONS.get(status, set())) == 0

    @classmethod
    def get_allowed_transitions(
        cls, status: ServiceStatus
    ) -> Set[ServiceStatus]:
        """
        Returns allowed next states from current state.
        """
        cls._ensure_valid_status(status)
        return cls._ALLOWED_TRANSITIONS.get(status, set())

    @classmethod
    def get_authorized_actors(
        cls,
        from_status: ServiceStatus,
        to_status: ServiceStatus,
    ) -> FrozenSet[TransitionActor]:
        cls._ensure_valid_status(from_status)
        cls._ensure_valid_status(to_status)
        return cls._AUTHORIZED_ACTORS.get((from_status, to_status), frozenset())

    @staticmethod
    def _ensure_valid_status(status: ServiceStatus) -> None:
        if not isinstance(status, ServiceStatus):
            raise TypeError(
                f"Expected ServiceStatus, got {type(status)}"
            )
