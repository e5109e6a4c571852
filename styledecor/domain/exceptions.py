

class StyleDecorError(Exception):
    """
    Base exception for all domain-level errors
    inside the StyleDecor booking engine.
    """


class InvalidStateTransitionError(StyleDecorError):
    """
    Raised when an illegal booking state transition is attempted.
    """

    def __init__(self, from_state: str, to_state: str):
        self.from_state = from_state
        self.to_state = to_state

        message = (
            f"Illegal state transition attempted: "
            f"{from_state} -> {to_state}"
        )
        super().__init__(message)


class UnauthorizedTransitionError(StyleDecorError):
    """
    Raised when a legal transition is driven by an actor
    that has no authority over it.
    """

    def __init__(self, from_state: str, to_state: str, actor: str):
        self.from_state = from_state
        self.to_state = to_state
        self.actor = actor

        message = (
            f"Actor '{actor}' may not transition booking: "
            f"{from_state} -> {to_state}"
        )
        super().__init__(message)


class BookingNotFoundError(StyleDecorError):
    """Raised when no booking matches the given id."""


class DecoratorNotFoundError(StyleDecorError):
    """Raised when no decorator matches the given id."""


class DecoratorNotApprovedError(StyleDecorError):
    """Raised when assigning a decorator whose application is not approved."""


class BookingOwnershipError(StyleDecorError):
    """Raised when the caller is not bound to the booking they act on."""


class CheckoutNotAllowedError(StyleDecorError):
    """Raised when a checkout session cannot be opened for a booking."""


class PaymentMetadataError(StyleDecorError):
    """Raised when a payment session carries no usable booking metadata."""


class PaymentGatewayError(StyleDecorError):
    """Raised when the external payment processor cannot be reached."""
