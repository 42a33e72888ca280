"""Billing domain errors. Routers translate these into HTTP responses."""


class BillingError(Exception):
    """Base class for billing failures."""


class WebhookEventError(BillingError):
    """The event is authentic but unusable (missing or bad metadata)."""


class SubscriptionNotFoundError(BillingError):
    """No local subscription matches the Stripe customer in the event."""


class AlreadySubscribedError(BillingError):
    def __init__(self) -> None:
        super().__init__("User already has an active subscription")


class BillingNotConfiguredError(BillingError):
    def __init__(self) -> None:
        super().__init__("Stripe is not configured")
