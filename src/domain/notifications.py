"""
Account notifications - Turns domain events into outbound emails.

The notifier is an event subscriber. It runs on the event bus workers,
after the triggering request has already been answered.
"""

from dataclasses import dataclass

from .events import AccountChanged, RegistrationCompleted, ResetLinkGenerated, VerificationResent
from .ports import EmailSender


@dataclass
class AccountNotifier:
    """Renders account lifecycle events into emails."""

    email_sender: EmailSender

    def subscribe(self, bus) -> None:
        """Register every handler of this notifier on the event bus."""
        bus.subscribe(RegistrationCompleted, self.on_registration_completed)
        bus.subscribe(VerificationResent, self.on_verification_resent)
        bus.subscribe(ResetLinkGenerated, self.on_reset_link_generated)
        bus.subscribe(AccountChanged, self.on_account_changed)

    def on_registration_completed(self, event: RegistrationCompleted) -> None:
        link = event.url_builder.build(token=event.token.token)
        self.email_sender.send_email(
            event.account.email,
            "Email Verification",
            f"Welcome {event.account.username}! Confirm your email address: {link}",
        )

    def on_verification_resent(self, event: VerificationResent) -> None:
        link = event.url_builder.build(token=event.token.token)
        self.email_sender.send_email(
            event.account.email,
            "Email Verification",
            f"Here is your new verification link: {link}",
        )

    def on_reset_link_generated(self, event: ResetLinkGenerated) -> None:
        link = event.url_builder.build(token=event.token.token)
        self.email_sender.send_email(
            event.token.email,
            "Password Reset Link",
            f"Use this link to reset your password: {link}",
        )

    def on_account_changed(self, event: AccountChanged) -> None:
        self.email_sender.send_email(
            event.account.email,
            "Account Status Change",
            f"{event.action}: {event.detail}",
        )
