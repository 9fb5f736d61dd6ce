"""Failures that abort a checklist email delivery.

Each error carries the HTTP status and the message shown to the caller.
Per-photo download failures and the post-send tracking write are not
errors here; they are logged and the delivery carries on.
"""


class DeliveryError(Exception):
    status_code = 500
    default_message = "Failed to send checklist email."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ChecklistNotFound(DeliveryError):
    status_code = 404
    default_message = "Checklist not found."


class ChecklistLoadError(DeliveryError):
    default_message = "Unable to load checklist data."


class NoRecipient(DeliveryError):
    status_code = 400
    default_message = "No recipient email is available for this checklist."


class InvalidRecipient(DeliveryError):
    status_code = 400
    default_message = "Recipient email address is invalid."


class MailNotConfigured(DeliveryError):
    default_message = "Email sending is not configured."


class RenderError(DeliveryError):
    default_message = "Failed to generate the checklist PDF."


class SendError(DeliveryError):
    default_message = "Failed to send checklist email."
