"""API-specific request/response models.

Domain models (Booking, PaymentRedirect, NotificationAck, ...) live in
courtbook.models and are reused directly as response models.
"""
