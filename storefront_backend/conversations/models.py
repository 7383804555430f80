# conversations/models.py

import uuid

from django.db import models


class ConversationState(models.TextChoices):
    IDLE = "IDLE", "Idle"
    VIEWING_CART = "VIEWING_CART", "Viewing cart"
    CHOOSING_ADDRESS = "CHOOSING_ADDRESS", "Choosing address"
    CONFIRMING_ORDER = "CONFIRMING_ORDER", "Confirming order"


class ConversationSession(models.Model):
    """
    Chat-bot checkout session, one per phone number.

    state + context are advanced ONLY by conversations.services.state_machine
    (pure) and persisted by conversations.services.session under a row lock.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    phone_number = models.CharField(max_length=32, unique=True)

    customer = models.ForeignKey(
        "customers.CustomerProfile",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="conversation_sessions",
    )

    state = models.CharField(
        max_length=32,
        choices=ConversationState.choices,
        default=ConversationState.IDLE,
    )
    context = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-updated_at"]

    def __str__(self):
        return f"{self.phone_number} | {self.state}"
