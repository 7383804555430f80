# conversations/admin.py

from django.contrib import admin

from conversations.models import ConversationSession


@admin.register(ConversationSession)
class ConversationSessionAdmin(admin.ModelAdmin):
    list_display = ("phone_number", "customer", "state", "updated_at")
    search_fields = ("phone_number",)
    list_filter = ("state",)
