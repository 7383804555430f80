# delivery/admin.py

from django.contrib import admin

from delivery.models import DeliveryCharge


@admin.register(DeliveryCharge)
class DeliveryChargeAdmin(admin.ModelAdmin):
    list_display = ("postal_code", "area_name", "delivery_charge", "updated_at")
    search_fields = ("postal_code", "area_name")
