# customers/admin.py

from django.contrib import admin

from customers.models import CustomerProfile, ShippingAddress


@admin.register(CustomerProfile)
class CustomerProfileAdmin(admin.ModelAdmin):
    list_display = ("name", "email", "phone", "created_at")
    search_fields = ("name", "email", "phone")


@admin.register(ShippingAddress)
class ShippingAddressAdmin(admin.ModelAdmin):
    list_display = ("customer", "city", "postal_code", "is_default")
    search_fields = ("postal_code", "city", "customer__name")
