# coupons/admin.py

from django.contrib import admin

from coupons.models import Coupon, CouponUsage


@admin.register(Coupon)
class CouponAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "value_type",
        "value",
        "minimum_spent",
        "valid_from",
        "valid_till",
        "usage_limit_per_person",
    )
    search_fields = ("name",)
    list_filter = ("value_type",)


@admin.register(CouponUsage)
class CouponUsageAdmin(admin.ModelAdmin):
    list_display = ("coupon", "customer", "order", "used_at")
    readonly_fields = ("coupon", "customer", "order", "used_at")
