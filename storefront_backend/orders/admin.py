# orders/admin.py

from django.contrib import admin

from orders.models import Order, OrderItem, TrackingDetail


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    can_delete = False
    readonly_fields = (
        "product",
        "variation",
        "product_name",
        "quantity",
        "discounted_price",
        "actual_price",
    )


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "order_no",
        "customer",
        "status",
        "payment_status",
        "payment_method",
        "total_amount",
        "created_at",
    )
    list_filter = ("status", "payment_status", "payment_method")
    search_fields = ("order_no", "payment_reference", "customer__phone", "customer__email")
    inlines = [OrderItemInline]

    # Money and items are snapshots; status changes go through the API so
    # stock and tracking stay in sync.
    readonly_fields = (
        "order_no",
        "status",
        "payment_status",
        "payment_method",
        "payment_reference",
        "coupon",
        "currency",
        "subtotal_amount",
        "discount_amount",
        "shipping_cost",
        "tax_amount",
        "total_amount",
        "cancellation_reason",
        "cancelled_at",
    )


@admin.register(TrackingDetail)
class TrackingDetailAdmin(admin.ModelAdmin):
    list_display = ("order", "status", "carrier", "tracking_number", "last_updated_at")
    list_filter = ("status",)
    search_fields = ("tracking_number", "order__order_no")
    readonly_fields = ("status", "status_history")
