# cart/admin.py

from django.contrib import admin

from cart.models import CartItem


@admin.register(CartItem)
class CartItemAdmin(admin.ModelAdmin):
    list_display = ("customer", "product", "variation", "quantity", "created_at")
    search_fields = ("customer__name", "product__name")
