# catalog/admin.py

from django.contrib import admin

from catalog.models import Product, ProductVariation


class ProductVariationInline(admin.TabularInline):
    model = ProductVariation
    extra = 0
    fields = ("name", "sku", "actual_price", "discounted_price", "stock_count", "is_active")


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("name", "sku", "discounted_price", "stock_count", "is_active")
    search_fields = ("name", "sku")
    list_filter = ("is_active",)
    inlines = [ProductVariationInline]
