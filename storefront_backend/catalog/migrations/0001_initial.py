"""
======================================================
PATH: catalog/migrations/0001_initial.py
======================================================
MIGRATION: CREATE Product + ProductVariation (stock counters)
"""

from __future__ import annotations

import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("name", models.CharField(db_index=True, max_length=255)),
                ("sku", models.CharField(blank=True, max_length=128, null=True, unique=True)),
                ("actual_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("discounted_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("stock_count", models.PositiveIntegerField(default=0)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["-created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(stock_count__gte=0),
                        name="catalog_product_stock_non_negative",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="ProductVariation",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("name", models.CharField(max_length=255)),
                ("sku", models.CharField(blank=True, max_length=128, null=True, unique=True)),
                ("actual_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("discounted_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("stock_count", models.PositiveIntegerField(default=0)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="variations",
                        to="catalog.product",
                    ),
                ),
            ],
            options={
                "ordering": ["product", "name"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(stock_count__gte=0),
                        name="catalog_variation_stock_non_negative",
                    )
                ],
            },
        ),
    ]
