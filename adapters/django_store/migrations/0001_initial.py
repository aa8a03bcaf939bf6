import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="HotelRecord",
            fields=[
                ("hotel_id", models.CharField(max_length=64, primary_key=True, serialize=False)),
                ("owner_id", models.CharField(max_length=255)),
                ("name", models.CharField(blank=True, default="", max_length=255)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "db_table": "lodging_hotel",
            },
        ),
        migrations.CreateModel(
            name="BookingRecord",
            fields=[
                ("booking_id", models.CharField(max_length=64, primary_key=True, serialize=False)),
                ("reference", models.CharField(max_length=64, unique=True)),
                ("user_id", models.CharField(max_length=255)),
                ("hotel_id", models.CharField(max_length=64)),
                ("status", models.CharField(max_length=20)),
                ("payment_status", models.CharField(max_length=20)),
                ("created_at", models.DateTimeField()),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("data", models.JSONField()),
            ],
            options={
                "db_table": "lodging_booking",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["user_id", "created_at"], name="idx_booking_user_created"),
                    models.Index(fields=["hotel_id", "created_at"], name="idx_booking_hotel_created"),
                    models.Index(fields=["payment_status"], name="idx_booking_payment_status"),
                ],
            },
        ),
        migrations.CreateModel(
            name="RoomInventoryRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("room_type", models.CharField(max_length=64)),
                ("unit_price", models.PositiveIntegerField(help_text="Price per unit per night, whole currency units.")),
                ("total_units", models.PositiveIntegerField()),
                ("available_units", models.PositiveIntegerField(help_text="0 <= available_units <= total_units at all times.")),
                ("max_occupancy_per_unit", models.PositiveSmallIntegerField()),
                (
                    "hotel",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="rooms",
                        to="lodging_store.hotelrecord",
                    ),
                ),
            ],
            options={
                "db_table": "lodging_room_inventory",
                "constraints": [
                    models.UniqueConstraint(fields=("hotel", "room_type"), name="uq_room_hotel_type"),
                ],
            },
        ),
    ]
