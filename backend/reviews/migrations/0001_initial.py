# Generated migration for initial reviews app setup

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


def sub_rating():
    return models.PositiveSmallIntegerField(
        blank=True, null=True, validators=[django.core.validators.MaxValueValidator(5)],
    )


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('locations', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Review',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('category', models.CharField(
                    choices=[
                        ('hotels', 'Hotel'),
                        ('fbos', 'FBO'),
                        ('restaurants', 'Restaurant'),
                        ('rentals', 'Car Rental'),
                    ],
                    max_length=20,
                )),
                ('airport_code', models.CharField(blank=True, default='', max_length=4)),
                ('location_name', models.CharField(max_length=255)),
                ('business_slug', models.SlugField(blank=True, default='', max_length=255)),
                ('address', models.CharField(blank=True, default='', max_length=512)),
                ('phone', models.CharField(blank=True, default='', max_length=50)),
                ('latitude', models.FloatField(blank=True, null=True)),
                ('longitude', models.FloatField(blank=True, null=True)),
                ('overall_rating', models.PositiveSmallIntegerField(
                    help_text='User-supplied 1-5 star rating',
                    validators=[
                        django.core.validators.MinValueValidator(1),
                        django.core.validators.MaxValueValidator(5),
                    ],
                )),
                ('review_text', models.TextField(blank=True, default='')),
                ('would_recommend', models.BooleanField(blank=True, null=True)),
                ('visit_date', models.DateField(blank=True, null=True)),
                ('aircraft_type', models.CharField(blank=True, default='', max_length=100)),
                ('user_id', models.CharField(blank=True, max_length=255, null=True)),
                ('user_email', models.CharField(blank=True, max_length=254, null=True)),
                ('status', models.CharField(
                    choices=[('draft', 'Draft'), ('published', 'Published')],
                    default='published',
                    max_length=20,
                )),
                ('is_quick_log', models.BooleanField(default=False)),
                ('flagged', models.BooleanField(default=False)),
                ('spam_score', models.PositiveSmallIntegerField(default=0)),
                ('spam_reasons', models.JSONField(blank=True, default=list)),
                ('calculated_rating', models.FloatField(blank=True, help_text='Weighted detail score (1.0 - 5.0)', null=True)),
                ('bed_quality', sub_rating()),
                ('room_cleanliness', sub_rating()),
                ('noise_level', models.CharField(blank=True, default='', help_text='very-quiet, quiet, moderate, noisy, very-noisy', max_length=30)),
                ('wifi_quality', sub_rating()),
                ('shower_quality', sub_rating()),
                ('checkin_experience', sub_rating()),
                ('staff_responsiveness', models.CharField(blank=True, default='', help_text='excellent, good, fair, poor, very-poor, n/a', max_length=30)),
                ('crew_recognition', models.BooleanField(blank=True, null=True)),
                ('shuttle_service', models.BooleanField(blank=True, null=True)),
                ('fitness_center', models.BooleanField(blank=True, null=True)),
                ('breakfast', models.CharField(blank=True, default='', help_text='not-available or a description of what is served', max_length=30)),
                ('laundry_available', models.CharField(blank=True, default='', help_text='none, self-service, valet', max_length=30)),
                ('blackout_curtains', models.BooleanField(blank=True, null=True)),
                ('service_speed', sub_rating()),
                ('staff_attitude', sub_rating()),
                ('crew_lounge_quality', sub_rating()),
                ('fbo_amenities_quality', sub_rating()),
                ('communication', sub_rating()),
                ('bathroom_quality', sub_rating()),
                ('fbo_wifi_quality', sub_rating()),
                ('crew_car_availability', models.CharField(blank=True, default='', help_text='always, usually, sometimes, rarely, never', max_length=30)),
                ('catering_available', models.BooleanField(blank=True, null=True)),
                ('hangar_availability', models.CharField(blank=True, default='', help_text='yes-easy, yes-limited, no', max_length=30)),
                ('twentyfour_seven_service', models.BooleanField(blank=True, null=True)),
                ('food_quality', sub_rating()),
                ('restaurant_service_speed', sub_rating()),
                ('takeout_quality', sub_rating()),
                ('atmosphere', models.CharField(blank=True, default='', help_text='excellent, good, average, poor, very-poor', max_length=30)),
                ('restaurant_wifi_available', models.BooleanField(blank=True, null=True)),
                ('healthy_options', models.BooleanField(blank=True, null=True)),
                ('vegetarian_options', models.BooleanField(blank=True, null=True)),
                ('vegan_options', models.BooleanField(blank=True, null=True)),
                ('rental_process_speed', sub_rating()),
                ('vehicle_condition', sub_rating()),
                ('staff_helpfulness', sub_rating()),
                ('pricing_transparency', models.CharField(blank=True, default='', help_text='excellent, good, average, poor, very-poor', max_length=30)),
                ('after_hours_access', models.BooleanField(blank=True, null=True)),
                ('fbo_delivery', models.BooleanField(blank=True, null=True)),
                ('crew_rates_available', models.BooleanField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('business', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='reviews', to='locations.business')),
            ],
            options={
                'db_table': 'reviews_review',
                'ordering': ['-created_at'],
            },
        ),
        migrations.AddIndex(
            model_name='review',
            index=models.Index(fields=['category', 'created_at'], name='review_category_created_idx'),
        ),
        migrations.AddIndex(
            model_name='review',
            index=models.Index(fields=['business_slug', 'category'], name='review_slug_category_idx'),
        ),
        migrations.AddIndex(
            model_name='review',
            index=models.Index(fields=['flagged'], name='review_flagged_idx'),
        ),
    ]
