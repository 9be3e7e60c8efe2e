# Generated migration for initial locations app setup

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Airport',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('iata_code', models.CharField(blank=True, db_index=True, default='', max_length=3)),
                ('icao_code', models.CharField(blank=True, db_index=True, default='', max_length=4)),
                ('name', models.CharField(max_length=255)),
                ('city', models.CharField(blank=True, default='', max_length=255)),
                ('latitude', models.FloatField()),
                ('longitude', models.FloatField()),
            ],
            options={
                'db_table': 'locations_airport',
                'ordering': ['iata_code'],
            },
        ),
        migrations.CreateModel(
            name='Business',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('business_slug', models.SlugField(max_length=255)),
                ('category', models.CharField(
                    choices=[
                        ('hotels', 'Hotel'),
                        ('fbos', 'FBO'),
                        ('restaurants', 'Restaurant'),
                        ('rentals', 'Car Rental'),
                    ],
                    max_length=20,
                )),
                ('location_name', models.CharField(help_text='Name of the business as submitted', max_length=255)),
                ('address', models.CharField(blank=True, default='', max_length=512)),
                ('phone', models.CharField(blank=True, default='', max_length=50)),
                ('latitude', models.FloatField(blank=True, null=True)),
                ('longitude', models.FloatField(blank=True, null=True)),
                ('airport_code', models.CharField(blank=True, default='', max_length=4)),
                ('approved', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'locations_business',
            },
        ),
        migrations.CreateModel(
            name='SearchLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('user_id', models.CharField(blank=True, max_length=255, null=True)),
                ('airport_code', models.CharField(blank=True, max_length=10, null=True)),
                ('location_searched', models.CharField(blank=True, max_length=255, null=True)),
                ('category', models.CharField(blank=True, max_length=20, null=True)),
                ('searched_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'locations_search_log',
                'ordering': ['-searched_at'],
            },
        ),
        migrations.AddConstraint(
            model_name='business',
            constraint=models.UniqueConstraint(fields=('business_slug', 'category'), name='unique_business_slug_category'),
        ),
        migrations.AddIndex(
            model_name='business',
            index=models.Index(fields=['category'], name='business_category_idx'),
        ),
        migrations.AddIndex(
            model_name='business',
            index=models.Index(fields=['airport_code'], name='business_airport_idx'),
        ),
    ]
