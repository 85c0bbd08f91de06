# Generated manually - snapshot of referenced entities on messages

from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("messaging", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="message",
            name="reference",
            field=models.JSONField(
                blank=True,
                default=dict,
                help_text="Display snapshot of the referenced product, post or profile",
            ),
        ),
    ]
