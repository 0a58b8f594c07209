from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('payments', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='milestoneescrowrecord',
            name='escrow_reference',
            field=models.CharField(blank=True, max_length=128, null=True),
        ),
    ]
