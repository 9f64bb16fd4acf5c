from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Attempt',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('attempt_id', models.CharField(blank=True, max_length=64)),
                ('roll_number', models.CharField(db_index=True, max_length=64)),
                ('status', models.CharField(blank=True, max_length=32)),
                ('exam_started_at', models.DateTimeField(blank=True, null=True)),
                ('exam_submitted_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('duration_seconds', models.PositiveIntegerField(blank=True, null=True)),
                ('time_taken_seconds', models.PositiveIntegerField(blank=True, null=True)),
                ('total_questions', models.PositiveIntegerField(blank=True, null=True)),
                ('answered', models.PositiveIntegerField(blank=True, null=True)),
                ('unanswered', models.PositiveIntegerField(blank=True, null=True)),
                ('correct', models.PositiveIntegerField(blank=True, null=True)),
                ('wrong', models.PositiveIntegerField(blank=True, null=True)),
                ('score', models.PositiveIntegerField(blank=True, null=True)),
            ],
            options={
                'indexes': [models.Index(fields=['roll_number', 'exam_submitted_at'], name='attempt_roll_submitted_idx')],
            },
        ),
    ]
