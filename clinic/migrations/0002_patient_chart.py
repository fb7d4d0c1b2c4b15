import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('clinic', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='user',
            name='preferences',
            field=models.JSONField(blank=True, null=True),
        ),
        migrations.CreateModel(
            name='Medication',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('status', models.CharField(choices=[('active', 'Active'), ('discontinued', 'Discontinued'), ('historical', 'Historical'), ('archived', 'Archived')], db_index=True, default='active', max_length=20)),
                ('started_date', models.DateField(db_index=True)),
                ('instructions', models.TextField(blank=True)),
                ('prescription_type', models.CharField(blank=True, choices=[('repeat', 'Repeat'), ('acute', 'Acute')], max_length=10)),
                ('refills_authorized', models.PositiveIntegerField(blank=True, null=True)),
                ('refills_remaining', models.PositiveIntegerField(blank=True, null=True)),
                ('duration_days', models.PositiveIntegerField(blank=True, null=True)),
                ('expiry_date', models.DateField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='medications', to='clinic.patient')),
                ('prescribed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='medications_prescribed', to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name='VitalSign',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField(db_index=True)),
                ('time', models.CharField(blank=True, max_length=5)),
                ('systolic', models.PositiveSmallIntegerField(blank=True, null=True)),
                ('diastolic', models.PositiveSmallIntegerField(blank=True, null=True)),
                ('heart_rate', models.PositiveSmallIntegerField(blank=True, null=True)),
                ('temperature', models.FloatField(blank=True, help_text='Celsius', null=True)),
                ('oxygen', models.PositiveSmallIntegerField(blank=True, help_text='SpO2 %', null=True)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='vitals', to='clinic.patient')),
                ('recorded_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='vitals_recorded', to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name='LabResult',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('test_name', models.CharField(max_length=200)),
                ('test_code', models.CharField(blank=True, max_length=50)),
                ('category', models.CharField(blank=True, max_length=100)),
                ('ordered_date', models.DateField(db_index=True)),
                ('collected_date', models.DateField(blank=True, null=True)),
                ('result_date', models.DateField(blank=True, null=True)),
                ('status', models.CharField(choices=[('ordered', 'Ordered'), ('in_progress', 'In progress'), ('completed', 'Completed'), ('cancelled', 'Cancelled'), ('pending_review', 'Pending review')], db_index=True, default='ordered', max_length=20)),
                ('results', models.JSONField(blank=True, default=dict)),
                ('reference_ranges', models.JSONField(blank=True, default=dict)),
                ('interpretation', models.TextField(blank=True)),
                ('notes', models.TextField(blank=True)),
                ('lab_name', models.CharField(blank=True, max_length=200)),
                ('lab_location', models.CharField(blank=True, max_length=255)),
                ('reviewed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('ordering_physician', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='lab_results_ordered', to=settings.AUTH_USER_MODEL)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lab_results', to='clinic.patient')),
                ('reviewed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='lab_results_reviewed', to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name='ClinicalNote',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=200)),
                ('content', models.TextField()),
                ('date', models.DateField(db_index=True)),
                ('type', models.CharField(choices=[('visit', 'Visit'), ('consultation', 'Consultation'), ('procedure', 'Procedure'), ('follow-up', 'Follow-up'), ('general_consultation', 'General consultation'), ('specialty_consultation', 'Specialty consultation')], max_length=30)),
                ('consultation_type', models.CharField(blank=True, max_length=50)),
                ('specialty', models.CharField(blank=True, max_length=100)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('author', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='clinical_notes', to=settings.AUTH_USER_MODEL)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='clinical_notes', to='clinic.patient')),
            ],
        ),
        migrations.CreateModel(
            name='SurgicalNote',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField(db_index=True)),
                ('procedure_name', models.CharField(max_length=200)),
                ('procedure_type', models.CharField(choices=[('elective', 'Elective'), ('emergency', 'Emergency'), ('urgent', 'Urgent'), ('scheduled', 'Scheduled')], max_length=20)),
                ('status', models.CharField(choices=[('scheduled', 'Scheduled'), ('in_progress', 'In progress'), ('completed', 'Completed'), ('cancelled', 'Cancelled'), ('postponed', 'Postponed')], db_index=True, default='scheduled', max_length=20)),
                ('anesthesia_type', models.CharField(blank=True, max_length=100)),
                ('indication', models.TextField()),
                ('preoperative_diagnosis', models.TextField()),
                ('postoperative_diagnosis', models.TextField(blank=True)),
                ('procedure_description', models.TextField()),
                ('findings', models.TextField(blank=True)),
                ('complications', models.TextField(blank=True)),
                ('estimated_blood_loss', models.CharField(blank=True, max_length=100)),
                ('specimens', models.JSONField(blank=True, default=list)),
                ('drains', models.TextField(blank=True)),
                ('post_op_instructions', models.TextField(blank=True)),
                ('recovery_notes', models.TextField(blank=True)),
                ('follow_up_date', models.DateField(blank=True, null=True)),
                ('operating_room', models.CharField(blank=True, max_length=50)),
                ('duration', models.PositiveIntegerField(blank=True, help_text='Minutes', null=True)),
                ('start_time', models.CharField(blank=True, max_length=5)),
                ('end_time', models.CharField(blank=True, max_length=5)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('anesthesiologist', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='anesthesia_cases', to=settings.AUTH_USER_MODEL)),
                ('assistant_surgeons', models.ManyToManyField(blank=True, related_name='assisted_surgeries', to=settings.AUTH_USER_MODEL)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='surgical_notes', to='clinic.patient')),
                ('surgeon', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='surgeries', to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name='ImagingStudy',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('type', models.CharField(max_length=100)),
                ('modality', models.CharField(choices=[('CT', 'CT'), ('MRI', 'MRI'), ('X-Ray', 'X-Ray'), ('Ultrasound', 'Ultrasound'), ('PET', 'PET')], max_length=20)),
                ('body_part', models.CharField(max_length=100)),
                ('date', models.DateField(db_index=True)),
                ('findings', models.TextField()),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('completed', 'Completed'), ('cancelled', 'Cancelled')], db_index=True, default='pending', max_length=20)),
                ('report_url', models.URLField(blank=True, max_length=500)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('ordering_physician', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='imaging_ordered', to=settings.AUTH_USER_MODEL)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='imaging_studies', to='clinic.patient')),
            ],
            options={
                'verbose_name_plural': 'imaging studies',
            },
        ),
        migrations.CreateModel(
            name='Consent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField(db_index=True)),
                ('type', models.CharField(choices=[('procedure', 'Procedure'), ('surgery', 'Surgery'), ('anesthesia', 'Anesthesia'), ('blood_transfusion', 'Blood transfusion'), ('imaging_contrast', 'Imaging contrast'), ('research', 'Research'), ('photography', 'Photography'), ('other', 'Other')], max_length=30)),
                ('title', models.CharField(max_length=200)),
                ('description', models.TextField()),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('signed', 'Signed'), ('declined', 'Declined'), ('expired', 'Expired'), ('revoked', 'Revoked')], db_index=True, default='pending', max_length=20)),
                ('procedure_name', models.CharField(blank=True, max_length=200)),
                ('risks', models.JSONField(blank=True, default=list)),
                ('benefits', models.JSONField(blank=True, default=list)),
                ('alternatives', models.JSONField(blank=True, default=list)),
                ('signed_by', models.CharField(blank=True, max_length=100)),
                ('witness_name', models.CharField(blank=True, max_length=100)),
                ('physician_name', models.CharField(blank=True, max_length=100)),
                ('signed_date', models.DateField(blank=True, null=True)),
                ('signed_time', models.CharField(blank=True, max_length=5)),
                ('expiration_date', models.DateField(blank=True, null=True)),
                ('notes', models.TextField(blank=True)),
                ('digital_signature', models.TextField(blank=True)),
                ('printed_signature', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='consents', to='clinic.patient')),
                ('physician', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='consents_obtained', to=settings.AUTH_USER_MODEL)),
                ('signed_by_user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='consents_signed', to=settings.AUTH_USER_MODEL)),
                ('witness', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='consents_witnessed', to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name='NutritionEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField(db_index=True)),
                ('type', models.CharField(choices=[('assessment', 'Assessment'), ('plan', 'Plan'), ('consultation', 'Consultation'), ('monitoring', 'Monitoring')], max_length=20)),
                ('dietary_restrictions', models.JSONField(blank=True, default=list)),
                ('allergies', models.JSONField(blank=True, default=list)),
                ('current_diet', models.TextField(blank=True)),
                ('recommended_diet', models.TextField(blank=True)),
                ('nutritional_goals', models.JSONField(blank=True, default=list)),
                ('caloric_needs', models.FloatField(blank=True, help_text='kcal/day', null=True)),
                ('protein_needs', models.FloatField(blank=True, help_text='g/day', null=True)),
                ('fluid_needs', models.FloatField(blank=True, help_text='mL/day', null=True)),
                ('supplements', models.JSONField(blank=True, default=list)),
                ('meal_plan', models.JSONField(blank=True, default=list)),
                ('weight', models.FloatField(blank=True, help_text='kg', null=True)),
                ('height', models.FloatField(blank=True, help_text='cm', null=True)),
                ('bmi', models.FloatField(blank=True, null=True)),
                ('notes', models.TextField(blank=True)),
                ('follow_up_date', models.DateField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('dietitian', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='nutrition_entries', to=settings.AUTH_USER_MODEL)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='nutrition_entries', to='clinic.patient')),
            ],
            options={
                'verbose_name_plural': 'nutrition entries',
            },
        ),
    ]
