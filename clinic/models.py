"""
Database models for the physician dashboard.

Patients and their clinical records (appointments, referrals,
vaccinations, care team and the chart: medications, vitals, labs,
notes, imaging, consents, nutrition), billing, hubs (specialty
departments), users and the audit trail. Field names follow Django
conventions; the API layer exposes them in camelCase.
"""
from __future__ import annotations

from decimal import Decimal

from django.contrib.auth.models import AbstractUser
from django.db import models


class Hub(models.Model):
    """A clinical specialty department (cardiology, oncology, ...).

    The primary key is a short slug so that hubs can be referenced from
    the frontend routes (``/hubs/cardiology``).
    """
    id = models.CharField(max_length=50, primary_key=True)
    name = models.CharField(max_length=255)
    description = models.TextField()
    color = models.CharField(max_length=50)
    specialties = models.JSONField(default=list, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']

    def __str__(self) -> str:
        return f"{self.name} ({self.id})"


class User(AbstractUser):
    """Staff account with a single clinical or administrative role."""
    ROLE_ADMIN = 'admin'
    ROLE_PHYSICIAN = 'physician'
    ROLE_NURSE = 'nurse'
    ROLE_NURSE_PRACTITIONER = 'nurse_practitioner'
    ROLE_PHYSICIAN_ASSISTANT = 'physician_assistant'
    ROLE_MEDICAL_ASSISTANT = 'medical_assistant'
    ROLE_RECEPTIONIST = 'receptionist'
    ROLE_BILLING = 'billing'
    ROLE_READ_ONLY = 'read_only'

    ROLE_CHOICES = [
        (ROLE_ADMIN, 'Administrator'),
        (ROLE_PHYSICIAN, 'Physician'),
        (ROLE_NURSE, 'Nurse'),
        (ROLE_NURSE_PRACTITIONER, 'Nurse Practitioner'),
        (ROLE_PHYSICIAN_ASSISTANT, 'Physician Assistant'),
        (ROLE_MEDICAL_ASSISTANT, 'Medical Assistant'),
        (ROLE_RECEPTIONIST, 'Receptionist'),
        (ROLE_BILLING, 'Billing'),
        (ROLE_READ_ONLY, 'Read Only'),
    ]
    email = models.EmailField(unique=True)
    role = models.CharField(max_length=32, choices=ROLE_CHOICES, default=ROLE_READ_ONLY, db_index=True)
    phone = models.CharField(max_length=32, blank=True)
    specialty = models.CharField(max_length=100, blank=True)
    department = models.CharField(max_length=100, blank=True)
    hub = models.ForeignKey(Hub, null=True, blank=True, on_delete=models.SET_NULL, related_name='users')
    preferences = models.JSONField(null=True, blank=True)

    def __str__(self) -> str:
        return f"{self.email} ({self.role})"

    @property
    def display_name(self) -> str:
        return self.get_full_name() or self.username


class HubFunction(models.Model):
    hub = models.ForeignKey(Hub, on_delete=models.CASCADE, related_name='functions')
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=100, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.hub_id}: {self.name}"


class HubResource(models.Model):
    hub = models.ForeignKey(Hub, on_delete=models.CASCADE, related_name='resources')
    title = models.CharField(max_length=255)
    type = models.CharField(max_length=50, blank=True)
    url = models.CharField(max_length=500, blank=True)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.hub_id}: {self.title}"


class HubNote(models.Model):
    """Free-text note; one per author and hub."""
    hub = models.ForeignKey(Hub, on_delete=models.CASCADE, related_name='notes')
    author = models.ForeignKey(User, on_delete=models.CASCADE, related_name='hub_notes')
    content = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = [('hub', 'author')]

    def __str__(self) -> str:
        return f"Note on {self.hub_id} by {self.author_id}"


class Patient(models.Model):
    """A patient record. ``is_active=False`` marks an archived patient."""
    GENDER_CHOICES = [
        ('male', 'Male'),
        ('female', 'Female'),
        ('other', 'Other'),
    ]
    name = models.CharField(max_length=255, db_index=True)
    date_of_birth = models.DateField()
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=32, blank=True)
    address = models.TextField(blank=True)
    condition = models.CharField(max_length=255, blank=True)
    risk_score = models.PositiveSmallIntegerField(default=0, db_index=True)
    blood_pressure = models.CharField(max_length=20, blank=True)
    allergies = models.JSONField(default=list, blank=True)
    emergency_contact = models.JSONField(default=dict, blank=True)
    insurance = models.JSONField(default=dict, blank=True)
    hub = models.ForeignKey(Hub, null=True, blank=True, on_delete=models.SET_NULL, related_name='patients')
    is_active = models.BooleanField(default=True, db_index=True)
    created_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='patients_created'
    )
    updated_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='patients_updated'
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return self.name


class Appointment(models.Model):
    STATUS_CHOICES = [
        ('scheduled', 'Scheduled'),
        ('confirmed', 'Confirmed'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
        ('no_show', 'No show'),
    ]
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='appointments')
    provider = models.ForeignKey(User, on_delete=models.PROTECT, related_name='appointments')
    date = models.DateField(db_index=True)
    time = models.CharField(max_length=10)
    type = models.CharField(max_length=100)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='scheduled', db_index=True)
    duration = models.PositiveIntegerField(null=True, blank=True, help_text="Minutes")
    location = models.CharField(max_length=255, blank=True)
    reason = models.TextField(blank=True)
    notes = models.TextField(blank=True)
    consultation_type = models.CharField(max_length=50, blank=True)
    specialty = models.CharField(max_length=100, blank=True)
    referral_required = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.patient_id} {self.date} {self.time}"


class Referral(models.Model):
    PRIORITY_CHOICES = [
        ('routine', 'Routine'),
        ('urgent', 'Urgent'),
        ('stat', 'STAT'),
        ('emergency', 'Emergency'),
    ]
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('sent', 'Sent'),
        ('accepted', 'Accepted'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
        ('declined', 'Declined'),
    ]
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='referrals')
    date = models.DateField(db_index=True)
    specialty = models.CharField(max_length=100)
    reason = models.TextField()
    diagnosis = models.TextField(blank=True)
    priority = models.CharField(max_length=20, choices=PRIORITY_CHOICES)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending', db_index=True)
    referring_physician = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='referrals_made'
    )
    referred_to_provider = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='referrals_received'
    )
    referred_to_provider_name = models.CharField(max_length=255, blank=True)
    referred_to_facility = models.CharField(max_length=255, blank=True)
    referred_to_address = models.TextField(blank=True)
    referred_to_phone = models.CharField(max_length=32, blank=True)
    appointment_date = models.DateField(null=True, blank=True)
    appointment_time = models.CharField(max_length=10, blank=True)
    notes = models.TextField(blank=True)
    attachments = models.JSONField(default=list, blank=True)
    insurance_pre_auth = models.BooleanField(default=False)
    pre_auth_number = models.CharField(max_length=100, blank=True)
    follow_up_required = models.BooleanField(default=False)
    follow_up_date = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.specialty} referral for {self.patient_id}"


class Vaccination(models.Model):
    ROUTE_CHOICES = [
        ('intramuscular', 'Intramuscular'),
        ('subcutaneous', 'Subcutaneous'),
        ('oral', 'Oral'),
        ('intranasal', 'Intranasal'),
        ('intradermal', 'Intradermal'),
    ]
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='vaccinations')
    vaccine_name = models.CharField(max_length=200)
    vaccine_code = models.CharField(max_length=50, blank=True)
    date = models.DateField(db_index=True)
    administered_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='vaccinations_administered'
    )
    location = models.CharField(max_length=255, blank=True)
    route = models.CharField(max_length=20, choices=ROUTE_CHOICES, blank=True)
    site = models.CharField(max_length=100, blank=True)
    lot_number = models.CharField(max_length=100, blank=True)
    manufacturer = models.CharField(max_length=200, blank=True)
    expiration_date = models.DateField(null=True, blank=True)
    dose_number = models.PositiveIntegerField(null=True, blank=True)
    total_doses = models.PositiveIntegerField(null=True, blank=True)
    next_dose_date = models.DateField(null=True, blank=True, db_index=True)
    adverse_reactions = models.JSONField(default=list, blank=True)
    notes = models.TextField(blank=True)
    verified = models.BooleanField(default=False)
    verified_by = models.CharField(max_length=255, blank=True)
    verified_by_user = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='vaccinations_verified'
    )
    verified_date = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.vaccine_name} for {self.patient_id}"


class CareTeamAssignment(models.Model):
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='care_team')
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='care_assignments')
    role = models.CharField(max_length=100)
    specialty = models.CharField(max_length=100, blank=True)
    notes = models.TextField(blank=True)
    assigned_date = models.DateTimeField()
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = [('patient', 'user')]

    def __str__(self) -> str:
        return f"{self.user_id} on care team of {self.patient_id} as {self.role}"


class Medication(models.Model):
    STATUS_ACTIVE = 'active'
    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        ('discontinued', 'Discontinued'),
        ('historical', 'Historical'),
        ('archived', 'Archived'),
    ]
    PRESCRIPTION_TYPE_CHOICES = [
        ('repeat', 'Repeat'),
        ('acute', 'Acute'),
    ]
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='medications')
    name = models.CharField(max_length=200)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE, db_index=True)
    started_date = models.DateField(db_index=True)
    instructions = models.TextField(blank=True)
    prescription_type = models.CharField(max_length=10, choices=PRESCRIPTION_TYPE_CHOICES, blank=True)
    refills_authorized = models.PositiveIntegerField(null=True, blank=True)
    refills_remaining = models.PositiveIntegerField(null=True, blank=True)
    duration_days = models.PositiveIntegerField(null=True, blank=True)
    expiry_date = models.DateField(null=True, blank=True)
    prescribed_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='medications_prescribed'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.name} for {self.patient_id}"


class VitalSign(models.Model):
    """One set of bedside observations."""
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='vitals')
    date = models.DateField(db_index=True)
    time = models.CharField(max_length=5, blank=True)
    systolic = models.PositiveSmallIntegerField(null=True, blank=True)
    diastolic = models.PositiveSmallIntegerField(null=True, blank=True)
    heart_rate = models.PositiveSmallIntegerField(null=True, blank=True)
    temperature = models.FloatField(null=True, blank=True, help_text="Celsius")
    oxygen = models.PositiveSmallIntegerField(null=True, blank=True, help_text="SpO2 %")
    notes = models.TextField(blank=True)
    recorded_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='vitals_recorded'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"Vitals {self.date} for {self.patient_id}"


class LabResult(models.Model):
    STATUS_CHOICES = [
        ('ordered', 'Ordered'),
        ('in_progress', 'In progress'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
        ('pending_review', 'Pending review'),
    ]
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='lab_results')
    test_name = models.CharField(max_length=200)
    test_code = models.CharField(max_length=50, blank=True)
    category = models.CharField(max_length=100, blank=True)
    ordered_date = models.DateField(db_index=True)
    collected_date = models.DateField(null=True, blank=True)
    result_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='ordered', db_index=True)
    results = models.JSONField(default=dict, blank=True)
    reference_ranges = models.JSONField(default=dict, blank=True)
    interpretation = models.TextField(blank=True)
    notes = models.TextField(blank=True)
    lab_name = models.CharField(max_length=200, blank=True)
    lab_location = models.CharField(max_length=255, blank=True)
    ordering_physician = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='lab_results_ordered'
    )
    reviewed_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='lab_results_reviewed'
    )
    reviewed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.test_name} for {self.patient_id}"


class ClinicalNote(models.Model):
    TYPE_CHOICES = [
        ('visit', 'Visit'),
        ('consultation', 'Consultation'),
        ('procedure', 'Procedure'),
        ('follow-up', 'Follow-up'),
        ('general_consultation', 'General consultation'),
        ('specialty_consultation', 'Specialty consultation'),
    ]
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='clinical_notes')
    title = models.CharField(max_length=200)
    content = models.TextField()
    date = models.DateField(db_index=True)
    type = models.CharField(max_length=30, choices=TYPE_CHOICES)
    author = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='clinical_notes'
    )
    consultation_type = models.CharField(max_length=50, blank=True)
    specialty = models.CharField(max_length=100, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return self.title


class SurgicalNote(models.Model):
    PROCEDURE_TYPE_CHOICES = [
        ('elective', 'Elective'),
        ('emergency', 'Emergency'),
        ('urgent', 'Urgent'),
        ('scheduled', 'Scheduled'),
    ]
    STATUS_CHOICES = [
        ('scheduled', 'Scheduled'),
        ('in_progress', 'In progress'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
        ('postponed', 'Postponed'),
    ]
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='surgical_notes')
    date = models.DateField(db_index=True)
    procedure_name = models.CharField(max_length=200)
    procedure_type = models.CharField(max_length=20, choices=PROCEDURE_TYPE_CHOICES)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='scheduled', db_index=True)
    surgeon = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='surgeries'
    )
    assistant_surgeons = models.ManyToManyField(User, blank=True, related_name='assisted_surgeries')
    anesthesiologist = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='anesthesia_cases'
    )
    anesthesia_type = models.CharField(max_length=100, blank=True)
    indication = models.TextField()
    preoperative_diagnosis = models.TextField()
    postoperative_diagnosis = models.TextField(blank=True)
    procedure_description = models.TextField()
    findings = models.TextField(blank=True)
    complications = models.TextField(blank=True)
    estimated_blood_loss = models.CharField(max_length=100, blank=True)
    specimens = models.JSONField(default=list, blank=True)
    drains = models.TextField(blank=True)
    post_op_instructions = models.TextField(blank=True)
    recovery_notes = models.TextField(blank=True)
    follow_up_date = models.DateField(null=True, blank=True)
    operating_room = models.CharField(max_length=50, blank=True)
    duration = models.PositiveIntegerField(null=True, blank=True, help_text="Minutes")
    start_time = models.CharField(max_length=5, blank=True)
    end_time = models.CharField(max_length=5, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.procedure_name} for {self.patient_id}"


class ImagingStudy(models.Model):
    MODALITY_CHOICES = [
        ('CT', 'CT'),
        ('MRI', 'MRI'),
        ('X-Ray', 'X-Ray'),
        ('Ultrasound', 'Ultrasound'),
        ('PET', 'PET'),
    ]
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    ]
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='imaging_studies')
    type = models.CharField(max_length=100)
    modality = models.CharField(max_length=20, choices=MODALITY_CHOICES)
    body_part = models.CharField(max_length=100)
    date = models.DateField(db_index=True)
    findings = models.TextField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending', db_index=True)
    report_url = models.URLField(max_length=500, blank=True)
    ordering_physician = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='imaging_ordered'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = 'imaging studies'

    def __str__(self) -> str:
        return f"{self.modality} {self.body_part} for {self.patient_id}"


class Consent(models.Model):
    STATUS_PENDING = 'pending'
    STATUS_SIGNED = 'signed'
    TYPE_CHOICES = [
        ('procedure', 'Procedure'),
        ('surgery', 'Surgery'),
        ('anesthesia', 'Anesthesia'),
        ('blood_transfusion', 'Blood transfusion'),
        ('imaging_contrast', 'Imaging contrast'),
        ('research', 'Research'),
        ('photography', 'Photography'),
        ('other', 'Other'),
    ]
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_SIGNED, 'Signed'),
        ('declined', 'Declined'),
        ('expired', 'Expired'),
        ('revoked', 'Revoked'),
    ]
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='consents')
    date = models.DateField(db_index=True)
    type = models.CharField(max_length=30, choices=TYPE_CHOICES)
    title = models.CharField(max_length=200)
    description = models.TextField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    procedure_name = models.CharField(max_length=200, blank=True)
    risks = models.JSONField(default=list, blank=True)
    benefits = models.JSONField(default=list, blank=True)
    alternatives = models.JSONField(default=list, blank=True)
    signed_by = models.CharField(max_length=100, blank=True)
    signed_by_user = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='consents_signed'
    )
    witness_name = models.CharField(max_length=100, blank=True)
    witness = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='consents_witnessed'
    )
    physician_name = models.CharField(max_length=100, blank=True)
    physician = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='consents_obtained'
    )
    signed_date = models.DateField(null=True, blank=True)
    signed_time = models.CharField(max_length=5, blank=True)
    expiration_date = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True)
    digital_signature = models.TextField(blank=True)
    printed_signature = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.title} ({self.status})"


class NutritionEntry(models.Model):
    TYPE_CHOICES = [
        ('assessment', 'Assessment'),
        ('plan', 'Plan'),
        ('consultation', 'Consultation'),
        ('monitoring', 'Monitoring'),
    ]
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='nutrition_entries')
    date = models.DateField(db_index=True)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    dietitian = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='nutrition_entries'
    )
    dietary_restrictions = models.JSONField(default=list, blank=True)
    allergies = models.JSONField(default=list, blank=True)
    current_diet = models.TextField(blank=True)
    recommended_diet = models.TextField(blank=True)
    nutritional_goals = models.JSONField(default=list, blank=True)
    caloric_needs = models.FloatField(null=True, blank=True, help_text="kcal/day")
    protein_needs = models.FloatField(null=True, blank=True, help_text="g/day")
    fluid_needs = models.FloatField(null=True, blank=True, help_text="mL/day")
    supplements = models.JSONField(default=list, blank=True)
    meal_plan = models.JSONField(default=list, blank=True)
    weight = models.FloatField(null=True, blank=True, help_text="kg")
    height = models.FloatField(null=True, blank=True, help_text="cm")
    bmi = models.FloatField(null=True, blank=True)
    notes = models.TextField(blank=True)
    follow_up_date = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = 'nutrition entries'

    def __str__(self) -> str:
        return f"Nutrition {self.type} {self.date} for {self.patient_id}"


class BillingSettings(models.Model):
    """Singleton row holding invoice numbering and defaults."""
    default_currency = models.CharField(max_length=3, default='USD')
    invoice_prefix = models.CharField(max_length=20, default='INV')
    next_invoice_number = models.PositiveIntegerField(default=1)
    payment_terms_days = models.PositiveIntegerField(default=30)
    tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0'))
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"Billing settings ({self.invoice_prefix}, {self.default_currency})"


class Invoice(models.Model):
    STATUS_DRAFT = 'draft'
    STATUS_PENDING = 'pending'
    STATUS_SENT = 'sent'
    STATUS_PAID = 'paid'
    STATUS_OVERDUE = 'overdue'
    STATUS_CANCELLED = 'cancelled'
    STATUS_REFUNDED = 'refunded'
    STATUS_CHOICES = [
        (STATUS_DRAFT, 'Draft'),
        (STATUS_PENDING, 'Pending'),
        (STATUS_SENT, 'Sent'),
        (STATUS_PAID, 'Paid'),
        (STATUS_OVERDUE, 'Overdue'),
        (STATUS_CANCELLED, 'Cancelled'),
        (STATUS_REFUNDED, 'Refunded'),
    ]
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name='invoices')
    invoice_number = models.CharField(max_length=50, unique=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_DRAFT, db_index=True)
    currency = models.CharField(max_length=3, default='USD')
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    paid_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    balance_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    issue_date = models.DateField()
    due_date = models.DateField(db_index=True)
    paid_date = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True)
    billing_address = models.JSONField(default=dict, blank=True)
    created_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='invoices_created'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return self.invoice_number


class InvoiceItem(models.Model):
    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name='items')
    description = models.CharField(max_length=500)
    quantity = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('1'))
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0'))
    discount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    service_code = models.CharField(max_length=50, blank=True)
    category = models.CharField(max_length=100, blank=True)

    def __str__(self) -> str:
        return f"{self.description} x{self.quantity}"


class Payment(models.Model):
    METHOD_CHOICES = [
        ('cash', 'Cash'),
        ('card', 'Card'),
        ('bank_transfer', 'Bank transfer'),
        ('mobile_money', 'Mobile money'),
        ('insurance', 'Insurance'),
        ('check', 'Check'),
        ('other', 'Other'),
    ]
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('completed', 'Completed'),
        ('failed', 'Failed'),
        ('refunded', 'Refunded'),
    ]
    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name='payments')
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3)
    payment_method = models.CharField(max_length=20, choices=METHOD_CHOICES)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='completed')
    transaction_id = models.CharField(max_length=100, blank=True)
    payment_date = models.DateTimeField()
    notes = models.TextField(blank=True)
    processed_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='payments_processed'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.amount} {self.currency} on {self.invoice_id}"


class Document(models.Model):
    """An uploaded file attached to a patient record."""
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='documents')
    file = models.FileField(max_length=500)
    original_name = models.CharField(max_length=255)
    content_type = models.CharField(max_length=100)
    size = models.PositiveIntegerField(default=0)
    category = models.CharField(max_length=50, blank=True)
    uploaded_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='documents_uploaded'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return self.original_name


class AuditLog(models.Model):
    ACTION_CHOICES = [
        ('LOGIN', 'Login'),
        ('LOGOUT', 'Logout'),
        ('READ', 'Read'),
        ('CREATE', 'Create'),
        ('UPDATE', 'Update'),
        ('DELETE', 'Delete'),
        ('EXPORT', 'Export'),
    ]
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='audit_logs')
    user_email = models.CharField(max_length=255, blank=True)
    user_role = models.CharField(max_length=32, blank=True)
    action = models.CharField(max_length=10, choices=ACTION_CHOICES)
    resource_type = models.CharField(max_length=64)
    resource_id = models.CharField(max_length=64, blank=True)
    patient_id = models.IntegerField(null=True, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True)
    request_method = models.CharField(max_length=10, blank=True)
    request_path = models.CharField(max_length=500, blank=True)
    status_code = models.PositiveSmallIntegerField(null=True, blank=True)
    changes = models.JSONField(null=True, blank=True)
    metadata = models.JSONField(null=True, blank=True)
    success = models.BooleanField(default=True)
    error_message = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['action', 'created_at'], name='audit_action_idx'),
            models.Index(fields=['resource_type', 'resource_id', 'created_at'], name='audit_resource_idx'),
            models.Index(fields=['patient_id', 'created_at'], name='audit_patient_idx'),
            models.Index(fields=['user', 'created_at'], name='audit_user_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.action} {self.resource_type}:{self.resource_id}"
