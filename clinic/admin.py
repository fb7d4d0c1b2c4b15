"""
Django admin registrations for the clinic models.

Superusers can inspect and correct records at ``/admin/``. The audit
log is read-only here.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import (
    Appointment,
    AuditLog,
    BillingSettings,
    CareTeamAssignment,
    ClinicalNote,
    Consent,
    Document,
    Hub,
    HubFunction,
    HubNote,
    HubResource,
    ImagingStudy,
    Invoice,
    InvoiceItem,
    LabResult,
    Medication,
    NutritionEntry,
    Patient,
    Payment,
    Referral,
    SurgicalNote,
    User,
    Vaccination,
    VitalSign,
)


@admin.register(Hub)
class HubAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'color', 'is_active', 'created_at')
    list_filter = ('is_active',)
    search_fields = ('id', 'name')


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ('username', 'email', 'role', 'hub', 'is_active', 'is_staff')
    list_filter = ('role', 'hub', 'is_active')
    search_fields = ('username', 'email', 'first_name', 'last_name')
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Clinic', {'fields': ('role', 'phone', 'specialty', 'department', 'hub')}),
    )


@admin.register(HubFunction, HubResource)
class HubContentAdmin(admin.ModelAdmin):
    list_display = ('id', 'hub', '__str__', 'updated_at')
    list_filter = ('hub',)


@admin.register(HubNote)
class HubNoteAdmin(admin.ModelAdmin):
    list_display = ('hub', 'author', 'updated_at')
    list_filter = ('hub',)


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'date_of_birth', 'gender', 'condition', 'risk_score', 'hub', 'is_active')
    list_filter = ('is_active', 'gender', 'hub')
    search_fields = ('name', 'email', 'phone', 'condition')


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'provider', 'date', 'time', 'type', 'status')
    list_filter = ('status', 'date')
    search_fields = ('patient__name', 'provider__username')


@admin.register(Referral)
class ReferralAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'specialty', 'priority', 'status', 'date')
    list_filter = ('status', 'priority')
    search_fields = ('patient__name', 'specialty')


@admin.register(Vaccination)
class VaccinationAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'vaccine_name', 'date', 'dose_number', 'total_doses', 'verified')
    list_filter = ('verified', 'route')
    search_fields = ('patient__name', 'vaccine_name', 'vaccine_code')


@admin.register(CareTeamAssignment)
class CareTeamAssignmentAdmin(admin.ModelAdmin):
    list_display = ('patient', 'user', 'role', 'is_active', 'assigned_date')
    list_filter = ('is_active',)


@admin.register(Medication)
class MedicationAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'name', 'status', 'started_date', 'prescribed_by')
    list_filter = ('status', 'prescription_type')
    search_fields = ('patient__name', 'name')


@admin.register(VitalSign)
class VitalSignAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'date', 'time', 'systolic', 'diastolic', 'heart_rate', 'oxygen')


@admin.register(LabResult)
class LabResultAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'test_name', 'category', 'ordered_date', 'status', 'reviewed_by')
    list_filter = ('status', 'category')
    search_fields = ('patient__name', 'test_name', 'test_code')


@admin.register(ClinicalNote, SurgicalNote)
class ChartNoteAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', '__str__', 'date', 'updated_at')
    search_fields = ('patient__name',)


@admin.register(ImagingStudy)
class ImagingStudyAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'modality', 'body_part', 'date', 'status')
    list_filter = ('modality', 'status')


@admin.register(Consent)
class ConsentAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'title', 'type', 'status', 'signed_date', 'expiration_date')
    list_filter = ('status', 'type')
    search_fields = ('patient__name', 'title', 'procedure_name')


admin.site.register(NutritionEntry)


class InvoiceItemInline(admin.TabularInline):
    model = InvoiceItem
    extra = 0


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ('invoice_number', 'patient', 'status', 'currency', 'total_amount', 'balance_amount', 'due_date')
    list_filter = ('status', 'currency')
    search_fields = ('invoice_number', 'patient__name')
    inlines = [InvoiceItemInline, PaymentInline]


admin.site.register(BillingSettings)


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'original_name', 'content_type', 'size', 'created_at')


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ('created_at', 'action', 'resource_type', 'resource_id', 'user_email', 'status_code', 'success')
    list_filter = ('action', 'resource_type', 'success')
    search_fields = ('user_email', 'resource_id', 'request_path')

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
