"""
URL mappings for the dashboard API.

All API routes live under ``/api/v1`` and, like the frontend client,
omit trailing slashes. Numeric ids use the ``int`` converter; hub ids
are slugs.
"""
from django.urls import include, path

from .auth_views import (
    change_password_view,
    login_view,
    logout_view,
    me_view,
    password_reset_request_view,
    password_reset_verify_view,
    password_reset_view,
    refresh_view,
)
from .views import (
    appointments,
    audit,
    billing,
    calculators,
    care_team,
    clinical_notes,
    consents,
    dashboard,
    documents,
    health,
    hubs,
    imaging,
    lab_results,
    medications,
    nutrition,
    patients,
    preferences,
    referrals,
    surgical_notes,
    users,
    vaccinations,
    vitals,
)

P = 'api/v1/patients/<int:patient_id>'
H = 'api/v1/hubs/<str:hub_id>'

urlpatterns = [
    # Prometheus exposes /metrics
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz, name='healthz'),
    path('health', health.healthz, name='health'),

    # Auth
    path('api/v1/auth/login', login_view, name='login_view'),
    path('api/v1/auth/refresh', refresh_view, name='refresh_view'),
    path('api/v1/auth/logout', logout_view, name='logout_view'),
    path('api/v1/auth/me', me_view, name='me_view'),
    path('api/v1/auth/change-password', change_password_view, name='change_password_view'),
    path('api/v1/auth/password-reset/request', password_reset_request_view, name='password_reset_request'),
    path('api/v1/auth/password-reset/reset', password_reset_view, name='password_reset'),
    path('api/v1/auth/password-reset/verify', password_reset_verify_view, name='password_reset_verify'),

    # Settings
    path('api/v1/settings/preferences', preferences.preferences, name='preferences'),
    path('api/v1/settings/export', preferences.export_data, name='settings_export'),

    # Dashboard
    path('api/v1/dashboard', dashboard.dashboard_stats, name='dashboard'),

    # Users
    path('api/v1/users', users.users_collection, name='users'),
    path('api/v1/users/providers', users.providers, name='providers'),
    path('api/v1/users/<int:user_id>', users.user_detail, name='user_detail'),
    path('api/v1/roles', users.roles, name='roles'),

    # Patients
    path('api/v1/patients', patients.patients_collection, name='patients'),
    path('api/v1/patients/search', patients.search_patients, name='patient_search'),
    path(P, patients.patient_detail, name='patient_detail'),
    path(f'{P}/timeline', patients.patient_timeline, name='patient_timeline'),

    # Appointments
    path('api/v1/appointments', appointments.list_all_appointments, name='appointments'),
    path(f'{P}/appointments', appointments.patient_appointments, name='patient_appointments'),
    path(f'{P}/appointments/<int:appointment_id>', appointments.appointment_detail, name='appointment_detail'),

    # Referrals
    path('api/v1/referrals', referrals.list_all_referrals, name='referrals'),
    path(f'{P}/referrals', referrals.patient_referrals, name='patient_referrals'),
    path(f'{P}/referrals/<int:referral_id>', referrals.referral_detail, name='referral_detail'),

    # Vaccinations
    path('api/v1/vaccinations/due', vaccinations.due_vaccinations, name='vaccinations_due'),
    path(f'{P}/vaccinations', vaccinations.patient_vaccinations, name='patient_vaccinations'),
    path(f'{P}/vaccinations/due', vaccinations.due_vaccinations, name='patient_vaccinations_due'),
    path(f'{P}/vaccinations/<int:vaccination_id>', vaccinations.vaccination_detail, name='vaccination_detail'),

    # Chart
    path(f'{P}/medications', medications.patient_medications, name='patient_medications'),
    path(f'{P}/medications/<int:medication_id>', medications.medication_detail, name='medication_detail'),
    path(f'{P}/vitals', vitals.patient_vitals, name='patient_vitals'),
    path(f'{P}/vitals/latest', vitals.latest_vitals, name='latest_vitals'),
    path(f'{P}/vitals/<int:vital_id>', vitals.vital_detail, name='vital_detail'),
    path(f'{P}/lab-results', lab_results.patient_lab_results, name='patient_lab_results'),
    path(f'{P}/lab-results/<int:lab_result_id>', lab_results.lab_result_detail, name='lab_result_detail'),
    path(f'{P}/clinical-notes', clinical_notes.patient_clinical_notes, name='patient_clinical_notes'),
    path(f'{P}/clinical-notes/<int:note_id>', clinical_notes.clinical_note_detail, name='clinical_note_detail'),
    path(f'{P}/surgical-notes', surgical_notes.patient_surgical_notes, name='patient_surgical_notes'),
    path(f'{P}/surgical-notes/<int:note_id>', surgical_notes.surgical_note_detail, name='surgical_note_detail'),
    path(f'{P}/imaging-studies', imaging.patient_imaging_studies, name='patient_imaging_studies'),
    path(f'{P}/imaging-studies/<int:study_id>', imaging.imaging_study_detail, name='imaging_study_detail'),
    path(f'{P}/consents', consents.patient_consents, name='patient_consents'),
    path(f'{P}/consents/<int:consent_id>', consents.consent_detail, name='consent_detail'),
    path(f'{P}/nutrition', nutrition.patient_nutrition, name='patient_nutrition'),
    path(f'{P}/nutrition/<int:entry_id>', nutrition.nutrition_entry_detail, name='nutrition_entry_detail'),

    # Care team
    path(f'{P}/care-team', care_team.patient_care_team, name='patient_care_team'),
    path(f'{P}/care-team/<int:assignment_id>', care_team.care_team_member, name='care_team_member'),

    # Documents
    path(f'{P}/documents', documents.patient_documents, name='patient_documents'),
    path(f'{P}/documents/<int:document_id>', documents.document_detail, name='document_detail'),

    # Billing
    path('api/v1/billing/settings', billing.billing_settings, name='billing_settings'),
    path('api/v1/billing/currencies', billing.currencies, name='billing_currencies'),
    path('api/v1/billing/summary', billing.summary, name='billing_summary'),
    path('api/v1/billing/invoices', billing.invoices, name='invoices'),
    path('api/v1/billing/invoices/<int:invoice_id>', billing.invoice_detail, name='invoice_detail'),
    path('api/v1/billing/invoices/<int:invoice_id>/payments', billing.invoice_payments, name='invoice_payments'),
    path('api/v1/billing/payments', billing.payments, name='payments'),
    path(f'{P}/invoices', billing.patient_invoices, name='patient_invoices'),

    # Hubs
    path('api/v1/hubs', hubs.hubs_collection, name='hubs'),
    path(H, hubs.hub_detail, name='hub_detail'),
    path(f'{H}/functions', hubs.hub_functions, name='hub_functions'),
    path(f'{H}/functions/<int:function_id>', hubs.hub_function_detail, name='hub_function_detail'),
    path(f'{H}/resources', hubs.hub_resources, name='hub_resources'),
    path(f'{H}/resources/<int:resource_id>', hubs.hub_resource_detail, name='hub_resource_detail'),
    path(f'{H}/notes', hubs.hub_notes, name='hub_notes'),
    path(f'{H}/notes/<int:note_id>', hubs.hub_note_detail, name='hub_note_detail'),

    # Calculators
    path('api/v1/calculators', calculators.list_calculators, name='calculators'),
    path('api/v1/calculators/<str:name>', calculators.evaluate_calculator, name='calculator_evaluate'),

    # Audit (admin)
    path('api/v1/audit', audit.audit_logs, name='audit_logs'),
    path('api/v1/audit/patients/<int:patient_id>', audit.patient_audit_trail, name='patient_audit_trail'),
    path('api/v1/audit/users/<int:user_id>', audit.user_audit_trail, name='user_audit_trail'),
    path('api/v1/audit/resources/<str:resource_type>/<str:resource_id>', audit.resource_audit_trail,
         name='resource_audit_trail'),
]
