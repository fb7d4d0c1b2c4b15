"""
Demo accounts and sample data for local development.

Used by the ``ensure_demo_users`` and ``populate_data`` management
commands. Nothing here runs automatically.
"""
from __future__ import annotations

import logging
import random
from datetime import timedelta
from decimal import Decimal

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from clinic.models import (
    Appointment,
    CareTeamAssignment,
    Hub,
    Medication,
    Patient,
    Referral,
    User,
    Vaccination,
    VitalSign,
)
from clinic.services.billing import create_invoice, record_payment
from clinic.services.hubs import seed_default_hubs
from clinic.services.patients import invalidate_patient_cache

logger = logging.getLogger(__name__)

DEMO_USERS = [
    {
        'email': 'admin@hospital2035.com', 'username': 'admin', 'password': 'Admin123!',
        'first_name': 'Admin', 'last_name': 'User', 'role': User.ROLE_ADMIN,
        'department': 'Administration', 'phone': '555-0000',
    },
    {
        'email': 'sarah.johnson@hospital2035.com', 'username': 'sarahj', 'password': 'Password123!',
        'first_name': 'Sarah', 'last_name': 'Johnson', 'role': User.ROLE_PHYSICIAN,
        'specialty': 'Internal Medicine', 'department': 'Internal Medicine', 'phone': '555-0100',
    },
    {
        'email': 'patricia.williams@hospital2035.com', 'username': 'patriciaw', 'password': 'Password123!',
        'first_name': 'Patricia', 'last_name': 'Williams', 'role': User.ROLE_NURSE,
        'department': 'Nursing', 'phone': '555-0101',
    },
    {
        'email': 'michael.chen@hospital2035.com', 'username': 'michaelc', 'password': 'Password123!',
        'first_name': 'Michael', 'last_name': 'Chen', 'role': User.ROLE_PHYSICIAN,
        'specialty': 'Cardiology', 'department': 'Cardiology', 'phone': '555-0102',
        'hub': 'cardiology',
    },
    {
        'email': 'rachel.green@hospital2035.com', 'username': 'rachelg', 'password': 'Password123!',
        'first_name': 'Rachel', 'last_name': 'Green', 'role': User.ROLE_RECEPTIONIST,
        'department': 'Front Desk', 'phone': '555-0103',
    },
    {
        'email': 'brian.lee@hospital2035.com', 'username': 'brianl', 'password': 'Password123!',
        'first_name': 'Brian', 'last_name': 'Lee', 'role': User.ROLE_BILLING,
        'department': 'Billing', 'phone': '555-0104',
    },
]

FIRST_NAMES = ['James', 'Mary', 'Robert', 'Linda', 'David', 'Susan', 'Daniel', 'Karen', 'Amara', 'Chidi',
               'Fatima', 'Kwame', 'Sofia', 'Hiro', 'Priya', 'Lucas']
LAST_NAMES = ['Smith', 'Okafor', 'Garcia', 'Nguyen', 'Brown', 'Mensah', 'Patel', 'Kim', 'Muller', 'Adeyemi']
CONDITIONS = ['Hypertension', 'Type 2 Diabetes', 'Asthma', 'Heart Failure', 'COPD', 'Chronic Kidney Disease',
              'Atrial Fibrillation', 'Migraine', 'Osteoarthritis', 'Hypothyroidism']
ALLERGIES = ['Penicillin', 'Sulfa', 'Latex', 'Peanuts', 'Aspirin', 'Iodine']
VACCINES = [('Influenza', 'FLU', 1), ('Hepatitis B', 'HEPB', 3), ('Tdap', 'TDAP', 1),
            ('COVID-19', 'COVID', 2), ('Pneumococcal', 'PCV20', 1)]
SPECIALTIES = ['Cardiology', 'Neurology', 'Endocrinology', 'Nephrology', 'Pulmonology']
MEDICATIONS = [('Lisinopril 10mg', 'One tablet daily'), ('Metformin 500mg', 'One tablet twice daily with meals'),
               ('Atorvastatin 20mg', 'One tablet at night'), ('Salbutamol inhaler', 'Two puffs as needed'),
               ('Levothyroxine 50mcg', 'One tablet before breakfast')]


def ensure_demo_users() -> list[tuple[User, bool]]:
    """Create the demo accounts or reset their password, role and active flag."""
    results = []
    for entry in DEMO_USERS:
        fields = dict(entry)
        password = fields.pop('password')
        hub_id = fields.pop('hub', None)
        hub = Hub.objects.filter(id=hub_id).first() if hub_id else None
        user = User.objects.filter(Q(email__iexact=fields['email']) | Q(username=fields['username'])).first()
        created = user is None
        if created:
            user = User(username=fields['username'], email=fields['email'])
        for key, value in fields.items():
            setattr(user, key, value)
        user.hub = hub
        user.is_active = True
        user.is_staff = entry['role'] == User.ROLE_ADMIN
        user.set_password(password)
        user.save()
        results.append((user, created))
    return results


@transaction.atomic
def populate_demo_data(*, patients: int = 20, seed: int = 2035) -> dict:
    """Create demo hubs, users and ``patients`` patients with clinical records."""
    rng = random.Random(seed)
    today = timezone.localdate()
    seed_default_hubs(only_if_empty=True)
    users = [u for u, _ in ensure_demo_users()]
    admin = next(u for u in users if u.role == User.ROLE_ADMIN)
    clinicians = [u for u in users if u.role in (User.ROLE_PHYSICIAN, User.ROLE_NURSE)]
    physicians = [u for u in users if u.role == User.ROLE_PHYSICIAN]
    hubs = list(Hub.objects.filter(is_active=True))
    counts = {'patients': 0, 'appointments': 0, 'referrals': 0, 'vaccinations': 0, 'careTeam': 0, 'invoices': 0,
              'medications': 0, 'vitals': 0}

    for _ in range(patients):
        name = f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}"
        patient = Patient.objects.create(
            name=name,
            date_of_birth=today - timedelta(days=rng.randint(18 * 365, 90 * 365)),
            gender=rng.choice(['male', 'female', 'other']),
            email=f"{name.lower().replace(' ', '.')}{rng.randint(1, 999)}@example.com",
            phone=f"555-{rng.randint(1000, 9999)}",
            condition=rng.choice(CONDITIONS),
            risk_score=rng.randint(0, 100),
            blood_pressure=f"{rng.randint(100, 170)}/{rng.randint(60, 100)}",
            allergies=rng.sample(ALLERGIES, rng.randint(0, 2)),
            hub=rng.choice(hubs) if hubs else None,
            created_by=admin,
            updated_by=admin,
        )
        counts['patients'] += 1

        for _ in range(rng.randint(1, 3)):
            offset = rng.randint(-30, 30)
            Appointment.objects.create(
                patient=patient,
                provider=rng.choice(physicians),
                date=today + timedelta(days=offset),
                time=f"{rng.randint(8, 16):02d}:{rng.choice(['00', '30'])}",
                type=rng.choice(['Follow-up', 'Consultation', 'Check-up']),
                status='completed' if offset < 0 else 'scheduled',
                duration=rng.choice([15, 30, 45]),
            )
            counts['appointments'] += 1

        if rng.random() < 0.5:
            Referral.objects.create(
                patient=patient,
                date=today - timedelta(days=rng.randint(0, 60)),
                specialty=rng.choice(SPECIALTIES),
                reason=f"Evaluation of {patient.condition.lower()}",
                priority=rng.choice(['routine', 'urgent']),
                status=rng.choice(['pending', 'sent', 'accepted']),
                referring_physician=rng.choice(physicians),
            )
            counts['referrals'] += 1

        vaccine, code, doses = rng.choice(VACCINES)
        given = today - timedelta(days=rng.randint(10, 400))
        Vaccination.objects.create(
            patient=patient,
            vaccine_name=vaccine,
            vaccine_code=code,
            date=given,
            administered_by=rng.choice(clinicians),
            route='intramuscular',
            dose_number=1,
            total_doses=doses,
            next_dose_date=given + timedelta(days=30) if doses > 1 else None,
            verified=rng.random() < 0.7,
        )
        counts['vaccinations'] += 1

        medication, instructions = rng.choice(MEDICATIONS)
        Medication.objects.create(
            patient=patient,
            name=medication,
            instructions=instructions,
            started_date=today - timedelta(days=rng.randint(30, 700)),
            prescription_type='repeat',
            refills_authorized=5,
            refills_remaining=rng.randint(0, 5),
            prescribed_by=rng.choice(physicians),
        )
        counts['medications'] += 1

        systolic, diastolic = (int(v) for v in patient.blood_pressure.split('/'))
        VitalSign.objects.create(
            patient=patient,
            date=today - timedelta(days=rng.randint(0, 30)),
            time=f"{rng.randint(8, 16):02d}:{rng.choice(['00', '15', '30', '45'])}",
            systolic=systolic,
            diastolic=diastolic,
            heart_rate=rng.randint(55, 100),
            temperature=round(rng.uniform(36.1, 37.6), 1),
            oxygen=rng.randint(93, 100),
            recorded_by=rng.choice(clinicians),
        )
        counts['vitals'] += 1

        CareTeamAssignment.objects.create(
            patient=patient, user=rng.choice(physicians), role='Primary Physician',
            assigned_date=timezone.now(),
        )
        counts['careTeam'] += 1

        if rng.random() < 0.6:
            invoice = create_invoice(admin, {
                'patientId': patient.id,
                'items': [{
                    'description': 'Consultation',
                    'quantity': Decimal('1'),
                    'unitPrice': Decimal(rng.choice(['75.00', '120.00', '200.00'])),
                    'taxRate': Decimal('0'),
                    'discount': Decimal('0'),
                }],
            })
            if rng.random() < 0.5:
                record_payment(invoice, admin, {'amount': invoice.total_amount, 'paymentMethod': 'card'})
            counts['invoices'] += 1

    invalidate_patient_cache()
    logger.info('Demo data created: %s', counts)
    return counts
