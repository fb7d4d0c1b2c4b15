from __future__ import annotations

from django.db import transaction
from django.db.models import Q

from clinic.models import NutritionEntry, Patient
from clinic.services.chart import get_record, iso, lookup_user, model_fields, user_name
from clinic.services.patients import invalidate_patient_cache

FIELD_MAP = {
    'date': 'date',
    'type': 'type',
    'dietaryRestrictions': 'dietary_restrictions',
    'allergies': 'allergies',
    'currentDiet': 'current_diet',
    'recommendedDiet': 'recommended_diet',
    'nutritionalGoals': 'nutritional_goals',
    'caloricNeeds': 'caloric_needs',
    'proteinNeeds': 'protein_needs',
    'fluidNeeds': 'fluid_needs',
    'supplements': 'supplements',
    'mealPlan': 'meal_plan',
    'weight': 'weight',
    'height': 'height',
    'bmi': 'bmi',
    'notes': 'notes',
    'followUpDate': 'follow_up_date',
}

NULLABLE = {'caloric_needs', 'protein_needs', 'fluid_needs', 'weight', 'height', 'bmi', 'follow_up_date'}
EMPTY = {
    'dietary_restrictions': [],
    'allergies': [],
    'nutritional_goals': [],
    'supplements': [],
    'meal_plan': [],
}


def compute_bmi(weight_kg: float | None, height_cm: float | None) -> float | None:
    if not weight_kg or not height_cm:
        return None
    return round(weight_kg / (height_cm / 100) ** 2, 1)


def serialize_nutrition_entry(e: NutritionEntry) -> dict:
    return {
        'id': e.id,
        'patientId': e.patient_id,
        'date': iso(e.date),
        'type': e.type,
        'dietitianId': e.dietitian_id,
        'dietitian': user_name(e.dietitian),
        'dietaryRestrictions': e.dietary_restrictions or [],
        'allergies': e.allergies or [],
        'currentDiet': e.current_diet or None,
        'recommendedDiet': e.recommended_diet or None,
        'nutritionalGoals': e.nutritional_goals or [],
        'caloricNeeds': e.caloric_needs,
        'proteinNeeds': e.protein_needs,
        'fluidNeeds': e.fluid_needs,
        'supplements': e.supplements or [],
        'mealPlan': e.meal_plan or [],
        'weight': e.weight,
        'height': e.height,
        'bmi': e.bmi,
        'notes': e.notes or None,
        'followUpDate': iso(e.follow_up_date),
        'createdAt': iso(e.created_at),
        'updatedAt': iso(e.updated_at),
    }


def _fields(data: dict) -> dict:
    fields = model_fields(data, FIELD_MAP, nullable=NULLABLE, empty=EMPTY)
    for key in ('supplements', 'meal_plan'):
        if fields.get(key):
            fields[key] = [dict(item) for item in fields[key]]
    return fields


def _apply_bmi(e: NutritionEntry, data: dict) -> None:
    # measured weight and height win over a submitted BMI
    bmi = compute_bmi(e.weight, e.height)
    if bmi is not None and ('weight' in data or 'height' in data or e.bmi is None):
        e.bmi = bmi


def get_nutrition_entry(patient: Patient, entry_id) -> NutritionEntry:
    return get_record(patient.nutrition_entries.select_related('dietitian'), entry_id, 'Nutrition entry')


def list_nutrition_entries(patient: Patient, *, type: str | None = None, search: str | None = None):
    qs = patient.nutrition_entries.select_related('dietitian')
    if type:
        qs = qs.filter(type=type)
    if search:
        qs = qs.filter(
            Q(current_diet__icontains=search) | Q(recommended_diet__icontains=search) | Q(notes__icontains=search)
        )
    return qs.order_by('-date', '-id')


def create_nutrition_entry(patient: Patient, current_user, data: dict) -> NutritionEntry:
    e = NutritionEntry(patient=patient, **_fields(data))
    if 'dietitianId' in data:
        e.dietitian = lookup_user(data['dietitianId'], 'Dietitian')
    else:
        e.dietitian = current_user
    _apply_bmi(e, data)
    with transaction.atomic():
        e.save()
    invalidate_patient_cache(patient.id)
    return e


def update_nutrition_entry(e: NutritionEntry, data: dict) -> NutritionEntry:
    for field, value in _fields(data).items():
        setattr(e, field, value)
    if 'dietitianId' in data:
        e.dietitian = lookup_user(data['dietitianId'], 'Dietitian')
    _apply_bmi(e, data)
    with transaction.atomic():
        e.save()
    invalidate_patient_cache(e.patient_id)
    return e


def delete_nutrition_entry(e: NutritionEntry) -> None:
    patient_id = e.patient_id
    e.delete()
    invalidate_patient_cache(patient_id)
