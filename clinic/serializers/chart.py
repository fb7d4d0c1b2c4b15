from rest_framework import ISO_8601, serializers

from clinic.models import (
    ClinicalNote,
    Consent,
    ImagingStudy,
    LabResult,
    Medication,
    NutritionEntry,
    SurgicalNote,
)
from clinic.serializers.fields import CleanCharField, StringListField

_TIME_RE = r'^([01]\d|2[0-3]):[0-5]\d$'
# chart dates also accept the full timestamps some clients send
_DATE_INPUTS = [ISO_8601, '%Y-%m-%dT%H:%M:%SZ', '%Y-%m-%dT%H:%M:%S.%fZ']


def _choices(model_choices):
    return [c[0] for c in model_choices]


def _date(**kwargs):
    return serializers.DateField(input_formats=_DATE_INPUTS, **kwargs)


def _optional_date():
    return _date(required=False, allow_null=True)


def _text(max_length=5000):
    return CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=max_length)


def _time():
    return serializers.RegexField(_TIME_RE, required=False, allow_blank=True, allow_null=True,
                                  error_messages={'invalid': 'Time must be HH:MM'})


class ChartQuerySerializer(serializers.Serializer):
    search = serializers.CharField(required=False, allow_blank=True, max_length=100)
    page = serializers.IntegerField(required=False, min_value=1)
    limit = serializers.IntegerField(required=False, min_value=1)


# ---------------------------------------------------------------------
# Medications
# ---------------------------------------------------------------------
class MedicationSerializer(serializers.Serializer):
    name = CleanCharField(max_length=200)
    status = serializers.ChoiceField(choices=_choices(Medication.STATUS_CHOICES), required=False)
    startedDate = _date()
    instructions = _text()
    prescriptionType = serializers.ChoiceField(choices=_choices(Medication.PRESCRIPTION_TYPE_CHOICES),
                                               required=False, allow_blank=True, allow_null=True)
    refillsAuthorized = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    refillsRemaining = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    durationDays = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    expiryDate = _optional_date()


class MedicationQuerySerializer(ChartQuerySerializer):
    status = serializers.ChoiceField(choices=_choices(Medication.STATUS_CHOICES), required=False)


# ---------------------------------------------------------------------
# Vitals
# ---------------------------------------------------------------------
class VitalSignSerializer(serializers.Serializer):
    date = _date()
    time = _time()
    systolic = serializers.IntegerField(required=False, allow_null=True, min_value=40, max_value=300)
    diastolic = serializers.IntegerField(required=False, allow_null=True, min_value=20, max_value=200)
    heartRate = serializers.IntegerField(required=False, allow_null=True, min_value=20, max_value=300)
    temperature = serializers.FloatField(required=False, allow_null=True, min_value=25, max_value=45)
    oxygen = serializers.IntegerField(required=False, allow_null=True, min_value=50, max_value=100)
    notes = _text()


class VitalSignQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(required=False, min_value=1)
    limit = serializers.IntegerField(required=False, min_value=1)


# ---------------------------------------------------------------------
# Lab results
# ---------------------------------------------------------------------
class LabResultSerializer(serializers.Serializer):
    testName = CleanCharField(max_length=200)
    testCode = _text(50)
    category = _text(100)
    orderedDate = _date()
    collectedDate = _optional_date()
    resultDate = _optional_date()
    status = serializers.ChoiceField(choices=_choices(LabResult.STATUS_CHOICES))
    results = serializers.DictField(required=False, allow_null=True)
    referenceRanges = serializers.DictField(child=CleanCharField(max_length=255), required=False, allow_null=True)
    interpretation = _text()
    notes = _text()
    labName = _text(200)
    labLocation = _text(255)
    orderingPhysicianId = serializers.IntegerField(required=False, allow_null=True)
    reviewedById = serializers.IntegerField(required=False, allow_null=True)


class LabResultQuerySerializer(ChartQuerySerializer):
    status = serializers.ChoiceField(choices=_choices(LabResult.STATUS_CHOICES), required=False)
    category = serializers.CharField(required=False, allow_blank=True, max_length=100)


# ---------------------------------------------------------------------
# Clinical and surgical notes
# ---------------------------------------------------------------------
class ClinicalNoteSerializer(serializers.Serializer):
    title = CleanCharField(max_length=200)
    content = CleanCharField(max_length=20000)
    date = _date()
    type = serializers.ChoiceField(choices=_choices(ClinicalNote.TYPE_CHOICES))
    consultationType = _text(50)
    specialty = _text(100)


class ClinicalNoteQuerySerializer(ChartQuerySerializer):
    type = serializers.ChoiceField(choices=_choices(ClinicalNote.TYPE_CHOICES), required=False)


class SurgicalNoteSerializer(serializers.Serializer):
    date = _date()
    procedureName = CleanCharField(max_length=200)
    procedureType = serializers.ChoiceField(choices=_choices(SurgicalNote.PROCEDURE_TYPE_CHOICES))
    status = serializers.ChoiceField(choices=_choices(SurgicalNote.STATUS_CHOICES), required=False)
    surgeonId = serializers.IntegerField(required=False, allow_null=True)
    assistantSurgeonIds = serializers.ListField(child=serializers.IntegerField(), required=False, allow_null=True)
    anesthesiologistId = serializers.IntegerField(required=False, allow_null=True)
    anesthesiaType = _text(100)
    indication = CleanCharField(max_length=5000)
    preoperativeDiagnosis = CleanCharField(max_length=5000)
    postoperativeDiagnosis = _text()
    procedureDescription = CleanCharField(max_length=20000)
    findings = _text()
    complications = _text()
    estimatedBloodLoss = _text(100)
    specimens = StringListField(required=False, allow_null=True)
    drains = _text()
    postOpInstructions = _text()
    recoveryNotes = _text()
    followUpDate = _optional_date()
    operatingRoom = _text(50)
    duration = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    startTime = _time()
    endTime = _time()


class SurgicalNoteQuerySerializer(ChartQuerySerializer):
    status = serializers.ChoiceField(choices=_choices(SurgicalNote.STATUS_CHOICES), required=False)
    procedureType = serializers.ChoiceField(choices=_choices(SurgicalNote.PROCEDURE_TYPE_CHOICES), required=False)


# ---------------------------------------------------------------------
# Imaging
# ---------------------------------------------------------------------
class ImagingStudySerializer(serializers.Serializer):
    type = CleanCharField(max_length=100)
    modality = serializers.ChoiceField(choices=_choices(ImagingStudy.MODALITY_CHOICES))
    bodyPart = CleanCharField(max_length=100)
    date = _date()
    findings = CleanCharField(max_length=20000)
    status = serializers.ChoiceField(choices=_choices(ImagingStudy.STATUS_CHOICES), required=False)
    reportUrl = serializers.URLField(required=False, allow_blank=True, allow_null=True, max_length=500)
    orderingPhysicianId = serializers.IntegerField(required=False, allow_null=True)


class ImagingStudyQuerySerializer(ChartQuerySerializer):
    modality = serializers.ChoiceField(choices=_choices(ImagingStudy.MODALITY_CHOICES), required=False)
    status = serializers.ChoiceField(choices=_choices(ImagingStudy.STATUS_CHOICES), required=False)


# ---------------------------------------------------------------------
# Consents
# ---------------------------------------------------------------------
class ConsentSerializer(serializers.Serializer):
    date = _date()
    type = serializers.ChoiceField(choices=_choices(Consent.TYPE_CHOICES))
    title = CleanCharField(max_length=200)
    description = CleanCharField(min_length=10, max_length=20000)
    status = serializers.ChoiceField(choices=_choices(Consent.STATUS_CHOICES), required=False)
    procedureName = _text(200)
    risks = StringListField(required=False, allow_null=True)
    benefits = StringListField(required=False, allow_null=True)
    alternatives = StringListField(required=False, allow_null=True)
    signedBy = _text(100)
    signedById = serializers.IntegerField(required=False, allow_null=True)
    witnessName = _text(100)
    witnessId = serializers.IntegerField(required=False, allow_null=True)
    physicianName = _text(100)
    physicianId = serializers.IntegerField(required=False, allow_null=True)
    signedDate = _optional_date()
    signedTime = _time()
    expirationDate = _optional_date()
    notes = _text()
    # signature images arrive as data URLs
    digitalSignature = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=500000)
    printedSignature = serializers.BooleanField(required=False)


class ConsentQuerySerializer(ChartQuerySerializer):
    status = serializers.ChoiceField(choices=_choices(Consent.STATUS_CHOICES), required=False)
    type = serializers.ChoiceField(choices=_choices(Consent.TYPE_CHOICES), required=False)


# ---------------------------------------------------------------------
# Nutrition
# ---------------------------------------------------------------------
class SupplementSerializer(serializers.Serializer):
    name = CleanCharField(max_length=200)
    dosage = CleanCharField(max_length=100)
    frequency = CleanCharField(max_length=100)
    reason = _text(500)


class MealSerializer(serializers.Serializer):
    meal = CleanCharField(max_length=100)
    description = CleanCharField(max_length=2000)
    calories = serializers.FloatField(required=False, allow_null=True, min_value=0)


def _positive():
    return serializers.FloatField(required=False, allow_null=True, min_value=0.1)


class NutritionEntrySerializer(serializers.Serializer):
    date = _date()
    type = serializers.ChoiceField(choices=_choices(NutritionEntry.TYPE_CHOICES))
    dietitianId = serializers.IntegerField(required=False, allow_null=True)
    dietaryRestrictions = StringListField(required=False, allow_null=True)
    allergies = StringListField(required=False, allow_null=True)
    currentDiet = _text()
    recommendedDiet = _text()
    nutritionalGoals = StringListField(required=False, allow_null=True)
    caloricNeeds = _positive()
    proteinNeeds = _positive()
    fluidNeeds = _positive()
    supplements = SupplementSerializer(many=True, required=False, allow_null=True)
    mealPlan = MealSerializer(many=True, required=False, allow_null=True)
    weight = _positive()
    height = _positive()
    bmi = _positive()
    notes = _text()
    followUpDate = _optional_date()


class NutritionEntryQuerySerializer(ChartQuerySerializer):
    type = serializers.ChoiceField(choices=_choices(NutritionEntry.TYPE_CHOICES), required=False)
