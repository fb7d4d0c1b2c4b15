from rest_framework import serializers

from clinic.models import Patient
from clinic.serializers.fields import CleanCharField, StringListField


class PatientSerializer(serializers.Serializer):
    """Create/update payload; pass ``partial=True`` for updates."""
    name = CleanCharField(max_length=255)
    dateOfBirth = serializers.DateField()
    gender = serializers.ChoiceField(choices=[c[0] for c in Patient.GENDER_CHOICES])
    email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)
    phone = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=32)
    address = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=1000)
    condition = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=255)
    riskScore = serializers.IntegerField(required=False, min_value=0, max_value=100)
    bloodPressure = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=20)
    allergies = StringListField(required=False, allow_empty=True)
    emergencyContact = serializers.DictField(required=False, allow_null=True)
    insurance = serializers.DictField(required=False, allow_null=True)
    hubId = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=50)
    isActive = serializers.BooleanField(required=False)

    def validate_name(self, v):
        if len(v) < 2:
            raise serializers.ValidationError('Name must be at least 2 characters')
        return v

    def validate_dateOfBirth(self, v):
        from django.utils import timezone
        if v > timezone.localdate():
            raise serializers.ValidationError('Date of birth cannot be in the future')
        return v


class PatientListQuerySerializer(serializers.Serializer):
    search = serializers.CharField(required=False, allow_blank=True, max_length=100)
    risk = serializers.ChoiceField(choices=['low', 'medium', 'high'], required=False)
    condition = serializers.CharField(required=False, allow_blank=True, max_length=100)
    hub = serializers.CharField(required=False, allow_blank=True, max_length=50)
    includeArchived = serializers.BooleanField(required=False, default=False)
    sortBy = serializers.ChoiceField(
        choices=['name', 'createdAt', 'updatedAt', 'riskScore', 'dateOfBirth', 'condition'], required=False
    )
    sortOrder = serializers.ChoiceField(choices=['asc', 'desc'], required=False)
    page = serializers.IntegerField(required=False, min_value=1)
    limit = serializers.IntegerField(required=False, min_value=1)


class PatientSearchQuerySerializer(serializers.Serializer):
    q = serializers.CharField(max_length=100)


class DocumentUploadSerializer(serializers.Serializer):
    file = serializers.FileField()
    category = CleanCharField(required=False, allow_blank=True, max_length=50)
