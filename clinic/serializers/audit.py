from rest_framework import serializers

from clinic.models import AuditLog
from clinic.serializers.fields import DateRangeMixin


class AuditQuerySerializer(DateRangeMixin, serializers.Serializer):
    userId = serializers.IntegerField(required=False)
    patientId = serializers.IntegerField(required=False)
    action = serializers.ChoiceField(choices=[c[0] for c in AuditLog.ACTION_CHOICES], required=False)
    resourceType = serializers.CharField(required=False, max_length=64)
    resourceId = serializers.CharField(required=False, max_length=64)
    page = serializers.IntegerField(required=False, min_value=1)
    limit = serializers.IntegerField(required=False, min_value=1)
