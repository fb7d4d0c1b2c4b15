from rest_framework import serializers

from clinic.serializers.fields import CleanCharField, StringListField


class HubSerializer(serializers.Serializer):
    id = serializers.RegexField(r'^[a-z0-9_]{2,50}$', required=False)
    name = CleanCharField(max_length=255)
    description = CleanCharField(max_length=5000)
    color = CleanCharField(max_length=50)
    specialties = StringListField(required=False)
    isActive = serializers.BooleanField(required=False)


class HubFunctionSerializer(serializers.Serializer):
    name = CleanCharField(max_length=255)
    description = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=5000)
    category = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=100)


class HubResourceSerializer(serializers.Serializer):
    title = CleanCharField(max_length=255)
    type = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=50)
    url = serializers.URLField(required=False, allow_blank=True, allow_null=True, max_length=500)
    description = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=5000)


class HubNoteSerializer(serializers.Serializer):
    content = CleanCharField(max_length=10000)
