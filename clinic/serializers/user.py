from rest_framework import serializers

from clinic.models import User
from clinic.serializers.fields import CleanCharField

ROLE_VALUES = [c[0] for c in User.ROLE_CHOICES]


class UserSerializer(serializers.Serializer):
    email = serializers.EmailField()
    username = serializers.RegexField(r'^[\w.@+-]{3,150}$', required=False)
    password = serializers.CharField(required=False, min_length=8, max_length=128, trim_whitespace=False)
    firstName = CleanCharField(required=False, allow_blank=True, max_length=150)
    lastName = CleanCharField(required=False, allow_blank=True, max_length=150)
    role = serializers.ChoiceField(choices=ROLE_VALUES)
    phone = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=32)
    specialty = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=100)
    department = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=100)
    hubId = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=50)
    isActive = serializers.BooleanField(required=False)


class UserQuerySerializer(serializers.Serializer):
    search = serializers.CharField(required=False, allow_blank=True, max_length=100)
    role = serializers.ChoiceField(choices=ROLE_VALUES, required=False)
    hub = serializers.CharField(required=False, allow_blank=True, max_length=50)
    isActive = serializers.BooleanField(required=False, allow_null=True)
    page = serializers.IntegerField(required=False, min_value=1)
    limit = serializers.IntegerField(required=False, min_value=1)
