import bleach
from rest_framework import serializers


class CleanCharField(serializers.CharField):
    """CharField that strips any HTML markup from the submitted text."""

    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        return bleach.clean(value, tags=[], strip=True).strip()


class StringListField(serializers.ListField):
    child = CleanCharField(max_length=255, allow_blank=True)


class DateRangeMixin:
    """Adds optional ``from``/``to`` date filters; both are Python keywords."""

    def get_fields(self):
        fields = super().get_fields()
        fields['from'] = serializers.DateField(required=False)
        fields['to'] = serializers.DateField(required=False)
        return fields
