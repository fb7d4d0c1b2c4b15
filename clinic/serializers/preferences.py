from rest_framework import serializers

from clinic.serializers.fields import CleanCharField

THEMES = ['light', 'dark', 'system']


class NotificationPreferencesSerializer(serializers.Serializer):
    email = serializers.BooleanField()
    inApp = serializers.BooleanField()
    appointmentReminders = serializers.BooleanField()
    labResults = serializers.BooleanField()
    medicationAlerts = serializers.BooleanField()


class DashboardPreferencesSerializer(serializers.Serializer):
    defaultView = CleanCharField(required=False, allow_blank=True, max_length=50)
    itemsPerPage = serializers.IntegerField(required=False, min_value=1, max_value=1000)
    showRecentActivity = serializers.BooleanField(required=False)


class PrivacyPreferencesSerializer(serializers.Serializer):
    shareAnalytics = serializers.BooleanField(required=False)
    dataRetention = serializers.IntegerField(required=False, min_value=1, help_text='Days')


class PreferencesSerializer(serializers.Serializer):
    theme = serializers.ChoiceField(choices=THEMES, required=False)
    notifications = NotificationPreferencesSerializer(required=False)
    dashboard = DashboardPreferencesSerializer(required=False)
    privacy = PrivacyPreferencesSerializer(required=False)
