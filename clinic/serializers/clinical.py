"""Input serializers for appointments, referrals, vaccinations and care team."""
from rest_framework import serializers

from clinic.models import Appointment, Referral, Vaccination
from clinic.serializers.fields import CleanCharField, DateRangeMixin, StringListField

_TIME_RE = r'^([01]\d|2[0-3]):[0-5]\d$'


def _choices(model_choices):
    return [c[0] for c in model_choices]


class AppointmentSerializer(serializers.Serializer):
    providerId = serializers.IntegerField()
    date = serializers.DateField()
    time = serializers.RegexField(_TIME_RE, error_messages={'invalid': 'Time must be HH:MM'})
    type = CleanCharField(max_length=100)
    status = serializers.ChoiceField(choices=_choices(Appointment.STATUS_CHOICES), required=False)
    duration = serializers.IntegerField(required=False, allow_null=True, min_value=1, max_value=24 * 60)
    location = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=255)
    reason = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=2000)
    notes = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=5000)
    consultationType = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=50)
    specialty = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=100)
    referralRequired = serializers.BooleanField(required=False)


class AppointmentQuerySerializer(DateRangeMixin, serializers.Serializer):
    status = serializers.ChoiceField(choices=_choices(Appointment.STATUS_CHOICES), required=False)
    providerId = serializers.IntegerField(required=False)
    patientId = serializers.IntegerField(required=False)
    page = serializers.IntegerField(required=False, min_value=1)
    limit = serializers.IntegerField(required=False, min_value=1)


class ReferralSerializer(serializers.Serializer):
    date = serializers.DateField()
    specialty = CleanCharField(max_length=100)
    reason = CleanCharField(max_length=2000)
    diagnosis = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=2000)
    priority = serializers.ChoiceField(choices=_choices(Referral.PRIORITY_CHOICES))
    status = serializers.ChoiceField(choices=_choices(Referral.STATUS_CHOICES), required=False)
    referringPhysicianId = serializers.IntegerField(required=False, allow_null=True)
    referredToProviderId = serializers.IntegerField(required=False, allow_null=True)
    referredToProviderName = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=255)
    referredToFacility = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=255)
    referredToAddress = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=1000)
    referredToPhone = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=32)
    appointmentDate = serializers.DateField(required=False, allow_null=True)
    appointmentTime = serializers.RegexField(_TIME_RE, required=False, allow_blank=True, allow_null=True)
    notes = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=5000)
    attachments = StringListField(required=False, allow_null=True)
    insurancePreAuth = serializers.BooleanField(required=False)
    preAuthNumber = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=100)
    followUpRequired = serializers.BooleanField(required=False)
    followUpDate = serializers.DateField(required=False, allow_null=True)

    def validate(self, attrs):
        appt, date = attrs.get('appointmentDate'), attrs.get('date')
        if appt and date and appt < date:
            raise serializers.ValidationError({'appointmentDate': ['Appointment date cannot be before the referral date']})
        return attrs


class ReferralQuerySerializer(DateRangeMixin, serializers.Serializer):
    status = serializers.ChoiceField(choices=_choices(Referral.STATUS_CHOICES), required=False)
    priority = serializers.ChoiceField(choices=_choices(Referral.PRIORITY_CHOICES), required=False)
    specialty = serializers.CharField(required=False, allow_blank=True, max_length=100)
    patientId = serializers.IntegerField(required=False)
    page = serializers.IntegerField(required=False, min_value=1)
    limit = serializers.IntegerField(required=False, min_value=1)


class VaccinationSerializer(serializers.Serializer):
    vaccineName = CleanCharField(max_length=200)
    vaccineCode = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=50)
    date = serializers.DateField(input_formats=['%Y-%m-%d'])
    administeredById = serializers.IntegerField(required=False, allow_null=True)
    location = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=255)
    route = serializers.ChoiceField(choices=_choices(Vaccination.ROUTE_CHOICES), required=False, allow_blank=True, allow_null=True)
    site = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=100)
    lotNumber = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=100)
    manufacturer = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=200)
    expirationDate = serializers.DateField(required=False, allow_null=True, input_formats=['%Y-%m-%d'])
    doseNumber = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    totalDoses = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    nextDoseDate = serializers.DateField(required=False, allow_null=True, input_formats=['%Y-%m-%d'])
    adverseReactions = StringListField(required=False, allow_null=True)
    notes = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=5000)
    verified = serializers.BooleanField(required=False)
    verifiedBy = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=255)
    verifiedById = serializers.IntegerField(required=False, allow_null=True)
    verifiedDate = serializers.DateField(required=False, allow_null=True, input_formats=['%Y-%m-%d'])


class VaccinationQuerySerializer(serializers.Serializer):
    verified = serializers.BooleanField(required=False, allow_null=True)
    search = serializers.CharField(required=False, allow_blank=True, max_length=100)
    page = serializers.IntegerField(required=False, min_value=1)
    limit = serializers.IntegerField(required=False, min_value=1)


class CareTeamMemberSerializer(serializers.Serializer):
    userId = serializers.IntegerField()
    role = CleanCharField(max_length=100)
    specialty = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=100)
    notes = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=2000)


class CareTeamUpdateSerializer(serializers.Serializer):
    role = CleanCharField(required=False, max_length=100)
    specialty = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=100)
    notes = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=2000)
