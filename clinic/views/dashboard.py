"""
Physician dashboard summary.

One request returns the counters shown on the landing page: patients by
risk band, today's and upcoming appointments, pending referrals, overdue
vaccinations and the outstanding invoice balance per currency.
"""
from __future__ import annotations

from datetime import timedelta

from django.db.models import Count, Q, Sum
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.models import Appointment, Invoice, Patient, Referral, Vaccination
from clinic.services.appointments import serialize_appointment
from clinic.services.billing import money
from clinic.services.patients import RISK_BANDS

UPCOMING_DAYS = 7


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard_stats(request):
    today = timezone.localdate()
    active = Patient.objects.filter(is_active=True)
    low_max = RISK_BANDS['low'][1]
    medium_max = RISK_BANDS['medium'][1]
    counts = active.aggregate(
        low=Count('id', filter=Q(risk_score__lte=low_max)),
        medium=Count('id', filter=Q(risk_score__gt=low_max, risk_score__lte=medium_max)),
        high=Count('id', filter=Q(risk_score__gt=medium_max)),
    )

    open_appts = Appointment.objects.select_related('provider').exclude(status__in=['cancelled', 'no_show'])
    todays = open_appts.filter(date=today).order_by('time')
    upcoming = open_appts.filter(date__gt=today, date__lte=today + timedelta(days=UPCOMING_DAYS))

    outstanding = (
        Invoice.objects.exclude(status__in=[Invoice.STATUS_CANCELLED, Invoice.STATUS_PAID])
        .values('currency')
        .annotate(balance=Sum('balance_amount'))
        .order_by('currency')
    )

    return Response({
        'ok': True,
        'data': {
            'patients': {
                'total': Patient.objects.count(),
                'active': active.count(),
                'byRisk': counts,
            },
            'appointments': {
                'today': todays.count(),
                'upcoming': upcoming.count(),
                'todayList': [serialize_appointment(a) for a in todays[:20]],
            },
            'pendingReferrals': Referral.objects.filter(status='pending').count(),
            'overdueVaccinations': Vaccination.objects.filter(
                next_dose_date__lt=today, patient__is_active=True,
            ).count(),
            'outstandingBalance': [
                {'currency': row['currency'], 'amount': str(money(row['balance']))}
                for row in outstanding
            ],
        },
    })
