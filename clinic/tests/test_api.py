"""
Integration tests for the patient record API.

These tests exercise the most critical behaviours of the patient
endpoints: role based access, validation and sanitising of input,
pagination and filtering, the cached list and the audit trail written
for reads and writes. They use Django REST Framework's APIClient within
the APITestCase base class.

To run the tests:

```
pytest -q clinic/tests
```
"""
from datetime import date, timedelta

from django.core.cache import cache
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from ..models import Appointment, AuditLog, Hub, Invoice, Patient, Referral, User


class PatientAPITests(APITestCase):
    def setUp(self) -> None:
        """Create a hub, one user per relevant role and two patients."""
        cache.clear()
        self.hub = Hub.objects.create(id='cardiology', name='Cardiology', description='Heart', color='red')
        self.admin = User.objects.create_user(
            username='admin1', email='admin1@hospital.test', password='adminpass', role=User.ROLE_ADMIN,
        )
        self.physician = User.objects.create_user(
            username='doc1', email='doc1@hospital.test', password='docpass1', role=User.ROLE_PHYSICIAN,
            first_name='Gregory', last_name='House',
        )
        self.receptionist = User.objects.create_user(
            username='front1', email='front1@hospital.test', password='frontpass', role=User.ROLE_RECEPTIONIST,
        )
        self.low_risk = Patient.objects.create(
            name='Alice Smith', date_of_birth=date(1970, 5, 1), gender='female', risk_score=10,
            condition='Asthma', hub=self.hub,
        )
        self.high_risk = Patient.objects.create(
            name='Bob Jones', date_of_birth=date(1950, 2, 3), gender='male', risk_score=85,
            condition='Heart Failure',
        )

    def authenticate(self, user: User) -> APIClient:
        """Return an authenticated APIClient for the given user."""
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    # -----------------------------------------------------------------
    # Access control
    # -----------------------------------------------------------------
    def test_anonymous_request_is_rejected(self):
        response = APIClient().get(reverse('patients'))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(response.data['ok'])
        self.assertEqual(response.data['error']['code'], 'UNAUTHORIZED')

    def test_receptionist_can_read_but_not_create(self):
        client = self.authenticate(self.receptionist)
        self.assertEqual(client.get(reverse('patients')).status_code, status.HTTP_200_OK)
        response = client.post(
            reverse('patients'),
            {'name': 'Carol White', 'dateOfBirth': '1990-01-01', 'gender': 'female'},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(Patient.objects.count(), 2)

    def test_only_admin_can_delete(self):
        response = self.authenticate(self.physician).delete(reverse('patient_detail', args=[self.low_risk.id]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error']['code'], 'FORBIDDEN')

    # -----------------------------------------------------------------
    # Create & validate
    # -----------------------------------------------------------------
    def test_physician_creates_patient(self):
        client = self.authenticate(self.physician)
        response = client.post(reverse('patients'), {
            'name': '<b>Carol</b> White',
            'dateOfBirth': '1990-01-01',
            'gender': 'female',
            'riskScore': 70,
            'allergies': ['Penicillin', ' penicillin ', '', 'Latex'],
            'hubId': 'cardiology',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.data['data']
        self.assertEqual(data['name'], 'Carol White')
        self.assertEqual(data['allergies'], ['Penicillin', 'Latex'])
        self.assertEqual(data['riskLevel'], 'high')
        self.assertEqual(data['hubId'], 'cardiology')
        self.assertEqual(data['createdBy'], self.physician.id)
        self.assertTrue(AuditLog.objects.filter(action='CREATE', patient_id=data['id']).exists())

    def test_create_rejects_future_birth_date_and_short_name(self):
        client = self.authenticate(self.physician)
        tomorrow = (timezone.localdate() + timedelta(days=1)).isoformat()
        response = client.post(reverse('patients'), {
            'name': 'X', 'dateOfBirth': tomorrow, 'gender': 'female',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        errors = response.data['error']['errors']
        self.assertIn('name', errors)
        self.assertIn('dateOfBirth', errors)

    def test_create_with_unknown_hub_is_not_found(self):
        response = self.authenticate(self.physician).post(reverse('patients'), {
            'name': 'Carol White', 'dateOfBirth': '1990-01-01', 'gender': 'female', 'hubId': 'nowhere',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    # -----------------------------------------------------------------
    # List, filters and pagination
    # -----------------------------------------------------------------
    def test_list_paginates(self):
        Patient.objects.create(name='Carol White', date_of_birth=date(1990, 1, 1), gender='female')
        response = self.authenticate(self.physician).get(reverse('patients'), {'limit': 2, 'page': 1})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['data']), 2)
        self.assertEqual(response.data['pagination'], {'total': 3, 'page': 1, 'limit': 2, 'totalPages': 2})

    def test_list_filters_by_risk_and_hub(self):
        client = self.authenticate(self.physician)
        high = client.get(reverse('patients'), {'risk': 'high'}).data['data']
        self.assertEqual([p['id'] for p in high], [self.high_risk.id])
        in_hub = client.get(reverse('patients'), {'hub': 'cardiology'}).data['data']
        self.assertEqual([p['id'] for p in in_hub], [self.low_risk.id])

    def test_list_sorts_by_name(self):
        data = self.authenticate(self.physician).get(
            reverse('patients'), {'sortBy': 'name', 'sortOrder': 'asc'},
        ).data['data']
        self.assertEqual([p['name'] for p in data], ['Alice Smith', 'Bob Jones'])

    def test_archived_patients_hidden_unless_requested(self):
        self.high_risk.is_active = False
        self.high_risk.save()
        client = self.authenticate(self.physician)
        ids = [p['id'] for p in client.get(reverse('patients')).data['data']]
        self.assertNotIn(self.high_risk.id, ids)
        ids = [p['id'] for p in client.get(reverse('patients'), {'includeArchived': 'true'}).data['data']]
        self.assertIn(self.high_risk.id, ids)

    def test_list_cache_is_invalidated_on_create(self):
        client = self.authenticate(self.physician)
        self.assertEqual(client.get(reverse('patients')).data['pagination']['total'], 2)
        client.post(reverse('patients'), {
            'name': 'Carol White', 'dateOfBirth': '1990-01-01', 'gender': 'female',
        }, format='json')
        self.assertEqual(client.get(reverse('patients')).data['pagination']['total'], 3)

    def test_search_requires_query(self):
        client = self.authenticate(self.receptionist)
        self.assertEqual(client.get(reverse('patient_search')).status_code, status.HTTP_400_BAD_REQUEST)
        data = client.get(reverse('patient_search'), {'q': 'smi'}).data['data']
        self.assertEqual([p['id'] for p in data], [self.low_risk.id])

    # -----------------------------------------------------------------
    # Detail, update and delete
    # -----------------------------------------------------------------
    def test_detail_includes_related_records_and_is_audited(self):
        Appointment.objects.create(
            patient=self.low_risk, provider=self.physician, date=timezone.localdate(), time='09:30', type='Check-up',
        )
        response = self.authenticate(self.physician).get(reverse('patient_detail', args=[self.low_risk.id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(len(data['appointments']), 1)
        self.assertEqual(data['appointments'][0]['providerName'], 'Gregory House')
        self.assertEqual(data['careTeam'], [])
        reads = AuditLog.objects.filter(action='READ', patient_id=self.low_risk.id)
        # explicit log only; the middleware does not add a second entry
        self.assertEqual(reads.count(), 1)
        self.assertEqual(reads.get().user, self.physician)

    def test_unknown_patient_is_not_found(self):
        response = self.authenticate(self.physician).get(reverse('patient_detail', args=[9999]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error']['code'], 'NOT_FOUND')

    def test_partial_update_records_changes(self):
        client = self.authenticate(self.physician)
        response = client.patch(
            reverse('patient_detail', args=[self.low_risk.id]), {'riskScore': 80}, format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['riskScore'], 80)
        self.assertEqual(response.data['data']['name'], 'Alice Smith')
        log = AuditLog.objects.get(action='UPDATE', patient_id=self.low_risk.id)
        self.assertEqual(log.changes, {'riskScore': {'from': '10', 'to': '80'}})

    def test_update_is_visible_through_detail_cache(self):
        client = self.authenticate(self.physician)
        url = reverse('patient_detail', args=[self.low_risk.id])
        self.assertEqual(client.get(url).data['data']['condition'], 'Asthma')
        client.patch(url, {'condition': 'COPD'}, format='json')
        self.assertEqual(client.get(url).data['data']['condition'], 'COPD')

    def test_admin_soft_and_hard_delete(self):
        client = self.authenticate(self.admin)
        response = client.delete(reverse('patient_detail', args=[self.low_risk.id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['data']['archived'])
        self.low_risk.refresh_from_db()
        self.assertFalse(self.low_risk.is_active)

        Invoice.objects.create(
            patient=self.high_risk, invoice_number='INV-9000',
            issue_date=timezone.localdate(), due_date=timezone.localdate(),
        )
        response = client.delete(reverse('patient_detail', args=[self.high_risk.id]) + '?hard=true')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['data']['deleted'])
        self.assertFalse(Patient.objects.filter(id=self.high_risk.id).exists())

    def test_timeline_is_newest_first(self):
        today = timezone.localdate()
        Appointment.objects.create(
            patient=self.low_risk, provider=self.physician, date=today - timedelta(days=10), time='10:00',
            type='Follow-up',
        )
        Referral.objects.create(
            patient=self.low_risk, date=today, specialty='Pulmonology', reason='Worsening asthma',
            priority='routine',
        )
        data = self.authenticate(self.receptionist).get(
            reverse('patient_timeline', args=[self.low_risk.id]),
        ).data['data']
        self.assertEqual([e['type'] for e in data], ['referral', 'appointment'])
        self.assertEqual(data[0]['title'], 'Referral to Pulmonology')
