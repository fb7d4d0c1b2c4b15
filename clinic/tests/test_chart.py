from datetime import timedelta

import pytest
from django.urls import reverse
from django.utils import timezone

from clinic.models import AuditLog, LabResult, Medication, User
from clinic.services.surgical_notes import elapsed_minutes

pytestmark = pytest.mark.django_db


def post(client, name, patient, payload):
    return client.post(reverse(name, args=[patient.id]), payload, format='json')


# ---------------------------------------------------------------------
# Medications
# ---------------------------------------------------------------------
def prescribe(client, patient, **extra):
    payload = {'name': 'Lisinopril 10mg', 'startedDate': '2025-01-10', 'instructions': 'Once daily', **extra}
    return post(client, 'patient_medications', patient, payload)


def test_prescription_defaults_prescriber_and_refills(make_user, client_for, patient):
    doc = make_user(first_name='Perry', last_name='Cox')
    r = prescribe(client_for(doc), patient, refillsAuthorized=3, prescriptionType='repeat')
    assert r.status_code == 201
    data = r.data['data']
    assert data['prescribedById'] == doc.id
    assert data['prescribedBy'] == 'Perry Cox'
    assert data['status'] == 'active'
    assert data['refillsRemaining'] == 3


@pytest.mark.parametrize('extra, field', [
    ({'refillsAuthorized': 1, 'refillsRemaining': 2}, 'refillsRemaining'),
    ({'expiryDate': '2024-12-31'}, 'expiryDate'),
    ({'status': 'paused'}, 'status'),
])
def test_invalid_medication(make_user, client_for, patient, extra, field):
    r = prescribe(client_for(make_user()), patient, **extra)
    assert r.status_code == 400
    assert field in r.data['error']['errors']


def test_only_prescribers_manage_medications(make_user, client_for, patient):
    nurse = client_for(make_user(User.ROLE_NURSE))
    assert prescribe(nurse, patient).status_code == 403
    medication_id = prescribe(client_for(make_user(User.ROLE_NURSE_PRACTITIONER)), patient).data['data']['id']
    url = reverse('medication_detail', args=[patient.id, medication_id])
    assert nurse.get(url).status_code == 200
    assert nurse.patch(url, {'status': 'discontinued'}, format='json').status_code == 403
    assert nurse.delete(url).status_code == 403


def test_medication_list_filters(make_user, client_for, patient):
    client = client_for(make_user())
    prescribe(client, patient)
    prescribe(client, patient, name='Metformin 500mg', startedDate='2025-02-01', status='discontinued')
    url = reverse('patient_medications', args=[patient.id])

    r = client.get(url)
    assert r.data['pagination']['total'] == 2
    assert [m['name'] for m in r.data['data']] == ['Metformin 500mg', 'Lisinopril 10mg']
    assert [m['name'] for m in client.get(url, {'status': 'active'}).data['data']] == ['Lisinopril 10mg']
    assert [m['name'] for m in client.get(url, {'search': 'metf'}).data['data']] == ['Metformin 500mg']


def test_record_from_another_patient_is_not_found(make_user, client_for, patient, make_patient):
    client = client_for(make_user())
    other = make_patient(name='John Roe')
    medication_id = prescribe(client, other).data['data']['id']
    r = client.get(reverse('medication_detail', args=[patient.id, medication_id]))
    assert r.status_code == 404
    assert r.data['error']['code'] == 'NOT_FOUND'
    r = client.delete(reverse('medication_detail', args=[patient.id, medication_id]))
    assert r.status_code == 404
    assert Medication.objects.filter(id=medication_id).exists()


# ---------------------------------------------------------------------
# Vitals
# ---------------------------------------------------------------------
def record_vitals(client, patient, **extra):
    payload = {'date': '2025-03-01', 'time': '08:30', 'systolic': 128, 'diastolic': 82, 'heartRate': 72,
               'temperature': 36.8, 'oxygen': 98, **extra}
    return post(client, 'patient_vitals', patient, payload)


def test_assistant_records_vitals(make_user, client_for, patient):
    assistant = make_user(User.ROLE_MEDICAL_ASSISTANT)
    r = record_vitals(client_for(assistant), patient)
    assert r.status_code == 201
    data = r.data['data']
    assert data['bloodPressure'] == '128/82'
    assert data['recordedById'] == assistant.id


@pytest.mark.parametrize('extra, field', [
    ({'systolic': 120, 'diastolic': 130}, 'diastolic'),
    ({'oxygen': 101}, 'oxygen'),
    ({'time': '8:30am'}, 'time'),
    ({'temperature': 50}, 'temperature'),
])
def test_invalid_vitals(make_user, client_for, patient, extra, field):
    r = record_vitals(client_for(make_user()), patient, **extra)
    assert r.status_code == 400
    assert field in r.data['error']['errors']


def test_latest_vitals_and_delete_rules(make_user, client_for, patient):
    nurse = client_for(make_user(User.ROLE_NURSE))
    record_vitals(nurse, patient)
    newest = record_vitals(nurse, patient, date='2025-03-02', systolic=140).data['data']
    latest = nurse.get(reverse('latest_vitals', args=[patient.id])).data['data']
    assert latest['id'] == newest['id']

    url = reverse('vital_detail', args=[patient.id, newest['id']])
    assert nurse.patch(url, {'diastolic': 150}, format='json').status_code == 400
    assert nurse.delete(url).status_code == 403
    assert client_for(make_user()).delete(url).status_code == 200


def test_latest_vitals_empty(make_user, client_for, patient):
    r = client_for(make_user(User.ROLE_READ_ONLY)).get(reverse('latest_vitals', args=[patient.id]))
    assert r.status_code == 200
    assert r.data['data'] is None


# ---------------------------------------------------------------------
# Lab results
# ---------------------------------------------------------------------
def order_lab(client, patient, **extra):
    payload = {
        'testName': 'Basic metabolic panel', 'testCode': 'BMP', 'category': 'Chemistry',
        'orderedDate': '2025-03-01', 'status': 'ordered', **extra,
    }
    return post(client, 'patient_lab_results', patient, payload)


def test_lab_flags_abnormal_analytes(make_user, client_for, patient):
    doc = make_user()
    r = order_lab(client_for(doc), patient, status='completed', collectedDate='2025-03-01',
                  resultDate='2025-03-02', results={
                      'glucose': {'value': 250, 'unit': 'mg/dL', 'flag': 'HIGH'},
                      'sodium': {'value': 140, 'unit': 'mmol/L', 'flag': 'normal'},
                      'potassium': {'value': 2.9, 'unit': 'mmol/L', 'flag': 'low'},
                  }, referenceRanges={'glucose': '70-99 mg/dL'})
    assert r.status_code == 201
    data = r.data['data']
    assert data['abnormal'] == ['glucose', 'potassium']
    assert data['orderingPhysicianId'] == doc.id
    assert data['referenceRanges'] == {'glucose': '70-99 mg/dL'}


def test_lab_review_stamps_time(make_user, client_for, patient):
    doc = make_user()
    client = client_for(doc)
    lab_id = order_lab(client, patient).data['data']['id']
    url = reverse('lab_result_detail', args=[patient.id, lab_id])

    data = client.patch(url, {'reviewedById': doc.id, 'status': 'completed'}, format='json').data['data']
    assert data['reviewedById'] == doc.id
    assert data['reviewedAt'] is not None

    data = client.patch(url, {'reviewedById': None}, format='json').data['data']
    assert data['reviewedById'] is None
    assert data['reviewedAt'] is None


@pytest.mark.parametrize('extra, field', [
    ({'collectedDate': '2025-02-28'}, 'collectedDate'),
    ({'collectedDate': '2025-03-03', 'resultDate': '2025-03-02'}, 'resultDate'),
    ({'status': 'lost'}, 'status'),
])
def test_invalid_lab_result(make_user, client_for, patient, extra, field):
    r = order_lab(client_for(make_user()), patient, **extra)
    assert r.status_code == 400
    assert field in r.data['error']['errors']


def test_unknown_reviewer_is_not_found(make_user, client_for, patient):
    r = order_lab(client_for(make_user()), patient, reviewedById=987654)
    assert r.status_code == 404
    assert not LabResult.objects.exists()


def test_only_physicians_delete_labs(make_user, client_for, patient):
    np_client = client_for(make_user(User.ROLE_NURSE_PRACTITIONER))
    lab_id = order_lab(np_client, patient).data['data']['id']
    url = reverse('lab_result_detail', args=[patient.id, lab_id])
    assert np_client.delete(url).status_code == 403
    assert client_for(make_user()).delete(url).status_code == 200


def test_lab_list_filters(make_user, client_for, patient):
    client = client_for(make_user())
    order_lab(client, patient)
    order_lab(client, patient, testName='Lipid panel', testCode='LIPID', category='Lipids',
              orderedDate='2025-03-05', status='completed')
    url = reverse('patient_lab_results', args=[patient.id])
    assert [lab['testCode'] for lab in client.get(url).data['data']] == ['LIPID', 'BMP']
    assert [lab['testCode'] for lab in client.get(url, {'status': 'ordered'}).data['data']] == ['BMP']
    assert [lab['testCode'] for lab in client.get(url, {'category': 'lipids'}).data['data']] == ['LIPID']


# ---------------------------------------------------------------------
# Clinical notes
# ---------------------------------------------------------------------
def write_note(client, patient, **extra):
    payload = {'title': 'Follow-up visit', 'content': 'BP improving on current dose.', 'date': '2025-03-01',
               'type': 'follow-up', **extra}
    return post(client, 'patient_clinical_notes', patient, payload)


def test_note_author_and_specialty(make_user, client_for, patient):
    nurse = make_user(User.ROLE_NURSE, specialty='Cardiology')
    r = write_note(client_for(nurse), patient, content='<b>Stable</b> on review')
    assert r.status_code == 201
    data = r.data['data']
    assert data['authorId'] == nurse.id
    assert data['specialty'] == 'Cardiology'
    assert data['content'] == 'Stable on review'


def test_note_accepts_timestamp_dates(make_user, client_for, patient):
    r = write_note(client_for(make_user()), patient, date='2025-03-01T09:30:00Z')
    assert r.status_code == 201
    assert r.data['data']['date'] == '2025-03-01'


def test_note_roles(make_user, client_for, patient):
    assert write_note(client_for(make_user(User.ROLE_MEDICAL_ASSISTANT)), patient).status_code == 403
    nurse = client_for(make_user(User.ROLE_NURSE))
    note_id = write_note(nurse, patient).data['data']['id']
    url = reverse('clinical_note_detail', args=[patient.id, note_id])
    assert nurse.patch(url, {'title': 'Edited'}, format='json').status_code == 403
    pa = client_for(make_user(User.ROLE_PHYSICIAN_ASSISTANT))
    r = pa.patch(url, {'title': 'Edited'}, format='json')
    assert r.status_code == 200
    assert r.data['data']['title'] == 'Edited'
    assert pa.delete(url).status_code == 403
    assert client_for(make_user(User.ROLE_ADMIN)).delete(url).status_code == 200


def test_note_filters(make_user, client_for, patient):
    client = client_for(make_user())
    write_note(client, patient)
    write_note(client, patient, title='Cardiology consult', content='Echo recommended', type='consultation',
               date='2025-03-04')
    url = reverse('patient_clinical_notes', args=[patient.id])
    assert [n['type'] for n in client.get(url).data['data']] == ['consultation', 'follow-up']
    assert [n['title'] for n in client.get(url, {'type': 'follow-up'}).data['data']] == ['Follow-up visit']
    assert [n['title'] for n in client.get(url, {'search': 'echo'}).data['data']] == ['Cardiology consult']


# ---------------------------------------------------------------------
# Surgical notes
# ---------------------------------------------------------------------
def schedule_surgery(client, patient, **extra):
    payload = {
        'date': '2025-04-01', 'procedureName': 'Laparoscopic cholecystectomy', 'procedureType': 'elective',
        'indication': 'Symptomatic gallstones', 'preoperativeDiagnosis': 'Cholelithiasis',
        'procedureDescription': 'Four port laparoscopic approach', **extra,
    }
    return post(client, 'patient_surgical_notes', patient, payload)


def test_elapsed_minutes_wraps_midnight():
    assert elapsed_minutes('08:00', '09:45') == 105
    assert elapsed_minutes('23:30', '01:15') == 105


def test_surgery_team_and_duration(make_user, client_for, patient):
    surgeon = make_user(first_name='Miranda', last_name='Bailey', specialty='General Surgery')
    assistant = make_user(User.ROLE_PHYSICIAN_ASSISTANT)
    anesthesiologist = make_user()
    r = schedule_surgery(client_for(surgeon), patient, startTime='23:30', endTime='01:15',
                         assistantSurgeonIds=[assistant.id, assistant.id],
                         anesthesiologistId=anesthesiologist.id, specimens=['Gallbladder'])
    assert r.status_code == 201
    data = r.data['data']
    assert data['surgeon'] == {'id': surgeon.id, 'name': 'Miranda Bailey', 'specialty': 'General Surgery'}
    assert [p['id'] for p in data['assistantSurgeons']] == [assistant.id]
    assert data['anesthesiologistId'] == anesthesiologist.id
    assert data['duration'] == 105
    assert data['status'] == 'scheduled'
    assert data['specimens'] == ['Gallbladder']

    url = reverse('surgical_note_detail', args=[patient.id, data['id']])
    data = client_for(surgeon).patch(url, {'assistantSurgeonIds': [], 'status': 'completed'},
                                     format='json').data['data']
    assert data['assistantSurgeons'] == []
    assert data['status'] == 'completed'


def test_explicit_duration_wins(make_user, client_for, patient):
    r = schedule_surgery(client_for(make_user()), patient, startTime='08:00', endTime='09:00', duration=75)
    assert r.data['data']['duration'] == 75


@pytest.mark.parametrize('extra, field', [
    ({'followUpDate': '2025-03-01'}, 'followUpDate'),
    ({'startTime': '08:00', 'endTime': '08:00'}, 'endTime'),
    ({'procedureType': 'optional'}, 'procedureType'),
])
def test_invalid_surgical_note(make_user, client_for, patient, extra, field):
    r = schedule_surgery(client_for(make_user()), patient, **extra)
    assert r.status_code == 400
    assert field in r.data['error']['errors']


def test_unknown_assistant_is_not_found(make_user, client_for, patient):
    r = schedule_surgery(client_for(make_user()), patient, assistantSurgeonIds=[987654])
    assert r.status_code == 404
    assert r.data['error']['code'] == 'NOT_FOUND'


def test_nurse_cannot_write_surgical_notes(make_user, client_for, patient):
    assert schedule_surgery(client_for(make_user(User.ROLE_NURSE)), patient).status_code == 403


# ---------------------------------------------------------------------
# Imaging
# ---------------------------------------------------------------------
def order_imaging(client, patient, **extra):
    payload = {'type': 'Chest CT', 'modality': 'CT', 'bodyPart': 'Chest', 'date': '2025-03-10',
               'findings': 'No acute findings', **extra}
    return post(client, 'patient_imaging_studies', patient, payload)


def test_imaging_roles(make_user, client_for, patient):
    np_user = make_user(User.ROLE_NURSE_PRACTITIONER)
    np_client = client_for(np_user)
    r = order_imaging(np_client, patient)
    assert r.status_code == 201
    assert r.data['data']['status'] == 'pending'
    assert r.data['data']['orderingPhysicianId'] == np_user.id

    url = reverse('imaging_study_detail', args=[patient.id, r.data['data']['id']])
    assert np_client.patch(url, {'status': 'completed'}, format='json').status_code == 403
    doc = client_for(make_user())
    data = doc.patch(url, {'status': 'completed', 'reportUrl': 'https://pacs.hospital.test/r/1'},
                     format='json').data['data']
    assert data['status'] == 'completed'
    assert data['reportUrl'] == 'https://pacs.hospital.test/r/1'
    assert np_client.delete(url).status_code == 403
    assert doc.delete(url).status_code == 200


def test_imaging_validation_and_filters(make_user, client_for, patient):
    client = client_for(make_user())
    r = order_imaging(client, patient, modality='SPECT', reportUrl='not a url')
    assert r.status_code == 400
    assert {'modality', 'reportUrl'} <= set(r.data['error']['errors'])

    order_imaging(client, patient)
    order_imaging(client, patient, type='Knee MRI', modality='MRI', bodyPart='Knee', date='2025-03-12')
    url = reverse('patient_imaging_studies', args=[patient.id])
    assert [s['modality'] for s in client.get(url).data['data']] == ['MRI', 'CT']
    assert [s['bodyPart'] for s in client.get(url, {'modality': 'CT'}).data['data']] == ['Chest']
    assert [s['bodyPart'] for s in client.get(url, {'search': 'knee'}).data['data']] == ['Knee']


# ---------------------------------------------------------------------
# Consents
# ---------------------------------------------------------------------
def draft_consent(client, patient, **extra):
    payload = {'date': '2025-04-01', 'type': 'surgery', 'title': 'Consent for cholecystectomy',
               'description': 'Removal of the gallbladder under general anesthesia.',
               'risks': ['Bleeding', 'Infection'], **extra}
    return post(client, 'patient_consents', patient, payload)


def test_consent_signing(make_user, client_for, patient):
    doc = make_user(first_name='Perry', last_name='Cox')
    client = client_for(make_user(User.ROLE_MEDICAL_ASSISTANT))
    r = draft_consent(client, patient, physicianId=doc.id)
    assert r.status_code == 201
    data = r.data['data']
    assert data['status'] == 'pending'
    assert data['physicianName'] == 'Perry Cox'
    assert data['risks'] == ['Bleeding', 'Infection']

    url = reverse('consent_detail', args=[patient.id, data['id']])
    r = client.patch(url, {'status': 'signed'}, format='json')
    assert r.status_code == 400
    assert 'signedBy' in r.data['error']['errors']

    data = client.patch(url, {'status': 'signed', 'signedBy': 'Jane Doe'}, format='json').data['data']
    assert data['status'] == 'signed'
    assert data['signedDate'] == timezone.localdate().isoformat()


def test_signed_consent_past_expiry_reads_expired(make_user, client_for, patient):
    today = timezone.localdate()
    r = draft_consent(client_for(make_user()), patient, status='signed', signedBy='Jane Doe',
                      date=(today - timedelta(days=400)).isoformat(),
                      signedDate=(today - timedelta(days=400)).isoformat(),
                      expirationDate=(today - timedelta(days=35)).isoformat())
    assert r.status_code == 201
    assert r.data['data']['status'] == 'expired'


@pytest.mark.parametrize('extra, field', [
    ({'expirationDate': '2025-03-01'}, 'expirationDate'),
    ({'description': 'Too short'}, 'description'),
    ({'type': 'tattoo'}, 'type'),
])
def test_invalid_consent(make_user, client_for, patient, extra, field):
    r = draft_consent(client_for(make_user()), patient, **extra)
    assert r.status_code == 400
    assert field in r.data['error']['errors']


def test_consent_roles(make_user, client_for, patient):
    assert draft_consent(client_for(make_user(User.ROLE_RECEPTIONIST)), patient).status_code == 403
    nurse = client_for(make_user(User.ROLE_NURSE))
    consent_id = draft_consent(nurse, patient).data['data']['id']
    url = reverse('consent_detail', args=[patient.id, consent_id])
    assert nurse.delete(url).status_code == 403
    assert client_for(make_user()).delete(url).status_code == 200


# ---------------------------------------------------------------------
# Nutrition
# ---------------------------------------------------------------------
def assess_nutrition(client, patient, **extra):
    payload = {'date': '2025-03-15', 'type': 'assessment', 'currentDiet': 'Regular',
               'recommendedDiet': 'Low sodium', **extra}
    return post(client, 'patient_nutrition', patient, payload)


def test_bmi_is_computed_from_measurements(make_user, client_for, patient):
    client = client_for(make_user(User.ROLE_MEDICAL_ASSISTANT))
    r = assess_nutrition(client, patient, weight=70, height=175, bmi=40,
                         supplements=[{'name': 'Vitamin D', 'dosage': '1000 IU', 'frequency': 'daily'}],
                         mealPlan=[{'meal': 'Breakfast', 'description': 'Oatmeal', 'calories': 350}])
    assert r.status_code == 201
    data = r.data['data']
    assert data['bmi'] == 22.9
    assert data['supplements'][0]['name'] == 'Vitamin D'
    assert data['mealPlan'][0]['calories'] == 350

    url = reverse('nutrition_entry_detail', args=[patient.id, data['id']])
    assert client.patch(url, {'weight': 80}, format='json').data['data']['bmi'] == 26.1


def test_submitted_bmi_kept_without_measurements(make_user, client_for, patient):
    r = assess_nutrition(client_for(make_user()), patient, bmi=24.5)
    assert r.data['data']['bmi'] == 24.5


def test_nutrition_validation_and_filters(make_user, client_for, patient):
    client = client_for(make_user())
    r = assess_nutrition(client, patient, weight=0, type='diet')
    assert r.status_code == 400
    assert {'weight', 'type'} <= set(r.data['error']['errors'])

    assess_nutrition(client, patient)
    assess_nutrition(client, patient, type='monitoring', date='2025-03-20', recommendedDiet='Renal diet')
    url = reverse('patient_nutrition', args=[patient.id])
    assert [e['type'] for e in client.get(url).data['data']] == ['monitoring', 'assessment']
    assert [e['type'] for e in client.get(url, {'type': 'assessment'}).data['data']] == ['assessment']
    assert [e['type'] for e in client.get(url, {'search': 'renal'}).data['data']] == ['monitoring']


# ---------------------------------------------------------------------
# Patient record
# ---------------------------------------------------------------------
def test_chart_feeds_detail_and_timeline(make_user, client_for, patient):
    client = client_for(make_user())
    detail_url = reverse('patient_detail', args=[patient.id])
    assert client.get(detail_url).data['data']['activeMedications'] == []

    prescribe(client, patient)
    prescribe(client, patient, name='Old statin', status='historical')
    record_vitals(client, patient)
    order_lab(client, patient, orderedDate='2025-03-03')
    write_note(client, patient, date='2025-03-04')

    detail = client.get(detail_url).data['data']
    assert [m['name'] for m in detail['activeMedications']] == ['Lisinopril 10mg']
    assert detail['latestVitals']['bloodPressure'] == '128/82'

    events = client.get(reverse('patient_timeline', args=[patient.id])).data['data']
    assert [e['type'] for e in events[:2]] == ['clinical_note', 'lab_result']
    assert {'medication'} <= {e['type'] for e in events}


def test_chart_writes_are_audited(make_user, client_for, patient):
    client = client_for(make_user())
    medication_id = prescribe(client, patient).data['data']['id']
    log = AuditLog.objects.get(action='CREATE')
    assert log.resource_type == 'Medication'
    assert log.patient_id == patient.id

    client.get(reverse('lab_result_detail', args=[patient.id, 12345]))
    log = AuditLog.objects.filter(resource_type='LabResult').get()
    assert log.resource_id == '12345'
    assert log.status_code == 404
    assert Medication.objects.filter(id=medication_id).exists()
