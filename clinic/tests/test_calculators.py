import pytest
from django.urls import reverse

from clinic.exceptions import ValidationError
from clinic.serializers.calculators import INPUT_SERIALIZERS
from clinic.services import calculators as calc


def test_dosage_with_volume():
    result = calc.dosage(weight=70, dose_per_kg=5, concentration=50)
    assert result.value == 350
    assert result.unit == 'mg'
    assert result.extra['volumeMl'] == 7.0


def test_drip_rate():
    result = calc.drip_rate(volume=1000, time_hours=8, drop_factor=20)
    assert result.value == 41.7
    assert result.extra['mlPerHour'] == 125.0


def test_bmi_and_bsa():
    bmi = calc.bmi(weight=70, height=175)
    assert bmi.value == 22.9
    assert bmi.extra['category'] == 'Normal weight'
    assert bmi.warnings == []
    assert calc.bmi(weight=120, height=175).warnings
    assert calc.bsa(height=180, weight=80).value == 2.0


def test_creatinine_clearance_sex_factor():
    assert calc.creatinine_clearance(age=60, weight=72, creatinine=1.0, sex='male').value == 80.0
    female = calc.creatinine_clearance(age=60, weight=72, creatinine=1.0, sex='female')
    assert female.value == 68.0
    assert female.warnings == []
    assert calc.creatinine_clearance(age=90, weight=50, creatinine=2.0, sex='male').warnings


def test_half_life_and_steady_state():
    assert calc.half_life(initial_dose=100, half_life_hours=4, time_hours=8).value == 25.0
    steady = calc.steady_state(half_life_hours=10)
    assert steady.value == pytest.approx(43.0)
    assert steady.extra['time99'] == pytest.approx(66.0)


def test_pediatric_dose_uses_lower_rule():
    result = calc.pediatric_dose(age=6, weight=45, adult_dose=300)
    assert result.extra['youngsRule'] == 100.0
    assert result.value == 90.0


def test_labs_and_vitals():
    assert calc.anion_gap(sodium=140, chloride=104, bicarbonate=24).value == 12.0
    assert calc.mean_arterial_pressure(systolic=120, diastolic=80).value == 93.3
    assert calc.qtc(qt=400, rr=1.0).value == 400
    assert calc.qtc(qt=520, rr=1.0).warnings[0].startswith('Critical')


def test_fluids():
    parkland = calc.parkland(weight=70, tbsa=20)
    assert parkland.value == 5600
    assert parkland.extra['first8HoursRate'] == 350
    maintenance = calc.fluid_maintenance(weight=25)
    assert maintenance.value == 1600
    assert maintenance.extra['hourly'] == 66.7


def test_psychiatric_conversions():
    result = calc.antipsychotic_equivalent(from_drug='Haloperidol', to_drug='Olanzapine', dose=10)
    assert result.value == 25.0
    assert result.extra['chlorpromazineEquivalent'] == 500.0
    lithium = calc.lithium_dose(current_dose=900, current_level=0.6, target_level=1.5)
    assert lithium.value == 2250.0
    assert lithium.warnings


def test_ideal_body_weight_and_cost():
    assert calc.ideal_body_weight(height=180, sex='male').value == 75.0
    assert calc.cost(price_per_unit=0.5, units_per_dose=2, doses_per_day=3).value == 90.0


@pytest.mark.parametrize('func, kwargs, field', [
    (calc.dilution, {'initial_concentration': 5, 'desired_concentration': 10, 'desired_volume': 100},
     'desired_concentration'),
    (calc.free_water_deficit, {'weight': 70, 'sodium': 130}, 'sodium'),
    (calc.blood_loss, {'weight': 70, 'pre_hct': 30, 'post_hct': 40}, 'post_hct'),
    (calc.rule_of_nines, {'chest': 60, 'back': 50}, 'total'),
    (calc.dosage, {'weight': 0, 'dose_per_kg': 5}, 'weight'),
    (calc.creatinine_clearance, {'age': 150, 'weight': 70, 'creatinine': 1.0, 'sex': 'male'}, 'age'),
    (calc.creatinine_clearance, {'age': 140, 'weight': 70, 'creatinine': 1.0, 'sex': 'female'}, 'age'),
    (calc.antipsychotic_equivalent, {'from_drug': 'Aspirin', 'to_drug': 'Haloperidol', 'dose': 1}, 'from_drug'),
])
def test_invalid_inputs(func, kwargs, field):
    with pytest.raises(ValidationError) as excinfo:
        func(**kwargs)
    assert field in excinfo.value.errors


def test_every_calculator_has_an_input_serializer():
    assert set(INPUT_SERIALIZERS) == set(calc.CALCULATORS)
    assert len(calc.CALCULATORS) == 27


@pytest.mark.django_db
def test_calculator_api(make_user, client_for):
    client = client_for(make_user())
    r = client.get(reverse('calculators'))
    assert len(r.data['data']) == 27

    r = client.post(reverse('calculator_evaluate', args=['half-life']),
                    {'initialDose': 100, 'halfLife': 4, 'time': 8}, format='json')
    assert r.status_code == 200
    assert r.data['data']['value'] == 25.0
    assert r.data['data']['unit'] == 'mg'

    r = client.post(reverse('calculator_evaluate', args=['rule-of-nines']), {'leftArm': 9, 'chest': 18},
                    format='json')
    assert r.data['data']['value'] == 27.0


@pytest.mark.django_db
def test_calculator_api_errors(make_user, client_for, client):
    assert client.post(reverse('calculator_evaluate', args=['bmi']), {}).status_code == 401
    api = client_for(make_user())
    assert api.post(reverse('calculator_evaluate', args=['astrology']), {}, format='json').status_code == 404
    r = api.post(reverse('calculator_evaluate', args=['bmi']), {'weight': 70}, format='json')
    assert r.status_code == 400
    assert 'height' in r.data['error']['errors']
    r = api.post(reverse('calculator_evaluate', args=['free-water-deficit']), {'weight': 70, 'sodium': 120},
                 format='json')
    assert r.status_code == 400


@pytest.mark.django_db
def test_creatinine_clearance_rejects_implausible_age(make_user, client_for):
    r = client_for(make_user()).post(
        reverse('calculator_evaluate', args=['creatinine-clearance']),
        {'age': 150, 'weight': 70, 'creatinine': 1.0, 'sex': 'male'}, format='json',
    )
    assert r.status_code == 400
    assert 'age' in r.data['error']['errors']
