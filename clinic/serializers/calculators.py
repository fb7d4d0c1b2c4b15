"""
Input serializers for the calculator endpoints.

Fields are camelCase on the wire; ``source`` maps each one onto the
keyword argument of the matching function in
:mod:`clinic.services.calculators`, so ``validated_data`` can be passed
straight through.
"""
from rest_framework import serializers

from clinic.services.calculators import CHLORPROMAZINE_EQUIVALENTS

UNITS = ['metric', 'imperial']
SEXES = ['male', 'female']


def num(source=None, **kwargs):
    if source:
        kwargs['source'] = source
    return serializers.FloatField(**kwargs)


def unit_field():
    return serializers.ChoiceField(choices=UNITS, required=False, default='metric')


class DosageSerializer(serializers.Serializer):
    weight = num()
    dosePerKg = num('dose_per_kg')
    concentration = num(required=False, allow_null=True)


class DripRateSerializer(serializers.Serializer):
    volume = num()
    timeHours = num('time_hours')
    dropFactor = num('drop_factor', required=False, default=20)


class BSASerializer(serializers.Serializer):
    height = num()
    weight = num()
    unit = unit_field()


class CreatinineClearanceSerializer(serializers.Serializer):
    age = num()
    weight = num()
    creatinine = num()
    sex = serializers.ChoiceField(choices=SEXES)


class PediatricDoseSerializer(serializers.Serializer):
    age = num()
    weight = num()
    adultDose = num('adult_dose')


class HalfLifeSerializer(serializers.Serializer):
    initialDose = num('initial_dose')
    halfLife = num('half_life_hours')
    time = num('time_hours')


class IVInfusionSerializer(serializers.Serializer):
    dose = num()
    weight = num()
    concentration = num()


class BodyWeightDoseSerializer(serializers.Serializer):
    weight = num()
    dosePerKg = num('dose_per_kg')


class AlligationSerializer(serializers.Serializer):
    high = num()
    low = num()
    desired = num()


class CostSerializer(serializers.Serializer):
    pricePerUnit = num('price_per_unit')
    unitsPerDose = num('units_per_dose')
    dosesPerDay = num('doses_per_day')


class DilutionSerializer(serializers.Serializer):
    initialConcentration = num('initial_concentration')
    desiredConcentration = num('desired_concentration')
    desiredVolume = num('desired_volume')


class SteadyStateSerializer(serializers.Serializer):
    halfLife = num('half_life_hours')


class BMISerializer(serializers.Serializer):
    weight = num()
    height = num()
    unit = unit_field()


class IdealBodyWeightSerializer(serializers.Serializer):
    height = num()
    sex = serializers.ChoiceField(choices=SEXES)
    unit = unit_field()


class AdjustedBodyWeightSerializer(IdealBodyWeightSerializer):
    actualWeight = num('actual_weight')


class EGFRSerializer(serializers.Serializer):
    creatinine = num()
    age = num()
    sex = serializers.ChoiceField(choices=SEXES)
    black = serializers.BooleanField(required=False, default=False)


class AnionGapSerializer(serializers.Serializer):
    sodium = num()
    chloride = num()
    bicarbonate = num()


class QTcSerializer(serializers.Serializer):
    qt = num()
    rr = num()
    formula = serializers.ChoiceField(choices=['bazett', 'fridericia'], required=False, default='bazett')


class MAPSerializer(serializers.Serializer):
    systolic = num()
    diastolic = num()


class ParklandSerializer(serializers.Serializer):
    weight = num()
    tbsa = num()


class RuleOfNinesSerializer(serializers.Serializer):
    head = num(required=False, default=0)
    chest = num(required=False, default=0)
    abdomen = num(required=False, default=0)
    back = num(required=False, default=0)
    leftArm = num('left_arm', required=False, default=0)
    rightArm = num('right_arm', required=False, default=0)
    leftLeg = num('left_leg', required=False, default=0)
    rightLeg = num('right_leg', required=False, default=0)
    genitalia = num(required=False, default=0)


class FreeWaterDeficitSerializer(serializers.Serializer):
    weight = num()
    sodium = num()


class FluidMaintenanceSerializer(serializers.Serializer):
    weight = num()


class AntipsychoticEquivalentSerializer(serializers.Serializer):
    fromDrug = serializers.ChoiceField(choices=sorted(CHLORPROMAZINE_EQUIVALENTS), source='from_drug')
    toDrug = serializers.ChoiceField(choices=sorted(CHLORPROMAZINE_EQUIVALENTS), source='to_drug')
    dose = num()


class LithiumDoseSerializer(serializers.Serializer):
    currentDose = num('current_dose')
    currentLevel = num('current_level')
    targetLevel = num('target_level')


class BloodLossSerializer(serializers.Serializer):
    weight = num()
    preHct = num('pre_hct')
    postHct = num('post_hct')


class PostopFluidsSerializer(serializers.Serializer):
    weight = num()
    maintenance = num(required=False, default=0)
    thirdSpace = num('third_space', required=False, default=0)


INPUT_SERIALIZERS = {
    'dosage': DosageSerializer,
    'drip-rate': DripRateSerializer,
    'bsa': BSASerializer,
    'creatinine-clearance': CreatinineClearanceSerializer,
    'pediatric-dose': PediatricDoseSerializer,
    'half-life': HalfLifeSerializer,
    'iv-infusion': IVInfusionSerializer,
    'body-weight-dose': BodyWeightDoseSerializer,
    'alligation': AlligationSerializer,
    'cost': CostSerializer,
    'dilution': DilutionSerializer,
    'steady-state': SteadyStateSerializer,
    'bmi': BMISerializer,
    'ideal-body-weight': IdealBodyWeightSerializer,
    'adjusted-body-weight': AdjustedBodyWeightSerializer,
    'egfr': EGFRSerializer,
    'anion-gap': AnionGapSerializer,
    'qtc': QTcSerializer,
    'map': MAPSerializer,
    'parkland': ParklandSerializer,
    'rule-of-nines': RuleOfNinesSerializer,
    'free-water-deficit': FreeWaterDeficitSerializer,
    'fluid-maintenance': FluidMaintenanceSerializer,
    'antipsychotic-equivalent': AntipsychoticEquivalentSerializer,
    'lithium-dose': LithiumDoseSerializer,
    'blood-loss': BloodLossSerializer,
    'postop-fluids': PostopFluidsSerializer,
}
