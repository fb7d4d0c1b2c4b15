"""
Stateless medication and clinical calculators.

Every calculator takes plain numbers (already type-checked by the input
serializers) and returns a :class:`CalculatorResult`. Inputs outside a
formula's domain raise :class:`~clinic.exceptions.ValidationError`.
Results are decision support only and are not clamped or interpreted
beyond the warnings listed with each formula.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable

from clinic.exceptions import NotFoundError, ValidationError

KG_PER_LB = 0.453592
LB_PER_KG = 2.20462
CM_PER_IN = 2.54


@dataclass
class CalculatorResult:
    value: float
    unit: str
    explanation: str = ''
    warnings: list[str] = field(default_factory=list)
    extra: dict = field(default_factory=dict)

    def as_dict(self) -> dict:
        return {
            'value': self.value,
            'unit': self.unit,
            'explanation': self.explanation,
            'warnings': self.warnings,
            'extra': self.extra,
        }


def _r(value: float, places: int = 2) -> float:
    return round(value, places)


def _require_positive(**values) -> None:
    errors = {name: ['Must be greater than zero'] for name, v in values.items() if v is None or v <= 0}
    if errors:
        raise ValidationError('Invalid calculator input', errors)


def _invalid(field_name: str, message: str) -> ValidationError:
    return ValidationError(message, {field_name: [message]})


def _to_kg(weight: float, unit: str) -> float:
    return weight * KG_PER_LB if unit == 'imperial' else weight


def _to_cm(height: float, unit: str) -> float:
    return height * CM_PER_IN if unit == 'imperial' else height


def _holliday_segar(weight: float) -> float:
    if weight <= 10:
        return weight * 100
    if weight <= 20:
        return 1000 + (weight - 10) * 50
    return 1500 + (weight - 20) * 20


# ---------------------------------------------------------------------
# Dosing
# ---------------------------------------------------------------------
def dosage(*, weight: float, dose_per_kg: float, concentration: float | None = None) -> CalculatorResult:
    _require_positive(weight=weight, dose_per_kg=dose_per_kg)
    total = weight * dose_per_kg
    extra = {}
    explanation = f"{weight} kg × {dose_per_kg} mg/kg = {_r(total)} mg"
    if concentration is not None:
        _require_positive(concentration=concentration)
        volume = total / concentration
        extra['volumeMl'] = _r(volume)
        explanation += f"; volume {_r(volume)} mL at {concentration} mg/mL"
    return CalculatorResult(_r(total), 'mg', explanation, extra=extra)


def drip_rate(*, volume: float, time_hours: float, drop_factor: float = 20) -> CalculatorResult:
    _require_positive(volume=volume, time_hours=time_hours, drop_factor=drop_factor)
    rate = (volume * drop_factor) / (time_hours * 60)
    return CalculatorResult(
        _r(rate, 1), 'drops/min',
        f"({volume} mL × {drop_factor} gtt/mL) / ({time_hours} h × 60 min)",
        extra={'mlPerHour': _r(volume / time_hours)},
    )


def pediatric_dose(*, age: float, weight: float, adult_dose: float) -> CalculatorResult:
    """Lower of Young's (age) and Clark's (weight in lb) rules."""
    _require_positive(age=age, weight=weight, adult_dose=adult_dose)
    young = age / (age + 12) * adult_dose
    clark = weight / 150 * adult_dose
    return CalculatorResult(
        _r(min(young, clark)), 'mg',
        f"Young's rule: {_r(young)} mg | Clark's rule: {_r(clark)} mg (using lower value)",
        extra={'youngsRule': _r(young), 'clarksRule': _r(clark)},
    )


def half_life(*, initial_dose: float, half_life_hours: float, time_hours: float) -> CalculatorResult:
    _require_positive(initial_dose=initial_dose, half_life_hours=half_life_hours)
    if time_hours is None or time_hours < 0:
        raise _invalid('time_hours', 'Must not be negative')
    remaining = initial_dose * math.pow(0.5, time_hours / half_life_hours)
    return CalculatorResult(
        _r(remaining), 'mg',
        f"{initial_dose} mg × 0.5^({time_hours} / {half_life_hours})",
        extra={'eliminated': _r(initial_dose - remaining), 'halfLivesElapsed': _r(time_hours / half_life_hours)},
    )


def iv_infusion(*, dose: float, weight: float, concentration: float) -> CalculatorResult:
    _require_positive(dose=dose, weight=weight, concentration=concentration)
    rate = dose * weight / concentration
    return CalculatorResult(_r(rate), 'mL/hour', f"({dose} mg/kg/hr × {weight} kg) / {concentration} mg/mL")


def body_weight_dose(*, weight: float, dose_per_kg: float) -> CalculatorResult:
    _require_positive(weight=weight, dose_per_kg=dose_per_kg)
    return CalculatorResult(_r(weight * dose_per_kg), 'mg', f"{weight} kg × {dose_per_kg} mg/kg")


def alligation(*, high: float, low: float, desired: float) -> CalculatorResult:
    _require_positive(high=high, desired=desired)
    if low is None or low < 0:
        raise _invalid('low', 'Must not be negative')
    if desired > high:
        raise _invalid('desired', 'Desired concentration cannot exceed the high concentration')
    if low > 0 and desired < low:
        raise _invalid('desired', 'Desired concentration cannot be below the low concentration')
    parts_high = desired - low
    parts_low = high - desired
    total = parts_high + parts_low
    return CalculatorResult(
        _r(total), 'parts',
        f"{_r(parts_high)} parts of {high}% + {_r(parts_low)} parts of {low}%",
        extra={'partsHigh': _r(parts_high), 'partsLow': _r(parts_low)},
    )


def cost(*, price_per_unit: float, units_per_dose: float, doses_per_day: float) -> CalculatorResult:
    _require_positive(price_per_unit=price_per_unit, units_per_dose=units_per_dose, doses_per_day=doses_per_day)
    per_dose = price_per_unit * units_per_dose
    per_day = per_dose * doses_per_day
    per_month = per_day * 30
    return CalculatorResult(
        _r(per_month), 'per month',
        f"Per dose {_r(per_dose)}, per day {_r(per_day)}, per 30-day month {_r(per_month)}",
        extra={'perDose': _r(per_dose), 'perDay': _r(per_day), 'perMonth': _r(per_month)},
    )


def dilution(*, initial_concentration: float, desired_concentration: float, desired_volume: float) -> CalculatorResult:
    _require_positive(
        initial_concentration=initial_concentration,
        desired_concentration=desired_concentration,
        desired_volume=desired_volume,
    )
    if desired_concentration > initial_concentration:
        raise _invalid('desired_concentration', 'Desired concentration cannot exceed the stock concentration')
    stock = desired_concentration * desired_volume / initial_concentration
    return CalculatorResult(
        _r(stock), 'mL',
        f"C1V1 = C2V2: {_r(stock)} mL stock + {_r(desired_volume - stock)} mL diluent",
        extra={'diluentMl': _r(desired_volume - stock)},
    )


def steady_state(*, half_life_hours: float) -> CalculatorResult:
    _require_positive(half_life_hours=half_life_hours)
    t90, t95, t99 = 3.3 * half_life_hours, 4.3 * half_life_hours, 6.6 * half_life_hours
    return CalculatorResult(
        _r(t95), 'hours',
        f"90% at {_r(t90)} h, 95% at {_r(t95)} h, 99% at {_r(t99)} h",
        extra={'time90': _r(t90), 'time95': _r(t95), 'time99': _r(t99)},
    )


CHLORPROMAZINE_EQUIVALENTS = {
    'Chlorpromazine': 100,
    'Haloperidol': 2,
    'Risperidone': 2,
    'Olanzapine': 5,
    'Quetiapine': 75,
    'Aripiprazole': 7.5,
    'Ziprasidone': 40,
    'Clozapine': 50,
    'Fluphenazine': 2,
    'Perphenazine': 10,
}


def antipsychotic_equivalent(*, from_drug: str, to_drug: str, dose: float) -> CalculatorResult:
    _require_positive(dose=dose)
    if from_drug not in CHLORPROMAZINE_EQUIVALENTS:
        raise _invalid('from_drug', f"Unknown drug: {from_drug}")
    if to_drug not in CHLORPROMAZINE_EQUIVALENTS:
        raise _invalid('to_drug', f"Unknown drug: {to_drug}")
    cpz = dose / CHLORPROMAZINE_EQUIVALENTS[from_drug] * 100
    target = cpz / 100 * CHLORPROMAZINE_EQUIVALENTS[to_drug]
    return CalculatorResult(
        _r(target), 'mg',
        f"{dose} mg {from_drug} ≈ {_r(cpz)} mg chlorpromazine ≈ {_r(target)} mg {to_drug}",
        ['Equivalents are approximate; titrate and monitor clinically'],
        extra={'chlorpromazineEquivalent': _r(cpz)},
    )


def lithium_dose(*, current_dose: float, current_level: float, target_level: float) -> CalculatorResult:
    _require_positive(current_dose=current_dose, current_level=current_level, target_level=target_level)
    new_dose = target_level / current_level * current_dose
    warnings = []
    if target_level > 1.2:
        warnings.append('Target level > 1.2 mEq/L - Monitor for toxicity')
    elif target_level < 0.6:
        warnings.append('Target level < 0.6 mEq/L - May be subtherapeutic')
    return CalculatorResult(
        _r(new_dose), 'mg/day',
        f"({target_level} / {current_level}) × {current_dose} mg/day", warnings,
    )


# ---------------------------------------------------------------------
# Body measurements
# ---------------------------------------------------------------------
def bsa(*, height: float, weight: float, unit: str = 'metric') -> CalculatorResult:
    """Mosteller body surface area."""
    _require_positive(height=height, weight=weight)
    h_cm, w_kg = _to_cm(height, unit), _to_kg(weight, unit)
    value = math.sqrt(h_cm * w_kg / 3600)
    return CalculatorResult(_r(value), 'm²', f"Mosteller: √({_r(h_cm, 1)} cm × {_r(w_kg, 1)} kg / 3600)")


def bmi(*, weight: float, height: float, unit: str = 'metric') -> CalculatorResult:
    _require_positive(weight=weight, height=height)
    w_kg = _to_kg(weight, unit)
    h_m = height * 0.0254 if unit == 'imperial' else height / 100
    value = w_kg / (h_m * h_m)
    if value < 18.5:
        category = 'Underweight'
    elif value < 25:
        category = 'Normal weight'
    elif value < 30:
        category = 'Overweight'
    elif value < 35:
        category = 'Obese Class I'
    elif value < 40:
        category = 'Obese Class II'
    else:
        category = 'Obese Class III'
    warnings = ['Obesity may require adjusted dosing for certain medications'] if value >= 30 else []
    return CalculatorResult(_r(value, 1), 'kg/m²', f"BMI category: {category}", warnings,
                            extra={'category': category})


def _ibw_kg(height_cm: float, sex: str) -> float:
    base = 50 if sex == 'male' else 45.5
    return base + 2.3 * ((height_cm - 152.4) / CM_PER_IN)


def ideal_body_weight(*, height: float, sex: str, unit: str = 'metric') -> CalculatorResult:
    """Devine formula; imperial input in inches gives a result in lbs."""
    _require_positive(height=height)
    ibw = _ibw_kg(_to_cm(height, unit), sex)
    if ibw <= 0:
        raise _invalid('height', 'Height is too low for the Devine formula')
    if unit == 'imperial':
        return CalculatorResult(_r(ibw * LB_PER_KG, 1), 'lbs', f"Devine formula ({sex})")
    return CalculatorResult(_r(ibw, 1), 'kg', f"Devine formula ({sex})")


def adjusted_body_weight(*, height: float, sex: str, actual_weight: float, unit: str = 'metric') -> CalculatorResult:
    _require_positive(height=height, actual_weight=actual_weight)
    ibw = _ibw_kg(_to_cm(height, unit), sex)
    if ibw <= 0:
        raise _invalid('height', 'Height is too low for the Devine formula')
    actual = _to_kg(actual_weight, unit)
    adjusted = ibw + 0.4 * (actual - ibw)
    factor, label = (LB_PER_KG, 'lbs') if unit == 'imperial' else (1, 'kg')
    return CalculatorResult(
        _r(adjusted * factor, 1), label,
        f"IBW {_r(ibw * factor, 1)} {label} + 0.4 × (actual − IBW)",
        extra={'idealBodyWeight': _r(ibw * factor, 1)},
    )


# ---------------------------------------------------------------------
# Renal
# ---------------------------------------------------------------------
def creatinine_clearance(*, age: float, weight: float, creatinine: float, sex: str) -> CalculatorResult:
    """Cockcroft-Gault."""
    _require_positive(age=age, weight=weight, creatinine=creatinine)
    if age >= 140:
        raise _invalid('age', 'Age must be below 140 years')
    factor = 1 if sex == 'male' else 0.85
    crcl = ((140 - age) * weight * factor) / (72 * creatinine)
    warnings = []
    if crcl < 30:
        warnings.append('Severe renal impairment - consider dose reduction')
    elif crcl < 60:
        warnings.append('Moderate renal impairment - may need dose adjustment')
    return CalculatorResult(
        _r(crcl, 1), 'mL/min',
        f"Cockcroft-Gault: ((140 − {age}) × {weight} kg{' × 0.85' if sex != 'male' else ''}) / (72 × {creatinine})",
        warnings,
    )


def egfr(*, creatinine: float, age: float, sex: str, black: bool = False) -> CalculatorResult:
    """MDRD (4-variable) estimated GFR."""
    _require_positive(creatinine=creatinine, age=age)
    value = 175 * math.pow(creatinine, -1.154) * math.pow(age, -0.203)
    if sex == 'female':
        value *= 0.993
    if black:
        value *= 1.159
    warnings = []
    if value < 15:
        warnings.append('Stage 5 CKD - Consider dialysis')
    elif value < 30:
        warnings.append('Stage 4 CKD - Severe impairment')
    elif value < 60:
        warnings.append('Stage 3 CKD - Moderate impairment')
    elif value < 90:
        warnings.append('Stage 2 CKD - Mild impairment')
    return CalculatorResult(_r(value, 1), 'mL/min/1.73m²', 'MDRD equation', warnings)


# ---------------------------------------------------------------------
# Labs & vitals
# ---------------------------------------------------------------------
def anion_gap(*, sodium: float, chloride: float, bicarbonate: float) -> CalculatorResult:
    _require_positive(sodium=sodium, chloride=chloride, bicarbonate=bicarbonate)
    gap = sodium - (chloride + bicarbonate)
    warnings = []
    if gap > 16:
        warnings.append('High anion gap - Consider metabolic acidosis causes')
    elif gap < 8:
        warnings.append('Low anion gap - Consider measurement error or hypoalbuminemia')
    return CalculatorResult(_r(gap, 1), 'mEq/L', f"{sodium} − ({chloride} + {bicarbonate})", warnings)


def qtc(*, qt: float, rr: float, formula: str = 'bazett') -> CalculatorResult:
    """Corrected QT; ``qt`` in ms, ``rr`` in seconds."""
    _require_positive(qt=qt, rr=rr)
    if formula == 'fridericia':
        value = qt / math.pow(rr, 1 / 3)
        label = 'Fridericia: QT / ∛RR'
    else:
        value = qt / math.sqrt(rr)
        label = 'Bazett: QT / √RR'
    warnings = []
    if value > 500:
        warnings.append('Critical: QTc > 500ms - High risk of torsades de pointes')
    elif value > 470:
        warnings.append('Prolonged: QTc > 470ms (men) or > 480ms (women)')
    elif value < 350:
        warnings.append('Short QTc - May indicate hypercalcemia or other conditions')
    return CalculatorResult(_r(value, 0), 'ms', label, warnings)


def mean_arterial_pressure(*, systolic: float, diastolic: float) -> CalculatorResult:
    _require_positive(systolic=systolic, diastolic=diastolic)
    if systolic < diastolic:
        raise _invalid('systolic', 'Systolic pressure cannot be lower than diastolic')
    value = (2 * diastolic + systolic) / 3
    warnings = []
    if value < 60:
        warnings.append('Low MAP - May indicate shock or hypotension')
    elif value > 100:
        warnings.append('High MAP - May indicate hypertension')
    return CalculatorResult(_r(value, 1), 'mmHg', f"(2 × {diastolic} + {systolic}) / 3", warnings)


# ---------------------------------------------------------------------
# Fluids & burns
# ---------------------------------------------------------------------
def parkland(*, weight: float, tbsa: float) -> CalculatorResult:
    _require_positive(weight=weight, tbsa=tbsa)
    if tbsa > 100:
        raise _invalid('tbsa', 'Burned surface area cannot exceed 100%')
    total = 4 * weight * tbsa
    half = total / 2
    return CalculatorResult(
        _r(total, 0), 'mL',
        f"4 mL × {weight} kg × {tbsa}% TBSA over 24 hours",
        extra={'first8Hours': _r(half, 0), 'next16Hours': _r(half, 0), 'first8HoursRate': _r(half / 8, 0)},
    )


RULE_OF_NINES_REGIONS = (
    'head', 'chest', 'abdomen', 'back', 'left_arm', 'right_arm', 'left_leg', 'right_leg', 'genitalia',
)


def rule_of_nines(**regions: float) -> CalculatorResult:
    unknown = set(regions) - set(RULE_OF_NINES_REGIONS)
    if unknown:
        raise _invalid(sorted(unknown)[0], 'Unknown body region')
    values = {k: (v or 0) for k, v in regions.items()}
    negatives = [k for k, v in values.items() if v < 0]
    if negatives:
        raise _invalid(negatives[0], 'Must not be negative')
    total = sum(values.values())
    if total > 100:
        raise _invalid('total', 'Total burned area cannot exceed 100%')
    return CalculatorResult(_r(total, 1), '%', 'Sum of burned regions (rule of nines)',
                            extra={'regions': values})


def free_water_deficit(*, weight: float, sodium: float) -> CalculatorResult:
    _require_positive(weight=weight, sodium=sodium)
    if not 135 <= sodium <= 160:
        raise _invalid('sodium', 'Sodium must be between 135 and 160 mEq/L')
    deficit = weight * 0.6 * ((sodium - 140) / 140)
    return CalculatorResult(_r(deficit), 'L', f"{weight} kg × 0.6 × (({sodium} − 140) / 140)")


def fluid_maintenance(*, weight: float) -> CalculatorResult:
    """Holliday-Segar 100/50/20 rule."""
    _require_positive(weight=weight)
    daily = _holliday_segar(weight)
    return CalculatorResult(
        _r(daily, 0), 'mL/day', 'Holliday-Segar method',
        extra={'hourly': _r(daily / 24, 1)},
    )


def blood_loss(*, weight: float, pre_hct: float, post_hct: float) -> CalculatorResult:
    _require_positive(weight=weight, pre_hct=pre_hct, post_hct=post_hct)
    if post_hct > pre_hct:
        raise _invalid('post_hct', 'Post-operative hematocrit cannot exceed pre-operative')
    ebv = weight * 70
    loss = ebv * ((pre_hct - post_hct) / ((pre_hct + post_hct) / 2))
    return CalculatorResult(
        _r(loss, 0), 'mL',
        f"Pre-op Hct: {pre_hct}%, Post-op Hct: {post_hct}%, Weight: {weight} kg",
        extra={'estimatedBloodVolume': _r(ebv, 0)},
    )


def postop_fluids(*, weight: float, maintenance: float = 0, third_space: float = 0) -> CalculatorResult:
    _require_positive(weight=weight)
    maintenance, third_space = maintenance or 0, third_space or 0
    if maintenance < 0 or third_space < 0:
        raise _invalid('maintenance' if maintenance < 0 else 'third_space', 'Must not be negative')
    base = _holliday_segar(weight)
    total = base + maintenance + third_space
    return CalculatorResult(
        _r(total, 0), 'mL/day',
        f"Holliday-Segar {_r(base, 0)} mL + {maintenance} mL + {third_space} mL third-space",
        extra={'hourly': _r(total / 24, 1), 'baseMaintenance': _r(base, 0)},
    )


# ---------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class Calculator:
    name: str
    title: str
    description: str
    func: Callable[..., CalculatorResult]


CALCULATORS: dict[str, Calculator] = {
    c.name: c
    for c in (
        Calculator('dosage', 'Dosage', 'Weight-based dose and volume', dosage),
        Calculator('drip-rate', 'IV Drip Rate', 'Drops per minute for gravity infusions', drip_rate),
        Calculator('bsa', 'Body Surface Area', 'Mosteller body surface area', bsa),
        Calculator('creatinine-clearance', 'Creatinine Clearance', 'Cockcroft-Gault creatinine clearance', creatinine_clearance),
        Calculator('pediatric-dose', 'Pediatric Dose', "Young's and Clark's rules", pediatric_dose),
        Calculator('half-life', 'Half-Life', 'Drug remaining after elapsed time', half_life),
        Calculator('iv-infusion', 'IV Infusion Rate', 'Infusion rate in mL/hour', iv_infusion),
        Calculator('body-weight-dose', 'Body Weight Dose', 'Dose from weight and mg/kg', body_weight_dose),
        Calculator('alligation', 'Alligation', 'Mixing two concentrations', alligation),
        Calculator('cost', 'Medication Cost', 'Cost per dose, day and month', cost),
        Calculator('dilution', 'Dilution', 'C1V1 = C2V2 dilution', dilution),
        Calculator('steady-state', 'Steady State', 'Time to steady-state concentration', steady_state),
        Calculator('bmi', 'BMI', 'Body mass index and category', bmi),
        Calculator('ideal-body-weight', 'Ideal Body Weight', 'Devine ideal body weight', ideal_body_weight),
        Calculator('adjusted-body-weight', 'Adjusted Body Weight', 'Adjusted body weight for dosing', adjusted_body_weight),
        Calculator('egfr', 'eGFR', 'MDRD estimated glomerular filtration rate', egfr),
        Calculator('anion-gap', 'Anion Gap', 'Serum anion gap', anion_gap),
        Calculator('qtc', 'QTc', 'Corrected QT interval', qtc),
        Calculator('map', 'Mean Arterial Pressure', 'Mean arterial pressure', mean_arterial_pressure),
        Calculator('parkland', 'Parkland Formula', 'Burn resuscitation fluids', parkland),
        Calculator('rule-of-nines', 'Rule of Nines', 'Burned body surface area', rule_of_nines),
        Calculator('free-water-deficit', 'Free Water Deficit', 'Free water deficit in hypernatremia', free_water_deficit),
        Calculator('fluid-maintenance', 'Maintenance Fluids', 'Holliday-Segar maintenance fluids', fluid_maintenance),
        Calculator('antipsychotic-equivalent', 'Antipsychotic Equivalent', 'Chlorpromazine equivalent conversion', antipsychotic_equivalent),
        Calculator('lithium-dose', 'Lithium Dose', 'Lithium dose adjustment', lithium_dose),
        Calculator('blood-loss', 'Blood Loss', 'Estimated blood loss from hematocrit change', blood_loss),
        Calculator('postop-fluids', 'Post-op Fluids', 'Post-operative fluid requirements', postop_fluids),
    )
}


def get_calculator(name: str) -> Calculator:
    calc = CALCULATORS.get(name)
    if calc is None:
        raise NotFoundError('Calculator', name)
    return calc


def calculate(name: str, params: dict) -> CalculatorResult:
    return get_calculator(name).func(**params)
